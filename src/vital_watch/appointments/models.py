"""
Appointment Model - Stores appointment information and scheduling.

An appointment is also the treatment relationship that lets a doctor read a
patient's prescriptions.
"""
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Enum
from sqlalchemy.orm import relationship
import enum
from ..database import Base

class AppointmentStatus(str, enum.Enum):
    """Enum for appointment status"""
    SCHEDULED = "scheduled"
    COMPLETED = "completed"

class Appointment(Base):
    """
    Appointment Model - Stores appointment information

    Fields:
    - id: Primary key for appointment
    - doctor_id: Foreign key to Doctor model
    - patient_id: Foreign key to Patient model
    - start_time / end_time: Appointment slot
    - status: scheduled or completed
    - appointment_type: Free-text category (e.g. "consultation")
    """
    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True, index=True)
    doctor_id = Column(Integer, ForeignKey("doctors.id", ondelete="CASCADE"), nullable=False, index=True)
    patient_id = Column(Integer, ForeignKey("patients.id", ondelete="CASCADE"), nullable=False, index=True)
    start_time = Column(DateTime(timezone=True), nullable=False)
    end_time = Column(DateTime(timezone=True), nullable=False)
    status = Column(
        Enum(AppointmentStatus, name="appointment_status", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=AppointmentStatus.SCHEDULED
    )
    appointment_type = Column(String, nullable=True)

    # Relationships
    doctor = relationship("Doctor", back_populates="appointments")
    patient = relationship("Patient", back_populates="appointments")

    def __repr__(self):
        """String representation of the Appointment model"""
        return f"<Appointment(id={self.id}, doctor_id={self.doctor_id}, patient_id={self.patient_id}, start='{self.start_time}')>"

    def mark_completed(self) -> None:
        """
        Move the appointment from scheduled to completed.

        Raises:
            ValueError: If the appointment is not scheduled
        """
        if self.status != AppointmentStatus.SCHEDULED:
            raise ValueError(f"Cannot complete an appointment in status '{self.status.value}'")
        self.status = AppointmentStatus.COMPLETED
