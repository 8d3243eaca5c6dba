"""
Prescription Model - Metadata record for a prescription document.

The document bytes live in the blob store under `file_name`. A row is only
ever written after the blob has been stored.
"""
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Text, func
from sqlalchemy.orm import relationship
from ..database import Base

class Prescription(Base):
    """
    Prescription Model - Stores prescription metadata

    Fields:
    - id: Primary key for prescription
    - patient_id: Foreign key to Patient model
    - doctor_id: Foreign key to Doctor model (author)
    - medication: Prescribed medication
    - notes: Additional notes
    - file_name: Unique blob store key of the document
    - created_at: When the record was created
    """
    __tablename__ = "prescriptions"

    id = Column(Integer, primary_key=True, index=True)
    patient_id = Column(Integer, ForeignKey("patients.id", ondelete="CASCADE"), nullable=False, index=True)
    doctor_id = Column(Integer, ForeignKey("doctors.id", ondelete="SET NULL"), nullable=True, index=True)
    medication = Column(Text, nullable=False)
    notes = Column(Text, nullable=True)
    file_name = Column(String, unique=True, index=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    patient = relationship("Patient", back_populates="prescriptions")
    doctor = relationship("Doctor", back_populates="prescriptions")

    @property
    def doctor_name(self):
        """Full name of the authoring doctor, if the doctor still exists"""
        return self.doctor.full_name if self.doctor is not None else None

    def __repr__(self):
        """String representation of the Prescription model"""
        return f"<Prescription(id={self.id}, patient_id={self.patient_id}, doctor_id={self.doctor_id})>"
