"""
Patient Model - Stores patient accounts.

Patients register themselves, book appointments and own the prescriptions
written for them.
"""
from sqlalchemy import Column, Integer, String, DateTime, func
from sqlalchemy.orm import relationship
from ..database import Base
from ..auth.models import Principal, UserRole

class Patient(Base, Principal):
    """
    Patient Model - Stores patient account information

    Fields:
    - id: Primary key, also the `sub` claim of the patient's tokens
    - email: Login email, unique among patients
    - first_name / last_name: Patient's name
    - password_hash: bcrypt hash of the password (never serialized)
    - created_at: When the account was created
    """
    __tablename__ = "patients"

    role = UserRole.PATIENT

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    password_hash = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    appointments = relationship("Appointment", back_populates="patient")
    prescriptions = relationship("Prescription", back_populates="patient")

    def __repr__(self):
        """String representation of the Patient model"""
        return f"<Patient(id={self.id}, email='{self.email}')>"
