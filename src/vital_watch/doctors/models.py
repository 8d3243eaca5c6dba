"""
Doctor Model - Stores doctor accounts and professional details.
"""
from sqlalchemy import Column, Integer, String, Boolean, DateTime, func
from sqlalchemy.orm import relationship
from ..database import Base
from ..auth.models import Principal, UserRole

class Doctor(Base, Principal):
    """
    Doctor Model - Stores doctor account information

    Fields:
    - id: Primary key, also the `sub` claim of the doctor's tokens
    - email: Login email, unique among doctors
    - first_name / last_name: Doctor's name
    - password_hash: bcrypt hash of the password (never serialized)
    - specialty: Medical specialty
    - experience: Years of experience
    - available: Whether the doctor currently accepts appointments
    - created_at: When the account was created
    """
    __tablename__ = "doctors"

    role = UserRole.DOCTOR

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    password_hash = Column(String, nullable=False)
    specialty = Column(String, nullable=True)
    experience = Column(Integer, nullable=False, default=0)
    available = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    appointments = relationship("Appointment", back_populates="doctor")
    prescriptions = relationship("Prescription", back_populates="doctor")

    def __repr__(self):
        """String representation of the Doctor model"""
        return f"<Doctor(id={self.id}, email='{self.email}', specialty='{self.specialty}')>"
