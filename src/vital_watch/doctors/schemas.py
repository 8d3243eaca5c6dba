"""
Doctor Schemas - Pydantic models for doctor profile serialization.
"""
from typing import Optional
from pydantic import BaseModel, ConfigDict
from datetime import datetime

class DoctorResponse(BaseModel):
    """
    Doctor Response Schema - Public view of a doctor account

    Fields:
    - id: Doctor ID
    - email / first_name / last_name: Contact and name
    - specialty: Medical specialty
    - experience: Years of experience
    - available: Whether the doctor accepts appointments
    """
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    first_name: str
    last_name: str
    specialty: Optional[str] = None
    experience: int = 0
    available: bool = True
    created_at: Optional[datetime] = None
