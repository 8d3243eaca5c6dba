"""
Patient Schemas - Pydantic models for patient data serialization.
"""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict

class PatientResponse(BaseModel):
    """
    Patient Response Schema - Public view of a patient account

    The password hash is never part of any response.
    """
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    first_name: str
    last_name: str
    created_at: Optional[datetime] = None
