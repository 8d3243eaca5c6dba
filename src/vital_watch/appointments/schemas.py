"""
Appointment Schemas - Pydantic models for appointment requests and responses.
"""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field

from .models import AppointmentStatus

class AppointmentCreate(BaseModel):
    """
    Appointment Create Schema - Payload for booking an appointment

    The patient is always the authenticated caller, so only the doctor is chosen.
    """
    doctor_id: int = Field(..., gt=0)
    start_time: datetime
    end_time: datetime
    appointment_type: Optional[str] = Field(None, max_length=100)

class AppointmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    doctor_id: int
    patient_id: int
    start_time: datetime
    end_time: datetime
    status: AppointmentStatus
    appointment_type: Optional[str] = None
