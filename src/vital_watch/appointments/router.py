"""
Appointment Router - API endpoints for booking and completing appointments.
"""
from typing import List
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..auth.dependencies import get_auth_context, require_doctor, require_patient
from ..auth.schemas import AuthContext
from .schemas import AppointmentCreate, AppointmentResponse
from .service import complete_appointment, create_appointment, list_appointments_for

router = APIRouter()

@router.get("", response_model=List[AppointmentResponse])
def list_my_appointments(
    db: Session = Depends(get_db),
    context: AuthContext = Depends(get_auth_context)
):
    """
    Get the caller's appointments

    Patients see the appointments they booked; doctors see the ones booked with them.
    """
    return list_appointments_for(db, context.role, context.subject_id)

@router.post("", response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
def book_appointment(
    appointment_data: AppointmentCreate,
    request: Request,
    db: Session = Depends(get_db),
    context: AuthContext = Depends(require_patient)
):
    """
    Book an appointment with a doctor (patients only)
    """
    return create_appointment(db, context.subject_id, appointment_data, request=request)

@router.put("/{appointment_id}/complete", response_model=AppointmentResponse)
def mark_appointment_completed(
    appointment_id: int,
    request: Request,
    db: Session = Depends(get_db),
    context: AuthContext = Depends(require_doctor)
):
    """
    Complete one of the caller's scheduled appointments (doctors only)
    """
    return complete_appointment(db, context.subject_id, appointment_id, request=request)
