"""
Patient Router - A doctor's view of a treated patient's history.
"""
from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..database import get_db
from ..auth.dependencies import require_doctor
from ..auth.schemas import AuthContext
from ..appointments.schemas import AppointmentResponse
from ..appointments.service import list_patient_appointments_for_doctor
from ..prescriptions.schemas import PrescriptionResponse
from ..prescriptions.service import list_prescriptions_for_doctor

router = APIRouter()

@router.get("/{patient_id}/appointments", response_model=List[AppointmentResponse])
def get_patient_appointments(
    patient_id: int,
    db: Session = Depends(get_db),
    context: AuthContext = Depends(require_doctor)
):
    """
    Get a patient's appointments with the current doctor
    """
    return list_patient_appointments_for_doctor(db, context.subject_id, patient_id)

@router.get("/{patient_id}/prescriptions", response_model=List[PrescriptionResponse])
def get_patient_prescriptions(
    patient_id: int,
    db: Session = Depends(get_db),
    context: AuthContext = Depends(require_doctor)
):
    """
    Get a treated patient's prescriptions

    Empty if the current doctor has no appointment with the patient.
    """
    return list_prescriptions_for_doctor(db, context.subject_id, patient_id)
