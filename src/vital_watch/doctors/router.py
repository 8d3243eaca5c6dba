"""
Doctor Router - API endpoints for the doctor directory.

Note: Doctor registration is handled through /api/v1/auth/
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..database import get_db
from ..auth.dependencies import require_doctor
from ..auth.schemas import AuthContext
from ..core.pagination import PageParams, PageResponse, paginate
from ..patients.schemas import PatientResponse
from .schemas import DoctorResponse
from .service import doctor_directory_query, get_doctor, get_my_patients

router = APIRouter()

@router.get("", response_model=PageResponse[DoctorResponse])
def list_doctors(
    page_params: PageParams = Depends(),
    specialty: Optional[str] = Query(None, description="Filter by specialty"),
    available: Optional[bool] = Query(None, description="Filter by availability"),
    db: Session = Depends(get_db)
):
    """
    Get a paginated list of doctors

    This endpoint allows any signed-in user to browse doctors with optional filtering.
    """
    query = doctor_directory_query(db, specialty=specialty, available=available)
    return paginate(query, page_params, DoctorResponse)

@router.get("/me/patients", response_model=List[PatientResponse])
def list_my_patients(
    db: Session = Depends(get_db),
    context: AuthContext = Depends(require_doctor)
):
    """
    Get the patients the current doctor has appointments with
    """
    return get_my_patients(db, context.subject_id)

@router.get("/{doctor_id}", response_model=DoctorResponse)
def get_doctor_by_id(
    doctor_id: int,
    db: Session = Depends(get_db)
):
    """
    Get a doctor by ID
    """
    return get_doctor(db, doctor_id)
