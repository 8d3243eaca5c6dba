"""
Doctor Service - Business logic for doctor lookups.

This module provides the doctor directory query and the doctor's view of
the patients they treat.
"""
from typing import List, Optional
from sqlalchemy.orm import Query, Session
import logging

from ..appointments.service import list_treated_patients
from ..exceptions import ResourceNotFoundError
from ..patients.models import Patient
from .models import Doctor

# Set up logging
logger = logging.getLogger(__name__)

def get_doctor(db: Session, doctor_id: int) -> Doctor:
    """
    Get a doctor by ID.

    Args:
        db: Database session
        doctor_id: ID of the doctor

    Returns:
        Doctor: Doctor account

    Raises:
        ResourceNotFoundError: If the doctor does not exist
    """
    doctor = db.get(Doctor, doctor_id)
    if doctor is None:
        raise ResourceNotFoundError("Doctor not found")
    return doctor

def doctor_directory_query(
    db: Session,
    specialty: Optional[str] = None,
    available: Optional[bool] = None
) -> Query:
    """
    Build the query behind the doctor listing, with optional filters.

    Args:
        db: Database session
        specialty: Case-insensitive substring match on specialty
        available: Only doctors with this availability flag

    Returns:
        Query: Unexecuted query ordered by id, ready for pagination
    """
    query = db.query(Doctor)

    if specialty:
        query = query.filter(Doctor.specialty.ilike(f"%{specialty}%"))

    if available is not None:
        query = query.filter(Doctor.available == available)

    return query.order_by(Doctor.id)

def get_my_patients(db: Session, doctor_id: int) -> List[Patient]:
    patients = list_treated_patients(db, doctor_id)
    logger.info(f"Doctor {doctor_id} has {len(patients)} treated patients")
    return patients
