"""
Appointment Service - Business logic for booking and completing appointments.

Appointments double as the treatment relationship: a doctor who has at least
one appointment with a patient may read that patient's history and documents.
"""
from typing import List, Optional
from sqlalchemy.orm import Session
from fastapi import Request
import logging

from ..auth.models import UserRole
from ..core.audit_service import create_audit_log
from ..doctors.models import Doctor
from ..exceptions import ResourceNotFoundError, ValidationError
from ..patients.models import Patient
from .models import Appointment
from .schemas import AppointmentCreate

# Set up logging
logger = logging.getLogger(__name__)

def has_treated(db: Session, doctor_id: int, patient_id: int) -> bool:
    """
    Check whether a doctor has any appointment with a patient.

    Args:
        db: Database session
        doctor_id: ID of the doctor
        patient_id: ID of the patient

    Returns:
        bool: True if at least one appointment links them
    """
    query = db.query(Appointment.id).filter(
        Appointment.doctor_id == doctor_id,
        Appointment.patient_id == patient_id
    )
    return db.query(query.exists()).scalar()

def list_treated_patients(db: Session, doctor_id: int) -> List[Patient]:
    """Distinct patients that have an appointment with the doctor."""
    return (
        db.query(Patient)
        .join(Appointment, Appointment.patient_id == Patient.id)
        .filter(Appointment.doctor_id == doctor_id)
        .distinct()
        .order_by(Patient.id)
        .all()
    )

def list_appointments_for(db: Session, role: UserRole, subject_id: int) -> List[Appointment]:
    """
    List the caller's appointments, from the patient or the doctor side.

    Args:
        db: Database session
        role: Caller role
        subject_id: Caller id

    Returns:
        List[Appointment]: Appointments ordered by start time
    """
    column = Appointment.doctor_id if role == UserRole.DOCTOR else Appointment.patient_id
    return db.query(Appointment).filter(column == subject_id).order_by(Appointment.start_time).all()

def list_patient_appointments_for_doctor(db: Session, doctor_id: int, patient_id: int) -> List[Appointment]:
    """A treated patient's appointments with the requesting doctor."""
    return (
        db.query(Appointment)
        .filter(Appointment.doctor_id == doctor_id, Appointment.patient_id == patient_id)
        .order_by(Appointment.start_time)
        .all()
    )

def create_appointment(
    db: Session,
    patient_id: int,
    appointment_data: AppointmentCreate,
    request: Optional[Request] = None
) -> Appointment:
    """
    Book an appointment for a patient with an existing doctor.

    Raises:
        ValidationError: If the time range is empty or the doctor is unavailable
        ResourceNotFoundError: If the doctor does not exist
    """
    if appointment_data.end_time <= appointment_data.start_time:
        raise ValidationError("Appointment end time must be after start time")

    doctor = db.get(Doctor, appointment_data.doctor_id)
    if doctor is None:
        raise ResourceNotFoundError("Doctor not found")
    if not doctor.available:
        raise ValidationError("Doctor is not accepting appointments")

    appointment = Appointment(
        doctor_id=doctor.id,
        patient_id=patient_id,
        start_time=appointment_data.start_time,
        end_time=appointment_data.end_time,
        appointment_type=appointment_data.appointment_type
    )
    db.add(appointment)
    db.commit()
    db.refresh(appointment)

    logger.info(f"Appointment {appointment.id} booked: patient {patient_id} with doctor {doctor.id}")
    create_audit_log(
        db,
        action="APPOINTMENT_CREATED",
        principal_id=patient_id,
        role=UserRole.PATIENT.value,
        request=request,
        details={"appointment_id": appointment.id, "doctor_id": doctor.id}
    )
    return appointment

def complete_appointment(
    db: Session,
    doctor_id: int,
    appointment_id: int,
    request: Optional[Request] = None
) -> Appointment:
    """
    Mark one of the doctor's own appointments as completed.

    Raises:
        ResourceNotFoundError: If no such appointment belongs to the doctor
        ValidationError: If the appointment is not scheduled
    """
    appointment = db.query(Appointment).filter(
        Appointment.id == appointment_id,
        Appointment.doctor_id == doctor_id
    ).first()
    if appointment is None:
        raise ResourceNotFoundError("Appointment not found")

    try:
        appointment.mark_completed()
    except ValueError as e:
        raise ValidationError(str(e))

    db.commit()
    db.refresh(appointment)

    logger.info(f"Appointment {appointment_id} completed by doctor {doctor_id}")
    create_audit_log(
        db,
        action="APPOINTMENT_COMPLETED",
        principal_id=doctor_id,
        role=UserRole.DOCTOR.value,
        request=request,
        details={"appointment_id": appointment_id}
    )
    return appointment
