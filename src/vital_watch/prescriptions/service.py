"""
Prescription Service - Document storage and access control for prescriptions.

A prescription is two things kept in step: a blob in the blob store and a
metadata row in the database. Writes store the blob first and only then insert
the row; if the insert fails the blob is deleted again in the background.
Reads check ownership before the blob store is touched.
"""
from typing import BinaryIO, List, Optional, Tuple
from sqlalchemy.orm import Session
from fastapi import Request
import logging
import os
import re
import uuid

from ..appointments.service import has_treated
from ..auth.exceptions import AuthorizationError
from ..auth.models import UserRole
from ..auth.schemas import AuthContext
from ..core.audit_service import create_audit_log
from ..core.storage import BlobStore, StoredObject
from ..core.tasks import BackgroundTaskRunner
from ..exceptions import ConsistencyError, ValidationError
from ..patients.models import Patient
from .models import Prescription

# Set up logging
logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"
SAFE_EXTENSION = re.compile(r"^\.[A-Za-z0-9]{1,10}$")

def build_storage_key(patient_id: int, original_filename: Optional[str]) -> str:
    """
    Generate a fresh, unguessable blob key for a patient's document.

    The original extension is kept only when it is short and alphanumeric.

    Returns:
        str: Key of the form prescription-<patient_id>-<uuid4><ext>
    """
    extension = os.path.splitext(original_filename or "")[1]
    if not SAFE_EXTENSION.match(extension):
        extension = ""
    return f"prescription-{patient_id}-{uuid.uuid4()}{extension}"

def resolve_document_access(
    db: Session,
    subject_id: int,
    role: UserRole,
    filename: str
) -> Optional[Prescription]:
    """
    Decide whether a subject may read the document stored under `filename`.

    Patients may read their own prescriptions. Doctors may read a prescription
    only if they have an appointment with its patient; having written it is
    not enough.

    Args:
        db: Database session
        subject_id: Authenticated patient or doctor id
        role: Authenticated role
        filename: Storage key requested

    Returns:
        Optional[Prescription]: The record if access is granted, None otherwise.
        A missing record and a forbidden one both give None.
    """
    if role == UserRole.PATIENT:
        return db.query(Prescription).filter(
            Prescription.file_name == filename,
            Prescription.patient_id == subject_id
        ).first()

    if role == UserRole.DOCTOR:
        prescription = db.query(Prescription).filter(Prescription.file_name == filename).first()
        if prescription is not None and has_treated(db, subject_id, prescription.patient_id):
            return prescription

    return None

def create_prescription_record(
    db: Session,
    patient_id: int,
    doctor_id: int,
    medication: str,
    notes: Optional[str],
    file_name: str
) -> int:
    """
    Insert and commit the metadata row for a stored document.

    The commit is the last database call, so a failure raised from here always
    means the row was not written.

    Returns:
        int: Id of the new record
    """
    prescription = Prescription(
        patient_id=patient_id,
        doctor_id=doctor_id,
        medication=medication,
        notes=notes,
        file_name=file_name
    )
    db.add(prescription)
    db.flush()
    record_id = prescription.id
    db.commit()
    return record_id

def list_patient_prescriptions(db: Session, patient_id: int) -> List[Prescription]:
    """A patient's prescriptions, newest first."""
    return (
        db.query(Prescription)
        .filter(Prescription.patient_id == patient_id)
        .order_by(Prescription.created_at.desc(), Prescription.id.desc())
        .all()
    )

def list_prescriptions_for_doctor(db: Session, doctor_id: int, patient_id: int) -> List[Prescription]:
    """
    A patient's prescriptions as seen by a doctor.

    Empty unless the doctor has treated the patient.
    """
    if not has_treated(db, doctor_id, patient_id):
        logger.info(f"Doctor {doctor_id} has no appointment with patient {patient_id}; hiding prescriptions")
        return []
    return list_patient_prescriptions(db, patient_id)


class PrescriptionWriter:
    """
    Stores a prescription document and its metadata row, or neither.

    If the row cannot be written after the blob was stored, a best-effort
    delete of the blob is handed to the background runner and the upload
    fails straight away.
    """

    def __init__(self, blob_store: BlobStore, runner: BackgroundTaskRunner, max_upload_size: int):
        self.blob_store = blob_store
        self.runner = runner
        self.max_upload_size = max_upload_size

    def upload(
        self,
        db: Session,
        patient_id: int,
        doctor_id: int,
        medication: str,
        notes: Optional[str],
        data: BinaryIO,
        original_filename: Optional[str],
        content_length: int,
        content_type: Optional[str] = None,
        request: Optional[Request] = None
    ) -> Tuple[int, str]:
        """
        Upload a prescription document for a patient.

        Args:
            db: Database session
            patient_id: Patient the prescription is for
            doctor_id: Authenticated doctor writing it
            medication: Prescribed medication
            notes: Optional notes
            data: Readable binary stream with the document body
            original_filename: Client-side filename, used for the extension
            content_length: Declared size in bytes
            content_type: Declared MIME type
            request: FastAPI request object for audit logging

        Returns:
            Tuple[int, str]: New record id and storage key

        Raises:
            ValidationError: Unknown patient, empty or oversized document
            StorageError: The blob could not be stored; nothing was written
            ConsistencyError: The row could not be written; blob delete was scheduled
        """
        if db.get(Patient, patient_id) is None:
            raise ValidationError("Patient not found")
        if not medication or not medication.strip():
            raise ValidationError("Medication is required")
        if content_length <= 0:
            raise ValidationError("Uploaded file is empty")
        if content_length > self.max_upload_size:
            raise ValidationError(f"File exceeds the maximum size of {self.max_upload_size} bytes")

        key = build_storage_key(patient_id, original_filename)

        # StorageError propagates as is: no row exists, nothing to undo
        self.blob_store.put(
            key,
            data,
            content_length=content_length,
            content_type=content_type or DEFAULT_CONTENT_TYPE,
            filename=original_filename
        )

        try:
            record_id = create_prescription_record(db, patient_id, doctor_id, medication, notes, key)
        except Exception as e:
            db.rollback()
            logger.error(f"Metadata insert failed for stored blob {key}: {str(e)}")
            self.runner.submit(self._delete_orphan, key)
            raise ConsistencyError(key, f"Metadata insert failed for {key}: {e!r}") from e

        logger.info(f"Prescription {record_id} uploaded by doctor {doctor_id} for patient {patient_id}")
        create_audit_log(
            db,
            action="PRESCRIPTION_UPLOADED",
            principal_id=doctor_id,
            role=UserRole.DOCTOR.value,
            request=request,
            details={"prescription_id": record_id, "patient_id": patient_id, "file_name": key}
        )
        return record_id, key

    def _delete_orphan(self, key: str) -> None:
        """Compensating delete for a blob whose row was never committed. Not retried."""
        logger.warning(f"Deleting orphaned blob {key}")
        try:
            self.blob_store.delete(key)
        except Exception as e:
            logger.critical(f"Failed to delete orphaned blob {key}; manual cleanup required: {str(e)}")
            return
        logger.info(f"Orphaned blob {key} deleted")


class PrescriptionReader:
    """
    Serves prescription documents to subjects allowed to read them.
    """

    def __init__(self, blob_store: BlobStore):
        self.blob_store = blob_store

    def download(
        self,
        db: Session,
        context: AuthContext,
        filename: str,
        request: Optional[Request] = None
    ) -> StoredObject:
        """
        Open a prescription document for streaming.

        Raises:
            AuthorizationError: The caller may not read it, or it does not exist
            StorageError: The blob store could not serve it
        """
        prescription = resolve_document_access(db, context.subject_id, context.role, filename)
        if prescription is None:
            create_audit_log(
                db,
                action="PRESCRIPTION_DOWNLOAD_DENIED",
                principal_id=context.subject_id,
                role=context.role.value,
                request=request,
                details={"file_name": filename}
            )
            raise AuthorizationError(f"{context.role.value} {context.subject_id} may not read {filename}")

        stored = self.blob_store.get(filename)

        create_audit_log(
            db,
            action="PRESCRIPTION_DOWNLOADED",
            principal_id=context.subject_id,
            role=context.role.value,
            request=request,
            details={"prescription_id": prescription.id, "file_name": filename}
        )
        return stored
