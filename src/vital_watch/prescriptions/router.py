"""
Prescription Router - Upload, list and download prescription documents.

The document endpoints are plain `def` routes: they run in the threadpool, so a
slow blob store only holds up the request that is waiting on it.
"""
from typing import Iterator, List, Optional
from urllib.parse import quote
from fastapi import APIRouter, Depends, File, Form, Request, UploadFile, status
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session
import logging
import os

from ..database import get_db
from ..auth.dependencies import get_auth_context, require_doctor, require_patient
from ..auth.schemas import AuthContext
from ..core.storage import StoredObject
from ..exceptions import ValidationError
from .dependencies import get_prescription_reader, get_prescription_writer
from .schemas import PrescriptionResponse, PrescriptionUploadResponse
from .service import PrescriptionReader, PrescriptionWriter, list_patient_prescriptions

# Set up logging
logger = logging.getLogger(__name__)

router = APIRouter()

def parse_patient_id(raw: str) -> int:
    try:
        patient_id = int(raw)
    except (TypeError, ValueError):
        raise ValidationError("Invalid patient ID")
    if patient_id <= 0:
        raise ValidationError("Invalid patient ID")
    return patient_id

def upload_size(file: UploadFile) -> int:
    """Size of an uploaded file, measured from the spooled body when not known."""
    if file.size is not None:
        return file.size
    file.file.seek(0, os.SEEK_END)
    size = file.file.tell()
    file.file.seek(0)
    return size

def content_disposition(filename: str) -> str:
    """
    Build an attachment Content-Disposition header.

    Non-ASCII names are sent as an RFC 5987 `filename*` with an ASCII fallback.
    """
    fallback = "".join(c if 32 <= ord(c) < 127 and c not in '"\\' else "_" for c in filename)
    if fallback == filename:
        return f'attachment; filename="{filename}"'
    return f"attachment; filename=\"{fallback}\"; filename*=utf-8''{quote(filename)}"

def stream_and_close(stored: StoredObject) -> Iterator[bytes]:
    try:
        for chunk in stored.chunks:
            yield chunk
    finally:
        stored.close()

@router.post("", response_model=PrescriptionUploadResponse, status_code=status.HTTP_201_CREATED)
def upload_prescription(
    request: Request,
    patient_id: str = Form(...),
    medication: str = Form(...),
    notes: Optional[str] = Form(None),
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    context: AuthContext = Depends(require_doctor),
    writer: PrescriptionWriter = Depends(get_prescription_writer)
):
    """
    Upload a prescription document for a patient (doctors only)

    The document is stored first and the metadata row second. If the row
    cannot be written the upload fails and the stored document is removed again.
    """
    record_id, key = writer.upload(
        db,
        patient_id=parse_patient_id(patient_id),
        doctor_id=context.subject_id,
        medication=medication,
        notes=notes,
        data=file.file,
        original_filename=file.filename,
        content_length=upload_size(file),
        content_type=file.content_type,
        request=request
    )
    return PrescriptionUploadResponse(id=record_id, filename=key)

@router.get("", response_model=List[PrescriptionResponse])
def list_my_prescriptions(
    db: Session = Depends(get_db),
    context: AuthContext = Depends(require_patient)
):
    """
    Get the current patient's prescriptions, newest first
    """
    return list_patient_prescriptions(db, context.subject_id)

@router.get("/{filename}")
def download_prescription(
    filename: str,
    request: Request,
    db: Session = Depends(get_db),
    context: AuthContext = Depends(get_auth_context),
    reader: PrescriptionReader = Depends(get_prescription_reader)
):
    """
    Download a prescription document

    Patients may download their own documents; doctors may download documents
    of patients they have an appointment with. Every refusal looks the same as
    an unauthenticated request.
    """
    stored = reader.download(db, context, filename, request=request)
    headers = {
        "Content-Length": str(stored.content_length),
        "Content-Disposition": content_disposition(stored.filename or stored.key),
    }
    return StreamingResponse(stream_and_close(stored), media_type=stored.content_type, headers=headers)
