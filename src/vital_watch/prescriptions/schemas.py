"""
Prescription Schemas - Pydantic models for prescription metadata.
"""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict

class PrescriptionResponse(BaseModel):
    """
    Prescription Response Schema - Metadata of a stored prescription document

    `file_name` is the opaque key used to download the document.
    """
    model_config = ConfigDict(from_attributes=True)

    id: int
    patient_id: int
    doctor_id: Optional[int] = None
    doctor_name: Optional[str] = None
    medication: str
    notes: Optional[str] = None
    file_name: str
    created_at: Optional[datetime] = None

class PrescriptionUploadResponse(BaseModel):
    id: int
    filename: str
