"""
FastAPI dependencies wiring the blob store and background runner into the
prescription document services.
"""
from functools import lru_cache
from fastapi import Depends

from ..config import settings
from ..core.storage import BlobStore, CloudinaryBlobStore
from ..core.tasks import BackgroundTaskRunner
from .service import PrescriptionReader, PrescriptionWriter

@lru_cache()
def get_blob_store() -> BlobStore:
    """Process-wide blob store, built once from settings."""
    return CloudinaryBlobStore.from_settings(settings)

@lru_cache()
def get_task_runner() -> BackgroundTaskRunner:
    """Process-wide runner for compensating actions."""
    return BackgroundTaskRunner(max_workers=settings.compensation_workers, thread_name_prefix="compensation")

def get_prescription_writer(
    blob_store: BlobStore = Depends(get_blob_store),
    runner: BackgroundTaskRunner = Depends(get_task_runner)
) -> PrescriptionWriter:
    return PrescriptionWriter(blob_store, runner, max_upload_size=settings.max_upload_size)

def get_prescription_reader(blob_store: BlobStore = Depends(get_blob_store)) -> PrescriptionReader:
    return PrescriptionReader(blob_store)
