"""
Tests for storing prescription documents and compensating failed inserts.
"""
import io
import logging
import pytest
from sqlalchemy.exc import OperationalError

from vital_watch.exceptions import ConsistencyError, StorageError, ValidationError
from vital_watch.prescriptions import service
from vital_watch.prescriptions.models import Prescription
from vital_watch.prescriptions.service import PrescriptionWriter

PDF = b"%PDF-1.4 fake prescription"

@pytest.fixture
def writer(blob_store, runner):
    return PrescriptionWriter(blob_store, runner, max_upload_size=1024)

@pytest.fixture
def failing_insert(monkeypatch):
    def _fail(*args, **kwargs):
        raise OperationalError("INSERT INTO prescriptions", {}, Exception("database is locked"))
    monkeypatch.setattr(service, "create_prescription_record", _fail)

def upload(writer, db, filename="scan.pdf", data=PDF, patient_id=3):
    return writer.upload(
        db,
        patient_id=patient_id,
        doctor_id=7,
        medication="Amoxicillin 500mg",
        notes="Twice daily",
        data=io.BytesIO(data),
        original_filename=filename,
        content_length=len(data),
        content_type="application/pdf"
    )


def test_identical_uploads_get_distinct_keys(db, clinic, writer, blob_store):
    first_id, first_key = upload(writer, db)
    second_id, second_key = upload(writer, db)

    assert first_id != second_id
    assert first_key != second_key
    for key in (first_key, second_key):
        assert key.startswith("prescription-3-")
        assert key.endswith(".pdf")
        assert blob_store.objects[key][0] == PDF
    assert db.query(Prescription).count() == 2


def test_unsafe_extension_is_dropped(db, clinic, writer):
    _, key = upload(writer, db, filename="scan.p$f")
    assert "." not in key


def test_put_failure_writes_no_record(db, clinic, writer, blob_store, runner):
    blob_store.fail_on_put = True

    with pytest.raises(StorageError):
        upload(writer, db)

    assert db.query(Prescription).count() == 0
    assert runner.submitted == []


def test_insert_failure_deletes_blob_exactly_once(db, clinic, writer, blob_store, runner, failing_insert):
    with pytest.raises(ConsistencyError) as exc_info:
        upload(writer, db)

    key = exc_info.value.storage_key
    assert blob_store.deleted == [key]
    assert len(runner.submitted) == 1
    assert key not in blob_store.objects
    assert db.query(Prescription).count() == 0


def test_committed_row_keeps_its_blob_when_reload_fails(db, clinic, writer, blob_store, runner, monkeypatch):
    def failing_refresh(instance, *args, **kwargs):
        raise OperationalError("SELECT prescriptions", {}, Exception("connection dropped"))
    monkeypatch.setattr(db, "refresh", failing_refresh)

    record_id, key = upload(writer, db)

    assert db.query(Prescription).filter(Prescription.file_name == key).one().id == record_id
    assert key in blob_store.objects
    assert blob_store.deleted == []
    assert runner.submitted == []


def test_failed_compensation_is_logged_critical(db, clinic, writer, blob_store, failing_insert, caplog):
    blob_store.fail_on_delete = True

    with caplog.at_level(logging.WARNING, logger="vital_watch.prescriptions.service"):
        with pytest.raises(ConsistencyError) as exc_info:
            upload(writer, db)

    key = exc_info.value.storage_key
    assert blob_store.deleted == [key]
    critical = [r for r in caplog.records if r.levelno == logging.CRITICAL]
    assert len(critical) == 1
    assert key in critical[0].getMessage()


@pytest.mark.parametrize("kwargs", [
    {"patient_id": 99},
    {"data": b""},
    {"data": b"x" * 2048},
])
def test_invalid_uploads_touch_nothing(db, clinic, writer, blob_store, kwargs):
    with pytest.raises(ValidationError):
        upload(writer, db, **kwargs)
    assert blob_store.objects == {}


def test_upload_over_http(client, clinic, doctor_headers, blob_store):
    response = client.post(
        "/api/v1/prescriptions",
        headers=doctor_headers,
        data={"patient_id": "3", "medication": "Amoxicillin 500mg", "notes": "Twice daily"},
        files={"file": ("scan.pdf", PDF, "application/pdf")}
    )
    assert response.status_code == 201
    key = response.json()["filename"]
    assert blob_store.objects[key] == (PDF, "application/pdf", "scan.pdf")


def test_upload_requires_doctor(client, clinic, patient_headers, blob_store):
    response = client.post(
        "/api/v1/prescriptions",
        headers=patient_headers,
        data={"patient_id": "3", "medication": "Amoxicillin 500mg"},
        files={"file": ("scan.pdf", PDF, "application/pdf")}
    )
    assert response.status_code == 401
    assert response.json() == {"detail": "Not authorized"}
    assert blob_store.objects == {}


def test_upload_rejects_non_numeric_patient_id(client, clinic, doctor_headers):
    response = client.post(
        "/api/v1/prescriptions",
        headers=doctor_headers,
        data={"patient_id": "three", "medication": "Amoxicillin 500mg"},
        files={"file": ("scan.pdf", PDF, "application/pdf")}
    )
    assert response.status_code == 422
    assert response.json() == {"detail": "Invalid patient ID"}


def test_insert_failure_over_http(client, clinic, doctor_headers, blob_store, failing_insert):
    response = client.post(
        "/api/v1/prescriptions",
        headers=doctor_headers,
        data={"patient_id": "3", "medication": "Amoxicillin 500mg"},
        files={"file": ("scan.pdf", PDF, "application/pdf")}
    )
    assert response.status_code == 500
    assert response.json() == {"detail": "Failed to create prescription record"}
    assert len(blob_store.deleted) == 1
    assert blob_store.objects == {}


def test_put_failure_over_http(client, clinic, doctor_headers, blob_store):
    blob_store.fail_on_put = True
    response = client.post(
        "/api/v1/prescriptions",
        headers=doctor_headers,
        data={"patient_id": "3", "medication": "Amoxicillin 500mg"},
        files={"file": ("scan.pdf", PDF, "application/pdf")}
    )
    assert response.status_code == 502
    assert response.json() == {"detail": "Storage service failure"}
