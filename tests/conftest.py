"""
Test configuration for the clinic backend.
"""
import os

# Settings are read at import time, so the environment must be ready first
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("CLOUDINARY_CLOUD_NAME", "test-cloud")
os.environ.setdefault("CLOUDINARY_API_KEY", "test-key")
os.environ.setdefault("CLOUDINARY_API_SECRET", "test-api-secret")
os.environ.setdefault("PASSWORD_HASH_ROUNDS", "4")

import pytest
from datetime import datetime, timedelta, timezone
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from vital_watch.database import Base, get_db
from vital_watch.main import app
from vital_watch.appointments.models import Appointment
from vital_watch.auth.dependencies import get_token_config
from vital_watch.auth.models import UserRole
from vital_watch.core.security import ClaimsCodec, hash_password
from vital_watch.core.storage import BlobStore, StoredObject
from vital_watch.doctors.models import Doctor
from vital_watch.exceptions import StorageError
from vital_watch.patients.models import Patient
from vital_watch.prescriptions.dependencies import get_blob_store, get_task_runner

TEST_PASSWORD = "Password123!"

# In-memory database shared by every connection in a test
engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

# Create test session factory
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class InMemoryBlobStore(BlobStore):
    """Blob store kept in a dict. Records deletes and can be told to fail."""

    def __init__(self):
        self.objects = {}
        self.deleted = []
        self.fail_on_put = False
        self.fail_on_delete = False

    def put(self, key, data, content_length, content_type, filename=None):
        if self.fail_on_put:
            raise StorageError(f"put of {key} failed")
        if key in self.objects:
            raise StorageError(f"{key} already exists")
        self.objects[key] = (data.read(), content_type, filename)

    def get(self, key):
        if key not in self.objects:
            raise StorageError(f"{key} not found")
        body, content_type, filename = self.objects[key]
        return StoredObject(
            key=key,
            chunks=iter([body]),
            content_type=content_type,
            content_length=len(body),
            filename=filename
        )

    def delete(self, key):
        self.deleted.append(key)
        if self.fail_on_delete:
            raise StorageError(f"delete of {key} failed")
        self.objects.pop(key, None)


class SynchronousTaskRunner:
    """Runs submitted tasks immediately so their effects can be asserted on."""

    def __init__(self):
        self.submitted = []

    def submit(self, func, *args, **kwargs):
        self.submitted.append((func, args, kwargs))
        func(*args, **kwargs)

    def shutdown(self, wait=True):
        pass


@pytest.fixture(scope="function")
def db():
    """
    Create a fresh database for each test.
    """
    Base.metadata.create_all(bind=engine)

    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()

    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def blob_store():
    return InMemoryBlobStore()


@pytest.fixture
def runner():
    return SynchronousTaskRunner()


@pytest.fixture(scope="function")
def client(db, blob_store, runner):
    """
    Create a test client wired to the test database, blob store and runner.
    """
    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_blob_store] = lambda: blob_store
    app.dependency_overrides[get_task_runner] = lambda: runner

    with TestClient(app) as client:
        yield client

    app.dependency_overrides = {}


@pytest.fixture
def codec():
    return ClaimsCodec(get_token_config())


@pytest.fixture
def auth_header(codec):
    """Build an Authorization header for a subject without going through login."""
    def _auth_header(subject_id, role):
        return {"Authorization": f"Bearer {codec.mint(subject_id, role)}"}
    return _auth_header


@pytest.fixture
def make_patient(db):
    def _make_patient(patient_id, email=None):
        patient = Patient(
            id=patient_id,
            email=email or f"patient{patient_id}@example.com",
            first_name="Pat",
            last_name=f"Number{patient_id}",
            password_hash=hash_password(TEST_PASSWORD)
        )
        db.add(patient)
        db.commit()
        return patient
    return _make_patient


@pytest.fixture
def make_doctor(db):
    def _make_doctor(doctor_id, email=None, available=True):
        doctor = Doctor(
            id=doctor_id,
            email=email or f"doctor{doctor_id}@example.com",
            first_name="Doc",
            last_name=f"Number{doctor_id}",
            password_hash=hash_password(TEST_PASSWORD),
            specialty="General Medicine",
            experience=5,
            available=available
        )
        db.add(doctor)
        db.commit()
        return doctor
    return _make_doctor


@pytest.fixture
def make_appointment(db):
    def _make_appointment(doctor_id, patient_id):
        start = datetime(2026, 1, 5, 9, 0, tzinfo=timezone.utc)
        appointment = Appointment(
            doctor_id=doctor_id,
            patient_id=patient_id,
            start_time=start,
            end_time=start + timedelta(minutes=30),
            appointment_type="consultation"
        )
        db.add(appointment)
        db.commit()
        return appointment
    return _make_appointment


@pytest.fixture
def clinic(make_patient, make_doctor):
    """Patients 3 and 4 and doctor 7."""
    return {
        "patient": make_patient(3),
        "other_patient": make_patient(4),
        "doctor": make_doctor(7),
    }


@pytest.fixture
def patient_headers(auth_header):
    return auth_header(3, UserRole.PATIENT)


@pytest.fixture
def doctor_headers(auth_header):
    return auth_header(7, UserRole.DOCTOR)
