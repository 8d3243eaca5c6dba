"""
End-to-end tests for downloading prescription documents and for the
prescription listings.
"""
import pytest

from vital_watch.auth.models import UserRole
from vital_watch.prescriptions.router import content_disposition

PDF = b"%PDF-1.4 prescription for patient three"

@pytest.fixture
def uploaded(client, clinic, doctor_headers):
    """Doctor 7 uploads a PDF for patient 3; returns its storage key."""
    response = client.post(
        "/api/v1/prescriptions",
        headers=doctor_headers,
        data={"patient_id": "3", "medication": "Ibuprofen 200mg", "notes": "After meals"},
        files={"file": ("report.pdf", PDF, "application/pdf")}
    )
    assert response.status_code == 201
    return response.json()["filename"]


def test_owner_downloads_original_bytes(client, uploaded, patient_headers):
    response = client.get(f"/api/v1/prescriptions/{uploaded}", headers=patient_headers)

    assert response.status_code == 200
    assert response.content == PDF
    assert response.headers["content-type"] == "application/pdf"
    assert response.headers["content-length"] == str(len(PDF))
    assert response.headers["content-disposition"] == 'attachment; filename="report.pdf"'


def test_other_patient_looks_unauthenticated(client, uploaded, auth_header):
    non_owner = client.get(f"/api/v1/prescriptions/{uploaded}", headers=auth_header(4, UserRole.PATIENT))
    anonymous = client.get(f"/api/v1/prescriptions/{uploaded}")

    assert non_owner.status_code == anonymous.status_code == 401
    assert non_owner.json() == anonymous.json() == {"detail": "Not authorized"}
    assert non_owner.headers["WWW-Authenticate"] == anonymous.headers["WWW-Authenticate"]


def test_missing_document_looks_like_denial(client, uploaded, patient_headers):
    response = client.get("/api/v1/prescriptions/prescription-3-does-not-exist.pdf", headers=patient_headers)
    assert response.status_code == 401
    assert response.json() == {"detail": "Not authorized"}


def test_appointment_grants_doctor_access(client, uploaded, doctor_headers, make_appointment):
    refused = client.get(f"/api/v1/prescriptions/{uploaded}", headers=doctor_headers)
    assert refused.status_code == 401

    make_appointment(doctor_id=7, patient_id=3)

    granted = client.get(f"/api/v1/prescriptions/{uploaded}", headers=doctor_headers)
    assert granted.status_code == 200
    assert granted.content == PDF


def test_blob_store_failure_is_a_bad_gateway(client, uploaded, patient_headers, blob_store):
    del blob_store.objects[uploaded]

    response = client.get(f"/api/v1/prescriptions/{uploaded}", headers=patient_headers)
    assert response.status_code == 502
    assert response.json() == {"detail": "Storage service failure"}


def test_patient_lists_own_prescriptions(client, uploaded, patient_headers):
    response = client.get("/api/v1/prescriptions", headers=patient_headers)

    assert response.status_code == 200
    items = response.json()
    assert len(items) == 1
    assert items[0]["file_name"] == uploaded
    assert items[0]["medication"] == "Ibuprofen 200mg"
    assert items[0]["doctor_name"] == "Doc Number7"


def test_doctor_sees_prescriptions_only_of_treated_patients(client, uploaded, doctor_headers, make_appointment):
    before = client.get("/api/v1/patients/3/prescriptions", headers=doctor_headers)
    assert before.status_code == 200
    assert before.json() == []

    make_appointment(doctor_id=7, patient_id=3)

    after = client.get("/api/v1/patients/3/prescriptions", headers=doctor_headers)
    assert [item["file_name"] for item in after.json()] == [uploaded]


def test_content_disposition_encodes_non_ascii_names():
    header = content_disposition("réçeta.pdf")
    assert header.startswith('attachment; filename="r__eta.pdf"')
    assert "filename*=utf-8''r%C3%A9%C3%A7eta.pdf" in header
