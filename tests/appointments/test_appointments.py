"""
Tests for booking, listing and completing appointments, and for the doctor
views built on them.
"""
from vital_watch.auth.models import UserRole

SLOT = {
    "doctor_id": 7,
    "start_time": "2026-03-02T09:00:00Z",
    "end_time": "2026-03-02T09:30:00Z",
    "appointment_type": "consultation",
}

def book(client, headers, **overrides):
    payload = dict(SLOT)
    payload.update(overrides)
    return client.post("/api/v1/appointments", headers=headers, json=payload)


def test_patient_books_and_both_sides_see_it(client, clinic, patient_headers, doctor_headers):
    response = book(client, patient_headers)
    assert response.status_code == 201
    appointment = response.json()
    assert appointment["status"] == "scheduled"
    assert appointment["patient_id"] == 3

    for headers in (patient_headers, doctor_headers):
        listed = client.get("/api/v1/appointments", headers=headers).json()
        assert [item["id"] for item in listed] == [appointment["id"]]


def test_end_must_follow_start(client, clinic, patient_headers):
    response = book(client, patient_headers, end_time=SLOT["start_time"])
    assert response.status_code == 422
    assert response.json() == {"detail": "Appointment end time must be after start time"}


def test_unknown_doctor(client, clinic, patient_headers):
    response = book(client, patient_headers, doctor_id=99)
    assert response.status_code == 404
    assert response.json() == {"detail": "Doctor not found"}


def test_unavailable_doctor(client, clinic, make_doctor, auth_header):
    make_doctor(8, available=False)
    response = book(client, auth_header(3, UserRole.PATIENT), doctor_id=8)
    assert response.status_code == 422


def test_doctors_cannot_book(client, clinic, doctor_headers):
    response = book(client, doctor_headers)
    assert response.status_code == 401
    assert response.json() == {"detail": "Not authorized"}


def test_doctor_completes_own_appointment_once(client, clinic, patient_headers, doctor_headers):
    appointment_id = book(client, patient_headers).json()["id"]

    response = client.put(f"/api/v1/appointments/{appointment_id}/complete", headers=doctor_headers)
    assert response.status_code == 200
    assert response.json()["status"] == "completed"

    again = client.put(f"/api/v1/appointments/{appointment_id}/complete", headers=doctor_headers)
    assert again.status_code == 422


def test_other_doctor_cannot_complete(client, clinic, make_doctor, patient_headers, auth_header):
    make_doctor(8)
    appointment_id = book(client, patient_headers).json()["id"]

    response = client.put(f"/api/v1/appointments/{appointment_id}/complete", headers=auth_header(8, UserRole.DOCTOR))
    assert response.status_code == 404


def test_doctor_lists_treated_patients(client, clinic, make_appointment, doctor_headers):
    assert client.get("/api/v1/doctors/me/patients", headers=doctor_headers).json() == []

    make_appointment(doctor_id=7, patient_id=3)
    make_appointment(doctor_id=7, patient_id=3)

    patients = client.get("/api/v1/doctors/me/patients", headers=doctor_headers).json()
    assert [patient["id"] for patient in patients] == [3]


def test_doctor_reads_treated_patient_appointments(client, clinic, make_appointment, doctor_headers):
    make_appointment(doctor_id=7, patient_id=3)

    response = client.get("/api/v1/patients/3/appointments", headers=doctor_headers)
    assert response.status_code == 200
    assert len(response.json()) == 1
    assert client.get("/api/v1/patients/4/appointments", headers=doctor_headers).json() == []


def test_doctor_directory_is_paginated(client, clinic, make_doctor, patient_headers):
    make_doctor(8)
    make_doctor(9, available=False)

    page = client.get("/api/v1/doctors", headers=patient_headers, params={"page": 1, "size": 2}).json()
    assert page["total"] == 3
    assert page["pages"] == 2
    assert page["has_next"] is True
    assert [doctor["id"] for doctor in page["items"]] == [7, 8]

    available = client.get("/api/v1/doctors", headers=patient_headers, params={"available": "true"}).json()
    assert available["total"] == 2


def test_doctor_lookup(client, clinic, patient_headers):
    assert client.get("/api/v1/doctors/7", headers=patient_headers).json()["specialty"] == "General Medicine"
    assert client.get("/api/v1/doctors/99", headers=patient_headers).status_code == 404
