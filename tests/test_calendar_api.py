import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError
import uuid

from app.main import app
from app.api.deps import get_calendar_service
from app.services.calendar_service import CalendarService

BLOCKER = {
    "start_date": "2021-08-10T15:00:00",
    "end_date": "2021-08-10T16:00:00",
    "description": "Surgery"
}


def calendar_url(doctor, path="2021/08/10"):
    return f"/api/v1/calendar/{doctor.uuid}/{path}"


class TestRoleGating:

    def test_doctor_view_requires_token(self, client, test_db):
        response = client.get("/api/v1/calendar/2021/08/10")
        assert response.status_code == 401
        assert response.content == b""

    def test_doctor_view_rejects_patient(self, client, patient_headers):
        """Test a patient cannot read the doctor view."""
        response = client.get("/api/v1/calendar/2021/08/10", headers=patient_headers)
        assert response.status_code == 403
        assert response.json() == {"detail": "Access denied. Required role: DOCTOR"}

    def test_blockers_reject_patient(self, client, patient_headers):
        response = client.post("/api/v1/calendar/blockers", json=BLOCKER, headers=patient_headers)
        assert response.status_code == 403

    def test_patient_view_rejects_doctor(self, client, doctor, doctor_headers):
        """Test a doctor cannot read the patient view."""
        response = client.get(calendar_url(doctor), headers=doctor_headers)
        assert response.status_code == 403
        assert response.json() == {"detail": "Access denied. Required role: PATIENT"}

    def test_booking_rejects_doctor(self, client, doctor, doctor_headers):
        response = client.post(calendar_url(doctor), json={"hour": 9}, headers=doctor_headers)
        assert response.status_code == 403

    def test_booking_requires_token(self, client, doctor):
        response = client.post(calendar_url(doctor), json={"hour": 9})
        assert response.status_code == 401


class TestPathParameters:

    @pytest.mark.parametrize("path, detail", [
        ("AAAA/08/10", "invalid year reference - e.g. 2021"),
        ("21/08/10", "invalid year reference - e.g. 2021"),
        ("\uff12\uff10\uff12\uff11/08/10", "invalid year reference - e.g. 2021"),
        ("2021/\u0660\u0668/10", "invalid month reference - e.g. 08"),
        ("2021/08/\uff11\uff10", "invalid day reference - e.g. 10"),
        ("2021/AB/10", "invalid month reference - e.g. 08"),
        ("2021/008/10", "invalid month reference - e.g. 08"),
        ("2021/08/XX", "invalid day reference - e.g. 10"),
        ("2021/02/30", "invalid date reference"),
        ("2021/13/01", "invalid date reference"),
    ])
    def test_invalid_date_doctor_view(self, client, doctor_headers, path, detail):
        """Test malformed date segments are rejected with a hint."""
        response = client.get(f"/api/v1/calendar/{path}", headers=doctor_headers)
        assert response.status_code == 400
        assert response.json() == {"detail": detail}

    def test_invalid_date_patient_view(self, client, doctor, patient_headers):
        response = client.get(calendar_url(doctor, "AAAA/08/10"), headers=patient_headers)
        assert response.status_code == 400
        assert response.json() == {"detail": "invalid year reference - e.g. 2021"}

    def test_invalid_doctor_identifier(self, client, patient_headers):
        response = client.get("/api/v1/calendar/not-a-uuid/2021/08/10", headers=patient_headers)
        assert response.status_code == 400
        assert response.json() == {"detail": "invalid identifier"}

    def test_invalid_doctor_identifier_on_booking(self, client, patient_headers):
        response = client.post(
            "/api/v1/calendar/not-a-uuid/2021/08/10", json={"hour": 9}, headers=patient_headers
        )
        assert response.status_code == 400
        assert response.json() == {"detail": "invalid identifier"}

    def test_single_digit_month_and_day(self, client, doctor_headers):
        response = client.get("/api/v1/calendar/2021/8/1", headers=doctor_headers)
        assert response.status_code == 200


class TestPatientCalendar:

    def test_unknown_doctor(self, client, patient_headers):
        """Test the calendar of an unknown doctor."""
        response = client.get(f"/api/v1/calendar/{uuid.uuid4()}/2021/08/10", headers=patient_headers)
        assert response.status_code == 404
        assert response.json() == {"detail": "doctor not found"}

    def test_open_slots(self, client, doctor, patient_headers):
        response = client.get(calendar_url(doctor), headers=patient_headers)
        assert response.status_code == 200
        assert response.json() == [{"hour": hour, "available": True} for hour in range(9, 18)]

    def test_book_appointment(self, client, doctor, patient_headers):
        """Test booking removes the slot from the open slots."""
        response = client.post(calendar_url(doctor), json={"hour": 10}, headers=patient_headers)
        assert response.status_code == 201
        assert response.content == b""

        response = client.get(calendar_url(doctor), headers=patient_headers)
        assert [entry["hour"] for entry in response.json()] == [9, 11, 12, 13, 14, 15, 16, 17]

    def test_double_booking(self, client, doctor, patient_headers):
        """Test the same slot cannot be booked twice."""
        client.post(calendar_url(doctor), json={"hour": 10}, headers=patient_headers)

        response = client.post(calendar_url(doctor), json={"hour": 10}, headers=patient_headers)
        assert response.status_code == 400
        assert response.json() == {"detail": "chosen slot is not available"}

    @pytest.mark.parametrize("body", [{}, {"hour": 8}, {"hour": 18}])
    def test_booking_out_of_working_hours(self, client, doctor, patient_headers, body):
        response = client.post(calendar_url(doctor), json=body, headers=patient_headers)
        assert response.status_code == 400
        assert response.json() == {"field": "hour", "reason": "out of working hours"}

    def test_booking_unknown_doctor(self, client, patient_headers):
        response = client.post(
            f"/api/v1/calendar/{uuid.uuid4()}/2021/08/10", json={"hour": 9}, headers=patient_headers
        )
        assert response.status_code == 404

    def test_booking_without_body(self, client, doctor, patient_headers):
        """Test a missing request body is reported as a field error."""
        response = client.post(calendar_url(doctor), headers=patient_headers)
        assert response.status_code == 400
        assert response.json()["field"] == "body"


class TestDoctorCalendar:

    def test_create_blocker(self, client, doctor_headers):
        """Test a blocker removes its hours from the doctor's day."""
        response = client.post("/api/v1/calendar/blockers", json=BLOCKER, headers=doctor_headers)
        assert response.status_code == 201
        assert response.content == b""

        response = client.get("/api/v1/calendar/2021/08/10", headers=doctor_headers)
        blocked = [entry["hour"] for entry in response.json() if not entry["available"]]
        assert blocked == [15, 16]

    def test_blocker_end_before_start(self, client, doctor_headers):
        body = {**BLOCKER, "end_date": "2021-08-10T14:00:00"}

        response = client.post("/api/v1/calendar/blockers", json=body, headers=doctor_headers)
        assert response.status_code == 400
        assert response.json() == {"field": "end_date", "reason": "invalid period"}

    def test_blocker_missing_start(self, client, doctor_headers):
        body = {"end_date": BLOCKER["end_date"]}

        response = client.post("/api/v1/calendar/blockers", json=body, headers=doctor_headers)
        assert response.status_code == 400
        assert response.json() == {"field": "start_date", "reason": "required"}

    def test_blocker_without_body(self, client, doctor_headers):
        response = client.post("/api/v1/calendar/blockers", headers=doctor_headers)
        assert response.status_code == 400
        assert response.json()["field"] == "body"

    def test_doctor_view(self, client, doctor, patient, doctor_headers, patient_headers):
        """Test the doctor view lists every hour and who booked it."""
        client.post("/api/v1/calendar/blockers", json=BLOCKER, headers=doctor_headers)
        client.post(calendar_url(doctor), json={"hour": 10}, headers=patient_headers)

        response = client.get("/api/v1/calendar/2021/08/10", headers=doctor_headers)
        assert response.status_code == 200

        entries = response.json()
        assert len(entries) == 9
        assert entries[0] == {"hour": 9, "available": True}
        assert entries[1] == {
            "hour": 10,
            "available": False,
            "patient": {
                "uuid": str(patient.uuid),
                "name": "John Doe",
                "email": "patient@hospital.com",
                "mobile_phone": "351123123123"
            }
        }
        assert entries[6] == {"hour": 15, "available": False}
        assert entries[7] == {"hour": 16, "available": False}
        assert entries[8] == {"hour": 17, "available": True}

        response = client.get(calendar_url(doctor), headers=patient_headers)
        assert [entry["hour"] for entry in response.json()] == [9, 11, 12, 13, 14, 17]


class FailingRepository:
    def find_doctor_by_uuid(self, doctor_uuid):
        raise OperationalError("SELECT", {}, Exception("connection refused"))


class TestRequestContext:

    def test_request_id_is_echoed(self, client, test_db):
        response = client.get("/health", headers={"X-Request-ID": "abc123"})
        assert response.status_code == 200
        assert response.headers["X-Request-ID"] == "abc123"
        assert "X-Process-Time" in response.headers

    def test_request_id_is_generated(self, client, test_db):
        response = client.get("/health")
        assert response.json()["status"] == "ok"
        assert len(response.headers["X-Request-ID"]) == 32

    def test_api_info(self, client, test_db):
        response = client.get("/api/v1/info")
        assert response.status_code == 200
        assert response.json()["calendar"] == "/api/v1/calendar"
        assert client.get("/").json() == response.json()

    def test_storage_failure_is_internal_error(self, doctor, patient_headers, caplog):
        """Test an unexpected storage failure surfaces as a 500 and logs its traceback."""
        app.dependency_overrides[get_calendar_service] = lambda: CalendarService(FailingRepository())
        failing_client = TestClient(app, raise_server_exceptions=False)

        response = failing_client.get(calendar_url(doctor), headers=patient_headers)
        assert response.status_code == 500
        assert response.json()["error"] == "Internal Server Error"

        errors = [r for r in caplog.records if r.name == "app.main" and r.levelname == "ERROR"]
        assert errors
        assert errors[-1].exc_info is not None
        assert "connection refused" in caplog.text
