"""
HTTP boundary tests: token handling, status codes and response shapes.
"""

from datetime import datetime, timedelta, timezone

from meditrack.config import Settings
from meditrack.db.store import EntityKind, RecordStore
from meditrack.main import create_app

PATIENT = {
    "first_name": "Ana",
    "last_name": "Cruz",
    "age": 30,
    "gender": "Female",
    "address": "123 Rd",
    "barangay": "191",
}


class TestAuthRoutes:
    def test_login_returns_token_and_user(self, client):
        resp = client.post("/api/auth/login", json={"username": "admin", "password": "admin123"})
        assert resp.status_code == 200
        body = resp.json()
        assert body["token_type"] == "bearer"
        assert body["access_token"]
        assert body["user"]["username"] == "admin"
        assert "hashed_password" not in body["user"]

    def test_login_bad_password(self, client):
        resp = client.post("/api/auth/login", json={"username": "admin", "password": "nope"})
        assert resp.status_code == 401
        assert resp.json()["message"] == "Invalid username or password"

    def test_current_user(self, client, auth_headers):
        resp = client.get("/api/auth/user", headers=auth_headers)
        assert resp.status_code == 200
        assert resp.json()["role"] == "admin"

    def test_logout_revokes_token(self, client, auth_headers):
        """Should reject the same token once the session is closed"""
        resp = client.post("/api/auth/logout", headers=auth_headers)
        assert resp.status_code == 200
        assert client.get("/api/patients", headers=auth_headers).status_code == 401

    def test_logout_without_session(self, client):
        assert client.post("/api/auth/logout").status_code == 200

    def test_register(self, client):
        payload = {"username": "nurse", "password": "secret12", "full_name": "Nurse Joy"}
        resp = client.post("/api/auth/register", json=payload)
        assert resp.status_code == 201
        assert resp.json()["role"] == "staff"
        assert client.post("/api/auth/register", json=payload).status_code == 409


class TestPatientRoutes:
    def test_requires_token(self, client):
        assert client.get("/api/patients").status_code == 401
        assert client.post("/api/patients", json=PATIENT).status_code == 401

    def test_garbage_token(self, client):
        resp = client.get("/api/patients", headers={"Authorization": "Bearer not-a-jwt"})
        assert resp.status_code == 401

    def test_create_and_fetch(self, client, auth_headers):
        resp = client.post("/api/patients", json=PATIENT, headers=auth_headers)
        assert resp.status_code == 201
        created = resp.json()
        assert created["patient_id"] == "PT-0001"
        assert created["created_at"]
        assert created["created_by"] == 1

        fetched = client.get(f"/api/patients/{created['id']}", headers=auth_headers)
        assert fetched.status_code == 200
        assert fetched.json()["first_name"] == "Ana"

    def test_duplicate_patient_id(self, client, auth_headers):
        payload = {**PATIENT, "patient_id": "PT-9"}
        assert client.post("/api/patients", json=payload, headers=auth_headers).status_code == 201
        resp = client.post("/api/patients", json=payload, headers=auth_headers)
        assert resp.status_code == 409

    def test_validation_errors_listed(self, client, auth_headers):
        resp = client.post("/api/patients", json={"first_name": "Ana", "age": -2}, headers=auth_headers)
        assert resp.status_code == 422
        fields = {e["field"] for e in resp.json()["errors"]}
        assert {"last_name", "age", "gender", "address", "barangay"} <= fields

    def test_list_search_and_filters(self, client, auth_headers):
        recent = (datetime.now(timezone.utc) - timedelta(days=2)).isoformat()
        client.post("/api/patients", json={**PATIENT, "last_visit": recent}, headers=auth_headers)
        client.post(
            "/api/patients",
            json={**PATIENT, "first_name": "Juan", "last_name": "Santos", "barangay": "195"},
            headers=auth_headers,
        )

        by_search = client.get("/api/patients", params={"search": "juan"}, headers=auth_headers).json()
        assert [p["first_name"] for p in by_search] == ["Juan"]

        by_barangay = client.get("/api/patients", params={"barangay": "195"}, headers=auth_headers).json()
        assert [p["first_name"] for p in by_barangay] == ["Juan"]

        by_window = client.get("/api/patients", params={"date_filter": "7days"}, headers=auth_headers).json()
        assert [p["first_name"] for p in by_window] == ["Ana"]

        everyone = client.get("/api/patients", headers=auth_headers).json()
        assert len(everyone) == 2

    def test_bad_filter_value(self, client, auth_headers):
        resp = client.get("/api/patients", params={"barangay": "999"}, headers=auth_headers)
        assert resp.status_code == 422

    def test_update(self, client, auth_headers):
        created = client.post("/api/patients", json=PATIENT, headers=auth_headers).json()
        resp = client.put(f"/api/patients/{created['id']}", json={"age": 31}, headers=auth_headers)
        assert resp.status_code == 200
        assert resp.json()["age"] == 31
        assert resp.json()["created_at"] == created["created_at"]

    def test_empty_update_rejected(self, client, auth_headers):
        created = client.post("/api/patients", json=PATIENT, headers=auth_headers).json()
        resp = client.put(f"/api/patients/{created['id']}", json={}, headers=auth_headers)
        assert resp.status_code == 400
        assert resp.json() == {
            "message": "No fields to update",
            "errors": [{"field": "__root__", "message": "No fields to update"}],
        }

    def test_missing_patient(self, client, auth_headers):
        assert client.get("/api/patients/77", headers=auth_headers).status_code == 404
        assert client.put("/api/patients/77", json={"age": 1}, headers=auth_headers).status_code == 404
        assert client.delete("/api/patients/77", headers=auth_headers).status_code == 404

    def test_delete(self, client, auth_headers):
        created = client.post("/api/patients", json=PATIENT, headers=auth_headers).json()
        resp = client.delete(f"/api/patients/{created['id']}", headers=auth_headers)
        assert resp.status_code == 200
        assert client.get(f"/api/patients/{created['id']}", headers=auth_headers).status_code == 404


class TestActivityLogRoutes:
    def test_mutations_are_logged_newest_first(self, client, auth_headers):
        created = client.post("/api/patients", json=PATIENT, headers=auth_headers).json()
        client.delete(f"/api/patients/{created['id']}", headers=auth_headers)

        logs = client.get("/api/activity-logs", headers=auth_headers).json()
        assert [log["action"] for log in logs] == ["Delete Patient", "Create Patient", "Login"]
        assert logs[0]["ip_address"] == "testclient"

    def test_user_logs(self, client, auth_headers):
        logs = client.get("/api/activity-logs/user/1", headers=auth_headers).json()
        assert [log["action"] for log in logs] == ["Login"]
        assert client.get("/api/activity-logs/user/2", headers=auth_headers).json() == []

    def test_requires_token(self, client):
        assert client.get("/api/activity-logs").status_code == 401


class TestDashboardRoutes:
    def test_stats(self, client, auth_headers):
        client.post("/api/patients", json=PATIENT, headers=auth_headers)
        stats = client.get("/api/dashboard/stats", headers=auth_headers).json()
        assert stats["total_patients"] == 1
        assert stats["patients_by_barangay"]["191"] == 1
        assert stats["recent_patients"][0]["patient_id"] == "PT-0001"
        assert stats["recent_activity"][0]["action"] == "Create Patient"


def test_health(client):
    assert client.get("/health").json()["status"] == "healthy"


def test_app_seeds_demo_patients():
    app = create_app(Settings(SEED_DEMO_PATIENTS=3), store=RecordStore())
    assert app.state.store.count(EntityKind.PATIENT) == 3
    assert app.state.auth_service.get_user_by_username("admin") is not None
