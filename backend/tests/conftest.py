"""
Shared fixtures: every test gets its own in-memory record store, session
registry and services, so nothing leaks between cases.
"""

import os

# Cheap hashes for the test run; must be set before meditrack reads settings
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest
from fastapi.testclient import TestClient

from meditrack.config import get_settings
from meditrack.db.store import RecordStore
from meditrack.main import create_app
from meditrack.seed import seed_admin
from meditrack.services.activity_service import ActivityLogService
from meditrack.services.auth_service import AuthService
from meditrack.services.patient_service import PatientService
from meditrack.services.sessions import SessionRegistry

ADMIN_USERNAME = "admin"
ADMIN_PASSWORD = "admin123"


@pytest.fixture
def store():
    store = RecordStore()
    yield store
    store.dispose()


@pytest.fixture
def sessions():
    return SessionRegistry()


@pytest.fixture
def activity(store, sessions):
    return ActivityLogService(store, sessions)


@pytest.fixture
def auth(store, activity, sessions):
    service = AuthService(store, activity, sessions)
    seed_admin(service, get_settings())
    return service


@pytest.fixture
def patients(store, activity, sessions):
    return PatientService(store, activity, sessions)


@pytest.fixture
def admin(auth):
    """Principal of the seeded admin, already logged in."""
    principal, _ = auth.authenticate(ADMIN_USERNAME, ADMIN_PASSWORD)
    return principal


@pytest.fixture
def make_patient():
    def _make(**overrides):
        draft = {
            "first_name": "Ana",
            "last_name": "Cruz",
            "age": 30,
            "gender": "Female",
            "address": "123 Rd",
            "barangay": "191",
        }
        draft.update(overrides)
        return draft
    return _make


@pytest.fixture
def client():
    app = create_app(store=RecordStore())
    with TestClient(app) as c:
        yield c


@pytest.fixture
def auth_headers(client):
    resp = client.post("/api/auth/login", json={"username": ADMIN_USERNAME, "password": ADMIN_PASSWORD})
    assert resp.status_code == 200
    return {"Authorization": f"Bearer {resp.json()['access_token']}"}
