from fastapi import Request

from meditrack.services.activity_service import ActivityLogService
from meditrack.services.auth_service import AuthService
from meditrack.services.patient_service import PatientService


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


def get_patient_service(request: Request) -> PatientService:
    return request.app.state.patient_service


def get_activity_service(request: Request) -> ActivityLogService:
    return request.app.state.activity_service
