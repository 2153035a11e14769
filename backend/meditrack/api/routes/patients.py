"""
Patient API routes.

Endpoints:
    GET    /patients        — List patients; ``search`` wins over ``barangay``/``date_filter``
    POST   /patients        — Create a patient record
    GET    /patients/{id}   — Get a patient by internal id
    PUT    /patients/{id}   — Partial update
    DELETE /patients/{id}   — Hard delete
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status

from meditrack.api.deps import get_patient_service
from meditrack.api.middleware.audit import client_ip
from meditrack.api.middleware.auth import get_principal
from meditrack.exceptions import EmptyUpdateError
from meditrack.models.patient import Barangay, DateFilter
from meditrack.schemas import MessageResponse, PatientCreate, PatientResponse, PatientUpdate
from meditrack.services.patient_service import PatientService
from meditrack.services.sessions import Principal

router = APIRouter()


@router.get("/patients", response_model=list[PatientResponse])
async def list_patients(
    search: Optional[str] = Query(None, description="Name, patient ID or contact number"),
    barangay: Optional[Barangay] = Query(None, description="Exact barangay code"),
    date_filter: Optional[DateFilter] = Query(None, description="Last-visit window"),
    principal: Principal = Depends(get_principal),
    patients: PatientService = Depends(get_patient_service),
):
    return patients.list_patients(principal, search=search, barangay=barangay, date_filter=date_filter)


@router.post("/patients", response_model=PatientResponse, status_code=status.HTTP_201_CREATED)
async def create_patient(
    payload: PatientCreate,
    request: Request,
    principal: Principal = Depends(get_principal),
    patients: PatientService = Depends(get_patient_service),
):
    return patients.create_patient(principal, payload, client_ip(request))


@router.get("/patients/{patient_id}", response_model=PatientResponse)
async def get_patient(
    patient_id: int,
    principal: Principal = Depends(get_principal),
    patients: PatientService = Depends(get_patient_service),
):
    return patients.get_patient(principal, patient_id)


@router.put("/patients/{patient_id}", response_model=PatientResponse)
async def update_patient(
    patient_id: int,
    payload: PatientUpdate,
    request: Request,
    principal: Principal = Depends(get_principal),
    patients: PatientService = Depends(get_patient_service),
):
    if not payload.model_fields_set:
        raise EmptyUpdateError()
    return patients.update_patient(principal, patient_id, payload, client_ip(request))


@router.delete("/patients/{patient_id}", response_model=MessageResponse)
async def delete_patient(
    patient_id: int,
    request: Request,
    principal: Principal = Depends(get_principal),
    patients: PatientService = Depends(get_patient_service),
):
    patients.delete_patient(principal, patient_id, client_ip(request))
    return MessageResponse(message="Patient deleted successfully")
