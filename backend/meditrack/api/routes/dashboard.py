from fastapi import APIRouter, Depends

from meditrack.api.deps import get_patient_service
from meditrack.api.middleware.auth import get_principal
from meditrack.schemas import ActivityLogResponse, DashboardStats, PatientResponse
from meditrack.services.patient_service import PatientService
from meditrack.services.sessions import Principal

router = APIRouter()


@router.get("/dashboard/stats", response_model=DashboardStats)
async def dashboard_stats(
    principal: Principal = Depends(get_principal),
    patients: PatientService = Depends(get_patient_service),
):
    """Patient totals, per-barangay counts, newest patients and latest activity."""
    summary = patients.summary(principal)
    return DashboardStats(
        total_patients=summary["total_patients"],
        patients_by_barangay=summary["patients_by_barangay"],
        recent_patients=[PatientResponse.model_validate(p) for p in summary["recent_patients"]],
        recent_activity=[ActivityLogResponse.model_validate(a) for a in summary["recent_activity"]],
    )
