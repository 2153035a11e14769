"""
Activity log routes (read-only; entries are written by the services).

Endpoints:
    GET /activity-logs                 — All entries, newest first
    GET /activity-logs/user/{user_id}  — Entries for one user, newest first
"""

from fastapi import APIRouter, Depends

from meditrack.api.deps import get_activity_service
from meditrack.api.middleware.auth import get_principal
from meditrack.schemas import ActivityLogResponse
from meditrack.services.activity_service import ActivityLogService
from meditrack.services.sessions import Principal

router = APIRouter()


@router.get("/activity-logs", response_model=list[ActivityLogResponse])
async def list_activity_logs(
    principal: Principal = Depends(get_principal),
    activity: ActivityLogService = Depends(get_activity_service),
):
    return activity.list_all(principal)


@router.get("/activity-logs/user/{user_id}", response_model=list[ActivityLogResponse])
async def list_user_activity_logs(
    user_id: int,
    principal: Principal = Depends(get_principal),
    activity: ActivityLogService = Depends(get_activity_service),
):
    return activity.list_for_user(principal, user_id)
