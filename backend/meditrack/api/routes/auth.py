"""
Authentication routes.

Endpoints:
    POST /auth/login     — Verify username/password, open a session, return a bearer token
    POST /auth/logout    — Close the caller's session
    GET  /auth/user      — Public profile of the logged-in user
    POST /auth/register  — Create a staff account (does not log in)
"""

from typing import Optional

from fastapi import APIRouter, Depends, Request, status

from meditrack.api.deps import get_auth_service
from meditrack.api.middleware.audit import client_ip
from meditrack.api.middleware.auth import get_optional_principal, get_principal
from meditrack.schemas import (
    LoginRequest,
    LoginResponse,
    MessageResponse,
    RegisterRequest,
    UserPublic,
)
from meditrack.security import create_access_token
from meditrack.services.auth_service import AuthService
from meditrack.services.sessions import Principal

router = APIRouter()


@router.post("/auth/login", response_model=LoginResponse)
async def login(
    payload: LoginRequest,
    request: Request,
    auth: AuthService = Depends(get_auth_service),
):
    principal, user = auth.authenticate(payload.username, payload.password, client_ip(request))
    return LoginResponse(access_token=create_access_token(principal), user=user)


@router.post("/auth/logout", response_model=MessageResponse)
async def logout(
    request: Request,
    principal: Optional[Principal] = Depends(get_optional_principal),
    auth: AuthService = Depends(get_auth_service),
):
    """Logging out twice is harmless; the second call records nothing."""
    auth.logout(principal, client_ip(request))
    return MessageResponse(message="Logged out successfully")


@router.get("/auth/user", response_model=UserPublic)
async def current_user(
    principal: Principal = Depends(get_principal),
    auth: AuthService = Depends(get_auth_service),
):
    return auth.current_user(principal)


@router.post("/auth/register", response_model=UserPublic, status_code=status.HTTP_201_CREATED)
async def register(
    payload: RegisterRequest,
    request: Request,
    auth: AuthService = Depends(get_auth_service),
):
    return auth.register(
        payload.username,
        payload.password,
        payload.full_name,
        ip_address=client_ip(request),
    )
