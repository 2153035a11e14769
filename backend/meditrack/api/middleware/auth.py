from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from meditrack.exceptions import UnauthorizedError
from meditrack.security import decode_token
from meditrack.services.sessions import Principal

security = HTTPBearer(auto_error=False)


async def get_principal(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Principal:
    """Resolve the bearer token to a live session, or fail with 401."""
    if credentials is None:
        raise UnauthorizedError()
    principal = decode_token(credentials.credentials)
    return request.app.state.sessions.authorize(principal)


async def get_optional_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[Principal]:
    if credentials is None:
        return None
    try:
        return decode_token(credentials.credentials)
    except UnauthorizedError:
        return None
