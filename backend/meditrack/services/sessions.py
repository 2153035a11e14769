"""
Session registry: tracks which principals are currently authenticated.

A principal moves Anonymous -> Authenticated when ``open`` is called after a
successful credential check, and back to Anonymous on ``close``.  ``authorize``
is the predicate every patient and activity-log operation runs first.
"""

from __future__ import annotations

import logging
import threading
import uuid
from typing import Optional

from pydantic import BaseModel, ConfigDict

from meditrack.exceptions import UnauthorizedError

logger = logging.getLogger(__name__)


class Principal(BaseModel):
    user_id: int
    username: str
    role: str
    session_id: str

    model_config = ConfigDict(frozen=True)


class SessionRegistry:
    def __init__(self):
        self._lock = threading.Lock()
        self._active: dict[str, int] = {}

    def open(self, user) -> Principal:
        principal = Principal(
            user_id=user.id,
            username=user.username,
            role=user.role.value if hasattr(user.role, "value") else str(user.role),
            session_id=uuid.uuid4().hex,
        )
        with self._lock:
            self._active[principal.session_id] = principal.user_id
        return principal

    def close(self, principal: Optional[Principal]) -> bool:
        """End the session. Returns False when it was not open."""
        if principal is None:
            return False
        with self._lock:
            if self._active.get(principal.session_id) != principal.user_id:
                return False
            del self._active[principal.session_id]
        return True

    def is_authenticated(self, principal: Optional[Principal]) -> bool:
        if principal is None:
            return False
        with self._lock:
            return self._active.get(principal.session_id) == principal.user_id

    def authorize(self, principal: Optional[Principal]) -> Principal:
        if not self.is_authenticated(principal):
            raise UnauthorizedError()
        return principal

    def active_count(self) -> int:
        with self._lock:
            return len(self._active)
