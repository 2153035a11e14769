"""
Authentication service — credential checks, login/logout and registration.

Passwords are verified with passlib's bcrypt context.  A successful login
stamps ``last_login``, writes a ``Login`` activity entry and opens a session
in the ``SessionRegistry``; the resulting ``Principal`` is what every other
service expects as its first argument.
"""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import func

from meditrack.config import get_settings
from meditrack.db.base import utcnow
from meditrack.db.store import EntityKind, RecordStore
from meditrack.exceptions import DuplicateKeyError, InvalidCredentialsError, NotFoundError
from meditrack.models.activity_log import LOGIN, LOGIN_FAILED, LOGOUT, REGISTER
from meditrack.models.user import User, UserRole
from meditrack.schemas import UserPublic
from meditrack.security import dummy_verify, hash_password, verify_password
from meditrack.services.activity_service import ActivityLogService
from meditrack.services.sessions import Principal, SessionRegistry

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(self, store: RecordStore, audit: ActivityLogService, sessions: SessionRegistry):
        self.store = store
        self.audit = audit
        self.sessions = sessions

    def get_user_by_username(self, username: str) -> Optional[User]:
        return self.store.first(EntityKind.USER, func.casefold(User.username) == username.casefold())

    def authenticate(
        self,
        username: str,
        password: str,
        ip_address: str = None,
    ) -> tuple[Principal, UserPublic]:
        user = self.get_user_by_username(username)
        if user is None:
            dummy_verify()
            self._reject(None, username, ip_address)
        if not verify_password(password, user.hashed_password):
            self._reject(user.id, username, ip_address)

        user = self.store.update(EntityKind.USER, user.id, {"last_login": utcnow()})
        self.audit.record(user.id, LOGIN, "User logged in successfully", ip_address)
        principal = self.sessions.open(user)
        logger.info("User %s logged in", user.username)
        return principal, UserPublic.model_validate(user)

    def _reject(self, user_id: Optional[int], username: str, ip_address: str = None):
        logger.warning("Rejected login for %r", username)
        if get_settings().LOG_FAILED_LOGINS:
            self.audit.record(user_id, LOGIN_FAILED, f"Failed login attempt for {username}", ip_address)
        raise InvalidCredentialsError()

    def logout(self, principal: Optional[Principal], ip_address: str = None) -> bool:
        """Close the session. Anonymous or already-closed callers are a no-op."""
        if not self.sessions.is_authenticated(principal):
            return False
        self.audit.record(principal.user_id, LOGOUT, "User logged out", ip_address)
        self.sessions.close(principal)
        logger.info("User %s logged out", principal.username)
        return True

    def current_user(self, principal: Principal) -> UserPublic:
        self.sessions.authorize(principal)
        user = self.store.get(EntityKind.USER, principal.user_id)
        if user is None:
            raise NotFoundError("User not found")
        return UserPublic.model_validate(user)

    def register(
        self,
        username: str,
        password: str,
        full_name: str,
        role: UserRole = UserRole.STAFF,
        ip_address: str = None,
    ) -> UserPublic:
        """Create a user account. Does not log the new user in."""
        with self.store.atomic():
            if self.get_user_by_username(username) is not None:
                raise DuplicateKeyError("Username already exists")
            user = self.store.insert(
                EntityKind.USER,
                {
                    "username": username,
                    "hashed_password": hash_password(password),
                    "full_name": full_name,
                    "role": role,
                },
            )
        logger.info("Registered user %s (%s)", user.username, user.role.value)
        self.audit.record(user.id, REGISTER, f"Registered account {user.username}", ip_address)
        return UserPublic.model_validate(user)

    def ensure_admin(self, username: str, password: str, full_name: str) -> User:
        """Create the bootstrap admin account unless it already exists."""
        existing = self.get_user_by_username(username)
        if existing is not None:
            return existing
        user = self.store.insert(
            EntityKind.USER,
            {
                "username": username,
                "hashed_password": hash_password(password),
                "full_name": full_name,
                "role": UserRole.ADMIN,
            },
        )
        logger.info("Seeded admin account %s", username)
        return user
