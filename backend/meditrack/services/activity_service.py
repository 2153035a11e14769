"""
Activity log service — append-only audit trail of user actions.

Entries are written for every login/logout and every patient mutation and are
read back newest first.  Writing an entry never raises: a failed append is
logged and dropped so the action it describes still completes.
"""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from meditrack.config import get_settings
from meditrack.db.base import utcnow
from meditrack.db.store import EntityKind, RecordStore
from meditrack.exceptions import MediTrackError
from meditrack.models.activity_log import ActivityLog
from meditrack.services.sessions import Principal, SessionRegistry

logger = logging.getLogger(__name__)

# Newest first; ids break ties between entries sharing a timestamp
_NEWEST_FIRST = (ActivityLog.timestamp.desc(), ActivityLog.id.desc())


class ActivityLogService:
    def __init__(self, store: RecordStore, sessions: SessionRegistry):
        self.store = store
        self.sessions = sessions

    def record(
        self,
        user_id: Optional[int],
        action: str,
        details: str = None,
        ip_address: str = None,
    ) -> Optional[ActivityLog]:
        try:
            return self.store.insert(
                EntityKind.ACTIVITY_LOG,
                {
                    "user_id": user_id,
                    "action": action,
                    "details": details,
                    "ip_address": ip_address or get_settings().DEFAULT_IP_ADDRESS,
                    "timestamp": utcnow(),
                },
            )
        except (SQLAlchemyError, MediTrackError):
            logger.exception("Failed to record activity %r for user %s", action, user_id)
            return None

    def list_all(self, principal: Principal) -> list[ActivityLog]:
        self.sessions.authorize(principal)
        return self.store.query(EntityKind.ACTIVITY_LOG, order_by=_NEWEST_FIRST)

    def list_for_user(self, principal: Principal, user_id: int) -> list[ActivityLog]:
        self.sessions.authorize(principal)
        return self.store.query(
            EntityKind.ACTIVITY_LOG,
            ActivityLog.user_id == user_id,
            order_by=_NEWEST_FIRST,
        )

    def recent(self, principal: Principal, limit: int = 8) -> list[ActivityLog]:
        return self.list_all(principal)[:limit]
