"""
Record store: the in-memory keyed collections behind users, patients and
activity logs.

Each ``RecordStore`` owns its own SQLite in-memory database, so tests (and the
app) get an isolated set of tables per instance.  All operations run under one
re-entrant lock and commit before returning, so callers never observe a
half-applied insert or update.
"""

from __future__ import annotations

import enum
import logging
import threading
from contextlib import contextmanager
from typing import Any, Iterator

from sqlalchemy import create_engine, event, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from meditrack.db.base import Base
from meditrack.exceptions import DuplicateKeyError
from meditrack.models import ActivityLog, Patient, User

logger = logging.getLogger(__name__)


class EntityKind(str, enum.Enum):
    USER = "user"
    PATIENT = "patient"
    ACTIVITY_LOG = "activity_log"


_MODELS = {
    EntityKind.USER: User,
    EntityKind.PATIENT: Patient,
    EntityKind.ACTIVITY_LOG: ActivityLog,
}


def model_for(kind: EntityKind):
    return _MODELS[EntityKind(kind)]


def _casefold(value):
    return value.casefold() if isinstance(value, str) else value


def _register_functions(dbapi_conn, connection_record):
    # SQLite lower() only folds ASCII; index expressions need deterministic=True
    dbapi_conn.create_function("casefold", 1, _casefold, deterministic=True)


class RecordStore:
    def __init__(self, url: str = "sqlite://", echo: bool = False):
        # A single shared connection keeps the in-memory database alive
        self.engine = create_engine(
            url,
            echo=echo,
            future=True,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
        event.listen(self.engine, "connect", _register_functions)
        # expire_on_commit=False keeps returned entities readable after commit
        self._session_factory = sessionmaker(
            bind=self.engine, autoflush=False, expire_on_commit=False, future=True
        )
        self._lock = threading.RLock()
        self._counters: dict[EntityKind, int] = {kind: 1 for kind in EntityKind}
        Base.metadata.create_all(self.engine)

    @contextmanager
    def atomic(self) -> Iterator[None]:
        """Hold the store lock across several operations (check-then-write)."""
        with self._lock:
            yield

    @contextmanager
    def _session(self) -> Iterator[Session]:
        with self._lock, self._session_factory() as session:
            yield session

    def next_id(self, kind: EntityKind) -> int:
        with self._lock:
            return self._counters[EntityKind(kind)]

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    def get(self, kind: EntityKind, entity_id: int):
        with self._session() as session:
            return session.get(model_for(kind), entity_id)

    def get_all(self, kind: EntityKind) -> list:
        model = model_for(kind)
        with self._session() as session:
            return list(session.scalars(select(model).order_by(model.id)).all())

    def insert(self, kind: EntityKind, data: dict[str, Any]):
        kind = EntityKind(kind)
        with self._session() as session:
            entity = _MODELS[kind](**data)
            entity.id = self._counters[kind]
            session.add(entity)
            try:
                session.commit()
            except IntegrityError as e:
                session.rollback()
                raise DuplicateKeyError(f"{kind.value} violates a unique constraint") from e
            self._counters[kind] += 1
            logger.debug("Inserted %s %s", kind.value, entity.id)
            return entity

    def update(self, kind: EntityKind, entity_id: int, partial: dict[str, Any]):
        with self._session() as session:
            entity = session.get(model_for(kind), entity_id)
            if entity is None:
                return None
            for key, value in partial.items():
                if key != "id" and hasattr(entity, key):
                    setattr(entity, key, value)
            try:
                session.commit()
            except IntegrityError as e:
                session.rollback()
                raise DuplicateKeyError(f"{EntityKind(kind).value} violates a unique constraint") from e
            return entity

    def delete(self, kind: EntityKind, entity_id: int) -> bool:
        with self._session() as session:
            entity = session.get(model_for(kind), entity_id)
            if entity is None:
                return False
            session.delete(entity)
            session.commit()
            return True

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def query(self, kind: EntityKind, *criteria, order_by=None) -> list:
        model = model_for(kind)
        stmt = select(model).where(*criteria)
        if order_by is None:
            stmt = stmt.order_by(model.id)
        else:
            stmt = stmt.order_by(*order_by)
        with self._session() as session:
            return list(session.scalars(stmt).all())

    def first(self, kind: EntityKind, *criteria):
        rows = self.query(kind, *criteria)
        return rows[0] if rows else None

    def count(self, kind: EntityKind) -> int:
        with self._session() as session:
            return session.scalar(select(func.count()).select_from(model_for(kind))) or 0

    def dispose(self) -> None:
        self.engine.dispose()
