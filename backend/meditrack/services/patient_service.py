"""
Patient service — CRUD, text search and barangay / last-visit filtering.

Every public method takes the caller's ``Principal`` first and authorizes it
before the record store is touched.  Mutations append an activity-log entry
once the store write has gone through.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any, Mapping, Optional, Union

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import func, or_

from meditrack.db.base import utcnow
from meditrack.db.store import EntityKind, RecordStore
from meditrack.exceptions import DuplicateKeyError, NotFoundError, ValidationError
from meditrack.models.activity_log import CREATE_PATIENT, DELETE_PATIENT, UPDATE_PATIENT
from meditrack.models.patient import PATIENT_ID_PREFIX, Barangay, DateFilter, Patient
from meditrack.schemas import REQUIRED_PATIENT_FIELDS, PatientCreate, PatientUpdate
from meditrack.services.activity_service import ActivityLogService
from meditrack.services.sessions import Principal, SessionRegistry

logger = logging.getLogger(__name__)

_WINDOW_DAYS = {
    DateFilter.LAST_7_DAYS: 7,
    DateFilter.LAST_30_DAYS: 30,
    DateFilter.LAST_90_DAYS: 90,
}

RECENT_PATIENTS_LIMIT = 5
RECENT_ACTIVITY_LIMIT = 8


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def window_start(date_filter: DateFilter, now: datetime) -> datetime:
    """Earliest ``last_visit`` that still falls inside *date_filter*."""
    if date_filter == DateFilter.THIS_YEAR:
        return now.replace(month=1, day=1, hour=0, minute=0, second=0, microsecond=0)
    return now - timedelta(days=_WINDOW_DAYS[date_filter])


def _parse(model: type[BaseModel], payload: Union[BaseModel, Mapping[str, Any]]):
    if isinstance(payload, model):
        return payload
    try:
        return model.model_validate(payload)
    except PydanticValidationError as e:
        raise ValidationError.from_pydantic(e) from e


def _coerce(enum_cls, value, field: str):
    if value is None or value == "":
        return None
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ValidationError([{"field": field, "message": f"Must be one of: {allowed}"}])


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------

class PatientService:
    def __init__(self, store: RecordStore, audit: ActivityLogService, sessions: SessionRegistry):
        self.store = store
        self.audit = audit
        self.sessions = sessions

    def _find_by_patient_id(self, patient_id: str) -> Optional[Patient]:
        return self.store.first(EntityKind.PATIENT, Patient.patient_id == patient_id)

    def _generate_patient_id(self) -> str:
        seq = self.store.next_id(EntityKind.PATIENT)
        candidate = f"{PATIENT_ID_PREFIX}{seq:04d}"
        # An explicitly supplied id may already occupy the sequence slot
        while self._find_by_patient_id(candidate) is not None:
            seq += 1
            candidate = f"{PATIENT_ID_PREFIX}{seq:04d}"
        return candidate

    # -- CRUD -----------------------------------------------------------------

    def create_patient(
        self,
        principal: Principal,
        draft: Union[PatientCreate, Mapping[str, Any]],
        ip_address: str = None,
    ) -> Patient:
        self.sessions.authorize(principal)
        data = _parse(PatientCreate, draft).model_dump()

        with self.store.atomic():
            if data["patient_id"] is None:
                data["patient_id"] = self._generate_patient_id()
            elif self._find_by_patient_id(data["patient_id"]) is not None:
                raise DuplicateKeyError(f"Patient ID {data['patient_id']} already exists")
            data["created_at"] = utcnow()
            data["created_by"] = principal.user_id
            patient = self.store.insert(EntityKind.PATIENT, data)

        logger.info("Created patient %s (%s) by user %s", patient.id, patient.patient_id, principal.user_id)
        self.audit.record(
            principal.user_id,
            CREATE_PATIENT,
            f"Created patient record for {patient.full_name}",
            ip_address,
        )
        return patient

    def get_patient(self, principal: Principal, patient_id: int) -> Patient:
        self.sessions.authorize(principal)
        patient = self.store.get(EntityKind.PATIENT, patient_id)
        if patient is None:
            raise NotFoundError("Patient not found")
        return patient

    def update_patient(
        self,
        principal: Principal,
        patient_id: int,
        partial: Union[PatientUpdate, Mapping[str, Any]],
        ip_address: str = None,
    ) -> Patient:
        """Partial update of a patient record.

        Only fields present in *partial* are written; ``created_at`` and
        ``created_by`` are not part of the update payload and never change.
        """
        self.sessions.authorize(principal)
        changes = _parse(PatientUpdate, partial).model_dump(exclude_unset=True)

        cleared = [f for f in REQUIRED_PATIENT_FIELDS if f in changes and changes[f] is None]
        if cleared:
            raise ValidationError([{"field": f, "message": "Field is required"} for f in cleared])

        with self.store.atomic():
            existing = self.store.get(EntityKind.PATIENT, patient_id)
            if existing is None:
                raise NotFoundError("Patient not found")

            new_pid = changes.get("patient_id")
            if new_pid and new_pid != existing.patient_id:
                other = self._find_by_patient_id(new_pid)
                if other is not None and other.id != patient_id:
                    raise DuplicateKeyError("Patient ID already exists on another record")

            patient = self.store.update(EntityKind.PATIENT, patient_id, changes)

        logger.info("Updated patient %s fields %s", patient_id, sorted(changes))
        self.audit.record(
            principal.user_id,
            UPDATE_PATIENT,
            f"Updated patient record for {patient.full_name}",
            ip_address,
        )
        return patient

    def delete_patient(self, principal: Principal, patient_id: int, ip_address: str = None) -> bool:
        self.sessions.authorize(principal)
        with self.store.atomic():
            patient = self.store.get(EntityKind.PATIENT, patient_id)
            if patient is None:
                raise NotFoundError("Patient not found")
            self.store.delete(EntityKind.PATIENT, patient_id)

        logger.info("Deleted patient %s (%s)", patient_id, patient.patient_id)
        self.audit.record(
            principal.user_id,
            DELETE_PATIENT,
            f"Deleted patient record for {patient.full_name}",
            ip_address,
        )
        return True

    # -- Queries --------------------------------------------------------------

    def search_patients(self, principal: Principal, query: Optional[str]) -> list[Patient]:
        """Substring search over names, patient ID and contact number.

        Names and patient IDs match case-insensitively; the contact number is
        matched as typed.  A blank query returns every patient.
        """
        self.sessions.authorize(principal)
        q = (query or "").strip()
        if not q:
            return self.store.get_all(EntityKind.PATIENT)

        folded = q.casefold()
        return self.store.query(
            EntityKind.PATIENT,
            or_(
                func.instr(func.casefold(Patient.first_name), folded) > 0,
                func.instr(func.casefold(Patient.last_name), folded) > 0,
                func.instr(func.casefold(Patient.patient_id), folded) > 0,
                func.instr(Patient.contact_number, q) > 0,
            ),
        )

    def filter_patients(
        self,
        principal: Principal,
        barangay: Union[Barangay, str, None] = None,
        date_filter: Union[DateFilter, str, None] = None,
        now: Optional[datetime] = None,
    ) -> list[Patient]:
        self.sessions.authorize(principal)
        barangay = _coerce(Barangay, barangay, "barangay")
        date_filter = _coerce(DateFilter, date_filter, "date_filter")

        criteria = []
        if barangay is not None:
            criteria.append(Patient.barangay == barangay)
        if date_filter is not None:
            now = now or utcnow()
            criteria.extend([
                Patient.last_visit.is_not(None),
                Patient.last_visit >= window_start(date_filter, now),
                Patient.last_visit <= now,
            ])
        return self.store.query(EntityKind.PATIENT, *criteria)

    def list_patients(
        self,
        principal: Principal,
        search: Optional[str] = None,
        barangay: Union[Barangay, str, None] = None,
        date_filter: Union[DateFilter, str, None] = None,
    ) -> list[Patient]:
        # search wins; the filters are ignored when it is present
        if search and search.strip():
            return self.search_patients(principal, search)
        return self.filter_patients(principal, barangay, date_filter)

    def summary(self, principal: Principal) -> dict[str, Any]:
        self.sessions.authorize(principal)
        patients = self.store.get_all(EntityKind.PATIENT)

        by_barangay = {b.value: 0 for b in Barangay}
        for p in patients:
            by_barangay[Barangay(p.barangay).value] += 1

        recent = sorted(patients, key=lambda p: (p.created_at, p.id), reverse=True)
        return {
            "total_patients": len(patients),
            "patients_by_barangay": by_barangay,
            "recent_patients": recent[:RECENT_PATIENTS_LIMIT],
            "recent_activity": self.audit.recent(principal, RECENT_ACTIVITY_LIMIT),
        }
