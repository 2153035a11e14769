"""
Bootstrap data: the admin account and, optionally, demo patients.

``create_app`` calls ``seed_admin`` on every start (the store is in memory, so
every start is a fresh database).  Demo patients are only inserted when
``SEED_DEMO_PATIENTS`` is set to a positive count.
"""

import logging
import random
from datetime import timedelta

from meditrack.config import Settings
from meditrack.db.base import utcnow
from meditrack.db.store import EntityKind, RecordStore
from meditrack.models.patient import PATIENT_ID_PREFIX, Barangay
from meditrack.services.auth_service import AuthService

logger = logging.getLogger(__name__)

# ─────────────────────────────────────────────────────────────────────
#  Reference data
# ─────────────────────────────────────────────────────────────────────

MALE_FIRST = [
    "Jose", "Juan", "Mark", "Paolo", "Rafael", "Miguel", "Carlo", "Andres",
    "Ramon", "Emilio", "Dante", "Nestor", "Rogelio", "Arnel", "Jericho",
]
FEMALE_FIRST = [
    "Maria", "Ana", "Kristine", "Liza", "Rosario", "Camille", "Jasmine",
    "Teresita", "Maricel", "Angelica", "Divina", "Lorna", "Precious", "Joy",
]
FAMILY_NAMES = [
    "Santos", "Reyes", "Cruz", "Bautista", "Ocampo", "Garcia", "Mendoza",
    "Torres", "Aquino", "Ramos", "Villanueva", "Dela Cruz", "Castillo",
    "Flores", "Navarro", "Soriano", "Pascual", "Domingo",
]
STREETS = ["Rizal St", "Mabini St", "Bonifacio Ave", "Luna St", "Del Pilar St", "Osmeña Rd"]
HISTORIES = [
    None,
    "Hypertension",
    "Type 2 diabetes",
    "Asthma",
    "Hypertension; Type 2 diabetes",
    "Post-partum follow-up",
]


def seed_admin(auth: AuthService, settings: Settings):
    return auth.ensure_admin(
        settings.SEED_ADMIN_USERNAME,
        settings.SEED_ADMIN_PASSWORD,
        settings.SEED_ADMIN_FULL_NAME,
    )


def seed_demo_patients(store: RecordStore, created_by: int, count: int, seed: int = 42) -> int:
    """Insert *count* deterministic demo patients. Returns how many were added."""
    rng = random.Random(seed)
    now = utcnow()
    for _ in range(count):
        gender = rng.choice(["Male", "Female"])
        first = rng.choice(MALE_FIRST if gender == "Male" else FEMALE_FIRST)
        visited = rng.random() < 0.8
        store.insert(
            EntityKind.PATIENT,
            {
                "patient_id": f"{PATIENT_ID_PREFIX}{store.next_id(EntityKind.PATIENT):04d}",
                "first_name": first,
                "last_name": rng.choice(FAMILY_NAMES),
                "age": rng.randint(0, 90),
                "gender": gender,
                "contact_number": f"09{rng.randint(100000000, 999999999)}",
                "address": f"{rng.randint(1, 250)} {rng.choice(STREETS)}",
                "barangay": rng.choice(list(Barangay)),
                "medical_history": rng.choice(HISTORIES),
                "last_visit": now - timedelta(days=rng.randint(0, 400)) if visited else None,
                "created_at": now,
                "created_by": created_by,
            },
        )
    logger.info("Seeded %d demo patients", count)
    return count
