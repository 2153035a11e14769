from meditrack.models.user import User, UserRole
from meditrack.models.patient import Patient, Barangay, DateFilter
from meditrack.models.activity_log import ActivityLog

__all__ = [
    "User",
    "UserRole",
    "Patient",
    "Barangay",
    "DateFilter",
    "ActivityLog",
]
