from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from meditrack.models.patient import Barangay
from meditrack.models.user import UserRole


def _to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


# ---------------------------------------------------------------------------
# Patients
# ---------------------------------------------------------------------------

class PatientCreate(BaseModel):
    patient_id: Optional[str] = None  # generated as "PT-0001" when omitted
    first_name: str = Field(..., min_length=1, max_length=120)
    last_name: str = Field(..., min_length=1, max_length=120)
    middle_name: Optional[str] = None
    age: int = Field(..., ge=0)
    gender: str = Field(..., min_length=1)
    contact_number: Optional[str] = None
    address: str = Field(..., min_length=1)
    barangay: Barangay
    medical_history: Optional[str] = None
    last_visit: Optional[datetime] = None
    profile_picture: Optional[str] = None

    model_config = ConfigDict(str_strip_whitespace=True)

    @field_validator("patient_id", mode="before")
    @classmethod
    def blank_patient_id(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("last_visit")
    @classmethod
    def normalise_last_visit(cls, v):
        return _to_naive_utc(v)


class PatientUpdate(BaseModel):
    """Partial update: unset fields are left alone, ``None`` clears a field."""

    patient_id: Optional[str] = Field(None, min_length=1)
    first_name: Optional[str] = Field(None, min_length=1, max_length=120)
    last_name: Optional[str] = Field(None, min_length=1, max_length=120)
    middle_name: Optional[str] = None
    age: Optional[int] = Field(None, ge=0)
    gender: Optional[str] = Field(None, min_length=1)
    contact_number: Optional[str] = None
    address: Optional[str] = Field(None, min_length=1)
    barangay: Optional[Barangay] = None
    medical_history: Optional[str] = None
    last_visit: Optional[datetime] = None
    profile_picture: Optional[str] = None

    model_config = ConfigDict(str_strip_whitespace=True)

    @field_validator("last_visit")
    @classmethod
    def normalise_last_visit(cls, v):
        return _to_naive_utc(v)


# Fields a partial update may not clear
REQUIRED_PATIENT_FIELDS = (
    "patient_id",
    "first_name",
    "last_name",
    "age",
    "gender",
    "address",
    "barangay",
)


class PatientResponse(BaseModel):
    id: int
    patient_id: str
    first_name: str
    last_name: str
    middle_name: Optional[str] = None
    age: int
    gender: str
    contact_number: Optional[str] = None
    address: str
    barangay: Barangay
    medical_history: Optional[str] = None
    last_visit: Optional[datetime] = None
    profile_picture: Optional[str] = None
    created_at: datetime
    created_by: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)


# ---------------------------------------------------------------------------
# Users / auth
# ---------------------------------------------------------------------------

class UserPublic(BaseModel):
    """User projection safe to hand out: never carries the password hash."""

    id: int
    username: str
    full_name: str
    role: UserRole
    profile_picture: Optional[str] = None
    last_login: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class LoginRequest(BaseModel):
    username: str
    password: str


class RegisterRequest(BaseModel):
    username: str = Field(..., min_length=3, max_length=64)
    password: str = Field(..., min_length=6)
    full_name: str = Field(..., min_length=1, max_length=200)


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserPublic


class MessageResponse(BaseModel):
    message: str


# ---------------------------------------------------------------------------
# Activity logs / dashboard
# ---------------------------------------------------------------------------

class ActivityLogResponse(BaseModel):
    id: int
    user_id: Optional[int] = None
    action: str
    details: Optional[str] = None
    ip_address: Optional[str] = None
    timestamp: datetime

    model_config = ConfigDict(from_attributes=True)


class DashboardStats(BaseModel):
    total_patients: int
    patients_by_barangay: dict[str, int]
    recent_patients: list[PatientResponse]
    recent_activity: list[ActivityLogResponse]
