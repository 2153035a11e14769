import enum

from sqlalchemy import Column, String, Enum, DateTime, Integer, Text, ForeignKey

from meditrack.db.base import Base, utcnow


class Barangay(str, enum.Enum):
    B191 = "191"
    B192 = "192"
    B193 = "193"
    B194 = "194"
    B195 = "195"
    B196 = "196"
    B197 = "197"
    B198 = "198"
    B199 = "199"
    B200 = "200"


class DateFilter(str, enum.Enum):
    LAST_7_DAYS = "7days"
    LAST_30_DAYS = "30days"
    LAST_90_DAYS = "90days"
    THIS_YEAR = "thisYear"


PATIENT_ID_PREFIX = "PT-"


class Patient(Base):
    __tablename__ = "patients"

    id = Column(Integer, primary_key=True, autoincrement=False)
    patient_id = Column(String, unique=True, nullable=False, index=True)  # human-facing "PT-0001"

    # Demographics
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    middle_name = Column(String, nullable=True)
    age = Column(Integer, nullable=False)
    gender = Column(String, nullable=False)
    contact_number = Column(String, nullable=True)

    # Residence
    address = Column(String, nullable=False)
    barangay = Column(
        Enum(Barangay, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )

    # Clinical
    medical_history = Column(Text, nullable=True)
    last_visit = Column(DateTime, nullable=True)
    profile_picture = Column(String, nullable=True)

    # System fields, set once at creation
    created_at = Column(DateTime, nullable=False, default=utcnow)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=True)

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}"
