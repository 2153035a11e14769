from sqlalchemy import Column, String, DateTime, Integer, ForeignKey

from meditrack.db.base import Base, utcnow


# Action labels
LOGIN = "Login"
LOGIN_FAILED = "Login Failed"
LOGOUT = "Logout"
REGISTER = "Register"
CREATE_PATIENT = "Create Patient"
UPDATE_PATIENT = "Update Patient"
DELETE_PATIENT = "Delete Patient"


class ActivityLog(Base):
    __tablename__ = "activity_logs"

    id = Column(Integer, primary_key=True, autoincrement=False)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    action = Column(String, nullable=False)  # short label, e.g. "Create Patient"
    details = Column(String, nullable=True)
    ip_address = Column(String, nullable=True)
    timestamp = Column(DateTime, nullable=False, default=utcnow)
