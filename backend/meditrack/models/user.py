import enum

from sqlalchemy import Column, String, Enum, DateTime, Integer, Index, func

from meditrack.db.base import Base


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    STAFF = "staff"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=False)
    username = Column(String, nullable=False)
    hashed_password = Column(String, nullable=False)
    full_name = Column(String, nullable=False)
    role = Column(
        Enum(UserRole, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=UserRole.STAFF,
    )
    profile_picture = Column(String, nullable=True)
    last_login = Column(DateTime, nullable=True)


# Usernames are unique regardless of case (casefold is registered by the record store)
Index("ix_users_username_casefold", func.casefold(User.username), unique=True)
