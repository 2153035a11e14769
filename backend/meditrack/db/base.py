from datetime import datetime, timezone

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass


def utcnow() -> datetime:
    """Naive UTC timestamp, the form SQLite hands back from DateTime columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
