"""
Error taxonomy for the records core.

The core raises these; the HTTP layer turns each one into a JSON response via
a single exception handler registered in ``meditrack.main``.
"""

from typing import Any


class MediTrackError(Exception):
    status_code = 400
    message = "Request failed"

    def __init__(self, message: str | None = None):
        self.message = message or self.message
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        return {"message": self.message}


class InvalidCredentialsError(MediTrackError):
    status_code = 401
    message = "Invalid username or password"


class UnauthorizedError(MediTrackError):
    status_code = 401
    message = "Unauthorized"


class NotFoundError(MediTrackError):
    status_code = 404
    message = "Not found"


class DuplicateKeyError(MediTrackError):
    status_code = 409
    message = "Duplicate key"


class ValidationError(MediTrackError):
    """Carries one entry per offending field, never just the first."""

    status_code = 422
    message = "Validation error"

    def __init__(self, errors: list[dict[str, str]], message: str | None = None):
        self.errors = errors
        super().__init__(message)

    @property
    def fields(self) -> list[str]:
        return [e["field"] for e in self.errors]

    @classmethod
    def from_pydantic(cls, exc) -> "ValidationError":
        errors = []
        for err in exc.errors():
            loc = [str(part) for part in err.get("loc", ()) if part != "body"]
            errors.append({"field": ".".join(loc) or "__root__", "message": err.get("msg", "")})
        return cls(errors)

    def to_dict(self) -> dict[str, Any]:
        return {"message": self.message, "errors": self.errors}


class EmptyUpdateError(ValidationError):
    status_code = 400
    message = "No fields to update"

    def __init__(self):
        super().__init__([{"field": "__root__", "message": self.message}])
