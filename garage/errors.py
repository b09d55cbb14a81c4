"""Error taxonomy shared by the engines and the HTTP layer.

Every engine failure is a ``GarageError`` subclass carrying a machine-readable
``kind`` and the HTTP status the API layer should answer with.
"""

from __future__ import annotations


class GarageError(Exception):
    kind = "internal_error"
    status_code = 500

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message or self.__class__.__name__

    def to_dict(self) -> dict:
        return {"kind": self.kind, "message": self.message}


class ValidationError(GarageError):
    kind = "validation_error"
    status_code = 422


class AuthError(GarageError):
    kind = "auth_error"
    status_code = 401


class PermissionDenied(GarageError):
    kind = "permission_error"
    status_code = 403


class NotFoundError(GarageError):
    kind = "not_found"
    status_code = 404


class ConflictError(GarageError):
    kind = "conflict_error"
    status_code = 409


class DependencyError(GarageError):
    kind = "dependency_error"
    status_code = 503


# ── Engine-specific failures ─────────────────────────────

class InvalidPhotoCount(ValidationError):
    pass


class InvalidTransition(ConflictError):
    pass


class StaleWrite(ConflictError):
    """Another request changed the same row first."""


class NotReadyForQA(ConflictError):
    pass


class NotCompleted(ConflictError):
    pass


class AlreadyInvoiced(ConflictError):
    pass


class Overpayment(ConflictError):
    pass
