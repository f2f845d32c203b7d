# Overview: Error taxonomy shared by services and routes.

"""
Service-layer errors.

Every error carries a stable machine-checkable `kind` and the HTTP status the
API layer answers with. Anything that is not a ServiceError is an internal
failure (500) and its message is never returned to the caller.
"""
from __future__ import annotations


class ServiceError(Exception):
    """Base class for expected, caller-visible failures."""
    kind = "error"
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"success": False, "kind": self.kind, "message": self.message}


class ValidationError(ServiceError):
    """400-level input problem. Carries every field-level message, not just the first."""
    kind = "validation_error"
    status_code = 400

    def __init__(self, message: str, errors: list[dict] | None = None):
        super().__init__(message)
        self.errors = errors or []

    def to_dict(self) -> dict:
        body = super().to_dict()
        if self.errors:
            body["errors"] = self.errors
        return body


class NotFoundError(ServiceError):
    kind = "not_found"
    status_code = 404


class ForbiddenError(ServiceError):
    """Authenticated but not allowed to touch this entity or perform this action."""
    kind = "forbidden"
    status_code = 403


class ConflictError(ServiceError):
    """409-level state-machine violation or a lost allocation race."""
    kind = "conflict"
    status_code = 409
