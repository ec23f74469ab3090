"""Domain error taxonomy.

Every failure the core anticipates carries a stable machine-readable ``code``
plus a human-readable message. Routes never catch these; the application
translates them into the structured error response at the boundary.
"""

from typing import Any


class DomainError(Exception):
    """Base class for anticipated, request-recoverable failures."""

    code = "DOMAIN_ERROR"

    def __init__(self, message: str, detail: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail


class UnauthenticatedError(DomainError):
    """No (valid) principal was attached to the operation."""

    code = "UNAUTHENTICATED"


class ForbiddenError(DomainError):
    """The principal's role or ownership does not permit the operation."""

    code = "FORBIDDEN"


class NotFoundError(DomainError):
    """The target record does not exist (or is not visible to the requester)."""

    code = "NOT_FOUND"


class ValidationError(DomainError):
    """Bad input: out-of-range rating, missing required field, bad page."""

    code = "VALIDATION_ERROR"


class ConflictError(DomainError):
    """Uniqueness violation: duplicate rating or duplicate email."""

    code = "CONFLICT"
