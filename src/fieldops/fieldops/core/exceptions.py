from __future__ import annotations

from typing import Optional


class DomainError(Exception):
    """Base exception for business rule violations."""

    kind = "domain"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(DomainError):
    """Raised when input data is malformed; carries the offending field."""

    kind = "validation"

    def __init__(self, message: str, *, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class NotFoundError(DomainError):
    """Raised when a referenced session, task or project does not exist."""

    kind = "not_found"


class ConflictError(DomainError):
    """Raised on a second open session or a session/task project mismatch."""

    kind = "conflict"

    def __init__(self, message: str, *, blocking_project_id: Optional[int] = None):
        super().__init__(message)
        self.blocking_project_id = blocking_project_id


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""

    kind = "authorization"


class DownstreamError(DomainError):
    """Raised by notification/audit collaborators. Never fails the caller."""

    kind = "downstream"
