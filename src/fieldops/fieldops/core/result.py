"""Discriminated results returned by every mutating operation.

Services raise ``DomainError`` subclasses internally; ``as_result`` turns them
into a failed ``OperationResult`` at the public boundary so callers never have
to catch domain exceptions.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import wraps
from typing import Any, Callable, Generic, Optional, TypeVar

from .exceptions import ConflictError, DomainError, ValidationError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class ErrorInfo:
    kind: str
    message: str
    field: Optional[str] = None
    blocking_project_id: Optional[int] = None

    @classmethod
    def from_exception(cls, exc: DomainError) -> "ErrorInfo":
        return cls(
            kind=exc.kind,
            message=exc.message,
            field=exc.field if isinstance(exc, ValidationError) else None,
            blocking_project_id=exc.blocking_project_id if isinstance(exc, ConflictError) else None,
        )

    def to_dict(self) -> dict:
        out: dict[str, Any] = {"kind": self.kind, "message": self.message}
        if self.field:
            out["field"] = self.field
        if self.blocking_project_id is not None:
            out["blocking_project_id"] = self.blocking_project_id
        return out


@dataclass(frozen=True)
class OperationResult(Generic[T]):
    success: bool
    data: Optional[T] = None
    error: Optional[ErrorInfo] = None

    @classmethod
    def ok(cls, data: T) -> "OperationResult[T]":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, exc: DomainError) -> "OperationResult[T]":
        return cls(success=False, error=ErrorInfo.from_exception(exc))

    def unwrap(self) -> T:
        """Return data or raise; convenient in scripts and tests."""
        if not self.success:
            raise RuntimeError(self.error.message if self.error else "operation failed")
        return self.data  # type: ignore[return-value]


def as_result(fn: Callable[..., T]) -> Callable[..., OperationResult[T]]:
    """Wrap a service method so domain errors come back as a failed result."""

    @wraps(fn)
    def wrapper(*args, **kwargs) -> OperationResult[T]:
        try:
            return OperationResult.ok(fn(*args, **kwargs))
        except DomainError as e:
            logger.info("%s rejected: %s (%s)", fn.__qualname__, e.message, e.kind)
            return OperationResult.fail(e)

    return wrapper
