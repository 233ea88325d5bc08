"""Custom exception types for domain and API layers."""
from __future__ import annotations

from enum import Enum
from typing import Any, Optional


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"
    PERSISTENCE = "persistence"


class AppError(Exception):
    """Base app exception.

    Carries the chain of operations it passed through and structured context,
    so callers classify it by ``kind`` instead of by message text.
    """

    kind: ErrorKind = ErrorKind.PERSISTENCE

    def __init__(self, message: str, *, operation: Optional[str] = None, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.operations: list[str] = [operation] if operation else []
        self.context = context

    @property
    def operation(self) -> Optional[str]:
        return " > ".join(self.operations) or None

    def wrap(self, operation: str) -> "AppError":
        """Record an outer operation the error propagated through."""
        if not self.operations or self.operations[0] != operation:
            self.operations.insert(0, operation)
        return self

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"error": self.kind.value, "message": self.message}
        if self.operation:
            payload["operation"] = self.operation
        return payload

    def __str__(self) -> str:
        if self.operation:
            return f"{self.operation}: {self.message}"
        return self.message


class ValidationError(AppError):
    """Validation failure for user input."""

    kind = ErrorKind.VALIDATION


class OverlapError(AppError):
    """A subscription for the same user and service is still active."""

    kind = ErrorKind.CONFLICT


class NotFoundError(AppError):
    """Requested subscription does not exist."""

    kind = ErrorKind.NOT_FOUND


class PersistenceError(AppError):
    """Store or transport failure."""

    kind = ErrorKind.PERSISTENCE
