"""Error taxonomy for breakdown tracking operations."""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Categories of tracking errors."""

    ValidationError = "validation_error"
    """Bad input (missing operator, unknown status, oversized notes)."""

    StateTransitionError = "state_transition_error"
    """Status edge not allowed by the status registry."""

    PersistenceError = "persistence_error"
    """Underlying storage failure or write conflict."""

    PermissionDeniedError = "permission_denied_error"
    """Caller lacks the capability required by the operation."""

    NotFoundError = "not_found_error"
    """Unknown record or occurrence identifier."""


class TrackingError(Exception):
    """Base error for every failure surfaced by the tracker.

    Example:
        ```python
        try:
            await tracker.record_transition(session, record_id, "finalizado")
        except TrackingError as e:
            print(e.category.value, e.message, e.retryable)
        ```
    """

    category: ErrorCategory = ErrorCategory.ValidationError

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        retryable: bool = False,
    ) -> None:
        """Initialize TrackingError.

        Args:
            message: Human-readable error message.
            details: Additional structured error details.
            retryable: Whether retrying the same call may succeed.
        """
        self.message = message
        self.details = details or {}
        self.retryable = retryable
        super().__init__(self.message)

    def __repr__(self) -> str:
        """String representation of the error."""
        return (
            f"{type(self).__name__}(category={self.category.value}, "
            f"message={self.message!r}, retryable={self.retryable})"
        )

    def __str__(self) -> str:
        """Human-readable error message."""
        return self.message


class ValidationError(TrackingError):
    """Raised when input validation fails."""

    category = ErrorCategory.ValidationError

    def __init__(
        self,
        message: str,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize ValidationError.

        Args:
            message: Human-readable error message.
            field: Optional field name that failed validation.
            details: Additional structured error details.
        """
        self.field = field
        if field is not None:
            details = {"field": field, **(details or {})}
        super().__init__(message, details=details)

    def __str__(self) -> str:
        """Return error message with field name if available."""
        if self.field:
            return f"Validation error in field '{self.field}': {self.message}"
        return self.message


class StateTransitionError(TrackingError):
    """Raised when a status change is not an allowed edge."""

    category = ErrorCategory.StateTransitionError

    def __init__(
        self,
        message: str,
        from_status: str | None = None,
        to_status: str | None = None,
    ) -> None:
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(
            message,
            details={"from_status": from_status, "to_status": to_status},
        )


class PersistenceError(TrackingError):
    """Raised when a RecordStore operation fails.

    Persistence errors are surfaced unmodified to the caller and never
    retried automatically; ``retryable`` tells the caller a retry is safe.
    """

    category = ErrorCategory.PersistenceError

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message, details=details, retryable=True)


class PermissionDeniedError(TrackingError):
    """Raised when the session lacks a required capability."""

    category = ErrorCategory.PermissionDeniedError

    def __init__(self, message: str, capability: str | None = None) -> None:
        self.capability = capability
        super().__init__(message, details={"capability": capability})


class NotFoundError(TrackingError):
    """Raised when a record or occurrence does not exist."""

    category = ErrorCategory.NotFoundError

    def __init__(self, message: str, entity_type: str, entity_id: str) -> None:
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(
            message,
            details={"entity_type": entity_type, "entity_id": entity_id},
        )
