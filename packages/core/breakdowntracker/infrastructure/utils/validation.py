"""Input validation utilities for tracker operations.

Each validator either returns the normalized value or raises the domain
ValidationError, so callers can reject bad input before touching the store.
"""

from datetime import datetime, timezone

from breakdowntracker.domain.models.tracking_error import ValidationError

MAX_OPERATOR_NAME_LENGTH = 120
MAX_IDENTIFIER_LENGTH = 255


def _has_control_characters(value: str) -> bool:
    return any(ord(c) < 32 and c not in "\t\n\r" for c in value)


def validate_operator_name(operator_name: str | None) -> str:
    """Validate and normalize the operator attributed to a change.

    Args:
        operator_name: Free-text operator name.

    Returns:
        The name with surrounding and repeated whitespace collapsed.

    Raises:
        ValidationError: If the name is empty, too long or has control characters.
    """
    if operator_name is None or not str(operator_name).strip():
        raise ValidationError("Operator name cannot be empty", field="operator_name")

    normalized = " ".join(str(operator_name).split())
    if len(normalized) > MAX_OPERATOR_NAME_LENGTH:
        raise ValidationError(
            f"Operator name must be {MAX_OPERATOR_NAME_LENGTH} characters or less",
            field="operator_name",
        )
    if _has_control_characters(normalized):
        raise ValidationError(
            "Operator name contains invalid control characters",
            field="operator_name",
        )
    return normalized


def validate_record_id(record_id: str | None, field: str = "record_id") -> str:
    """Validate an opaque identifier.

    Raises:
        ValidationError: If the identifier is empty or too long.
    """
    if record_id is None or not str(record_id).strip():
        raise ValidationError("Identifier cannot be empty", field=field)
    record_id = str(record_id).strip()
    if len(record_id) > MAX_IDENTIFIER_LENGTH:
        raise ValidationError(
            f"Identifier must be {MAX_IDENTIFIER_LENGTH} characters or less",
            field=field,
        )
    return record_id


def validate_notes(notes: str | None, max_length: int, field: str = "notes") -> str | None:
    """Validate optional free-text notes.

    Returns:
        The stripped notes, or None when empty.

    Raises:
        ValidationError: If the notes exceed ``max_length`` or hold control characters.
    """
    if notes is None:
        return None
    notes = notes.strip()
    if not notes:
        return None
    if len(notes) > max_length:
        raise ValidationError(
            f"Notes must be {max_length} characters or less",
            field=field,
        )
    if _has_control_characters(notes):
        raise ValidationError("Notes contain invalid control characters", field=field)
    return notes


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def validate_period(period_start: datetime, period_end: datetime) -> tuple[datetime, datetime]:
    """Validate a reporting window.

    Returns:
        Both bounds converted to UTC.

    Raises:
        ValidationError: If the window ends before it starts.
    """
    start = ensure_utc(period_start)
    end = ensure_utc(period_end)
    if end < start:
        raise ValidationError(
            "Report period must end after it starts",
            field="period_end",
        )
    return start, end
