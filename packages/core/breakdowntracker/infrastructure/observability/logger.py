"""Default observability manager implementation."""

import logging
from datetime import datetime, timezone
from typing import Any

import structlog

from breakdowntracker.domain.interfaces.observability_manager import (
    ObservabilityError,
    ObservabilityManager,
)

MAX_LOGGED_TEXT_LENGTH = 200

# Free-text fields that may carry long operator messages
_FREE_TEXT_FIELDS = frozenset({"notes", "description", "original_message", "resolution_notes"})


def sanitize_for_logging(data: Any) -> Any:
    """Trim free-text fields before they reach the log stream.

    Operator notes and pasted field messages can be arbitrarily long; they
    are truncated to MAX_LOGGED_TEXT_LENGTH characters in nested structures.

    Args:
        data: Data structure to sanitize (dict, list, or primitive).

    Returns:
        Sanitized copy of the data structure.
    """
    if isinstance(data, dict):
        sanitized = {}
        for key, value in data.items():
            if key in _FREE_TEXT_FIELDS and isinstance(value, str):
                sanitized[key] = _truncate(value)
            else:
                sanitized[key] = sanitize_for_logging(value)
        return sanitized
    elif isinstance(data, list):
        return [sanitize_for_logging(item) for item in data]
    return data


def _truncate(value: str) -> str:
    if len(value) <= MAX_LOGGED_TEXT_LENGTH:
        return value
    return value[:MAX_LOGGED_TEXT_LENGTH] + "..."


def _processors(json_format: bool) -> list[Any]:
    renderer = (
        structlog.processors.JSONRenderer() if json_format else structlog.dev.ConsoleRenderer()
    )
    return [
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        renderer,
    ]


class DefaultObservabilityManager(ObservabilityManager):
    """structlog-backed sink for tracker events and diagnostics.

    Events are logged under their event type, with the sanitized payload as
    fields and any metadata nested under ``metadata``. ``json_format=False``
    switches to the console renderer for local runs.
    """

    def __init__(self, log_level: str = "INFO", json_format: bool = True) -> None:
        self._log_level = log_level
        self._json_format = json_format

        structlog.configure(
            processors=_processors(json_format),
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=True,
        )
        logging.basicConfig(
            level=getattr(logging, log_level.upper(), logging.INFO),
            format="%(message)s" if json_format else "%(asctime)s %(levelname)s %(message)s",
        )

        self._logger = structlog.get_logger("breakdowntracker")

    async def emit_event(
        self,
        event_type: str,
        payload: dict[str, Any],
        metadata: dict[str, Any] | None = None,
    ) -> None:
        """Log a tracker event such as ``record_created`` or ``status_transition``.

        Raises:
            ObservabilityError: If the log sink fails.
        """
        try:
            fields = sanitize_for_logging(payload)
            if metadata:
                fields["metadata"] = sanitize_for_logging(metadata)
                fields["metadata"].setdefault("timestamp", datetime.now(timezone.utc).isoformat())
            self._logger.info(event_type, event_type=event_type, **fields)
        except Exception as e:
            raise ObservabilityError(f"Failed to emit {event_type} event: {e}") from e

    async def log(
        self,
        level: str,
        message: str,
        context: dict[str, Any] | None = None,
    ) -> None:
        """Log ``message`` at ``level``; unknown levels fall back to INFO.

        Raises:
            ObservabilityError: If the log sink fails.
        """
        try:
            log_method = getattr(self._logger, level.lower(), self._logger.info)
            log_method(message, **sanitize_for_logging(context or {}))
        except Exception as e:
            raise ObservabilityError(f"Failed to log message: {e}") from e
