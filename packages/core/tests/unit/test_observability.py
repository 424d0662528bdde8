"""Tests for DefaultObservabilityManager."""

import logging
from unittest.mock import MagicMock

import pytest

from breakdowntracker.domain.interfaces.observability_manager import ObservabilityError
from breakdowntracker.infrastructure.observability.logger import (
    MAX_LOGGED_TEXT_LENGTH,
    DefaultObservabilityManager,
    sanitize_for_logging,
)


class TestSanitizeForLogging:
    """Tests for sanitize_for_logging."""

    def test_long_notes_truncated(self) -> None:
        data = {"record_id": "rec-1", "notes": "x" * 500}
        sanitized = sanitize_for_logging(data)

        assert sanitized["record_id"] == "rec-1"
        assert len(sanitized["notes"]) == MAX_LOGGED_TEXT_LENGTH + 3
        assert sanitized["notes"].endswith("...")
        assert len(data["notes"]) == 500

    def test_nested_structures(self) -> None:
        data = {"items": [{"description": "y" * 300}, {"title": "z" * 300}]}
        sanitized = sanitize_for_logging(data)

        assert len(sanitized["items"][0]["description"]) == MAX_LOGGED_TEXT_LENGTH + 3
        assert len(sanitized["items"][1]["title"]) == 300

    def test_short_text_untouched(self) -> None:
        assert sanitize_for_logging({"notes": "ok"}) == {"notes": "ok"}


class TestDefaultObservabilityManager:
    """Tests for DefaultObservabilityManager."""

    @pytest.mark.asyncio
    async def test_emit_event_logs_json(self, caplog: pytest.LogCaptureFixture) -> None:
        manager = DefaultObservabilityManager(log_level="INFO", json_format=True)

        with caplog.at_level(logging.INFO, logger="breakdowntracker"):
            await manager.emit_event(
                "status_transition",
                {"record_id": "rec-1", "to_status": "aguardando_mecanico"},
                metadata={"user_id": "u1"},
            )

        assert "status_transition" in caplog.text
        assert "aguardando_mecanico" in caplog.text

    @pytest.mark.asyncio
    async def test_log_with_context(self, caplog: pytest.LogCaptureFixture) -> None:
        manager = DefaultObservabilityManager(json_format=False)

        with caplog.at_level(logging.WARNING, logger="breakdowntracker"):
            await manager.log("WARNING", "Recording transition outside allowed edges", {"x": 1})

        assert "outside allowed edges" in caplog.text

    @pytest.mark.asyncio
    async def test_logger_failure_wrapped(self) -> None:
        manager = DefaultObservabilityManager()
        manager._logger = MagicMock()
        manager._logger.info.side_effect = RuntimeError("broken sink")

        with pytest.raises(ObservabilityError):
            await manager.emit_event("record_created", {"record_id": "rec-1"})

    @pytest.mark.asyncio
    async def test_event_logged_under_its_type(self) -> None:
        manager = DefaultObservabilityManager()
        manager._logger = MagicMock()

        await manager.emit_event(
            "record_created",
            {"record_id": "rec-1", "original_message": "x" * 500},
            metadata={"user_id": "u1"},
        )

        args, kwargs = manager._logger.info.call_args
        assert args == ("record_created",)
        assert kwargs["record_id"] == "rec-1"
        assert len(kwargs["original_message"]) == MAX_LOGGED_TEXT_LENGTH + 3
        assert kwargs["metadata"]["user_id"] == "u1"
        assert "timestamp" in kwargs["metadata"]
