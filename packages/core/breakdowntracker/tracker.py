"""BreakdownTracker - Main orchestrator for breakdown status tracking."""

import uuid
from collections.abc import Awaitable, Callable
from datetime import datetime
from pathlib import Path
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from breakdowntracker.domain.components.access_control import require_capability
from breakdowntracker.domain.components.occurrence_manager import OccurrenceManager
from breakdowntracker.domain.components.report_generator import ReportGenerator
from breakdowntracker.domain.components.timeline_analyzer import TimelineAnalyzer
from breakdowntracker.domain.components.timeline_builder import TimelineBuilder
from breakdowntracker.domain.components.transition_recorder import TransitionRecorder
from breakdowntracker.domain.interfaces.observability_manager import ObservabilityManager
from breakdowntracker.domain.interfaces.record_store import RecordStore
from breakdowntracker.domain.models.logistics_record import LogisticsRecord
from breakdowntracker.domain.models.managerial_report import ManagerialReport
from breakdowntracker.domain.models.occurrence import (
    Occurrence,
    OccurrenceCategory,
    OccurrencePriority,
    OccurrenceStatus,
    OccurrenceSummary,
)
from breakdowntracker.domain.models.session import Capability, SessionContext
from breakdowntracker.domain.models.status import TrackingStatus, is_terminal
from breakdowntracker.domain.models.status_transition import StatusTransition, utc_now
from breakdowntracker.domain.models.timeline import (
    ProcessTimelineAnalysis,
    RecordQuickStats,
    TimelineEntry,
)
from breakdowntracker.domain.models.tracking_error import (
    NotFoundError,
    ValidationError,
)
from breakdowntracker.infrastructure.config.file_loader import ConfigurationFileLoader
from breakdowntracker.infrastructure.config.settings import TrackerSettings
from breakdowntracker.infrastructure.observability.logger import DefaultObservabilityManager
from breakdowntracker.infrastructure.scheduling.refresher import PeriodicRefresher
from breakdowntracker.infrastructure.state_store.memory_store import InMemoryRecordStore
from breakdowntracker.infrastructure.utils.message_parser import parse_breakdown_message
from breakdowntracker.infrastructure.utils.validation import (
    validate_operator_name,
    validate_record_id,
)

# Fields owned by the tracker, never accepted from callers
_PROTECTED_RECORD_FIELDS = frozenset({"id", "status", "created_at", "updated_at"})


class BreakdownTracker:
    """Main entry point for library.

    BreakdownTracker wires the recorder, timeline, analysis, report and
    occurrence components to one RecordStore and checks the caller's
    SessionContext before every operation.

    Example:
        ```python
        async with BreakdownTracker() as tracker:
            record = await tracker.create_record(session, vehicle_code="LH-123")
            await tracker.record_transition(session, record.id, "aguardando_mecanico")
            analysis = await tracker.analyze_timeline(session, record.id)
        ```
    """

    def __init__(
        self,
        record_store: RecordStore | None = None,
        observability_manager: ObservabilityManager | None = None,
        config: TrackerSettings | dict[str, Any] | None = None,
        config_file: str | Path | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize BreakdownTracker with dependencies.

        Args:
            record_store: Optional RecordStore implementation. If not provided,
                        defaults to InMemoryRecordStore.
            observability_manager: Optional ObservabilityManager implementation.
                                 If not provided, defaults to DefaultObservabilityManager.
            config: Optional configuration. Can be:
                   - TrackerSettings instance
                   - Dictionary with configuration values
                   - None (loads from environment variables)
            config_file: Optional YAML/JSON settings file, used when config is None.
            clock: Returns the current UTC time.

        Raises:
            ValueError: If the config type is invalid.
            ConfigurationError: If the config file cannot be loaded.
        """
        if config is None:
            if config_file is not None:
                self._config = ConfigurationFileLoader(config_file).load_settings()
            else:
                self._config = TrackerSettings()
        elif isinstance(config, dict):
            self._config = TrackerSettings.from_dict(config)
        elif isinstance(config, TrackerSettings):
            self._config = config
        else:
            raise ValueError(
                f"Invalid config type: {type(config)}. Expected TrackerSettings, dict, or None"
            )

        self._clock = clock
        self._record_store = record_store if record_store is not None else InMemoryRecordStore()

        if observability_manager is None:
            self._observability_manager = DefaultObservabilityManager(
                log_level=self._config.log_level,
                json_format=self._config.log_json,
            )
        else:
            self._observability_manager = observability_manager

        self._recorder = TransitionRecorder(
            record_store=self._record_store,
            observability_manager=self._observability_manager,
            enforce_allowed_transitions=self._config.enforce_allowed_transitions,
            max_notes_length=self._config.max_notes_length,
            clock=clock,
        )
        self._timeline_builder = TimelineBuilder(self._record_store, clock=clock)
        self._analyzer = TimelineAnalyzer(
            self._record_store,
            clock=clock,
            bottleneck_limit=self._config.bottleneck_limit,
        )
        self._report_generator = ReportGenerator(
            record_store=self._record_store,
            observability_manager=self._observability_manager,
            clock=clock,
            bottleneck_threshold_percent=self._config.bottleneck_threshold_percent,
            slow_completion_seconds=self._config.slow_completion_seconds,
            active_process_warning=self._config.active_process_warning,
        )
        self._occurrence_manager = OccurrenceManager(
            record_store=self._record_store,
            observability_manager=self._observability_manager,
            max_notes_length=self._config.max_notes_length,
            clock=clock,
        )
        self._refreshers: set[PeriodicRefresher] = set()

    async def __aenter__(self) -> "BreakdownTracker":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Stop every refresher started by watch_timeline / watch_quick_stats."""
        for refresher in list(self._refreshers):
            await refresher.stop()

    @property
    def config(self) -> TrackerSettings:
        return self._config

    @property
    def record_store(self) -> RecordStore:
        return self._record_store

    @property
    def observability_manager(self) -> ObservabilityManager:
        return self._observability_manager

    @property
    def transition_recorder(self) -> TransitionRecorder:
        return self._recorder

    # Records

    async def create_record(self, session: SessionContext, **fields: Any) -> LogisticsRecord:
        """Open a new breakdown record and record its initial status.

        Args:
            session: Caller context; needs ``can_create_inputs``.
            **fields: LogisticsRecord fields (vehicle_code, driver_name, ...).
                ``operator_name`` defaults to the session's operator.

        Returns:
            The stored record, with its initial transition recorded.

        Raises:
            PermissionDeniedError: If the session cannot create inputs.
            ValidationError: If a field is protected, unknown or invalid.
            PersistenceError: If a store write fails.
        """
        require_capability(session, Capability.CreateInputs)

        protected = sorted(_PROTECTED_RECORD_FIELDS & set(fields))
        if protected:
            raise ValidationError(
                f"Field '{protected[0]}' is managed by the tracker", field=protected[0]
            )
        unknown = sorted(set(fields) - set(LogisticsRecord.model_fields))
        if unknown:
            raise ValidationError(f"Unknown record field '{unknown[0]}'", field=unknown[0])

        operator_name = validate_operator_name(
            fields.pop("operator_name", None) or session.operator_name
        )
        return await self._open_record(session, fields, operator_name, self._config.initial_status)

    async def create_record_from_message(
        self,
        session: SessionContext,
        message: str,
        operator_name: str | None = None,
    ) -> LogisticsRecord:
        """Open a record from a breakdown report pasted from the chat channel.

        The report's status becomes the initial status when it is one a
        process can start in; otherwise the configured initial status is used.
        The full text is kept in ``original_message``.

        Raises:
            PermissionDeniedError: If the session cannot create inputs.
            ValidationError: If the message or operator is invalid.
            PersistenceError: If a store write fails.
        """
        require_capability(session, Capability.CreateInputs)
        parsed = parse_breakdown_message(message)
        operator_name = validate_operator_name(operator_name or session.operator_name)

        initial_status = self._config.initial_status
        if parsed.status is not None and not is_terminal(parsed.status):
            initial_status = parsed.status
        return await self._open_record(
            session, dict(parsed.record_fields), operator_name, initial_status
        )

    async def _open_record(
        self,
        session: SessionContext,
        fields: dict[str, Any],
        operator_name: str,
        initial_status: TrackingStatus,
    ) -> LogisticsRecord:
        now = self._clock()
        try:
            record = LogisticsRecord(
                id=str(uuid.uuid4()),
                created_at=now,
                updated_at=now,
                operator_name=operator_name,
                status=initial_status,
                **fields,
            )
        except PydanticValidationError as e:
            first = e.errors()[0]
            field = ".".join(str(part) for part in first.get("loc", ()))
            raise ValidationError(f"Invalid record: {first.get('msg')}", field=field or None) from e

        await self._record_store.save_record(record)
        try:
            await self._recorder.record_transition(record.id, initial_status, operator_name)
        except BaseException:
            # A record without its initial transition must not stay visible
            await self._record_store.delete_record(record.id)
            raise

        try:
            await self._observability_manager.emit_event(
                event_type="record_created",
                payload={
                    "record_id": record.id,
                    "vehicle_code": record.vehicle_code,
                    "status": initial_status.value,
                    "operator_name": operator_name,
                },
                metadata={"user_id": session.user_id},
            )
        except Exception as e:
            await self._observability_manager.log(
                level="WARNING",
                message=f"Failed to emit record_created event: {e}",
                context={"record_id": record.id},
            )

        return await self._get_existing_record(record.id)

    async def get_record(self, session: SessionContext, record_id: str) -> LogisticsRecord:
        require_capability(session, Capability.ViewDashboard)
        return await self._get_existing_record(validate_record_id(record_id))

    async def list_records(self, session: SessionContext) -> list[LogisticsRecord]:
        """All records, newest first."""
        require_capability(session, Capability.ViewDashboard)
        return await self._record_store.get_records()

    async def delete_record(self, session: SessionContext, record_id: str) -> None:
        """Delete a record with its transitions and occurrences.

        Raises:
            PermissionDeniedError: If the session cannot delete.
            NotFoundError: If the record does not exist.
            PersistenceError: If the delete fails.
        """
        require_capability(session, Capability.Delete)
        record_id = validate_record_id(record_id)
        if await self._delete(session, [record_id]) == 0:
            raise NotFoundError(
                f"Record not found: {record_id}",
                entity_type="record",
                entity_id=record_id,
            )

    async def delete_records(self, session: SessionContext, record_ids: list[str]) -> int:
        """Bulk delete. Unknown ids are skipped.

        Returns:
            Number of records deleted.
        """
        require_capability(session, Capability.Delete)
        if not record_ids:
            raise ValidationError("No records selected for deletion", field="record_ids")
        ids = [validate_record_id(record_id, field="record_ids") for record_id in record_ids]
        return await self._delete(session, ids)

    async def _delete(self, session: SessionContext, record_ids: list[str]) -> int:
        deleted = await self._record_store.delete_records(record_ids)
        for record_id in record_ids:
            await self._recorder.forget_record(record_id)

        try:
            await self._observability_manager.emit_event(
                event_type="record_deleted",
                payload={"record_ids": record_ids, "deleted": deleted},
                metadata={"user_id": session.user_id},
            )
        except Exception as e:
            await self._observability_manager.log(
                level="WARNING",
                message=f"Failed to emit record_deleted event: {e}",
            )
        return deleted

    async def _get_existing_record(self, record_id: str) -> LogisticsRecord:
        record = await self._record_store.get_record(record_id)
        if record is None:
            raise NotFoundError(
                f"Record not found: {record_id}",
                entity_type="record",
                entity_id=record_id,
            )
        return record

    # Status tracking

    async def record_transition(
        self,
        session: SessionContext,
        record_id: str,
        new_status: TrackingStatus | str,
        notes: str | None = None,
        operator_name: str | None = None,
    ) -> StatusTransition:
        """Change a record's status.

        ``operator_name`` defaults to the session's operator.

        Raises:
            PermissionDeniedError: If the session cannot change status.
            ValidationError: If an input is invalid.
            NotFoundError: If the record does not exist.
            StateTransitionError: If the edge is not allowed.
            PersistenceError: If a store write fails.
        """
        require_capability(session, Capability.ChangeStatus)
        return await self._recorder.record_transition(
            record_id,
            new_status,
            operator_name=operator_name if operator_name is not None else session.operator_name,
            notes=notes,
        )

    async def build_timeline(self, session: SessionContext, record_id: str) -> list[TimelineEntry]:
        require_capability(session, Capability.ViewDashboard)
        return await self._timeline_builder.build_timeline(validate_record_id(record_id))

    async def analyze_timeline(
        self, session: SessionContext, record_id: str
    ) -> ProcessTimelineAnalysis | None:
        """Timing analysis of a record; None when it has no history yet."""
        require_capability(session, Capability.ViewDashboard)
        return await self._analyzer.analyze_timeline(validate_record_id(record_id))

    async def get_record_quick_stats(
        self, session: SessionContext, record_id: str
    ) -> RecordQuickStats:
        require_capability(session, Capability.ViewDashboard)
        return await self._timeline_builder.get_quick_stats(validate_record_id(record_id))

    async def generate_report(
        self,
        session: SessionContext,
        period_start: datetime,
        period_end: datetime,
    ) -> ManagerialReport:
        require_capability(session, Capability.ViewDashboard)
        return await self._report_generator.generate_report(period_start, period_end)

    # Occurrences

    async def add_occurrence(
        self,
        session: SessionContext,
        record_id: str,
        title: str,
        description: str | None = None,
        category: OccurrenceCategory | str = OccurrenceCategory.Outros,
        priority: OccurrencePriority | str = OccurrencePriority.Media,
    ) -> Occurrence:
        require_capability(session, Capability.ManageOccurrences)
        return await self._occurrence_manager.add_occurrence(
            record_id,
            title,
            created_by=session.operator_name,
            description=description,
            category=category,
            priority=priority,
        )

    async def update_occurrence_status(
        self,
        session: SessionContext,
        occurrence_id: str,
        new_status: OccurrenceStatus | str,
        resolution_notes: str | None = None,
    ) -> Occurrence:
        require_capability(session, Capability.ManageOccurrences)
        return await self._occurrence_manager.update_occurrence_status(
            occurrence_id,
            new_status,
            updated_by=session.operator_name,
            resolution_notes=resolution_notes,
        )

    async def resolve_occurrence(
        self,
        session: SessionContext,
        occurrence_id: str,
        resolution_notes: str | None = None,
    ) -> Occurrence:
        require_capability(session, Capability.ManageOccurrences)
        return await self._occurrence_manager.resolve_occurrence(
            occurrence_id, session.operator_name, resolution_notes
        )

    async def list_occurrences(self, session: SessionContext, record_id: str) -> list[Occurrence]:
        require_capability(session, Capability.ViewDashboard)
        return await self._occurrence_manager.list_occurrences(record_id)

    async def get_occurrence_summary(
        self, session: SessionContext, record_id: str
    ) -> OccurrenceSummary:
        require_capability(session, Capability.ViewDashboard)
        return await self._occurrence_manager.get_occurrence_summary(record_id)

    # Polling views

    async def watch_timeline(
        self,
        session: SessionContext,
        record_id: str,
        callback: Callable[[list[TimelineEntry]], Awaitable[Any]],
        interval_seconds: float | None = None,
    ) -> PeriodicRefresher:
        """Rebuild a record's timeline periodically and pass it to ``callback``.

        The first refresh runs immediately. The returned refresher must be
        stopped when the view is torn down; close() stops any left running.

        Raises:
            PermissionDeniedError: If the session cannot view the dashboard.
            NotFoundError: If the record does not exist.
        """
        require_capability(session, Capability.ViewDashboard)
        record_id = validate_record_id(record_id)
        await self._get_existing_record(record_id)

        async def refresh() -> None:
            await callback(await self._timeline_builder.build_timeline(record_id))

        return self._start_refresher(
            refresh,
            interval_seconds or self._config.timeline_refresh_seconds,
            name=f"timeline:{record_id}",
        )

    async def watch_quick_stats(
        self,
        session: SessionContext,
        record_id: str,
        callback: Callable[[RecordQuickStats], Awaitable[Any]],
        interval_seconds: float | None = None,
    ) -> PeriodicRefresher:
        """Tick a record's live durations, by default every second."""
        require_capability(session, Capability.ViewDashboard)
        record_id = validate_record_id(record_id)
        await self._get_existing_record(record_id)

        async def refresh() -> None:
            await callback(await self._timeline_builder.get_quick_stats(record_id))

        return self._start_refresher(
            refresh,
            interval_seconds or self._config.duration_tick_seconds,
            name=f"stats:{record_id}",
        )

    def _start_refresher(
        self,
        refresh: Callable[[], Awaitable[Any]],
        interval_seconds: float,
        name: str,
    ) -> PeriodicRefresher:
        refresher = PeriodicRefresher(
            refresh,
            interval_seconds,
            name=name,
            run_immediately=True,
            on_start=self._refreshers.add,
            on_stop=self._refreshers.discard,
        )
        refresher.start()
        return refresher
