"""OccurrenceManager component for the occurrence history of a record."""

import uuid
from collections.abc import Callable
from datetime import datetime

from breakdowntracker.domain.interfaces.observability_manager import ObservabilityManager
from breakdowntracker.domain.interfaces.record_store import RecordStore
from breakdowntracker.domain.models.occurrence import (
    OCCURRENCE_TRANSITIONS,
    Occurrence,
    OccurrenceCategory,
    OccurrencePriority,
    OccurrenceStatus,
    OccurrenceSummary,
)
from breakdowntracker.domain.models.status_transition import utc_now
from breakdowntracker.domain.models.tracking_error import (
    NotFoundError,
    StateTransitionError,
    ValidationError,
)
from breakdowntracker.infrastructure.utils.formatting import format_hours
from breakdowntracker.infrastructure.utils.validation import (
    validate_notes,
    validate_operator_name,
    validate_record_id,
)

MAX_TITLE_LENGTH = 200


def _parse_enum(enum_type, value, field: str):
    if isinstance(value, enum_type):
        return value
    try:
        return enum_type(str(value).strip().lower())
    except ValueError:
        raise ValidationError(f"Unknown {field}: {value!r}", field=field) from None


class OccurrenceManager:
    """Creates occurrences and moves them through their lifecycle.

    An occurrence starts ``aberta``; ``resolvida`` and ``cancelada`` are
    closed. Resolving stamps who resolved it, when, and how many hours it
    stayed open.
    """

    def __init__(
        self,
        record_store: RecordStore,
        observability_manager: ObservabilityManager,
        max_notes_length: int = 2000,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._store = record_store
        self._observability = observability_manager
        self._max_notes_length = max_notes_length
        self._clock = clock

    async def add_occurrence(
        self,
        record_id: str,
        title: str,
        created_by: str,
        description: str | None = None,
        category: OccurrenceCategory | str = OccurrenceCategory.Outros,
        priority: OccurrencePriority | str = OccurrencePriority.Media,
    ) -> Occurrence:
        """Attach a new open occurrence to a record.

        Raises:
            ValidationError: If the title, author or enums are invalid.
            NotFoundError: If the record does not exist.
            PersistenceError: If the save fails.
        """
        record_id = validate_record_id(record_id)
        created_by = validate_operator_name(created_by)
        title = " ".join((title or "").split())
        if not title:
            raise ValidationError("Occurrence title cannot be empty", field="title")
        if len(title) > MAX_TITLE_LENGTH:
            raise ValidationError(
                f"Occurrence title must be {MAX_TITLE_LENGTH} characters or less",
                field="title",
            )
        description = validate_notes(description, self._max_notes_length, field="description")
        category = _parse_enum(OccurrenceCategory, category, "category")
        priority = _parse_enum(OccurrencePriority, priority, "priority")

        await self._require_record(record_id)

        now = self._clock()
        occurrence = Occurrence(
            id=str(uuid.uuid4()),
            record_id=record_id,
            title=title,
            description=description or "",
            category=category,
            priority=priority,
            created_by=created_by,
            created_at=now,
            updated_at=now,
        )
        await self._store.save_occurrence(occurrence)

        try:
            await self._observability.emit_event(
                event_type="occurrence_added",
                payload={
                    "occurrence_id": occurrence.id,
                    "record_id": record_id,
                    "category": category.value,
                    "priority": priority.value,
                    "created_by": created_by,
                },
            )
        except Exception as e:
            await self._observability.log(
                level="WARNING",
                message=f"Failed to emit occurrence_added event: {e}",
                context={"occurrence_id": occurrence.id},
            )

        return occurrence

    async def update_occurrence_status(
        self,
        occurrence_id: str,
        new_status: OccurrenceStatus | str,
        updated_by: str,
        resolution_notes: str | None = None,
    ) -> Occurrence:
        """Move an occurrence along its lifecycle.

        Raises:
            ValidationError: If the status or author is invalid.
            NotFoundError: If the occurrence does not exist.
            StateTransitionError: If the occurrence is closed or the edge is invalid.
            PersistenceError: If the save fails.
        """
        occurrence_id = validate_record_id(occurrence_id, field="occurrence_id")
        target = _parse_enum(OccurrenceStatus, new_status, "status")
        updated_by = validate_operator_name(updated_by)
        resolution_notes = validate_notes(
            resolution_notes, self._max_notes_length, field="resolution_notes"
        )

        occurrence = await self._store.get_occurrence(occurrence_id)
        if occurrence is None:
            raise NotFoundError(
                f"Occurrence not found: {occurrence_id}",
                entity_type="occurrence",
                entity_id=occurrence_id,
            )

        previous = occurrence.status
        if target not in OCCURRENCE_TRANSITIONS[previous]:
            raise StateTransitionError(
                f"Occurrence cannot move from '{previous.value}' to '{target.value}'",
                from_status=previous.value,
                to_status=target.value,
            )

        now = self._clock()
        changes: dict = {"status": target, "updated_at": now}
        if target == OccurrenceStatus.Resolvida:
            changes.update(
                resolved_by=updated_by,
                resolved_at=now,
                duration_hours=max(0.0, (now - occurrence.created_at).total_seconds() / 3600),
            )
        if resolution_notes is not None:
            changes["resolution_notes"] = resolution_notes

        updated = occurrence.model_copy(update=changes)
        await self._store.save_occurrence(updated)

        try:
            payload = {
                "occurrence_id": occurrence_id,
                "record_id": occurrence.record_id,
                "from_status": previous.value,
                "to_status": target.value,
                "updated_by": updated_by,
            }
            if updated.resolved_at is not None:
                payload["duration"] = format_hours(updated.duration_hours)
            await self._observability.emit_event(
                event_type="occurrence_status_changed",
                payload=payload,
            )
        except Exception as e:
            await self._observability.log(
                level="WARNING",
                message=f"Failed to emit occurrence_status_changed event: {e}",
                context={"occurrence_id": occurrence_id},
            )

        return updated

    async def resolve_occurrence(
        self,
        occurrence_id: str,
        resolved_by: str,
        resolution_notes: str | None = None,
    ) -> Occurrence:
        return await self.update_occurrence_status(
            occurrence_id, OccurrenceStatus.Resolvida, resolved_by, resolution_notes
        )

    async def list_occurrences(self, record_id: str) -> list[Occurrence]:
        """Occurrences of an existing record, newest first."""
        record_id = validate_record_id(record_id)
        await self._require_record(record_id)
        return await self._store.list_occurrences(record_id)

    async def get_occurrence_summary(self, record_id: str) -> OccurrenceSummary:
        """Counters over a record's occurrences.

        ``total_occurrence_hours`` sums resolved occurrences only.
        """
        occurrences = await self.list_occurrences(record_id)
        resolved = [o for o in occurrences if o.status == OccurrenceStatus.Resolvida]
        resolved_times = [o.resolved_at for o in resolved if o.resolved_at is not None]
        return OccurrenceSummary(
            record_id=record_id,
            total_occurrences=len(occurrences),
            open_occurrences=sum(1 for o in occurrences if not o.is_closed),
            resolved_occurrences=len(resolved),
            total_occurrence_hours=sum(o.duration_hours for o in resolved),
            first_occurrence_at=min((o.created_at for o in occurrences), default=None),
            last_resolved_at=max(resolved_times, default=None),
        )

    async def _require_record(self, record_id: str) -> None:
        if await self._store.get_record(record_id) is None:
            raise NotFoundError(
                f"Record not found: {record_id}",
                entity_type="record",
                entity_id=record_id,
            )
