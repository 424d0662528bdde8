"""TimelineBuilder component: status intervals derived from the transition log."""

from collections.abc import Callable, Sequence
from datetime import datetime

from breakdowntracker.domain.interfaces.record_store import RecordStore
from breakdowntracker.domain.models.status import is_terminal
from breakdowntracker.domain.models.status_transition import StatusTransition, utc_now
from breakdowntracker.domain.models.timeline import RecordQuickStats, TimelineEntry
from breakdowntracker.domain.models.tracking_error import NotFoundError


def elapsed_seconds(start: datetime, end: datetime) -> int:
    """Whole seconds from ``start`` to ``end``, clamped to zero."""
    return max(0, int((end - start).total_seconds()))


def build_timeline_entries(
    transitions: Sequence[StatusTransition],
    now: datetime,
) -> list[TimelineEntry]:
    """Turn an ordered transition log into status intervals.

    Entry *i* spans from transition *i* to transition *i+1*. The last entry
    is current: its duration runs up to ``now`` unless its status is
    terminal, in which case the process closed at that transition and the
    entry has no span.

    Args:
        transitions: Transitions of one record, in any order.
        now: Reference time for the open interval.

    Returns:
        Entries ordered by sequence_number; empty when there is no history.
    """
    ordered = sorted(transitions, key=lambda t: t.sequence_number)
    entries: list[TimelineEntry] = []
    last_index = len(ordered) - 1

    for index, transition in enumerate(ordered):
        terminal = is_terminal(transition.new_status)
        if index < last_index:
            exited_at = ordered[index + 1].changed_at
            duration = elapsed_seconds(transition.changed_at, exited_at)
        else:
            exited_at = None
            duration = 0 if terminal else elapsed_seconds(transition.changed_at, now)

        entries.append(
            TimelineEntry(
                transition_id=transition.id,
                sequence_number=transition.sequence_number,
                status=transition.new_status,
                entered_at=transition.changed_at,
                exited_at=exited_at,
                duration_seconds=duration,
                operator_name=transition.operator_name,
                notes=transition.notes,
                is_current=index == last_index,
                is_terminal=terminal,
            )
        )

    return entries


def compute_quick_stats(
    transitions: Sequence[StatusTransition],
    now: datetime,
) -> RecordQuickStats:
    """Counters for list views: changes, time in current status, process age."""
    entries = build_timeline_entries(transitions, now)
    if not entries:
        return RecordQuickStats()

    current = entries[-1]
    end = now if current.is_open else current.entered_at
    return RecordQuickStats(
        total_changes=len(entries),
        current_status_duration=current.duration_seconds,
        total_process_time=elapsed_seconds(entries[0].entered_at, end),
    )


class TimelineBuilder:
    """Reads a record's transition log and derives its timeline.

    Reads never take the recorder's per-record lock; a timeline may be
    stale by one in-flight write.
    """

    def __init__(
        self,
        record_store: RecordStore,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._store = record_store
        self._clock = clock

    async def load_transitions(self, record_id: str) -> list[StatusTransition]:
        """Fetch the ordered log of an existing record.

        Raises:
            NotFoundError: If the record does not exist.
            PersistenceError: If the store read fails.
        """
        record = await self._store.get_record(record_id)
        if record is None:
            raise NotFoundError(
                f"Record not found: {record_id}",
                entity_type="record",
                entity_id=record_id,
            )
        return await self._store.get_transitions_for_record(record_id)

    async def build_timeline(self, record_id: str) -> list[TimelineEntry]:
        """Ordered status intervals of a record (empty when not yet tracked)."""
        transitions = await self.load_transitions(record_id)
        return build_timeline_entries(transitions, self._clock())

    async def get_quick_stats(self, record_id: str) -> RecordQuickStats:
        transitions = await self.load_transitions(record_id)
        return compute_quick_stats(transitions, self._clock())
