"""TimelineAnalyzer component: per-status aggregates, bottlenecks and efficiency.

All computation lives in pure functions over a transition log so that it
can be tested without a store; TimelineAnalyzer only loads the log.
"""

from collections.abc import Callable, Iterable, Sequence
from datetime import datetime

from breakdowntracker.domain.components.timeline_builder import (
    build_timeline_entries,
    elapsed_seconds,
)
from breakdowntracker.domain.interfaces.record_store import RecordStore
from breakdowntracker.domain.models.logistics_record import LogisticsRecord
from breakdowntracker.domain.models.status import TrackingStatus
from breakdowntracker.domain.models.status_transition import StatusTransition, utc_now
from breakdowntracker.domain.models.timeline import (
    Bottleneck,
    EfficiencyMetrics,
    ProcessTimelineAnalysis,
    StatusTimeAnalysis,
    TimelineEntry,
)
from breakdowntracker.domain.models.tracking_error import NotFoundError

DEFAULT_BOTTLENECK_LIMIT = 3


def measured_intervals(timeline: Iterable[TimelineEntry]) -> list[TimelineEntry]:
    """Entries that carry a span; the terminal closing entry has none."""
    return [entry for entry in timeline if not (entry.is_current and entry.is_terminal)]


def aggregate_by_status(
    intervals: Iterable[tuple[TrackingStatus, int]],
) -> list[StatusTimeAnalysis]:
    """Group (status, seconds) intervals into per-status statistics.

    Statuses appear in first-seen order. Percentages are shares of the sum
    of all intervals and are 0 when that sum is 0.
    """
    durations: dict[TrackingStatus, list[int]] = {}
    for status, seconds in intervals:
        durations.setdefault(status, []).append(seconds)

    grand_total = sum(sum(values) for values in durations.values())
    analyses = []
    for status, values in durations.items():
        total = sum(values)
        analyses.append(
            StatusTimeAnalysis(
                status=status,
                total_time_seconds=total,
                total_occurrences=len(values),
                average_time_seconds=total / len(values),
                min_time_seconds=min(values),
                max_time_seconds=max(values),
                percentage_of_total_time=(total / grand_total * 100) if grand_total > 0 else 0.0,
            )
        )
    return analyses


def rank_bottlenecks(
    intervals: Sequence[TimelineEntry],
    total_seconds: int,
    limit: int = DEFAULT_BOTTLENECK_LIMIT,
) -> list[Bottleneck]:
    """The ``limit`` longest individual intervals, longest first.

    Each is tagged with its 1-based repeat number within its own status.
    Equal durations keep sequence order.
    """
    repeat_counts: dict[TrackingStatus, int] = {}
    tagged: list[tuple[TimelineEntry, int]] = []
    for entry in intervals:
        repeat_counts[entry.status] = repeat_counts.get(entry.status, 0) + 1
        tagged.append((entry, repeat_counts[entry.status]))

    ranked = sorted(tagged, key=lambda item: item[0].duration_seconds, reverse=True)
    return [
        Bottleneck(
            status=entry.status,
            time_seconds=entry.duration_seconds,
            percentage=(entry.duration_seconds / total_seconds * 100) if total_seconds > 0 else 0.0,
            occurrence_number=occurrence_number,
            sequence_number=entry.sequence_number,
        )
        for entry, occurrence_number in ranked[:limit]
    ]


def compute_efficiency(
    intervals: Sequence[TimelineEntry],
    by_status: Sequence[StatusTimeAnalysis],
    total_seconds: int,
) -> EfficiencyMetrics:
    if not intervals:
        return EfficiencyMetrics()

    durations = [entry.duration_seconds for entry in intervals]
    # max/min return the first of equal candidates
    most = max(by_status, key=lambda a: a.total_time_seconds)
    least = min(by_status, key=lambda a: a.total_time_seconds)
    return EfficiencyMetrics(
        average_time_per_status=total_seconds / len(intervals),
        fastest_resolution_time=min(durations),
        slowest_resolution_time=max(durations),
        most_time_consuming_status=most.status,
        least_time_consuming_status=least.status,
    )


def analyze_transitions(
    record: LogisticsRecord,
    transitions: Sequence[StatusTransition],
    now: datetime,
    bottleneck_limit: int = DEFAULT_BOTTLENECK_LIMIT,
) -> ProcessTimelineAnalysis | None:
    """Full timing analysis of one record.

    Args:
        record: The record the log belongs to (for vehicle/driver labels).
        transitions: Its transition log.
        now: Reference time for a still-open process.
        bottleneck_limit: Number of bottlenecks to report.

    Returns:
        The analysis, or None when the record has no transitions yet.
    """
    if not transitions:
        return None

    history = sorted(transitions, key=lambda t: t.sequence_number)
    timeline = build_timeline_entries(history, now)
    intervals = measured_intervals(timeline)

    current = timeline[-1]
    process_end = current.entered_at if current.is_terminal else None
    total_seconds = elapsed_seconds(history[0].changed_at, process_end or now)

    by_status = aggregate_by_status((entry.status, entry.duration_seconds) for entry in intervals)

    return ProcessTimelineAnalysis(
        record_id=record.id,
        vehicle_code=record.vehicle_code,
        driver_name=record.driver_name,
        operator_name=record.operator_name,
        process_start=history[0].changed_at,
        process_end=process_end,
        total_process_time_seconds=total_seconds,
        total_status_changes=len(history),
        current_status=current.status,
        status_history=list(history),
        timeline=timeline,
        time_analysis_by_status=by_status,
        bottlenecks=rank_bottlenecks(intervals, total_seconds, bottleneck_limit),
        efficiency_metrics=compute_efficiency(intervals, by_status, total_seconds),
    )


class TimelineAnalyzer:
    """Loads a record and its log, then runs analyze_transitions.

    "No data" is a normal outcome: analyze_timeline returns None for a
    record without transitions instead of raising.
    """

    def __init__(
        self,
        record_store: RecordStore,
        clock: Callable[[], datetime] = utc_now,
        bottleneck_limit: int = DEFAULT_BOTTLENECK_LIMIT,
    ) -> None:
        self._store = record_store
        self._clock = clock
        self._bottleneck_limit = bottleneck_limit

    async def analyze_timeline(self, record_id: str) -> ProcessTimelineAnalysis | None:
        """Analyze one record's status history.

        Raises:
            NotFoundError: If the record does not exist.
            PersistenceError: If a store read fails.
        """
        record = await self._store.get_record(record_id)
        if record is None:
            raise NotFoundError(
                f"Record not found: {record_id}",
                entity_type="record",
                entity_id=record_id,
            )
        transitions = await self._store.get_transitions_for_record(record_id)
        return analyze_transitions(record, transitions, self._clock(), self._bottleneck_limit)
