"""ReportGenerator component for fleet-wide managerial reports."""

from collections import Counter
from collections.abc import Callable, Sequence
from datetime import date, datetime

from breakdowntracker.domain.components.timeline_analyzer import (
    aggregate_by_status,
    measured_intervals,
)
from breakdowntracker.domain.components.timeline_builder import (
    build_timeline_entries,
    elapsed_seconds,
)
from breakdowntracker.domain.interfaces.observability_manager import ObservabilityManager
from breakdowntracker.domain.interfaces.record_store import RecordStore, TransitionQuery
from breakdowntracker.domain.models.managerial_report import (
    EfficiencyTrend,
    ManagerialReport,
    Recommendation,
    RecommendationImpact,
    RecommendationType,
    StatusTransitionPattern,
)
from breakdowntracker.domain.models.status import TrackingStatus, get_status_config
from breakdowntracker.domain.models.status_transition import StatusTransition, utc_now
from breakdowntracker.domain.models.timeline import StatusTimeAnalysis
from breakdowntracker.infrastructure.utils.formatting import format_duration
from breakdowntracker.infrastructure.utils.validation import validate_period

MAX_TYPICAL_REASONS = 3


def summarize_transition_patterns(
    transitions: Sequence[StatusTransition],
) -> list[StatusTransitionPattern]:
    """Count how often each (from, to) edge was taken.

    Only transitions with a previous status form an edge. Patterns are
    ordered by frequency, most frequent first; equal frequencies keep
    first-seen order.
    """
    durations: dict[tuple[TrackingStatus, TrackingStatus], list[int]] = {}
    reasons: dict[tuple[TrackingStatus, TrackingStatus], Counter[str]] = {}
    for transition in transitions:
        if transition.previous_status is None:
            continue
        edge = (transition.previous_status, transition.new_status)
        durations.setdefault(edge, []).append(transition.duration_in_previous_status or 0)
        counter = reasons.setdefault(edge, Counter())
        if transition.notes:
            counter[transition.notes] += 1

    patterns = [
        StatusTransitionPattern(
            from_status=edge[0],
            to_status=edge[1],
            frequency=len(values),
            average_duration=sum(values) / len(values),
            typical_reasons=[note for note, _ in reasons[edge].most_common(MAX_TYPICAL_REASONS)],
        )
        for edge, values in durations.items()
    ]
    patterns.sort(key=lambda p: p.frequency, reverse=True)
    return patterns


def bucket_completions(completions: Sequence[tuple[date, int]]) -> list[EfficiencyTrend]:
    """Daily completion averages, in chronological order."""
    buckets: dict[date, list[int]] = {}
    for day, seconds in completions:
        buckets.setdefault(day, []).append(seconds)
    return [
        EfficiencyTrend(
            date=day,
            average_completion_time=sum(values) / len(values),
            total_processes=len(values),
        )
        for day, values in sorted(buckets.items())
    ]


def build_recommendations(
    status_performance: Sequence[StatusTimeAnalysis],
    average_completion_time: float,
    active_processes: int,
    bottleneck_threshold_percent: float = 30.0,
    slow_completion_seconds: int = 24 * 3600,
    active_process_warning: int = 20,
) -> list[Recommendation]:
    """Advisory findings derived from the report's aggregates."""
    if bottleneck_threshold_percent <= 0:
        raise ValueError("bottleneck_threshold_percent must be positive")
    recommendations: list[Recommendation] = []

    for analysis in status_performance:
        share = analysis.percentage_of_total_time
        if share <= bottleneck_threshold_percent:
            continue
        ratio = share / bottleneck_threshold_percent
        if ratio >= 1.5:
            impact = RecommendationImpact.High
        elif ratio >= 1.2:
            impact = RecommendationImpact.Medium
        else:
            impact = RecommendationImpact.Low
        label = get_status_config(analysis.status).label
        recommendations.append(
            Recommendation(
                type=RecommendationType.Bottleneck,
                description=f"Status '{label}' takes {share:.1f}% of total process time",
                impact=impact,
                suggested_action=(
                    f"Review the steps handled while in '{label}'; consider adding "
                    "resources or tightening the procedure."
                ),
                status=analysis.status,
            )
        )

    if average_completion_time > slow_completion_seconds:
        recommendations.append(
            Recommendation(
                type=RecommendationType.Efficiency,
                description=(
                    f"Average completion time is {format_duration(average_completion_time)}, "
                    f"above the {format_duration(slow_completion_seconds)} target"
                ),
                impact=RecommendationImpact.Medium,
                suggested_action=(
                    "Improve the slowest statuses and automate repetitive follow-up tasks."
                ),
            )
        )

    if active_processes > active_process_warning:
        recommendations.append(
            Recommendation(
                type=RecommendationType.Process,
                description=f"{active_processes} active processes may indicate operational overload",
                impact=RecommendationImpact.Medium,
                suggested_action="Consider growing the team or redistributing the workload.",
            )
        )

    return recommendations


class ReportGenerator:
    """Rolls per-record timelines up into a ManagerialReport for a period.

    A record belongs to the period when at least one of its transitions
    falls inside it. Completion is judged against the record's full log.
    """

    def __init__(
        self,
        record_store: RecordStore,
        observability_manager: ObservabilityManager,
        clock: Callable[[], datetime] = utc_now,
        bottleneck_threshold_percent: float = 30.0,
        slow_completion_seconds: int = 24 * 3600,
        active_process_warning: int = 20,
    ) -> None:
        if bottleneck_threshold_percent <= 0:
            raise ValueError("bottleneck_threshold_percent must be positive")
        self._store = record_store
        self._observability = observability_manager
        self._clock = clock
        self._bottleneck_threshold_percent = bottleneck_threshold_percent
        self._slow_completion_seconds = slow_completion_seconds
        self._active_process_warning = active_process_warning

    async def generate_report(
        self,
        period_start: datetime,
        period_end: datetime,
    ) -> ManagerialReport:
        """Build the managerial report for ``[period_start, period_end]``.

        Raises:
            ValidationError: If the period ends before it starts.
            PersistenceError: If a store read fails.
        """
        start, end = validate_period(period_start, period_end)
        now = self._clock()

        in_window = await self._store.query_transitions(
            TransitionQuery(changed_from=start, changed_to=end)
        )
        record_ids = list(dict.fromkeys(t.record_id for t in in_window))

        completed = 0
        completion_times: list[int] = []
        completions: list[tuple[date, int]] = []
        intervals: list[tuple[TrackingStatus, int]] = []

        for record_id in record_ids:
            log = await self._store.get_transitions_for_record(record_id)
            timeline = build_timeline_entries(log, now)
            if not timeline:
                continue

            current = timeline[-1]
            if current.is_terminal:
                completed += 1
                seconds = elapsed_seconds(timeline[0].entered_at, current.entered_at)
                completion_times.append(seconds)
                completions.append((current.entered_at.date(), seconds))

            intervals.extend(
                (entry.status, entry.duration_seconds)
                for entry in measured_intervals(timeline)
                if start <= entry.entered_at <= end
            )

        total = len(record_ids)
        active = total - completed
        average_completion = (
            sum(completion_times) / len(completion_times) if completion_times else 0.0
        )
        status_performance = sorted(
            aggregate_by_status(intervals),
            key=lambda a: a.total_time_seconds,
            reverse=True,
        )

        report = ManagerialReport(
            period_start=start,
            period_end=end,
            total_processes=total,
            completed_processes=completed,
            active_processes=active,
            average_completion_time=average_completion,
            status_performance=status_performance,
            common_transition_patterns=summarize_transition_patterns(in_window),
            efficiency_trends=bucket_completions(completions),
            recommendations=build_recommendations(
                status_performance,
                average_completion,
                active,
                bottleneck_threshold_percent=self._bottleneck_threshold_percent,
                slow_completion_seconds=self._slow_completion_seconds,
                active_process_warning=self._active_process_warning,
            ),
        )

        try:
            await self._observability.emit_event(
                event_type="report_generated",
                payload={
                    "period_start": start.isoformat(),
                    "period_end": end.isoformat(),
                    "total_processes": total,
                    "completed_processes": completed,
                    "recommendations": len(report.recommendations),
                },
            )
        except Exception as e:
            await self._observability.log(
                level="WARNING",
                message=f"Failed to emit report_generated event: {e}",
            )

        return report
