"""Tests for ReportGenerator component."""

from datetime import timedelta

import pytest

from breakdowntracker.domain.components.report_generator import (
    ReportGenerator,
    bucket_completions,
    build_recommendations,
    summarize_transition_patterns,
)
from breakdowntracker.domain.models.managerial_report import (
    RecommendationImpact,
    RecommendationType,
)
from breakdowntracker.domain.models.status import TrackingStatus
from breakdowntracker.domain.models.timeline import StatusTimeAnalysis
from breakdowntracker.domain.models.tracking_error import ValidationError
from breakdowntracker.infrastructure.state_store.memory_store import InMemoryRecordStore
from fixtures.test_data import (
    EXAMPLE_STEPS,
    T0,
    FixedClock,
    MockObservabilityManager,
    make_log,
    seed_record,
)

S = TrackingStatus
CLOSED_STEPS = EXAMPLE_STEPS + [(S.Finalizado, 2400)]
NOTES = [None, "sem técnico", None, None]


def _share(status: TrackingStatus, percentage: float) -> StatusTimeAnalysis:
    return StatusTimeAnalysis(status=status, percentage_of_total_time=percentage)


class TestReportGenerator:
    """Tests for generate_report over a seeded store."""

    def setup_method(self) -> None:
        self.store = InMemoryRecordStore()
        self.observability = MockObservabilityManager()
        self.clock = FixedClock(T0 + timedelta(hours=3))
        self.generator = ReportGenerator(self.store, self.observability, clock=self.clock)

    async def _seed(self) -> None:
        await seed_record(self.store, "closed", CLOSED_STEPS, notes=NOTES)
        await seed_record(
            self.store, "open", EXAMPLE_STEPS, start=T0 + timedelta(hours=1), notes=NOTES[:3]
        )
        await seed_record(self.store, "outside", CLOSED_STEPS, start=T0 + timedelta(days=10))

    async def _report(self):
        await self._seed()
        return await self.generator.generate_report(
            T0 - timedelta(hours=1), T0 + timedelta(days=1)
        )

    @pytest.mark.asyncio
    async def test_process_counts(self) -> None:
        report = await self._report()

        assert report.total_processes == 2
        assert report.completed_processes == 1
        assert report.active_processes == 1
        assert report.average_completion_time == pytest.approx(2400.0)

    @pytest.mark.asyncio
    async def test_status_performance(self) -> None:
        report = await self._report()

        by_status = {a.status: a for a in report.status_performance}
        assert S.Finalizado not in by_status
        assert by_status[S.AguardandoMecanico].total_time_seconds == 2400
        assert by_status[S.AguardandoMecanico].total_occurrences == 2
        totals = [a.total_time_seconds for a in report.status_performance]
        assert totals == sorted(totals, reverse=True)
        assert sum(a.percentage_of_total_time for a in report.status_performance) == (
            pytest.approx(100.0)
        )

    @pytest.mark.asyncio
    async def test_transition_patterns(self) -> None:
        report = await self._report()

        patterns = report.common_transition_patterns
        assert [(p.from_status, p.to_status, p.frequency) for p in patterns] == [
            (S.AguardandoTecnico, S.AguardandoMecanico, 2),
            (S.AguardandoMecanico, S.ReinicioViagem, 2),
            (S.ReinicioViagem, S.Finalizado, 1),
        ]
        assert patterns[0].average_duration == pytest.approx(600.0)
        assert patterns[0].typical_reasons == ["sem técnico"]

    @pytest.mark.asyncio
    async def test_efficiency_trends(self) -> None:
        report = await self._report()

        assert len(report.efficiency_trends) == 1
        trend = report.efficiency_trends[0]
        assert trend.date == T0.date()
        assert trend.total_processes == 1
        assert trend.average_completion_time == pytest.approx(2400.0)

    @pytest.mark.asyncio
    async def test_empty_period(self) -> None:
        report = await self.generator.generate_report(T0, T0 + timedelta(days=1))

        assert report.total_processes == 0
        assert report.average_completion_time == 0.0
        assert report.status_performance == []
        assert report.recommendations == []

    @pytest.mark.asyncio
    async def test_inverted_period_rejected(self) -> None:
        with pytest.raises(ValidationError):
            await self.generator.generate_report(T0, T0 - timedelta(seconds=1))

    @pytest.mark.asyncio
    async def test_emits_report_generated(self) -> None:
        await self._report()
        events = self.observability.events_of("report_generated")
        assert events[0]["payload"]["total_processes"] == 2


class TestSummarizeTransitionPatterns:
    """Tests for pattern counting."""

    def test_first_transition_has_no_edge(self) -> None:
        log = make_log("rec-1", [(S.AguardandoTecnico, 0)])
        assert summarize_transition_patterns(log) == []

    def test_typical_reasons_limited_to_three(self) -> None:
        steps = [(S.AguardandoTecnico, 0), (S.AguardandoMecanico, 10)]
        transitions = []
        for index, note in enumerate(["a", "b", "b", "c", "d", "d", "d"]):
            transitions.extend(make_log(f"rec-{index}", steps, notes=[None, note]))

        pattern = summarize_transition_patterns(transitions)[0]
        assert pattern.frequency == 7
        assert pattern.typical_reasons == ["d", "b", "a"]


class TestBucketCompletions:
    """Tests for daily efficiency trends."""

    def test_sorted_by_date(self) -> None:
        day_one = T0.date()
        day_two = (T0 + timedelta(days=1)).date()
        trends = bucket_completions([(day_two, 100), (day_one, 50), (day_two, 300)])

        assert [t.date for t in trends] == [day_one, day_two]
        assert trends[1].average_completion_time == pytest.approx(200.0)
        assert trends[1].total_processes == 2


class TestBuildRecommendations:
    """Tests for recommendation heuristics."""

    @pytest.mark.parametrize(
        ("percentage", "impact"),
        [
            (45.0, RecommendationImpact.High),
            (36.0, RecommendationImpact.Medium),
            (31.0, RecommendationImpact.Low),
        ],
    )
    def test_bottleneck_impact_scales_with_share(
        self, percentage: float, impact: RecommendationImpact
    ) -> None:
        recommendations = build_recommendations([_share(S.SemPrevisao, percentage)], 0.0, 0)

        assert len(recommendations) == 1
        assert recommendations[0].type == RecommendationType.Bottleneck
        assert recommendations[0].impact == impact
        assert recommendations[0].status == S.SemPrevisao

    def test_share_at_threshold_is_not_flagged(self) -> None:
        assert build_recommendations([_share(S.SemPrevisao, 30.0)], 0.0, 0) == []

    def test_slow_completion(self) -> None:
        recommendations = build_recommendations([], 25 * 3600.0, 0)
        assert [r.type for r in recommendations] == [RecommendationType.Efficiency]

    def test_too_many_active_processes(self) -> None:
        recommendations = build_recommendations([], 0.0, 21)
        assert [r.type for r in recommendations] == [RecommendationType.Process]
        assert build_recommendations([], 0.0, 20) == []

    def test_threshold_must_be_positive(self) -> None:
        with pytest.raises(ValueError):
            build_recommendations(
                [_share(S.SemPrevisao, 40.0)], 0.0, 0, bottleneck_threshold_percent=0
            )

        with pytest.raises(ValueError):
            ReportGenerator(
                InMemoryRecordStore(),
                MockObservabilityManager(),
                bottleneck_threshold_percent=0,
            )
