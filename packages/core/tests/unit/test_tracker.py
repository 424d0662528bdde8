"""Tests for BreakdownTracker facade."""

import asyncio
from pathlib import Path

import pytest

from breakdowntracker.domain.models.session import Capability, UserRole
from breakdowntracker.domain.models.status import TrackingStatus
from breakdowntracker.domain.models.tracking_error import (
    NotFoundError,
    PermissionDeniedError,
    PersistenceError,
    ValidationError,
)
from breakdowntracker.infrastructure.config.settings import TrackerSettings
from breakdowntracker.infrastructure.state_store.memory_store import InMemoryRecordStore
from breakdowntracker.tracker import BreakdownTracker
from fixtures.test_data import MockObservabilityManager, T0, make_session


class FailingAppendStore(InMemoryRecordStore):
    async def append_transition(self, transition):
        raise PersistenceError("write timeout")


class CancelledAppendStore(InMemoryRecordStore):
    async def append_transition(self, transition):
        raise asyncio.CancelledError()


class TestBreakdownTrackerInit:
    """Tests for BreakdownTracker construction."""

    def test_defaults(self) -> None:
        tracker = BreakdownTracker(observability_manager=MockObservabilityManager())
        assert isinstance(tracker.record_store, InMemoryRecordStore)
        assert isinstance(tracker.config, TrackerSettings)

    def test_config_from_dict(self) -> None:
        tracker = BreakdownTracker(
            observability_manager=MockObservabilityManager(),
            config={"bottleneck_limit": 5},
        )
        assert tracker.config.bottleneck_limit == 5

    def test_config_from_file(self, tmp_path: Path) -> None:
        config_file = tmp_path / "tracker.yaml"
        config_file.write_text("settings:\n  enforce_allowed_transitions: false\n")

        tracker = BreakdownTracker(
            observability_manager=MockObservabilityManager(),
            config_file=config_file,
        )
        assert tracker.config.enforce_allowed_transitions is False

    def test_invalid_config_type(self) -> None:
        with pytest.raises(ValueError, match="Invalid config type"):
            BreakdownTracker(config="nope")  # type: ignore[arg-type]

    def test_terminal_initial_status_rejected(self) -> None:
        with pytest.raises(ValueError, match="initial_status cannot be terminal"):
            BreakdownTracker(
                observability_manager=MockObservabilityManager(),
                config={"initial_status": "finalizado"},
            )


class TestBreakdownTrackerRecords:
    """Tests for record operations."""

    @pytest.mark.asyncio
    async def test_create_record_records_initial_transition(
        self, tracker, admin_session, observability
    ) -> None:
        record = await tracker.create_record(admin_session, vehicle_code="LH-9", driver_name="Rui")

        assert record.status == TrackingStatus.AguardandoTecnico
        assert record.operator_name == "Ana Souza"
        assert record.created_at == T0
        log = await tracker.record_store.get_transitions_for_record(record.id)
        assert [t.new_status for t in log] == [TrackingStatus.AguardandoTecnico]
        assert observability.events_of("record_created")

    @pytest.mark.asyncio
    async def test_create_record_rejects_protected_fields(self, tracker, admin_session) -> None:
        with pytest.raises(ValidationError) as exc_info:
            await tracker.create_record(admin_session, status="finalizado")
        assert exc_info.value.field == "status"

    @pytest.mark.asyncio
    async def test_create_record_rejects_unknown_fields(self, tracker, admin_session) -> None:
        with pytest.raises(ValidationError):
            await tracker.create_record(admin_session, colour="blue")

    @pytest.mark.asyncio
    async def test_create_record_requires_operator(self, tracker) -> None:
        session = make_session(UserRole.Operacao, operator_name="")
        with pytest.raises(ValidationError):
            await tracker.create_record(session, vehicle_code="LH-1")

    @pytest.mark.asyncio
    async def test_create_record_rolls_back_on_append_failure(self, admin_session) -> None:
        store = FailingAppendStore()
        tracker = BreakdownTracker(
            record_store=store,
            observability_manager=MockObservabilityManager(),
            config=TrackerSettings(),
        )

        with pytest.raises(PersistenceError):
            await tracker.create_record(admin_session, vehicle_code="LH-1")
        assert await store.get_records() == []

    @pytest.mark.asyncio
    async def test_create_record_rolls_back_on_cancellation(self, admin_session) -> None:
        store = CancelledAppendStore()
        tracker = BreakdownTracker(
            record_store=store,
            observability_manager=MockObservabilityManager(),
            config=TrackerSettings(),
        )

        with pytest.raises(asyncio.CancelledError):
            await tracker.create_record(admin_session, vehicle_code="LH-1")
        assert await store.get_records() == []

    @pytest.mark.asyncio
    async def test_delete_requires_capability(self, tracker, admin_session) -> None:
        record = await tracker.create_record(admin_session, vehicle_code="LH-1")
        torre = make_session(UserRole.Torre)

        with pytest.raises(PermissionDeniedError) as exc_info:
            await tracker.delete_record(torre, record.id)

        assert exc_info.value.capability == Capability.Delete.value
        assert await tracker.record_store.get_record(record.id) is not None

    @pytest.mark.asyncio
    async def test_delete_record(self, tracker, admin_session, observability) -> None:
        record = await tracker.create_record(admin_session, vehicle_code="LH-1")

        await tracker.delete_record(admin_session, record.id)

        with pytest.raises(NotFoundError):
            await tracker.get_record(admin_session, record.id)
        with pytest.raises(NotFoundError):
            await tracker.delete_record(admin_session, record.id)
        assert observability.events_of("record_deleted")

    @pytest.mark.asyncio
    async def test_delete_records_bulk(self, tracker, admin_session) -> None:
        first = await tracker.create_record(admin_session, vehicle_code="LH-1")
        second = await tracker.create_record(admin_session, vehicle_code="LH-2")

        deleted = await tracker.delete_records(admin_session, [first.id, second.id, "missing"])

        assert deleted == 2
        assert await tracker.list_records(admin_session) == []

    @pytest.mark.asyncio
    async def test_delete_records_requires_selection(self, tracker, admin_session) -> None:
        with pytest.raises(ValidationError):
            await tracker.delete_records(admin_session, [])


class TestBreakdownTrackerMessageIntake:
    """Tests for opening records from pasted breakdown reports."""

    @pytest.mark.asyncio
    async def test_create_record_from_message(self, tracker, admin_session) -> None:
        message = (
            "INF. QUEBRA VEÍCULO: LH4521 - PERFIL: TRUCK\n"
            "Motorista: João da Silva\n"
            "Status: Aguardando mecânico | Tecnologia: Sascar\n"
        )

        record = await tracker.create_record_from_message(admin_session, message)

        assert record.vehicle_code == "LH4521"
        assert record.driver_name == "João da Silva"
        assert record.status == TrackingStatus.AguardandoMecanico
        assert record.original_message == message.strip()
        log = await tracker.record_store.get_transitions_for_record(record.id)
        assert [t.new_status for t in log] == [TrackingStatus.AguardandoMecanico]

    @pytest.mark.asyncio
    async def test_resolved_report_opens_in_initial_status(self, tracker, operacao_session) -> None:
        record = await tracker.create_record_from_message(
            operacao_session, "INF. QUEBRA VEÍCULO: LH1\nStatus: Resolvido"
        )

        assert record.status == TrackingStatus.AguardandoTecnico
        assert record.operator_name == "Bruno Reis"

    @pytest.mark.asyncio
    async def test_message_requires_capability(self, tracker) -> None:
        viewer = make_session(
            UserRole.Monitoramento, permissions=frozenset({Capability.ViewDashboard})
        )
        with pytest.raises(PermissionDeniedError):
            await tracker.create_record_from_message(viewer, "Motorista: Rui")
        assert await tracker.record_store.get_records() == []

    @pytest.mark.asyncio
    async def test_empty_message_rejected(self, tracker, admin_session) -> None:
        with pytest.raises(ValidationError):
            await tracker.create_record_from_message(admin_session, "  ")


class TestBreakdownTrackerPermissions:
    """Permission checks happen before any store access."""

    @pytest.mark.asyncio
    async def test_transition_without_capability(self, tracker, admin_session) -> None:
        record = await tracker.create_record(admin_session, vehicle_code="LH-1")
        viewer = make_session(
            UserRole.Monitoramento, permissions=frozenset({Capability.ViewDashboard})
        )

        with pytest.raises(PermissionDeniedError):
            await tracker.record_transition(viewer, record.id, "aguardando_mecanico")

        assert len(await tracker.record_store.get_transitions_for_record(record.id)) == 1

    @pytest.mark.asyncio
    async def test_reads_require_view_dashboard(self, tracker, admin_session) -> None:
        record = await tracker.create_record(admin_session, vehicle_code="LH-1")
        blind = make_session(UserRole.Operacao, permissions=frozenset())

        with pytest.raises(PermissionDeniedError):
            await tracker.build_timeline(blind, record.id)
        with pytest.raises(PermissionDeniedError):
            await tracker.analyze_timeline(blind, record.id)
        with pytest.raises(PermissionDeniedError):
            await tracker.generate_report(blind, T0, T0)

    @pytest.mark.asyncio
    async def test_occurrence_writes_require_capability(self, tracker, admin_session) -> None:
        record = await tracker.create_record(admin_session, vehicle_code="LH-1")
        viewer = make_session(
            UserRole.Operacao, permissions=frozenset({Capability.ViewDashboard})
        )

        with pytest.raises(PermissionDeniedError):
            await tracker.add_occurrence(viewer, record.id, "Pneu furado")

    @pytest.mark.asyncio
    async def test_transition_operator_defaults_to_session(
        self, tracker, admin_session, operacao_session
    ) -> None:
        record = await tracker.create_record(admin_session, vehicle_code="LH-1")

        transition = await tracker.record_transition(
            operacao_session, record.id, TrackingStatus.AguardandoMecanico
        )
        override = await tracker.record_transition(
            operacao_session,
            record.id,
            TrackingStatus.ManutencaoSemPrevisao,
            operator_name="Outro Operador",
        )

        assert transition.operator_name == "Bruno Reis"
        assert override.operator_name == "Outro Operador"


class TestBreakdownTrackerWatchers:
    """Tests for polling views."""

    @pytest.mark.asyncio
    async def test_watch_timeline_and_close(self, tracker, admin_session) -> None:
        record = await tracker.create_record(admin_session, vehicle_code="LH-1")
        seen = []

        async def on_timeline(entries) -> None:
            seen.append(entries)

        refresher = await tracker.watch_timeline(
            admin_session, record.id, on_timeline, interval_seconds=60
        )
        for _ in range(3):
            await asyncio.sleep(0)

        assert refresher.is_running
        assert seen and seen[0][0].status == TrackingStatus.AguardandoTecnico

        await tracker.close()
        assert not refresher.is_running

    @pytest.mark.asyncio
    async def test_watch_unknown_record(self, tracker, admin_session) -> None:
        async def on_stats(stats) -> None:
            pass

        with pytest.raises(NotFoundError):
            await tracker.watch_quick_stats(admin_session, "missing", on_stats)

    @pytest.mark.asyncio
    async def test_stopped_watchers_are_released(self, tracker, admin_session) -> None:
        record = await tracker.create_record(admin_session, vehicle_code="LH-1")

        async def on_timeline(entries) -> None:
            pass

        for _ in range(50):
            refresher = await tracker.watch_timeline(
                admin_session, record.id, on_timeline, interval_seconds=60
            )
            await refresher.stop()

        assert tracker._refreshers == set()

    @pytest.mark.asyncio
    async def test_restarted_watcher_is_stopped_on_close(self, tracker, admin_session) -> None:
        record = await tracker.create_record(admin_session, vehicle_code="LH-1")

        async def on_stats(stats) -> None:
            pass

        refresher = await tracker.watch_quick_stats(
            admin_session, record.id, on_stats, interval_seconds=60
        )
        await refresher.stop()
        refresher.start()
        assert tracker._refreshers == {refresher}

        await tracker.close()
        assert not refresher.is_running
        assert tracker._refreshers == set()
