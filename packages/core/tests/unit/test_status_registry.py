"""Tests for the status configuration registry."""

import pytest

from breakdowntracker.domain.models.status import (
    STATUS_REGISTRY,
    StatusCategory,
    TrackingStatus,
    allowed_next,
    get_status_config,
    is_terminal,
    is_transition_allowed,
    parse_status,
)
from breakdowntracker.domain.models.tracking_error import ValidationError


class TestStatusRegistry:
    """Tests for the static status table."""

    def test_every_status_is_registered(self) -> None:
        assert set(STATUS_REGISTRY) == set(TrackingStatus)

    def test_registry_is_read_only(self) -> None:
        with pytest.raises(TypeError):
            STATUS_REGISTRY[TrackingStatus.Finalizado] = None  # type: ignore[index]

    def test_edges_only_reference_registered_statuses(self) -> None:
        for config in STATUS_REGISTRY.values():
            assert config.allowed_transitions <= set(TrackingStatus)

    def test_finalizado_is_the_only_terminal_status(self) -> None:
        terminal = [s for s in TrackingStatus if is_terminal(s)]
        assert terminal == [TrackingStatus.Finalizado]

    def test_aguardando_tecnico_edges(self) -> None:
        assert allowed_next(TrackingStatus.AguardandoTecnico) == {
            TrackingStatus.AguardandoMecanico,
            TrackingStatus.ManutencaoSemPrevisao,
            TrackingStatus.TransbordoTrocaCavalo,
        }

    def test_config_carries_display_fields(self) -> None:
        config = get_status_config("reinicio_viagem")
        assert config.label == "Reinício de Viagem"
        assert config.category == StatusCategory.Final
        assert config.bg_color.startswith("bg-green")


class TestParseStatus:
    """Tests for parse_status."""

    def test_accepts_enum(self) -> None:
        assert parse_status(TrackingStatus.SemPrevisao) is TrackingStatus.SemPrevisao

    def test_accepts_identifier_with_whitespace_and_case(self) -> None:
        assert parse_status("  Aguardando_Mecanico ") == TrackingStatus.AguardandoMecanico

    def test_unknown_identifier_raises_validation_error(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            parse_status("resolvido")
        assert exc_info.value.field == "new_status"


class TestIsTransitionAllowed:
    """Tests for edge checks."""

    def test_allowed_edge(self) -> None:
        assert is_transition_allowed("aguardando_tecnico", "aguardando_mecanico")

    def test_disallowed_edge(self) -> None:
        assert not is_transition_allowed(
            TrackingStatus.AguardandoMecanico, TrackingStatus.AguardandoTecnico
        )

    def test_same_status_is_not_an_edge(self) -> None:
        assert not is_transition_allowed(
            TrackingStatus.SemPrevisao, TrackingStatus.SemPrevisao
        )

    def test_nothing_leaves_terminal_status(self) -> None:
        for status in TrackingStatus:
            assert not is_transition_allowed(TrackingStatus.Finalizado, status)

    def test_first_transition_may_enter_any_non_terminal_status(self) -> None:
        assert is_transition_allowed(None, TrackingStatus.TransbordoEmAndamento)
        assert not is_transition_allowed(None, TrackingStatus.Finalizado)
