"""TrackingStatus enum and the static status configuration registry."""

from enum import Enum
from types import MappingProxyType

from pydantic import BaseModel, ConfigDict, Field

from breakdowntracker.domain.models.tracking_error import ValidationError


class TrackingStatus(str, Enum):
    """Operational statuses a breakdown record moves through."""

    AguardandoTecnico = "aguardando_tecnico"
    """Waiting for a technician to reach the vehicle."""

    AguardandoMecanico = "aguardando_mecanico"
    """Waiting for a mechanic."""

    ManutencaoSemPrevisao = "manutencao_sem_previsao"
    """Under maintenance with no forecast for release."""

    SemPrevisao = "sem_previsao"
    """Stopped with no forecast at all."""

    TransbordoTrocaCavalo = "transbordo_troca_cavalo"
    """Transshipment by swapping the tractor unit."""

    TransbordoEmAndamento = "transbordo_em_andamento"
    """Cargo transshipment in progress."""

    TransbordoFinalizado = "transbordo_finalizado"
    """Cargo transshipment finished."""

    ReinicioViagem = "reinicio_viagem"
    """Trip restarted."""

    Finalizado = "finalizado"
    """Process closed."""


class StatusCategory(str, Enum):
    """Phase of the breakdown process a status belongs to."""

    Inicial = "inicial"
    Intermediario = "intermediario"
    Transbordo = "transbordo"
    Final = "final"


class StatusConfig(BaseModel):
    """Display and state-machine configuration for one status."""

    status: TrackingStatus
    label: str = Field(..., min_length=1)
    icon: str
    color: str
    bg_color: str
    category: StatusCategory
    allowed_transitions: frozenset[TrackingStatus] = Field(default_factory=frozenset)

    model_config = ConfigDict(frozen=True)

    @property
    def is_terminal(self) -> bool:
        """A status with no outgoing edges closes the process."""
        return not self.allowed_transitions


_S = TrackingStatus

STATUS_REGISTRY: MappingProxyType[TrackingStatus, StatusConfig] = MappingProxyType(
    {
        _S.AguardandoTecnico: StatusConfig(
            status=_S.AguardandoTecnico,
            label="Aguardando Técnico",
            icon="🔧",
            color="text-yellow-800",
            bg_color="bg-yellow-100 border-yellow-200",
            category=StatusCategory.Inicial,
            allowed_transitions=frozenset(
                {_S.AguardandoMecanico, _S.ManutencaoSemPrevisao, _S.TransbordoTrocaCavalo}
            ),
        ),
        _S.AguardandoMecanico: StatusConfig(
            status=_S.AguardandoMecanico,
            label="Aguardando Mecânico",
            icon="⚙️",
            color="text-orange-800",
            bg_color="bg-orange-100 border-orange-200",
            category=StatusCategory.Inicial,
            allowed_transitions=frozenset({_S.ManutencaoSemPrevisao, _S.TransbordoTrocaCavalo}),
        ),
        _S.ManutencaoSemPrevisao: StatusConfig(
            status=_S.ManutencaoSemPrevisao,
            label="Manutenção",
            icon="🔨",
            color="text-red-800",
            bg_color="bg-red-100 border-red-200",
            category=StatusCategory.Intermediario,
            allowed_transitions=frozenset(
                {_S.TransbordoTrocaCavalo, _S.TransbordoEmAndamento, _S.ReinicioViagem}
            ),
        ),
        _S.SemPrevisao: StatusConfig(
            status=_S.SemPrevisao,
            label="Sem Previsão",
            icon="❓",
            color="text-gray-800",
            bg_color="bg-gray-100 border-gray-200",
            category=StatusCategory.Intermediario,
            allowed_transitions=frozenset(
                {
                    _S.AguardandoTecnico,
                    _S.AguardandoMecanico,
                    _S.ManutencaoSemPrevisao,
                    _S.TransbordoTrocaCavalo,
                    _S.ReinicioViagem,
                }
            ),
        ),
        _S.TransbordoTrocaCavalo: StatusConfig(
            status=_S.TransbordoTrocaCavalo,
            label="Transbordo - Troca de Cavalo",
            icon="🚛",
            color="text-blue-800",
            bg_color="bg-blue-100 border-blue-200",
            category=StatusCategory.Transbordo,
            allowed_transitions=frozenset({_S.TransbordoEmAndamento, _S.ReinicioViagem}),
        ),
        _S.TransbordoEmAndamento: StatusConfig(
            status=_S.TransbordoEmAndamento,
            label="Transbordo em Andamento",
            icon="📦",
            color="text-indigo-800",
            bg_color="bg-indigo-100 border-indigo-200",
            category=StatusCategory.Transbordo,
            allowed_transitions=frozenset({_S.TransbordoFinalizado, _S.ReinicioViagem}),
        ),
        _S.TransbordoFinalizado: StatusConfig(
            status=_S.TransbordoFinalizado,
            label="Transbordo Finalizado",
            icon="✅",
            color="text-purple-800",
            bg_color="bg-purple-100 border-purple-200",
            category=StatusCategory.Transbordo,
            allowed_transitions=frozenset({_S.ReinicioViagem}),
        ),
        _S.ReinicioViagem: StatusConfig(
            status=_S.ReinicioViagem,
            label="Reinício de Viagem",
            icon="🚀",
            color="text-green-800",
            bg_color="bg-green-100 border-green-200",
            category=StatusCategory.Final,
            allowed_transitions=frozenset({_S.Finalizado}),
        ),
        _S.Finalizado: StatusConfig(
            status=_S.Finalizado,
            label="Finalizado",
            icon="🏁",
            color="text-gray-800",
            bg_color="bg-gray-100 border-gray-200",
            category=StatusCategory.Final,
        ),
    }
)


def parse_status(value: TrackingStatus | str) -> TrackingStatus:
    """Convert a status identifier into a TrackingStatus.

    Raises:
        ValidationError: If the identifier is not a registry key.
    """
    if isinstance(value, TrackingStatus):
        return value
    try:
        return TrackingStatus(str(value).strip().lower())
    except ValueError:
        raise ValidationError(f"Unknown status: {value!r}", field="new_status") from None


def get_status_config(status: TrackingStatus | str) -> StatusConfig:
    """Look up the configuration of a status."""
    return STATUS_REGISTRY[parse_status(status)]


def allowed_next(status: TrackingStatus | str) -> frozenset[TrackingStatus]:
    """Statuses reachable in one step from ``status``."""
    return get_status_config(status).allowed_transitions


def is_terminal(status: TrackingStatus | str) -> bool:
    return get_status_config(status).is_terminal


def is_transition_allowed(
    from_status: TrackingStatus | str | None,
    to_status: TrackingStatus | str,
) -> bool:
    """Check an edge of the status graph.

    With no previous status (first transition of a record) any
    non-terminal status is a valid entry point.
    """
    target = parse_status(to_status)
    if from_status is None:
        return not is_terminal(target)
    return target in allowed_next(from_status)
