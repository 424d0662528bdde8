"""Occurrence data model and its enums."""

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from breakdowntracker.domain.models.status_transition import utc_now


class OccurrenceCategory(str, Enum):
    """What kind of problem an occurrence reports."""

    Mecanica = "mecanica"
    Eletrica = "eletrica"
    Pneu = "pneu"
    Combustivel = "combustivel"
    Documentacao = "documentacao"
    Carga = "carga"
    Rota = "rota"
    Clima = "clima"
    Acidente = "acidente"
    Outros = "outros"


class OccurrencePriority(str, Enum):
    Baixa = "baixa"
    Media = "media"
    Alta = "alta"
    Critica = "critica"


class OccurrenceStatus(str, Enum):
    """Lifecycle of an occurrence.

    Resolved and cancelled occurrences are closed and cannot change again.
    """

    Aberta = "aberta"
    EmAndamento = "em_andamento"
    Resolvida = "resolvida"
    Cancelada = "cancelada"


OCCURRENCE_TRANSITIONS: dict[OccurrenceStatus, frozenset[OccurrenceStatus]] = {
    OccurrenceStatus.Aberta: frozenset(
        {OccurrenceStatus.EmAndamento, OccurrenceStatus.Resolvida, OccurrenceStatus.Cancelada}
    ),
    OccurrenceStatus.EmAndamento: frozenset(
        {OccurrenceStatus.Resolvida, OccurrenceStatus.Cancelada}
    ),
    OccurrenceStatus.Resolvida: frozenset(),
    OccurrenceStatus.Cancelada: frozenset(),
}


class Occurrence(BaseModel):
    """A note-worthy event attached to a logistics record."""

    id: str = Field(..., min_length=1)
    record_id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1, max_length=200)
    description: str = ""
    category: OccurrenceCategory = OccurrenceCategory.Outros
    priority: OccurrencePriority = OccurrencePriority.Media
    status: OccurrenceStatus = OccurrenceStatus.Aberta
    created_by: str = Field(..., min_length=1)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    resolved_by: str | None = None
    resolved_at: datetime | None = None
    resolution_notes: str | None = None
    duration_hours: float = Field(default=0.0, ge=0)

    model_config = ConfigDict(
        frozen=False,
        validate_assignment=True,
        str_strip_whitespace=True,
    )

    @field_validator("created_at", "updated_at", "resolved_at")
    @classmethod
    def ensure_utc(cls, v: datetime | None) -> datetime | None:
        if v is None:
            return v
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)

    @property
    def is_closed(self) -> bool:
        return not OCCURRENCE_TRANSITIONS[self.status]


class OccurrenceSummary(BaseModel):
    """Per-record occurrence counters."""

    record_id: str
    total_occurrences: int = 0
    open_occurrences: int = 0
    resolved_occurrences: int = 0
    total_occurrence_hours: float = 0.0
    first_occurrence_at: datetime | None = None
    last_resolved_at: datetime | None = None
