"""StatusTransition data model for the append-only status log."""

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from breakdowntracker.domain.models.status import TrackingStatus


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


class StatusTransition(BaseModel):
    """One recorded status change of a logistics record.

    Transitions are created once and never mutated. Durations are stored
    looking backward: ``duration_in_previous_status`` on transition *k+1*
    is the time the record spent in the status entered by transition *k*.
    """

    id: str | None = Field(
        default=None,
        description="Store-assigned identifier (None on an unsaved draft)",
    )
    record_id: str = Field(
        ...,
        description="Owning logistics record",
        min_length=1,
    )
    sequence_number: int = Field(
        ...,
        description="Dense per-record ordering, starting at 1",
        ge=1,
    )
    previous_status: TrackingStatus | None = Field(
        default=None,
        description="Status the record left; None only for the first transition",
    )
    new_status: TrackingStatus = Field(
        ...,
        description="Status the record entered",
    )
    operator_name: str = Field(
        ...,
        description="Who performed the change",
        min_length=1,
    )
    changed_at: datetime = Field(
        default_factory=utc_now,
        description="UTC timestamp of the change",
    )
    duration_in_previous_status: int | None = Field(
        default=None,
        description="Whole seconds spent in previous_status",
        ge=0,
    )
    notes: str | None = Field(
        default=None,
        description="Optional free-text annotation",
    )

    model_config = ConfigDict(
        frozen=True,  # Append-only log
        str_strip_whitespace=True,
    )

    @field_validator("changed_at")
    @classmethod
    def ensure_utc(cls, v: datetime) -> datetime:
        """Naive timestamps are taken to be UTC."""
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)

    @model_validator(mode="after")
    def validate_first_transition(self) -> "StatusTransition":
        """Only the first transition may lack a previous status and duration."""
        if self.sequence_number == 1:
            if self.previous_status is not None:
                raise ValueError("First transition cannot have a previous status")
            if self.duration_in_previous_status is not None:
                raise ValueError("First transition cannot carry a previous duration")
        elif self.previous_status is None:
            raise ValueError(
                f"Transition {self.sequence_number} must reference its previous status"
            )
        return self

    @property
    def is_first(self) -> bool:
        return self.sequence_number == 1
