"""LogisticsRecord data model."""

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field, field_validator

from breakdowntracker.domain.models.status import TrackingStatus
from breakdowntracker.domain.models.status_transition import utc_now


class LogisticsRecord(BaseModel):
    """A vehicle breakdown event being tracked.

    The record's ``status`` field mirrors the head of its transition log and
    is only advanced by the transition recorder.
    """

    id: str = Field(..., min_length=1)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    operator_name: str = Field(..., min_length=1)

    # Vehicle
    vehicle_code: str = Field(default="", description="LH trip code")
    vehicle_profile: str = ""
    internal_prt: str = ""
    driver_name: str = ""
    truck_plate: str = ""
    trailer_plate: str = ""

    status: TrackingStatus = TrackingStatus.AguardandoTecnico

    # Location and technology
    technology: str = ""
    current_address: str = ""
    maps_link: str = ""

    occurrence_description: str = ""

    # Deadlines (free text, as received from the field)
    eta_origin_deadline: str = ""
    eta_origin_address: str = ""
    cpt_release_deadline: str = ""
    eta_destination_deadline: str = ""
    eta_destination_address: str = ""

    remaining_distance: str = ""
    arrival_prediction: str = ""
    new_arrival_prediction: str = ""

    original_message: str = ""

    model_config = ConfigDict(
        frozen=False,  # status/updated_at advance with the log
        validate_assignment=True,
        str_strip_whitespace=True,
    )

    @field_validator("created_at", "updated_at")
    @classmethod
    def ensure_utc(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)

    def __repr__(self) -> str:
        return (
            f"LogisticsRecord(id={self.id!r}, vehicle_code={self.vehicle_code!r}, "
            f"status={self.status.value})"
        )
