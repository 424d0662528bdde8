"""Derived timeline and analysis models (read-model, never persisted)."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from breakdowntracker.domain.models.status import TrackingStatus
from breakdowntracker.domain.models.status_transition import StatusTransition


class TimelineEntry(BaseModel):
    """The interval a record spent in one status.

    ``exited_at`` is None for the current entry; its ``duration_seconds`` is
    computed live against the clock unless the status is terminal.
    """

    transition_id: str | None = None
    sequence_number: int = Field(..., ge=1)
    status: TrackingStatus
    entered_at: datetime
    exited_at: datetime | None = None
    duration_seconds: int = Field(default=0, ge=0)
    operator_name: str
    notes: str | None = None
    is_current: bool = False
    is_terminal: bool = False

    model_config = ConfigDict(frozen=True)

    @property
    def is_open(self) -> bool:
        """Current and still accumulating time."""
        return self.is_current and not self.is_terminal


class StatusTimeAnalysis(BaseModel):
    """Aggregate of every interval spent in one status."""

    status: TrackingStatus
    total_time_seconds: int = Field(default=0, ge=0)
    total_occurrences: int = Field(default=0, ge=0)
    average_time_seconds: float = Field(default=0.0, ge=0)
    min_time_seconds: int = Field(default=0, ge=0)
    max_time_seconds: int = Field(default=0, ge=0)
    percentage_of_total_time: float = Field(default=0.0, ge=0)


class Bottleneck(BaseModel):
    """One of the longest individual intervals of a process."""

    status: TrackingStatus
    time_seconds: int = Field(..., ge=0)
    percentage: float = Field(..., ge=0)
    occurrence_number: int = Field(
        ...,
        description="1-based position of this interval among the status' repeats",
        ge=1,
    )
    sequence_number: int = Field(..., ge=1)


class EfficiencyMetrics(BaseModel):
    """Summary statistics over the individual intervals of a process."""

    average_time_per_status: float = 0.0
    fastest_resolution_time: int = 0
    slowest_resolution_time: int = 0
    most_time_consuming_status: TrackingStatus | None = None
    least_time_consuming_status: TrackingStatus | None = None


class ProcessTimelineAnalysis(BaseModel):
    """Full timing analysis of one record's status history."""

    record_id: str
    vehicle_code: str = ""
    driver_name: str = ""
    operator_name: str = ""
    process_start: datetime
    process_end: datetime | None = None
    total_process_time_seconds: int = Field(default=0, ge=0)
    total_status_changes: int = Field(default=0, ge=0)
    current_status: TrackingStatus
    status_history: list[StatusTransition] = Field(default_factory=list)
    timeline: list[TimelineEntry] = Field(default_factory=list)
    time_analysis_by_status: list[StatusTimeAnalysis] = Field(default_factory=list)
    bottlenecks: list[Bottleneck] = Field(default_factory=list)
    efficiency_metrics: EfficiencyMetrics = Field(default_factory=EfficiencyMetrics)

    @property
    def is_completed(self) -> bool:
        return self.process_end is not None


class RecordQuickStats(BaseModel):
    """Cheap counters for list views."""

    total_changes: int = 0
    current_status_duration: int = 0
    total_process_time: int = 0
