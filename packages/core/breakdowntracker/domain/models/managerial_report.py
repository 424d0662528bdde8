"""ManagerialReport data model for fleet-wide period reports."""

from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel, Field

from breakdowntracker.domain.models.status import TrackingStatus
from breakdowntracker.domain.models.timeline import StatusTimeAnalysis


class RecommendationType(str, Enum):
    """Kind of advisory finding."""

    Bottleneck = "bottleneck"
    Efficiency = "efficiency"
    Process = "process"


class RecommendationImpact(str, Enum):
    """Severity of an advisory finding."""

    High = "high"
    Medium = "medium"
    Low = "low"


class StatusTransitionPattern(BaseModel):
    """How often records move along one edge of the status graph."""

    from_status: TrackingStatus
    to_status: TrackingStatus
    frequency: int = Field(..., ge=1)
    average_duration: float = Field(
        default=0.0,
        description="Mean seconds spent in from_status before taking this edge",
        ge=0,
    )
    typical_reasons: list[str] = Field(default_factory=list)


class EfficiencyTrend(BaseModel):
    """Completed processes bucketed by completion day."""

    date: date
    average_completion_time: float = Field(default=0.0, ge=0)
    total_processes: int = Field(default=0, ge=0)


class Recommendation(BaseModel):
    type: RecommendationType
    description: str
    impact: RecommendationImpact
    suggested_action: str
    status: TrackingStatus | None = None


class ManagerialReport(BaseModel):
    """Aggregates over every record with activity inside a period."""

    period_start: datetime
    period_end: datetime
    total_processes: int = 0
    completed_processes: int = 0
    active_processes: int = 0
    average_completion_time: float = 0.0
    status_performance: list[StatusTimeAnalysis] = Field(default_factory=list)
    common_transition_patterns: list[StatusTransitionPattern] = Field(default_factory=list)
    efficiency_trends: list[EfficiencyTrend] = Field(default_factory=list)
    recommendations: list[Recommendation] = Field(default_factory=list)
