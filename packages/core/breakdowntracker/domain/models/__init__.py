"""Domain models for Breakdown Tracker."""

from breakdowntracker.domain.models.logistics_record import LogisticsRecord
from breakdowntracker.domain.models.managerial_report import (
    EfficiencyTrend,
    ManagerialReport,
    Recommendation,
    RecommendationImpact,
    RecommendationType,
    StatusTransitionPattern,
)
from breakdowntracker.domain.models.occurrence import (
    Occurrence,
    OccurrenceCategory,
    OccurrencePriority,
    OccurrenceStatus,
    OccurrenceSummary,
)
from breakdowntracker.domain.models.session import (
    Capability,
    SessionContext,
    UserRole,
)
from breakdowntracker.domain.models.status import (
    STATUS_REGISTRY,
    StatusCategory,
    StatusConfig,
    TrackingStatus,
)
from breakdowntracker.domain.models.status_transition import StatusTransition
from breakdowntracker.domain.models.timeline import (
    Bottleneck,
    EfficiencyMetrics,
    ProcessTimelineAnalysis,
    RecordQuickStats,
    StatusTimeAnalysis,
    TimelineEntry,
)
from breakdowntracker.domain.models.tracking_error import (
    ErrorCategory,
    NotFoundError,
    PermissionDeniedError,
    PersistenceError,
    StateTransitionError,
    TrackingError,
    ValidationError,
)

__all__ = [
    "LogisticsRecord",
    "TrackingStatus",
    "StatusCategory",
    "StatusConfig",
    "STATUS_REGISTRY",
    "StatusTransition",
    "TimelineEntry",
    "StatusTimeAnalysis",
    "Bottleneck",
    "EfficiencyMetrics",
    "ProcessTimelineAnalysis",
    "RecordQuickStats",
    "ManagerialReport",
    "StatusTransitionPattern",
    "EfficiencyTrend",
    "Recommendation",
    "RecommendationType",
    "RecommendationImpact",
    "Occurrence",
    "OccurrenceCategory",
    "OccurrencePriority",
    "OccurrenceStatus",
    "OccurrenceSummary",
    "SessionContext",
    "UserRole",
    "Capability",
    "TrackingError",
    "ErrorCategory",
    "ValidationError",
    "StateTransitionError",
    "PersistenceError",
    "PermissionDeniedError",
    "NotFoundError",
]
