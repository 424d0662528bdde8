"""Domain interfaces for dependency injection."""

from breakdowntracker.domain.interfaces.observability_manager import (
    ObservabilityError,
    ObservabilityManager,
)
from breakdowntracker.domain.interfaces.record_store import (
    RecordStore,
    TransitionQuery,
)

__all__ = [
    "ObservabilityError",
    "ObservabilityManager",
    "RecordStore",
    "TransitionQuery",
]
