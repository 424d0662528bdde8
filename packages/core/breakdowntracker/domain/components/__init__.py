"""Domain components."""

from breakdowntracker.domain.components.access_control import require_capability
from breakdowntracker.domain.components.occurrence_manager import OccurrenceManager
from breakdowntracker.domain.components.report_generator import ReportGenerator
from breakdowntracker.domain.components.timeline_analyzer import (
    TimelineAnalyzer,
    analyze_transitions,
)
from breakdowntracker.domain.components.timeline_builder import (
    TimelineBuilder,
    build_timeline_entries,
)
from breakdowntracker.domain.components.transition_recorder import TransitionRecorder

__all__ = [
    "TransitionRecorder",
    "TimelineBuilder",
    "TimelineAnalyzer",
    "ReportGenerator",
    "OccurrenceManager",
    "require_capability",
    "build_timeline_entries",
    "analyze_transitions",
]
