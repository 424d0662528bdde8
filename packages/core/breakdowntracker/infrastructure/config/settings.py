"""Configuration settings using pydantic-settings."""

from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from breakdowntracker.domain.models.status import TrackingStatus, is_terminal


class TrackerSettings(BaseSettings):
    """Configuration settings for Breakdown Tracker.

    Settings can be loaded from environment variables or passed as a dictionary.
    Environment variables should be prefixed with 'BREAKDOWNTRACKER_'
    (e.g., BREAKDOWNTRACKER_BOTTLENECK_THRESHOLD_PERCENT=25).

    Example:
        ```python
        # From environment variables
        settings = TrackerSettings()

        # From dictionary
        settings = TrackerSettings(enforce_allowed_transitions=False)
        ```
    """

    model_config = SettingsConfigDict(
        env_prefix="BREAKDOWNTRACKER_",
        case_sensitive=False,
        extra="ignore",
    )

    # TransitionRecorder configuration
    enforce_allowed_transitions: bool = Field(
        default=True,
        description="Reject status changes outside the registry's allowed edges. "
        "When False, illegal edges are recorded and logged as warnings.",
    )
    initial_status: TrackingStatus = Field(
        default=TrackingStatus.AguardandoTecnico,
        description="Status recorded when a new record is opened",
    )
    max_notes_length: int = Field(
        default=2000,
        description="Maximum length of transition and occurrence notes",
        ge=1,
    )

    # Analysis configuration
    bottleneck_limit: int = Field(
        default=3,
        description="Number of longest intervals reported as bottlenecks",
        ge=1,
    )

    # Report configuration
    bottleneck_threshold_percent: float = Field(
        default=30.0,
        description="Share of total time above which a status is flagged as a bottleneck",
        gt=0,
        le=100,
    )
    slow_completion_seconds: int = Field(
        default=24 * 3600,
        description="Average completion time above which an efficiency warning is raised",
        ge=1,
    )
    active_process_warning: int = Field(
        default=20,
        description="Number of active processes above which a workload warning is raised",
        ge=1,
    )

    # Refresh configuration
    timeline_refresh_seconds: float = Field(
        default=30.0,
        description="Polling interval for timeline and analysis views",
        gt=0,
    )
    duration_tick_seconds: float = Field(
        default=1.0,
        description="Tick interval for live duration displays",
        gt=0,
    )

    # Observability configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    log_json: bool = Field(
        default=True,
        description="Render logs as JSON (False for console output in development)",
    )

    @field_validator("initial_status")
    @classmethod
    def validate_initial_status(cls, v: TrackingStatus) -> TrackingStatus:
        """A record cannot be opened in a status that closes the process."""
        if is_terminal(v):
            raise ValueError(f"initial_status cannot be terminal: {v.value}")
        return v

    @classmethod
    def from_dict(cls, config: dict[str, Any]) -> "TrackerSettings":
        """Create settings from a dictionary.

        Args:
            config: Dictionary with configuration values.

        Returns:
            TrackerSettings instance.
        """
        return cls(**config)
