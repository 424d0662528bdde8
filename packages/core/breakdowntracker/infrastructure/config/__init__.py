"""Configuration infrastructure module."""

from breakdowntracker.infrastructure.config.file_loader import (
    ConfigurationError,
    ConfigurationFileLoader,
)
from breakdowntracker.infrastructure.config.settings import TrackerSettings

__all__ = [
    "TrackerSettings",
    "ConfigurationFileLoader",
    "ConfigurationError",
]
