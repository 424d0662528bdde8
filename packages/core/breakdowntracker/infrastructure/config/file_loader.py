"""Configuration file loader for YAML and JSON files."""

import json
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError as PydanticValidationError

from breakdowntracker.infrastructure.config.settings import TrackerSettings


class ConfigurationError(Exception):
    """Raised when configuration loading or validation fails."""

    def __init__(self, message: str, field: str | None = None) -> None:
        """Initialize ConfigurationError.

        Args:
            message: Human-readable error message.
            field: Optional field name that failed validation.
        """
        self.message = message
        self.field = field
        super().__init__(self.message)

    def __str__(self) -> str:
        """Return error message with field name if available."""
        if self.field:
            return f"Configuration error in field '{self.field}': {self.message}"
        return self.message


class ConfigurationFileLoader:
    """Loads tracker settings from YAML or JSON files.

    The file holds a top-level ``settings`` mapping whose keys are
    TrackerSettings field names:

        settings:
          enforce_allowed_transitions: true
          bottleneck_threshold_percent: 25
    """

    def __init__(self, config_file_path: str | Path | None = None) -> None:
        """Initialize ConfigurationFileLoader.

        Args:
            config_file_path: Path to configuration file. If None, attempts to
                            load from BREAKDOWNTRACKER_CONFIG_FILE environment variable.

        Raises:
            ConfigurationError: If no path is available or the file does not exist.
        """
        if config_file_path is None:
            config_file_path = os.getenv("BREAKDOWNTRACKER_CONFIG_FILE")
            if not config_file_path:
                raise ConfigurationError(
                    "Configuration file path not provided and BREAKDOWNTRACKER_CONFIG_FILE "
                    "environment variable is not set"
                )

        self._config_path = Path(config_file_path)
        if not self._config_path.exists():
            raise ConfigurationError(f"Configuration file not found: {self._config_path}")

    @property
    def path(self) -> Path:
        return self._config_path

    def load(self) -> dict[str, Any]:
        """Load raw configuration from file.

        Automatically detects file format (YAML or JSON) based on file extension.

        Raises:
            ConfigurationError: If file format is invalid or file cannot be parsed.
        """
        suffix = self._config_path.suffix.lower()

        if suffix in (".yaml", ".yml"):
            return self._load_yaml()
        elif suffix == ".json":
            return self._load_json()
        else:
            raise ConfigurationError(
                f"Unsupported configuration file format: {suffix}. "
                "Supported formats: .yaml, .yml, .json"
            )

    def _load_yaml(self) -> dict[str, Any]:
        try:
            with self._config_path.open("r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
                if data is None:
                    return {}
                if not isinstance(data, dict):
                    raise ConfigurationError("YAML file must contain a dictionary/mapping")
                return data
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML format: {e}") from e
        except OSError as e:
            raise ConfigurationError(f"Failed to read configuration file: {e}") from e

    def _load_json(self) -> dict[str, Any]:
        try:
            with self._config_path.open("r", encoding="utf-8") as f:
                data = json.load(f)
                if not isinstance(data, dict):
                    raise ConfigurationError("JSON file must contain an object")
                return data
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Invalid JSON format: {e}") from e
        except OSError as e:
            raise ConfigurationError(f"Failed to read configuration file: {e}") from e

    def parse_settings(self, config: dict[str, Any]) -> dict[str, Any]:
        """Extract and check the ``settings`` mapping.

        Raises:
            ConfigurationError: If ``settings`` is not a mapping or names an
                unknown setting.
        """
        settings_config = config.get("settings", {})
        if settings_config is None:
            return {}
        if not isinstance(settings_config, dict):
            raise ConfigurationError(
                "Configuration 'settings' must be a mapping", field="settings"
            )

        unknown = sorted(set(settings_config) - set(TrackerSettings.model_fields))
        if unknown:
            raise ConfigurationError(
                f"Unknown settings: {', '.join(unknown)}",
                field=f"settings.{unknown[0]}",
            )
        return settings_config

    def load_settings(self) -> TrackerSettings:
        """Load the file and build TrackerSettings from it.

        Values from the file take precedence over environment variables.

        Raises:
            ConfigurationError: If the file is invalid or a value fails validation.
        """
        overrides = self.parse_settings(self.load())
        try:
            return TrackerSettings.from_dict(overrides)
        except PydanticValidationError as e:
            first = e.errors()[0]
            field = ".".join(str(part) for part in first.get("loc", ()))
            raise ConfigurationError(
                f"Invalid setting value: {first.get('msg')}",
                field=f"settings.{field}" if field else "settings",
            ) from e
