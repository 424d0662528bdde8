"""Tests for configuration file loader and settings."""

import json
from pathlib import Path

import pytest
import yaml

from breakdowntracker.domain.models.status import TrackingStatus
from breakdowntracker.infrastructure.config.file_loader import (
    ConfigurationError,
    ConfigurationFileLoader,
)
from breakdowntracker.infrastructure.config.settings import TrackerSettings


class TestTrackerSettings:
    """Tests for TrackerSettings."""

    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test default values match the documented configuration."""
        for name in TrackerSettings.model_fields:
            monkeypatch.delenv(f"BREAKDOWNTRACKER_{name.upper()}", raising=False)

        settings = TrackerSettings()

        assert settings.enforce_allowed_transitions is True
        assert settings.initial_status == TrackingStatus.AguardandoTecnico
        assert settings.bottleneck_threshold_percent == 30.0
        assert settings.bottleneck_limit == 3
        assert settings.slow_completion_seconds == 86400
        assert settings.active_process_warning == 20
        assert settings.timeline_refresh_seconds == 30.0
        assert settings.duration_tick_seconds == 1.0

    def test_env_prefix(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test environment variables override defaults."""
        monkeypatch.setenv("BREAKDOWNTRACKER_ENFORCE_ALLOWED_TRANSITIONS", "false")
        monkeypatch.setenv("BREAKDOWNTRACKER_BOTTLENECK_THRESHOLD_PERCENT", "25")

        settings = TrackerSettings()

        assert settings.enforce_allowed_transitions is False
        assert settings.bottleneck_threshold_percent == 25.0

    def test_from_dict_validates(self) -> None:
        """Test invalid values are rejected."""
        with pytest.raises(ValueError):
            TrackerSettings.from_dict({"bottleneck_limit": 0})


class TestConfigurationFileLoader:
    """Tests for ConfigurationFileLoader."""

    def test_init_with_env_var(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test initialization with environment variable."""
        config_file = tmp_path / "config.yaml"
        config_file.write_text("settings: {}")

        monkeypatch.setenv("BREAKDOWNTRACKER_CONFIG_FILE", str(config_file))
        loader = ConfigurationFileLoader()
        assert loader.path == config_file

    def test_init_no_path_no_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test initialization fails when no path provided and env var not set."""
        monkeypatch.delenv("BREAKDOWNTRACKER_CONFIG_FILE", raising=False)
        with pytest.raises(ConfigurationError, match="Configuration file path not provided"):
            ConfigurationFileLoader()

    def test_init_file_not_found(self, tmp_path: Path) -> None:
        """Test initialization fails when file does not exist."""
        with pytest.raises(ConfigurationError, match="Configuration file not found"):
            ConfigurationFileLoader(tmp_path / "nonexistent.yaml")

    def test_load_yaml_settings(self, tmp_path: Path) -> None:
        """Test YAML settings override defaults."""
        config_file = tmp_path / "tracker.yml"
        config_file.write_text(
            yaml.dump(
                {
                    "settings": {
                        "enforce_allowed_transitions": False,
                        "bottleneck_threshold_percent": 40,
                        "initial_status": "sem_previsao",
                    }
                }
            )
        )

        settings = ConfigurationFileLoader(config_file).load_settings()

        assert settings.enforce_allowed_transitions is False
        assert settings.bottleneck_threshold_percent == 40.0
        assert settings.initial_status == TrackingStatus.SemPrevisao

    def test_load_json_settings(self, tmp_path: Path) -> None:
        """Test JSON settings are loaded."""
        config_file = tmp_path / "tracker.json"
        config_file.write_text(json.dumps({"settings": {"bottleneck_limit": 5}}))

        settings = ConfigurationFileLoader(config_file).load_settings()

        assert settings.bottleneck_limit == 5

    def test_empty_yaml(self, tmp_path: Path) -> None:
        """Test an empty file yields default settings."""
        config_file = tmp_path / "tracker.yaml"
        config_file.write_text("")

        loader = ConfigurationFileLoader(config_file)
        assert loader.load() == {}
        assert loader.load_settings().bottleneck_limit == 3

    def test_unsupported_format(self, tmp_path: Path) -> None:
        """Test unsupported extensions are rejected."""
        config_file = tmp_path / "tracker.toml"
        config_file.write_text("")

        with pytest.raises(ConfigurationError, match="Unsupported configuration file format"):
            ConfigurationFileLoader(config_file).load()

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        """Test malformed YAML is reported."""
        config_file = tmp_path / "tracker.yaml"
        config_file.write_text("settings: [unclosed")

        with pytest.raises(ConfigurationError, match="Invalid YAML format"):
            ConfigurationFileLoader(config_file).load()

    def test_yaml_must_be_mapping(self, tmp_path: Path) -> None:
        config_file = tmp_path / "tracker.yaml"
        config_file.write_text("- a\n- b\n")

        with pytest.raises(ConfigurationError, match="dictionary"):
            ConfigurationFileLoader(config_file).load()

    def test_unknown_setting_rejected(self, tmp_path: Path) -> None:
        """Test typos in setting names are caught."""
        config_file = tmp_path / "tracker.json"
        config_file.write_text(json.dumps({"settings": {"botleneck_limit": 5}}))

        with pytest.raises(ConfigurationError) as exc_info:
            ConfigurationFileLoader(config_file).load_settings()
        assert exc_info.value.field == "settings.botleneck_limit"

    def test_invalid_setting_value(self, tmp_path: Path) -> None:
        """Test invalid values name the offending field."""
        config_file = tmp_path / "tracker.json"
        config_file.write_text(json.dumps({"settings": {"bottleneck_threshold_percent": 150}}))

        with pytest.raises(ConfigurationError) as exc_info:
            ConfigurationFileLoader(config_file).load_settings()
        assert exc_info.value.field == "settings.bottleneck_threshold_percent"
