"""
Unit tests for bootstrap/config.py

Tests defaults, environment overrides, file loading and the global config.
"""

import json
import logging

import pytest

from hydrochain.bootstrap import config as config_module
from hydrochain.bootstrap.config import (
    DesignConfig,
    HydroChainConfig,
    LoggingConfig,
    ReviewConfig,
    get_config,
    load_config,
)


@pytest.fixture(autouse=True)
def clean_config(monkeypatch, tmp_path):
    """Isolate from the global config, the working directory and $HOME."""
    monkeypatch.setattr(config_module, "_config", None)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    for name in ("HYDROCHAIN_ENVIRONMENT", "HYDROCHAIN_DEBUG", "HYDROCHAIN_LOG_LEVEL",
                 "HYDROCHAIN_JSON_LOGS", "HYDROCHAIN_JUMP_LENGTH_COEFFICIENT",
                 "HYDROCHAIN_MAX_VELOCITY", "HYDROCHAIN_TAILWATER_DEPTH"):
        monkeypatch.delenv(name, raising=False)


class TestDefaults:
    """Defaults mirror the engine constants."""

    def test_design_defaults(self):
        design = DesignConfig()

        assert design.jump_length_coefficient == 6.9
        assert design.basin_length_safety_factor == 1.1
        assert design.block_clearance_ratio == 0.5
        assert design.end_sill_height_ratio == 0.6
        assert design.min_floor_thickness == 0.25
        assert design.default_tailwater_depth == 0.0

    def test_review_defaults(self):
        review = ReviewConfig()

        assert review.max_velocity_concrete == 10.0
        assert review.max_velocity_rock == 4.5
        assert review.chute_basin_drop == 3.0
        assert review.assumed_depth_ratio == 0.5

    def test_root_defaults(self):
        config = HydroChainConfig()

        assert config.environment == "development"
        assert config.debug is False
        assert config.logging.level == "INFO"


class TestFromEnv:
    """Test environment overrides."""

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("HYDROCHAIN_ENVIRONMENT", "production")
        monkeypatch.setenv("HYDROCHAIN_DEBUG", "true")
        monkeypatch.setenv("HYDROCHAIN_JUMP_LENGTH_COEFFICIENT", "6.1")
        monkeypatch.setenv("HYDROCHAIN_MAX_VELOCITY", "8")
        monkeypatch.setenv("HYDROCHAIN_TAILWATER_DEPTH", "0.4")

        config = HydroChainConfig.from_env()

        assert config.environment == "production"
        assert config.debug is True
        assert config.design.jump_length_coefficient == 6.1
        assert config.design.default_tailwater_depth == 0.4
        assert config.review.max_velocity_concrete == 8.0

    def test_logging_env(self, monkeypatch):
        monkeypatch.setenv("HYDROCHAIN_LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("HYDROCHAIN_JSON_LOGS", "TRUE")

        logging_config = LoggingConfig.from_env()

        assert logging_config.level == "DEBUG"
        assert logging_config.json_logs is True

    def test_bad_number_raises(self, monkeypatch):
        monkeypatch.setenv("HYDROCHAIN_MAX_VELOCITY", "fast")
        with pytest.raises(ValueError):
            ReviewConfig.from_env()


class TestFromFile:
    """Test JSON file loading."""

    def test_file_values_override(self, tmp_path):
        path = tmp_path / "custom.json"
        path.write_text(json.dumps({
            "environment": "staging",
            "design": {"basin_length_safety_factor": 1.2},
            "review": {"min_freeboard": 0.2},
            "logging": {"level": "WARNING"},
            "settings": {"units": "SI"},
        }))

        config = HydroChainConfig.from_file(str(path))

        assert config.environment == "staging"
        assert config.design.basin_length_safety_factor == 1.2
        assert config.design.jump_length_coefficient == 6.9
        assert config.review.min_freeboard == 0.2
        assert config.logging.level == "WARNING"
        assert config.settings == {"units": "SI"}

    def test_unknown_key_is_ignored(self, tmp_path, caplog):
        path = tmp_path / "custom.json"
        path.write_text(json.dumps({"design": {"colour": "blue"}}))

        with caplog.at_level(logging.WARNING, logger="bootstrap.config"):
            config = HydroChainConfig.from_file(str(path))

        assert not hasattr(config.design, "colour")
        assert "design.colour" in caplog.text

    def test_missing_file_falls_back(self, tmp_path, caplog):
        with caplog.at_level(logging.WARNING, logger="bootstrap.config"):
            config = HydroChainConfig.from_file(str(tmp_path / "absent.json"))

        assert config.design == DesignConfig()
        assert "not found" in caplog.text

    def test_to_dict(self):
        data = HydroChainConfig().to_dict()

        assert data["version"] == "1.0.0"
        assert data["design"]["jump_length_coefficient"] == 6.9
        assert data["review"]["max_velocity_concrete"] == 10.0
        assert set(data["logging"]) == {"level", "log_file", "json_logs"}


class TestLoadConfig:
    """Test load_config() / get_config()."""

    def test_explicit_path(self, tmp_path):
        path = tmp_path / "explicit.json"
        path.write_text(json.dumps({"environment": "explicit"}))

        config = load_config(str(path))

        assert config.environment == "explicit"
        assert get_config() is config

    def test_working_directory_file(self, tmp_path):
        (tmp_path / "hydrochain.json").write_text(json.dumps({"environment": "local"}))
        assert load_config().environment == "local"

    def test_home_file(self, tmp_path):
        home_config = tmp_path / "home" / ".hydrochain" / "config.json"
        home_config.parent.mkdir(parents=True)
        home_config.write_text(json.dumps({"environment": "home"}))

        assert load_config().environment == "home"

    def test_environment_fallback(self, monkeypatch):
        monkeypatch.setenv("HYDROCHAIN_ENVIRONMENT", "ci")
        assert get_config().environment == "ci"
