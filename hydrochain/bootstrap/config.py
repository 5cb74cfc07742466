"""
bootstrap/config.py - Application configuration

Provides configuration loading from files, environment variables, and defaults.
Defaults equal the constants in hydrochain.core.constants, so the engines
behave identically with or without a loaded configuration.
"""

from __future__ import annotations
from dataclasses import dataclass, field, fields
from typing import Any, Dict, Optional
from pathlib import Path
import os
import json
import logging

from hydrochain.core.constants import (
    JUMP_LENGTH_COEFFICIENT,
    BASIN_LENGTH_SAFETY_FACTOR,
    BLOCK_SIZE_RATIO,
    BLOCK_CLEARANCE_RATIO,
    BAFFLE_HEIGHT_RATIO,
    BAFFLE_DISTANCE_RATIO,
    END_SILL_HEIGHT_RATIO,
    DENTATE_TOOTH_RATIO,
    MIN_FLOOR_THICKNESS_M,
    FLOOR_THICKNESS_RATIO,
    DEFAULT_CHUTE_THICKNESS_M,
    MIN_PRACTICAL_BLOCK_HEIGHT_M,
    MIN_PRACTICAL_BASIN_LENGTH_M,
    HIGH_OUTLET_VELOCITY_M_S,
    MODEL_TEST_FROUDE,
    TAILWATER_SUFFICIENCY_RATIO,
    MAX_VELOCITIES_M_S,
    STEEP_CHANNEL_SLOPE,
    STEEP_SMOOTH_CHUTE_SLOPE,
    TRANSITION_BASIN_DROP_M,
    CHUTE_BASIN_DROP_M,
    MIN_FREEBOARD_M,
    MAX_TRANSITION_WIDTH_RATIO,
    TRANSITION_LENGTH_PER_WIDTH_CHANGE,
    TRANSITION_MIN_WIDTH_CHANGE_M,
    ELEVATION_GAP_WARNING_M,
    ELEVATION_GAP_ERROR_M,
)

logger = logging.getLogger("bootstrap.config")


def _env_float(name: str, default: float) -> float:
    return float(os.getenv(name, str(default)))


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    log_file: Optional[str] = None
    json_logs: bool = False

    @classmethod
    def from_env(cls) -> "LoggingConfig":
        return cls(
            level=os.getenv("HYDROCHAIN_LOG_LEVEL", "INFO"),
            format=os.getenv("HYDROCHAIN_LOG_FORMAT", "%(asctime)s - %(name)s - %(levelname)s - %(message)s"),
            log_file=os.getenv("HYDROCHAIN_LOG_FILE"),
            json_logs=os.getenv("HYDROCHAIN_JSON_LOGS", "false").lower() == "true",
        )


@dataclass
class DesignConfig:
    """Stilling basin design coefficients (USBR EM-25)."""

    # Jump length
    jump_length_coefficient: float = JUMP_LENGTH_COEFFICIENT
    basin_length_safety_factor: float = BASIN_LENGTH_SAFETY_FACTOR

    # Block and sill proportions, relative to d1 (or d2 where noted)
    block_size_ratio: float = BLOCK_SIZE_RATIO
    block_clearance_ratio: float = BLOCK_CLEARANCE_RATIO
    baffle_height_ratio: float = BAFFLE_HEIGHT_RATIO
    baffle_distance_ratio: float = BAFFLE_DISTANCE_RATIO  # x d2
    end_sill_height_ratio: float = END_SILL_HEIGHT_RATIO
    dentate_tooth_ratio: float = DENTATE_TOOTH_RATIO  # x d2

    # Floor
    min_floor_thickness: float = MIN_FLOOR_THICKNESS_M
    floor_thickness_ratio: float = FLOOR_THICKNESS_RATIO
    default_chute_thickness: float = DEFAULT_CHUTE_THICKNESS_M

    default_tailwater_depth: float = 0.0

    # Practical limits (advisory warnings)
    min_practical_block_height: float = MIN_PRACTICAL_BLOCK_HEIGHT_M
    min_practical_basin_length: float = MIN_PRACTICAL_BASIN_LENGTH_M
    high_outlet_velocity: float = HIGH_OUTLET_VELOCITY_M_S
    model_test_froude: float = MODEL_TEST_FROUDE
    tailwater_sufficiency_ratio: float = TAILWATER_SUFFICIENCY_RATIO  # x d2

    @classmethod
    def from_env(cls) -> "DesignConfig":
        return cls(
            jump_length_coefficient=_env_float("HYDROCHAIN_JUMP_LENGTH_COEFFICIENT", JUMP_LENGTH_COEFFICIENT),
            basin_length_safety_factor=_env_float("HYDROCHAIN_BASIN_SAFETY_FACTOR", BASIN_LENGTH_SAFETY_FACTOR),
            block_clearance_ratio=_env_float("HYDROCHAIN_BLOCK_CLEARANCE_RATIO", BLOCK_CLEARANCE_RATIO),
            end_sill_height_ratio=_env_float("HYDROCHAIN_END_SILL_RATIO", END_SILL_HEIGHT_RATIO),
            min_floor_thickness=_env_float("HYDROCHAIN_MIN_FLOOR_THICKNESS", MIN_FLOOR_THICKNESS_M),
            default_chute_thickness=_env_float("HYDROCHAIN_CHUTE_THICKNESS", DEFAULT_CHUTE_THICKNESS_M),
            default_tailwater_depth=_env_float("HYDROCHAIN_TAILWATER_DEPTH", 0.0),
            min_practical_block_height=_env_float("HYDROCHAIN_MIN_BLOCK_HEIGHT", MIN_PRACTICAL_BLOCK_HEIGHT_M),
            min_practical_basin_length=_env_float("HYDROCHAIN_MIN_BASIN_LENGTH", MIN_PRACTICAL_BASIN_LENGTH_M),
            high_outlet_velocity=_env_float("HYDROCHAIN_HIGH_OUTLET_VELOCITY", HIGH_OUTLET_VELOCITY_M_S),
            model_test_froude=_env_float("HYDROCHAIN_MODEL_TEST_FROUDE", MODEL_TEST_FROUDE),
        )


@dataclass
class ReviewConfig:
    """Design review thresholds."""

    max_velocity_concrete: float = MAX_VELOCITIES_M_S["concrete"]  # m/s, error
    max_velocity_rock: float = MAX_VELOCITIES_M_S["rock"]  # m/s, warning
    steep_channel_slope: float = STEEP_CHANNEL_SLOPE
    steep_smooth_chute_slope: float = STEEP_SMOOTH_CHUTE_SLOPE
    transition_basin_drop: float = TRANSITION_BASIN_DROP_M
    chute_basin_drop: float = CHUTE_BASIN_DROP_M
    min_freeboard: float = MIN_FREEBOARD_M
    max_transition_width_ratio: float = MAX_TRANSITION_WIDTH_RATIO
    transition_length_per_width_change: float = TRANSITION_LENGTH_PER_WIDTH_CHANGE
    transition_min_width_change: float = TRANSITION_MIN_WIDTH_CHANGE_M
    elevation_gap_warning: float = ELEVATION_GAP_WARNING_M
    elevation_gap_error: float = ELEVATION_GAP_ERROR_M

    # Water depth assumed for velocity estimates, as a fraction of section depth
    assumed_depth_ratio: float = 0.5

    @classmethod
    def from_env(cls) -> "ReviewConfig":
        return cls(
            max_velocity_concrete=_env_float("HYDROCHAIN_MAX_VELOCITY", MAX_VELOCITIES_M_S["concrete"]),
            steep_channel_slope=_env_float("HYDROCHAIN_STEEP_CHANNEL_SLOPE", STEEP_CHANNEL_SLOPE),
            chute_basin_drop=_env_float("HYDROCHAIN_CHUTE_BASIN_DROP", CHUTE_BASIN_DROP_M),
            min_freeboard=_env_float("HYDROCHAIN_MIN_FREEBOARD", MIN_FREEBOARD_M),
        )


@dataclass
class HydroChainConfig:
    """Root configuration for hydrochain."""

    environment: str = "development"
    debug: bool = False
    version: str = "1.0.0"

    design: DesignConfig = field(default_factory=DesignConfig)
    review: ReviewConfig = field(default_factory=ReviewConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    # Additional settings
    settings: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_env(cls) -> "HydroChainConfig":
        """Create configuration from environment variables."""
        return cls(
            environment=os.getenv("HYDROCHAIN_ENVIRONMENT", "development"),
            debug=os.getenv("HYDROCHAIN_DEBUG", "false").lower() == "true",
            design=DesignConfig.from_env(),
            review=ReviewConfig.from_env(),
            logging=LoggingConfig.from_env(),
        )

    @classmethod
    def from_file(cls, filepath: str) -> "HydroChainConfig":
        """Load configuration from JSON file."""
        path = Path(filepath)
        if not path.exists():
            logger.warning(f"Config file not found: {filepath}, using defaults")
            return cls.from_env()

        with open(path) as f:
            data = json.load(f)

        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: Dict[str, Any]) -> "HydroChainConfig":
        """Create config from dictionary; file values override the environment."""
        config = cls.from_env()

        if "environment" in data:
            config.environment = data["environment"]
        if "debug" in data:
            config.debug = data["debug"]

        for section in ("design", "review", "logging"):
            target = getattr(config, section)
            for key, value in data.get(section, {}).items():
                if hasattr(target, key):
                    setattr(target, key, value)
                else:
                    logger.warning(f"Ignoring unknown config key: {section}.{key}")

        if "settings" in data:
            config.settings.update(data["settings"])

        return config

    def to_dict(self) -> Dict[str, Any]:
        """Serialize config to dictionary."""
        return {
            "environment": self.environment,
            "debug": self.debug,
            "version": self.version,
            "design": {f.name: getattr(self.design, f.name) for f in fields(self.design)},
            "review": {f.name: getattr(self.review, f.name) for f in fields(self.review)},
            "logging": {
                "level": self.logging.level,
                "log_file": self.logging.log_file,
                "json_logs": self.logging.json_logs,
            },
        }


# Global config instance
_config: Optional[HydroChainConfig] = None


def load_config(filepath: str = None) -> HydroChainConfig:
    """
    Load configuration from file or environment.

    Args:
        filepath: Optional path to JSON config file

    Returns:
        HydroChainConfig instance
    """
    global _config

    if filepath:
        _config = HydroChainConfig.from_file(filepath)
    else:
        # Try default locations
        default_paths = [
            "./hydrochain.json",
            os.path.expanduser("~/.hydrochain/config.json"),
        ]

        for path in default_paths:
            if Path(path).exists():
                logger.info(f"Loading config from: {path}")
                _config = HydroChainConfig.from_file(path)
                return _config

        # Fall back to environment
        _config = HydroChainConfig.from_env()

    logger.info(f"Configuration loaded: environment={_config.environment}")
    return _config


def get_config() -> HydroChainConfig:
    """Get current configuration, loading if needed."""
    global _config
    if _config is None:
        _config = load_config()
    return _config
