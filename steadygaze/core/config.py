"""
Configuration management for SteadyGaze.

All thresholds, durations and layouts live here with sensible defaults.
Uses dataclasses for type safety and validation.
"""

from dataclasses import dataclass, field
from typing import Tuple
from pathlib import Path

from steadygaze.utils.logger import default_log_level


class ConfigurationError(ValueError):
    """Invalid configuration value, rejected at construction."""

    pass


# Rotations a camera sensor can report (degrees clockwise)
VALID_ROTATIONS = (0, 90, 180, 270)

AGGREGATION_METHODS = ("median", "trimmed_mean")


@dataclass
class FilterConfig:
    """Per-sample gaze filter configuration (normalized units)."""

    # Exponential smoothing weight applied to each new sample, range: (0.0, 1.0]
    smoothing_weight: float = 0.35

    # Maximum frame-to-frame displacement before the raw point is clamped
    max_jump: float = 0.2


@dataclass
class CalibrationConfig:
    """Calibration procedure configuration."""

    # Target positions (normalized 0-1 screen coordinates)
    # Order: top-left, top-right, bottom-right, bottom-left, center
    target_positions: Tuple[Tuple[float, float], ...] = (
        (0.1, 0.1),
        (0.9, 0.1),
        (0.9, 0.9),
        (0.1, 0.9),
        (0.5, 0.5),
    )

    # Ignore samples while the user's gaze lands on a new target (seconds)
    settle_seconds: float = 1.0

    # Collect samples for the current target (seconds)
    dwell_seconds: float = 4.0

    # Gap between targets while the indicator moves (seconds)
    travel_seconds: float = 1.0

    # Substituted for a zero gaze variance in the least-squares fit
    variance_epsilon: float = 1e-6

    # Robust reduction of one target's samples: "median" or "trimmed_mean"
    aggregation: str = "median"

    # Proportion cut from each end when aggregation == "trimmed_mean"
    trim_proportion: float = 0.1

    # Show the next target while travelling towards it
    show_next_during_travel: bool = True

    # Keep collecting for the current target while travelling
    collect_during_travel: bool = False


@dataclass
class SmootherConfig:
    """On-screen dot smoothing configuration."""

    # Number of recent screen points averaged
    history_size: int = 6


@dataclass
class SensorConfig:
    """Camera sensor orientation metadata."""

    rotation: int = 0  # Degrees clockwise: 0, 90, 180 or 270
    front_facing: bool = False  # Mirror horizontally for selfie cameras


@dataclass
class StorageConfig:
    """Data storage configuration."""

    # User data directory (where calibration data is stored)
    data_dir: Path = field(default_factory=lambda: Path.home() / ".steadygaze")

    # Calibration data filename
    calibration_filename: str = "calibration.json"

    # Log filename (optional, off by default)
    log_filename: str = "steadygaze.log"

    # Enable file logging (OFF by default)
    enable_file_logging: bool = False

    def __post_init__(self):
        self.data_dir = Path(self.data_dir)

    @property
    def calibration_path(self) -> Path:
        """Get full path to calibration data file."""
        return self.data_dir / self.calibration_filename

    @property
    def log_path(self) -> Path:
        """Get full path to log file."""
        return self.data_dir / self.log_filename


@dataclass
class AppConfig:
    """Main application configuration."""

    filter: FilterConfig = field(default_factory=FilterConfig)
    calibration: CalibrationConfig = field(default_factory=CalibrationConfig)
    smoother: SmootherConfig = field(default_factory=SmootherConfig)
    sensor: SensorConfig = field(default_factory=SensorConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)

    # Application version
    version: str = "0.1.0"

    # Log level from environment or default to WARNING
    log_level: str = field(default_factory=default_log_level)

    def __post_init__(self):
        """Validate configuration after initialization."""
        validate_filter_config(self.filter)
        validate_calibration_config(self.calibration)
        validate_smoother_config(self.smoother)
        validate_sensor_config(self.sensor)


def validate_filter_config(config: FilterConfig):
    """Raise ConfigurationError if the filter parameters are unusable."""
    if not 0.0 < config.smoothing_weight <= 1.0:
        raise ConfigurationError("smoothing_weight must be in (0.0, 1.0]")

    if config.max_jump <= 0.0:
        raise ConfigurationError("max_jump must be positive")


def validate_calibration_config(config: CalibrationConfig):
    """Raise ConfigurationError if the calibration procedure cannot run."""
    if len(config.target_positions) < 2:
        raise ConfigurationError("At least 2 calibration targets are required")

    for i, position in enumerate(config.target_positions):
        if len(position) != 2:
            raise ConfigurationError(f"Target {i} must be an (x, y) pair")
        x, y = position
        if not (0.0 <= x <= 1.0 and 0.0 <= y <= 1.0):
            raise ConfigurationError(f"Target {i} lies outside the unit square: {position}")

    for name in ("settle_seconds", "dwell_seconds", "travel_seconds"):
        if getattr(config, name) <= 0.0:
            raise ConfigurationError(f"{name} must be positive")

    if config.variance_epsilon <= 0.0:
        raise ConfigurationError("variance_epsilon must be positive")

    if config.aggregation not in AGGREGATION_METHODS:
        raise ConfigurationError(
            f"aggregation must be one of {AGGREGATION_METHODS}, got {config.aggregation!r}"
        )

    if not 0.0 <= config.trim_proportion < 0.5:
        raise ConfigurationError("trim_proportion must be in [0.0, 0.5)")


def validate_smoother_config(config: SmootherConfig):
    """Raise ConfigurationError if the history size is unusable."""
    if config.history_size < 1:
        raise ConfigurationError("history_size must be at least 1")


def validate_sensor_config(config: SensorConfig):
    """Raise ConfigurationError for an unsupported sensor rotation."""
    if config.rotation not in VALID_ROTATIONS:
        raise ConfigurationError(
            f"rotation must be one of {VALID_ROTATIONS}, got {config.rotation}"
        )


def get_default_config() -> AppConfig:
    """
    Get default application configuration.

    Returns:
        AppConfig instance with default values
    """
    return AppConfig()
