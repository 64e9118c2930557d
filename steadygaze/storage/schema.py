"""
Calibration record schema and validation.

Only numeric calibration parameters are stored: no images, no landmarks.
"""

from dataclasses import dataclass, asdict, field
from typing import List, Dict, Any, Optional
import math
from datetime import datetime

from steadygaze.gaze.calibration import CalibrationResult
from steadygaze.gaze.mapping import MappingParameters
from steadygaze.gaze.types import ScreenSize
from steadygaze.utils.logger import get_logger

logger = get_logger(__name__)

SCHEMA_VERSION = "1.0"


@dataclass
class CalibrationPoint:
    """
    Single calibration target and the gaze that represented it.

    All coordinates are normalized.
    """

    # Target position on screen
    target_x: float
    target_y: float

    # Aggregated raw gaze for this target
    gaze_x: float
    gaze_y: float

    # Number of samples aggregated for this point
    sample_count: int

    # Target position stood in for missing samples
    fallback: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CalibrationPoint":
        """
        Create from dictionary.

        Raises:
            ValueError: If a field is missing or not numeric
        """
        try:
            return cls(
                target_x=float(data["target_x"]),
                target_y=float(data["target_y"]),
                gaze_x=float(data["gaze_x"]),
                gaze_y=float(data["gaze_y"]),
                sample_count=int(data["sample_count"]),
                fallback=bool(data.get("fallback", False)),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ValueError(f"Malformed calibration point: {e}")

    def validate(self) -> bool:
        """
        Validate calibration point data.

        Returns:
            True if valid, raises ValueError if invalid
        """
        if not (0.0 <= self.target_x <= 1.0 and 0.0 <= self.target_y <= 1.0):
            raise ValueError("Target coordinates must be normalized")

        if not all(math.isfinite(v) for v in (self.gaze_x, self.gaze_y)):
            raise ValueError("Gaze values must be finite")

        if self.sample_count < 0:
            raise ValueError("Sample count must be non-negative")

        if self.sample_count == 0 and not self.fallback:
            raise ValueError("Point without samples must be marked as fallback")

        return True


@dataclass
class CalibrationRecord:
    """Persistable calibration: mapping parameters plus their provenance."""

    parameters: MappingParameters

    # Screen resolution at time of calibration
    screen_width: float = 0
    screen_height: float = 0

    points: List[CalibrationPoint] = field(default_factory=list)

    # Schema version for future compatibility
    version: str = SCHEMA_VERSION

    # Timestamp of calibration
    timestamp: str = ""

    def __post_init__(self):
        if not self.timestamp:
            self.timestamp = datetime.now().isoformat()

    @classmethod
    def from_result(cls, result: CalibrationResult, screen_size: ScreenSize) -> "CalibrationRecord":
        """Build a record from a finished calibration."""
        points = [
            CalibrationPoint(
                target_x=t.target.x,
                target_y=t.target.y,
                gaze_x=t.aggregated.x,
                gaze_y=t.aggregated.y,
                sample_count=t.sample_count,
                fallback=t.used_fallback,
            )
            for t in result.targets
        ]
        return cls(
            parameters=result.parameters,
            screen_width=screen_size.width,
            screen_height=screen_size.height,
            points=points,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "version": self.version,
            "timestamp": self.timestamp,
            "screen_width": self.screen_width,
            "screen_height": self.screen_height,
            "parameters": self.parameters.to_dict(),
            "points": [point.to_dict() for point in self.points],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CalibrationRecord":
        """
        Create from dictionary.

        Raises:
            ValueError: If required fields are missing or malformed
        """
        try:
            parameters = MappingParameters.from_dict(data["parameters"])
            points = [CalibrationPoint.from_dict(p) for p in data.get("points", [])]
            screen_width = float(data.get("screen_width", 0))
            screen_height = float(data.get("screen_height", 0))
        except (KeyError, TypeError, ValueError) as e:
            raise ValueError(f"Malformed calibration record: {e}")

        timestamp = data.get("timestamp", "")
        if not isinstance(timestamp, str):
            raise ValueError("Malformed calibration record: timestamp must be a string")

        return cls(
            parameters=parameters,
            screen_width=screen_width,
            screen_height=screen_height,
            points=points,
            version=str(data.get("version", SCHEMA_VERSION)),
            timestamp=timestamp,
        )

    def validate(self) -> bool:
        """
        Validate calibration record.

        Returns:
            True if valid, raises ValueError if invalid
        """
        if not self.version:
            raise ValueError("Missing version")

        if self.screen_width <= 0 or self.screen_height <= 0:
            raise ValueError("Invalid screen dimensions")

        if not self.parameters.is_finite():
            raise ValueError("Mapping parameters must be finite")

        if len(self.points) < 2:
            raise ValueError("Need at least 2 calibration points")

        for i, point in enumerate(self.points):
            try:
                point.validate()
            except ValueError as e:
                raise ValueError(f"Invalid calibration point {i}: {e}")

        try:
            datetime.fromisoformat(self.timestamp)
        except ValueError:
            raise ValueError("Invalid timestamp format")

        logger.debug(f"Calibration record validated: {len(self.points)} points")
        return True

    def is_compatible_with_screen(self, width: float, height: float) -> bool:
        """
        Check if the record was made on a screen of the same resolution.

        The mapping itself is normalized; a mismatch only means the user
        sat in front of a different display.
        """
        return self.screen_width == width and self.screen_height == height
