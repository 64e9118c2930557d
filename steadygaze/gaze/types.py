"""
Value types shared by the filtering, calibration and tracking stages.
"""

from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class NormalizedPoint:
    """
    Position relative to an image or screen extent.

    Nominally in [0, 1] x [0, 1]; mapped values may fall outside before clamping.
    """

    x: float
    y: float

    def to_array(self) -> np.ndarray:
        """Convert to numpy array."""
        return np.array([self.x, self.y], dtype=np.float64)

    @classmethod
    def from_array(cls, values) -> "NormalizedPoint":
        return cls(x=float(values[0]), y=float(values[1]))

    def clamped(self) -> "NormalizedPoint":
        """Return a copy clamped to the unit square."""
        return NormalizedPoint(
            x=float(np.clip(self.x, 0.0, 1.0)),
            y=float(np.clip(self.y, 0.0, 1.0)),
        )

    def to_screen(self, size: "ScreenSize") -> "ScreenPoint":
        """Scale to screen units."""
        return ScreenPoint(x=self.x * size.width, y=self.y * size.height)


@dataclass(frozen=True)
class ScreenPoint:
    """Position in logical screen pixels."""

    x: float
    y: float

    def to_array(self) -> np.ndarray:
        return np.array([self.x, self.y], dtype=np.float64)


@dataclass(frozen=True)
class ScreenSize:
    """Screen or viewport dimensions in logical pixels."""

    width: float
    height: float

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Invalid screen dimensions: {self.width}x{self.height}")
