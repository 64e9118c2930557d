"""
Per-axis affine mapping from raw gaze space to screen-normalized space.

Learned once per calibration by ordinary least squares of the target
position as a function of the aggregated gaze, independently per axis:

    mapped = slope * raw + intercept
"""

import numpy as np
from dataclasses import dataclass, asdict
from typing import Any, Dict, Sequence, Tuple

from steadygaze.gaze.types import NormalizedPoint
from steadygaze.utils.logger import get_logger

logger = get_logger(__name__)

# Variances at or below this are treated as zero
_ZERO_VARIANCE = 1e-12


@dataclass(frozen=True)
class AxisTransform:
    """Affine transform for one axis."""

    slope: float
    intercept: float

    def __call__(self, value: float) -> float:
        return self.slope * value + self.intercept


@dataclass(frozen=True)
class MappingParameters:
    """
    Learned calibration mapping, one affine transform per axis.

    Immutable; recalibration replaces it wholesale.
    """

    x: AxisTransform
    y: AxisTransform

    @classmethod
    def identity(cls) -> "MappingParameters":
        return cls(x=AxisTransform(1.0, 0.0), y=AxisTransform(1.0, 0.0))

    def apply(self, raw: NormalizedPoint) -> NormalizedPoint:
        """
        Map a raw point and clamp it on-screen.

        Args:
            raw: Filtered raw gaze point

        Returns:
            Mapped point within [0, 1] x [0, 1]
        """
        return NormalizedPoint(x=self.x(raw.x), y=self.y(raw.y)).clamped()

    def is_finite(self) -> bool:
        values = (self.x.slope, self.x.intercept, self.y.slope, self.y.intercept)
        return bool(np.all(np.isfinite(values)))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {"x": asdict(self.x), "y": asdict(self.y)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MappingParameters":
        """Create from dictionary."""
        return cls(
            x=AxisTransform(float(data["x"]["slope"]), float(data["x"]["intercept"])),
            y=AxisTransform(float(data["y"]["slope"]), float(data["y"]["intercept"])),
        )


class AffineMappingSolver:
    """
    Least-squares solver for the per-axis gaze-to-screen mapping.

    A stuck detector (all gaze values equal on an axis) does not fail the
    fit: the zero variance is replaced by a small epsilon and the slope
    collapses towards zero.
    """

    def __init__(self, variance_epsilon: float = 1e-6):
        """
        Args:
            variance_epsilon: Denominator used when the gaze variance is zero
        """
        if variance_epsilon <= 0:
            raise ValueError("variance_epsilon must be positive")
        self._epsilon = variance_epsilon

    def solve(
        self, pairs: Sequence[Tuple[NormalizedPoint, NormalizedPoint]]
    ) -> MappingParameters:
        """
        Fit the mapping from (aggregated_gaze, target) pairs.

        Args:
            pairs: One pair per calibration target, in target order

        Returns:
            MappingParameters

        Raises:
            ValueError: If fewer than 2 pairs are given
        """
        if len(pairs) < 2:
            raise ValueError(f"Need at least 2 calibration pairs, got {len(pairs)}")

        gaze = np.array([[g.x, g.y] for g, _ in pairs], dtype=np.float64)  # (N, 2)
        target = np.array([[t.x, t.y] for _, t in pairs], dtype=np.float64)  # (N, 2)

        x_axis = self._fit_axis(gaze[:, 0], target[:, 0], "x")
        y_axis = self._fit_axis(gaze[:, 1], target[:, 1], "y")

        params = MappingParameters(x=x_axis, y=y_axis)

        logger.info(
            f"Mapping solved from {len(pairs)} pairs: "
            f"x={x_axis.slope:.3f}*g+{x_axis.intercept:.3f}, "
            f"y={y_axis.slope:.3f}*g+{y_axis.intercept:.3f}"
        )
        return params

    def _fit_axis(self, gaze: np.ndarray, target: np.ndarray, axis: str) -> AxisTransform:
        gaze_mean = float(np.mean(gaze))
        target_mean = float(np.mean(target))

        gaze_dev = gaze - gaze_mean
        variance = float(np.sum(gaze_dev**2))
        covariance = float(np.sum(gaze_dev * (target - target_mean)))

        if variance <= _ZERO_VARIANCE:
            logger.warning(f"Degenerate gaze variance on {axis} axis, using epsilon")
            variance = self._epsilon

        slope = covariance / variance
        intercept = target_mean - slope * gaze_mean

        return AxisTransform(slope=slope, intercept=intercept)

    @staticmethod
    def apply(params: MappingParameters, raw: NormalizedPoint) -> NormalizedPoint:
        """Map a raw point with params, clamped to the unit square."""
        return params.apply(raw)
