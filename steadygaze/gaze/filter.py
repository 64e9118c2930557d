"""
Per-sample gaze stabilization.

Rejects single-frame teleports with a jump clamp, then applies
exponential smoothing in normalized space.
"""

import numpy as np
from typing import Optional

from steadygaze.core.config import FilterConfig, validate_filter_config
from steadygaze.gaze.types import NormalizedPoint
from steadygaze.utils.logger import get_logger

logger = get_logger(__name__)


class GazeFilter:
    """
    Stabilize raw normalized gaze points.

    Techniques:
    1. Jump clamp - limit the frame-to-frame displacement to max_jump
    2. Exponential Moving Average (EMA) - smooth rapid fluctuations

    A genuine fast movement is still followed, just over several frames.
    """

    def __init__(self, config: Optional[FilterConfig] = None):
        """
        Initialize filter.

        Args:
            config: Filter configuration (defaults used if omitted)

        Raises:
            ConfigurationError: If the configuration is invalid
        """
        self._config = config or FilterConfig()
        validate_filter_config(self._config)

        # Last smoothed point, None before the first sample
        self._state: Optional[np.ndarray] = None

        logger.debug(
            f"GazeFilter initialized: "
            f"weight={self._config.smoothing_weight:.2f}, "
            f"max_jump={self._config.max_jump:.3f}"
        )

    def filter(self, raw: NormalizedPoint) -> NormalizedPoint:
        """
        Filter one raw point.

        Args:
            raw: Raw normalized point

        Returns:
            Smoothed normalized point

        Process:
        1. First sample is adopted as-is
        2. Clamp displacement from the previous point to max_jump
        3. Exponential moving average per axis
        """
        point = raw.to_array()

        if self._state is None:
            self._state = point
            return NormalizedPoint.from_array(point)

        delta = point - self._state
        distance = float(np.hypot(delta[0], delta[1]))

        # Pull the raw point back along the same direction
        if distance > self._config.max_jump:
            delta *= self._config.max_jump / distance
            logger.debug(f"Jump clamped: {distance:.3f} -> {self._config.max_jump:.3f}")

        self._state = self._state + self._config.smoothing_weight * delta

        return NormalizedPoint.from_array(self._state)

    def reset(self):
        """Forget the smoothed state (next sample is adopted as-is)."""
        self._state = None
        logger.debug("GazeFilter reset")

    @property
    def state(self) -> Optional[NormalizedPoint]:
        """Get current smoothed point."""
        if self._state is None:
            return None
        return NormalizedPoint.from_array(self._state)

    @property
    def config(self) -> FilterConfig:
        return self._config
