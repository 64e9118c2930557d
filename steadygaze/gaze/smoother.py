"""
On-screen dot smoothing.

Bounded moving average over the last few screen points, clamped to the
screen, so the rendered cursor does not jitter.
"""

from collections import deque
from typing import Deque, Optional

import numpy as np

from steadygaze.core.config import SmootherConfig, validate_smoother_config
from steadygaze.gaze.types import ScreenPoint, ScreenSize
from steadygaze.utils.logger import get_logger

logger = get_logger(__name__)


class DotSmoother:
    """Moving average of recent screen points with screen-bounds clamping."""

    def __init__(self, screen_size: ScreenSize, config: Optional[SmootherConfig] = None):
        """
        Initialize smoother.

        Args:
            screen_size: Screen dimensions used for clamping
            config: Smoother configuration (defaults used if omitted)
        """
        self._config = config or SmootherConfig()
        validate_smoother_config(self._config)

        self._screen_size = screen_size
        self._history: Deque[ScreenPoint] = deque(maxlen=self._config.history_size)

        logger.debug(
            f"DotSmoother initialized: history={self._config.history_size}, "
            f"screen={screen_size.width}x{screen_size.height}"
        )

    def smooth(self, point: ScreenPoint) -> ScreenPoint:
        """
        Add a point and return the smoothed position.

        Args:
            point: New screen point

        Returns:
            Mean of the held history, clamped to [0, width] x [0, height]
        """
        # deque evicts the oldest entry beyond maxlen
        self._history.append(point)

        avg = np.mean([p.to_array() for p in self._history], axis=0)

        return ScreenPoint(
            x=float(np.clip(avg[0], 0.0, self._screen_size.width)),
            y=float(np.clip(avg[1], 0.0, self._screen_size.height)),
        )

    def update_screen_size(self, screen_size: ScreenSize):
        """
        Update screen dimensions.

        Args:
            screen_size: New screen dimensions
        """
        self._screen_size = screen_size
        self._history.clear()
        logger.info(f"Screen size updated: {screen_size.width}x{screen_size.height}")

    def reset(self):
        """Clear the history (e.g., after calibration)."""
        self._history.clear()
        logger.debug("DotSmoother reset")

    @property
    def history_length(self) -> int:
        return len(self._history)

    @property
    def screen_size(self) -> ScreenSize:
        return self._screen_size
