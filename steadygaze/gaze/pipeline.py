"""
Runtime tracking chain used once calibration is done.

raw point -> GazeFilter -> mapping -> screen scaling -> DotSmoother -> screen point
"""

from typing import Optional

from steadygaze.core.config import AppConfig
from steadygaze.gaze.filter import GazeFilter
from steadygaze.gaze.mapping import MappingParameters
from steadygaze.gaze.smoother import DotSmoother
from steadygaze.gaze.types import NormalizedPoint, ScreenPoint, ScreenSize
from steadygaze.utils.logger import get_logger

logger = get_logger(__name__)


class TrackingPipeline:
    """Compose filter, mapping and dot smoother into one per-sample step."""

    def __init__(
        self,
        parameters: MappingParameters,
        screen_size: ScreenSize,
        gaze_filter: Optional[GazeFilter] = None,
        smoother: Optional[DotSmoother] = None,
    ):
        """
        Args:
            parameters: Learned calibration mapping
            screen_size: Screen dimensions
            gaze_filter: Filter to share with calibration (new one if omitted)
            smoother: Dot smoother (new one if omitted)
        """
        self._parameters = parameters
        self._screen_size = screen_size
        self._filter = gaze_filter or GazeFilter()
        self._smoother = smoother or DotSmoother(screen_size)
        self._last_point: Optional[ScreenPoint] = None

    @classmethod
    def from_config(
        cls, parameters: MappingParameters, screen_size: ScreenSize, config: AppConfig
    ) -> "TrackingPipeline":
        return cls(
            parameters,
            screen_size,
            gaze_filter=GazeFilter(config.filter),
            smoother=DotSmoother(screen_size, config.smoother),
        )

    def process(self, raw: NormalizedPoint) -> ScreenPoint:
        """
        Turn one raw sample into a stable screen point.

        Args:
            raw: Raw normalized gaze point

        Returns:
            Smoothed screen point within the screen bounds
        """
        filtered = self._filter.filter(raw)
        mapped = self._parameters.apply(filtered)
        self._last_point = self._smoother.smooth(mapped.to_screen(self._screen_size))
        return self._last_point

    def set_parameters(self, parameters: MappingParameters):
        """Replace the mapping (after recalibration) and clear smoothing history."""
        self._parameters = parameters
        self.reset()
        logger.info("Tracking mapping replaced")

    def update_screen_size(self, screen_size: ScreenSize):
        self._screen_size = screen_size
        self._smoother.update_screen_size(screen_size)

    def reset(self):
        """Reset filter and dot history."""
        self._filter.reset()
        self._smoother.reset()
        self._last_point = None

    @property
    def parameters(self) -> MappingParameters:
        return self._parameters

    @property
    def last_point(self) -> Optional[ScreenPoint]:
        """Most recent output, None before the first sample."""
        return self._last_point
