"""
Robust reduction of the samples collected for one calibration target.
"""

import numpy as np
from typing import Sequence
from scipy import stats  # For trimmed mean (robust averaging)

from steadygaze.gaze.types import NormalizedPoint


class SampleAggregator:
    """
    Reduce a list of raw points to one representative point.

    The default per-axis median ignores occasional failed-detection spikes
    during the dwell window; a trimmed mean is available as an alternative.
    """

    def __init__(self, method: str = "median", trim_proportion: float = 0.1):
        """
        Args:
            method: "median" or "trimmed_mean"
            trim_proportion: Proportion to trim from each end (0-0.5), trimmed mean only
        """
        if method not in ("median", "trimmed_mean"):
            raise ValueError(f"Unknown aggregation method: {method!r}")

        self._method = method
        self._trim_proportion = trim_proportion

    def aggregate(self, samples: Sequence[NormalizedPoint]) -> NormalizedPoint:
        """
        Compute the representative point of a non-empty sample set.

        Args:
            samples: Ordered raw points for one target

        Returns:
            Per-axis median (or trimmed mean)

        Raises:
            ValueError: If samples is empty
        """
        if len(samples) == 0:
            raise ValueError("Cannot aggregate an empty sample set")

        # Extract x and y components
        xs = np.array([s.x for s in samples], dtype=np.float64)
        ys = np.array([s.y for s in samples], dtype=np.float64)

        if self._method == "trimmed_mean":
            return NormalizedPoint(
                x=float(stats.trim_mean(xs, self._trim_proportion)),
                y=float(stats.trim_mean(ys, self._trim_proportion)),
            )

        # np.median averages the two middle values for even lengths
        return NormalizedPoint(x=float(np.median(xs)), y=float(np.median(ys)))

    @property
    def method(self) -> str:
        return self._method
