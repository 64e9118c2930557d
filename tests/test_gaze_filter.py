"""
Tests for the per-sample gaze filter.
"""

import math

import pytest

from steadygaze.core.config import ConfigurationError, FilterConfig
from steadygaze.gaze.filter import GazeFilter
from steadygaze.gaze.types import NormalizedPoint


def distance(a: NormalizedPoint, b: NormalizedPoint) -> float:
    return math.hypot(a.x - b.x, a.y - b.y)


class TestGazeFilter:
    """Tests for GazeFilter."""

    @pytest.fixture
    def gaze_filter(self):
        return GazeFilter(FilterConfig(smoothing_weight=0.35, max_jump=0.2))

    def test_first_sample_adopted(self, gaze_filter):
        """Test that the first sample passes through unchanged."""
        assert gaze_filter.state is None

        out = gaze_filter.filter(NormalizedPoint(0.3, 0.6))

        assert out == NormalizedPoint(0.3, 0.6)
        assert gaze_filter.state == NormalizedPoint(0.3, 0.6)

    def test_exponential_smoothing(self, gaze_filter):
        """Test smoothing of a small movement."""
        gaze_filter.filter(NormalizedPoint(0.5, 0.5))

        out = gaze_filter.filter(NormalizedPoint(0.6, 0.4))

        assert out.x == pytest.approx(0.5 + 0.35 * 0.1)
        assert out.y == pytest.approx(0.5 - 0.35 * 0.1)

    def test_jump_clamp(self, gaze_filter):
        """Test that a 0.4 jump moves the output by weight * threshold."""
        gaze_filter.filter(NormalizedPoint(0.5, 0.5))

        out = gaze_filter.filter(NormalizedPoint(0.9, 0.5))

        assert distance(out, NormalizedPoint(0.5, 0.5)) <= 0.35 * 0.2 + 1e-12
        assert out.x == pytest.approx(0.5 + 0.35 * 0.2)
        assert out.y == pytest.approx(0.5)

    def test_jump_clamp_keeps_direction(self, gaze_filter):
        """Test that a diagonal jump is shortened along its own direction."""
        gaze_filter.filter(NormalizedPoint(0.2, 0.2))

        out = gaze_filter.filter(NormalizedPoint(0.8, 0.8))

        assert out.x == pytest.approx(out.y)
        assert distance(out, NormalizedPoint(0.2, 0.2)) == pytest.approx(0.35 * 0.2)

    def test_tracks_genuine_movement(self, gaze_filter):
        """Test that a sustained fast move is followed over several frames."""
        gaze_filter.filter(NormalizedPoint(0.1, 0.5))

        out = None
        for _ in range(60):
            out = gaze_filter.filter(NormalizedPoint(0.9, 0.5))

        assert out.x == pytest.approx(0.9, abs=1e-3)

    def test_reset(self, gaze_filter):
        """Test that reset makes the next sample pass through again."""
        gaze_filter.filter(NormalizedPoint(0.5, 0.5))
        gaze_filter.reset()

        assert gaze_filter.filter(NormalizedPoint(0.9, 0.9)) == NormalizedPoint(0.9, 0.9)

    @pytest.mark.parametrize(
        "config",
        [
            FilterConfig(smoothing_weight=0.0),
            FilterConfig(smoothing_weight=1.5),
            FilterConfig(max_jump=0.0),
        ],
    )
    def test_invalid_config(self, config):
        """Test that unusable parameters are rejected at construction."""
        with pytest.raises(ConfigurationError):
            GazeFilter(config)
