"""
Tests for the runtime tracking pipeline.
"""

import pytest

from steadygaze.core.config import AppConfig, FilterConfig, StorageConfig
from steadygaze.gaze.filter import GazeFilter
from steadygaze.gaze.mapping import AxisTransform, MappingParameters
from steadygaze.gaze.pipeline import TrackingPipeline
from steadygaze.gaze.types import NormalizedPoint, ScreenSize

SCREEN = ScreenSize(1920, 1080)


class TestTrackingPipeline:
    """Tests for TrackingPipeline."""

    @pytest.fixture
    def pipeline(self):
        return TrackingPipeline(MappingParameters.identity(), SCREEN)

    def test_identity_mapping_settles_on_scaled_point(self, pipeline):
        """Test that raw (0.3, 0.3) settles at 30% of the screen."""
        for _ in range(10):
            out = pipeline.process(NormalizedPoint(0.3, 0.3))

        assert out.x == pytest.approx(0.3 * 1920)
        assert out.y == pytest.approx(0.3 * 1080)
        assert pipeline.last_point == out

    def test_mapping_applied(self):
        """Test that the learned mapping is used before scaling."""
        params = MappingParameters(x=AxisTransform(2.0, -0.4), y=AxisTransform(2.0, -0.4))
        pipeline = TrackingPipeline(params, SCREEN)

        for _ in range(10):
            out = pipeline.process(NormalizedPoint(0.45, 0.45))

        assert out.x == pytest.approx(0.5 * 1920)
        assert out.y == pytest.approx(0.5 * 1080)

    def test_output_on_screen(self):
        """Test that extreme input never leaves the screen."""
        params = MappingParameters(x=AxisTransform(5.0, -2.0), y=AxisTransform(-5.0, 3.0))
        pipeline = TrackingPipeline(params, SCREEN)

        for raw in [NormalizedPoint(-3.0, 4.0), NormalizedPoint(4.0, -3.0), NormalizedPoint(0.5, 0.5)]:
            out = pipeline.process(raw)
            assert 0.0 <= out.x <= 1920
            assert 0.0 <= out.y <= 1080

    def test_single_spike_damped(self, pipeline):
        """Test that a one-frame teleport barely moves the cursor."""
        for _ in range(10):
            pipeline.process(NormalizedPoint(0.5, 0.5))

        out = pipeline.process(NormalizedPoint(1.0, 0.5))

        # Jump clamp (0.2 * 0.35) then averaged over 6 points
        assert out.x == pytest.approx(1920 * (0.5 + 0.35 * 0.2 / 6))

    def test_set_parameters_resets_history(self, pipeline):
        """Test that a new mapping starts from a clean history."""
        pipeline.process(NormalizedPoint(0.9, 0.9))
        params = MappingParameters(x=AxisTransform(0.5, 0.0), y=AxisTransform(0.5, 0.0))

        pipeline.set_parameters(params)
        out = pipeline.process(NormalizedPoint(0.2, 0.2))

        assert pipeline.parameters == params
        assert out.x == pytest.approx(0.1 * 1920)

    def test_shared_filter(self):
        """Test that a supplied filter keeps its state."""
        gaze_filter = GazeFilter()
        gaze_filter.filter(NormalizedPoint(0.5, 0.5))
        pipeline = TrackingPipeline(MappingParameters.identity(), SCREEN, gaze_filter=gaze_filter)

        out = pipeline.process(NormalizedPoint(0.6, 0.5))

        assert out.x == pytest.approx(1920 * (0.5 + 0.35 * 0.1))

    def test_update_screen_size(self, pipeline):
        """Test scaling to a new screen."""
        pipeline.update_screen_size(ScreenSize(800, 600))

        out = pipeline.process(NormalizedPoint(0.5, 0.5))

        assert out.x == pytest.approx(400.0)
        assert out.y == pytest.approx(300.0)

    def test_from_config(self, tmp_path):
        """Test construction from the application config."""
        config = AppConfig(
            filter=FilterConfig(smoothing_weight=1.0), storage=StorageConfig(data_dir=tmp_path)
        )
        pipeline = TrackingPipeline.from_config(MappingParameters.identity(), SCREEN, config)

        pipeline.process(NormalizedPoint(0.5, 0.5))
        out = pipeline.process(NormalizedPoint(0.6, 0.5))

        # Weight 1.0: no EMA lag, only the dot average
        assert out.x == pytest.approx(1920 * 0.55)
