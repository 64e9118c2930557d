"""
Tests for orientation normalization and eye landmark fusion.
"""

import pytest

from steadygaze.core.config import ConfigurationError, SensorConfig
from steadygaze.gaze.normalizer import ImageSize, OrientationNormalizer, eye_midpoint

IMAGE = ImageSize(640, 480)


def normalize(rotation, front_facing, x, y):
    normalizer = OrientationNormalizer(SensorConfig(rotation=rotation, front_facing=front_facing))
    point = normalizer.normalize(x, y, IMAGE)
    return (point.x, point.y)


class TestOrientationNormalizer:
    """Tests for OrientationNormalizer."""

    def test_upright_rear_camera(self):
        """Test that no rotation just divides by the image size."""
        assert normalize(0, False, 320, 240) == pytest.approx((0.5, 0.5))
        assert normalize(0, False, 64, 48) == pytest.approx((0.1, 0.1))

    def test_front_camera_mirrors_horizontally(self):
        """Test selfie mirroring."""
        assert normalize(0, True, 64, 48) == pytest.approx((0.9, 0.1))

    def test_rotation_90(self):
        """Test that 90 degrees swaps axes and the extent."""
        assert normalize(90, False, 64, 48) == pytest.approx((0.1, 0.9))

    def test_rotation_180(self):
        """Test that 180 degrees flips both axes."""
        assert normalize(180, False, 64, 48) == pytest.approx((0.9, 0.9))

    def test_rotation_270(self):
        """Test that 270 degrees swaps axes the other way."""
        assert normalize(270, False, 64, 48) == pytest.approx((0.9, 0.1))

    def test_rotation_90_front_facing(self):
        """Test that mirroring applies after rotation, on the rotated width."""
        assert normalize(90, True, 64, 48) == pytest.approx((0.9, 0.9))

    def test_clamped_to_unit_square(self):
        """Test that landmarks outside the frame are clamped."""
        assert normalize(0, False, -10, 1000) == pytest.approx((0.0, 1.0))

    def test_default_sensor(self):
        """Test that omitting the sensor means upright rear camera."""
        point = OrientationNormalizer().normalize(160, 120, IMAGE)
        assert (point.x, point.y) == pytest.approx((0.25, 0.25))

    def test_invalid_rotation(self):
        """Test that unsupported rotations are rejected."""
        with pytest.raises(ConfigurationError):
            OrientationNormalizer(SensorConfig(rotation=45))


class TestEyeMidpoint:
    """Tests for eye_midpoint."""

    def test_average_over_faces(self):
        """Test that each face contributes its eye midpoint."""
        faces = [
            ((100.0, 100.0), (200.0, 100.0)),
            ((300.0, 200.0), (400.0, 200.0)),
        ]

        assert eye_midpoint(faces) == pytest.approx((250.0, 150.0))

    def test_faces_missing_an_eye_skipped(self):
        """Test that incomplete faces are ignored."""
        faces = [
            (None, (5.0, 5.0)),
            ((100.0, 100.0), (200.0, 120.0)),
            ((1.0, 1.0), None),
        ]

        assert eye_midpoint(faces) == pytest.approx((150.0, 110.0))

    def test_no_usable_face(self):
        """Test that a frame without eyes yields nothing."""
        assert eye_midpoint([]) is None
        assert eye_midpoint([(None, None)]) is None
