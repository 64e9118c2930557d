"""
Image-space to orientation-independent normalized coordinates.

Camera sensors report landmarks in the sensor's own frame; this rotates
the axes into the upright frame and mirrors front-facing cameras so the
filter always sees the same canonical space.
"""

from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

import numpy as np

from steadygaze.core.config import SensorConfig, validate_sensor_config
from steadygaze.gaze.types import NormalizedPoint

# (left_eye, right_eye) image-space landmark positions for one face
EyePair = Tuple[Optional[Tuple[float, float]], Optional[Tuple[float, float]]]


@dataclass(frozen=True)
class ImageSize:
    """Source image dimensions in pixels, as delivered by the sensor."""

    width: float
    height: float


def eye_midpoint(faces: Iterable[EyePair]) -> Optional[Tuple[float, float]]:
    """
    Average the left/right eye midpoint over all usable faces.

    Faces missing either eye are skipped.

    Returns:
        (x, y) in image space, or None if no face had both eyes
    """
    midpoints = [
        ((left[0] + right[0]) / 2.0, (left[1] + right[1]) / 2.0)
        for left, right in faces
        if left is not None and right is not None
    ]
    if not midpoints:
        return None

    mean = np.mean(np.array(midpoints, dtype=np.float64), axis=0)
    return (float(mean[0]), float(mean[1]))


class OrientationNormalizer:
    """Map image-space points into the canonical normalized space."""

    def __init__(self, sensor: Optional[SensorConfig] = None):
        """
        Args:
            sensor: Sensor rotation and lens facing (upright rear camera if omitted)

        Raises:
            ConfigurationError: If the rotation is unsupported
        """
        self._sensor = sensor or SensorConfig()
        validate_sensor_config(self._sensor)

    def normalize(self, x: float, y: float, image: ImageSize) -> NormalizedPoint:
        """
        Normalize one image-space point.

        Args:
            x: Horizontal image coordinate (pixels)
            y: Vertical image coordinate (pixels)
            image: Image dimensions as delivered (before rotation)

        Returns:
            Point in [0, 1] x [0, 1]
        """
        width, height = image.width, image.height
        target_w, target_h = width, height
        rotation = self._sensor.rotation

        if rotation == 90:
            x, y = y, width - x
            target_w, target_h = height, width
        elif rotation == 180:
            x, y = width - x, height - y
        elif rotation == 270:
            x, y = height - y, x
            target_w, target_h = height, width

        if self._sensor.front_facing:
            x = target_w - x

        return NormalizedPoint(x=x / target_w, y=y / target_h).clamped()

    @property
    def sensor(self) -> SensorConfig:
        return self._sensor
