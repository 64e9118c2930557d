"""
SteadyGaze - Stable cursor positioning from noisy gaze estimates.

Turns per-frame raw gaze/eye-landmark points into a steady on-screen
cursor through a guided calibration and a real-time filtering chain.

Pipeline:
- Orientation normalization (sensor rotation, front-camera mirroring)
- Jump clamp + exponential smoothing (GazeFilter)
- Per-user affine mapping learned by calibration (AffineMappingSolver)
- Bounded moving average on screen (DotSmoother)

Architecture:
- Explicit, owned state per component
- Timer-driven calibration advanced by an injected scheduler
- Single configuration value with named fields
- Numeric-only calibration persistence
"""

__version__ = "0.1.0"
__author__ = "SteadyGaze Team"
__license__ = "MIT"
