"""Camera models: base contract, analytic pushbroom, adjusted camera."""

from linescan_adjust.camera.base import BaseCameraModel
from linescan_adjust.camera.linear_pushbroom import LinearPushbroomCamera
from linescan_adjust.camera.inverse import (
    InversionResult,
    SolverConfig,
    solve_point_to_pixel,
)
from linescan_adjust.camera.adjusted import AdjustedCameraModel

__all__ = [
    "BaseCameraModel",
    "LinearPushbroomCamera",
    "InversionResult",
    "SolverConfig",
    "solve_point_to_pixel",
    "AdjustedCameraModel",
]
