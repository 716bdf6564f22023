"""Linescan Adjust.

Time-varying position and pose adjustments for pushbroom (linescan)
camera models, with forward and inverse projection through the adjusted
geometry.
"""

__version__ = "0.1.0"

from linescan_adjust.equations import PolynomialEquation, RPNEquation
from linescan_adjust.camera import AdjustedCameraModel, BaseCameraModel

__all__ = [
    "__version__",
    "PolynomialEquation",
    "RPNEquation",
    "AdjustedCameraModel",
    "BaseCameraModel",
]
