"""Analytic pushbroom camera with a linear trajectory.

This module implements a simple base camera model: a line sensor moving
at constant velocity with constant attitude. It is used to simulate
acquisitions and to exercise the adjustment layer.

Camera frame:
    X: along the slit (sample direction)
    Y: along track
    Z: boresight

A pixel ``(s, l)`` is acquired at ``t = start_time + l * line_period``
and looks along ``normalize([(s - principal_sample) / f, 0, 1])`` in the
camera frame. Projecting a point back amounts to finding the time at which
it lies in the scan plane (camera Y = 0), which is linear in time here.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

import numpy as np
from numpy.typing import ArrayLike, NDArray
from scipy.spatial.transform import Rotation

from linescan_adjust.camera.base import BaseCameraModel
from linescan_adjust.common.logging import get_logger
from linescan_adjust.common.transforms import (
    as_pixel,
    as_vector3,
    is_valid_rotation_matrix,
    normalize,
)
from linescan_adjust.exceptions import ValidationError

logger = get_logger(__name__)


class LinearPushbroomCamera(BaseCameraModel):
    """Pushbroom sensor on a straight, constant-velocity trajectory.
    
    Args:
        samples: Number of pixels along the slit.
        lines: Number of acquired lines.
        focal_length_px: Focal length in pixels.
        position: Sensor position at ``start_time``.
        velocity: Sensor velocity (world units per second).
        orientation: Camera-to-world rotation.
        line_period: Seconds per line.
        start_time: Acquisition time of line 0.
        principal_sample: Principal point along the slit; defaults to the
            slit center.
    """
    
    def __init__(
        self,
        samples: int,
        lines: int,
        focal_length_px: float,
        position: ArrayLike,
        velocity: ArrayLike,
        orientation: Rotation,
        line_period: float = 1e-3,
        start_time: float = 0.0,
        principal_sample: Optional[float] = None,
    ) -> None:
        if samples <= 0 or lines <= 0:
            raise ValidationError(f"Image size must be positive, got {samples}x{lines}")
        if focal_length_px <= 0:
            raise ValidationError(f"Focal length must be positive, got {focal_length_px}")
        if line_period <= 0:
            raise ValidationError(f"Line period must be positive, got {line_period}")
        
        self._samples = int(samples)
        self._lines = int(lines)
        self.focal_length_px = float(focal_length_px)
        self.principal_sample = (
            self._samples / 2.0 if principal_sample is None else float(principal_sample)
        )
        self.line_period = float(line_period)
        self.start_time = float(start_time)
        self.position = as_vector3(position, "position")
        self.velocity = as_vector3(velocity, "velocity")
        self.orientation = orientation
        
        logger.debug(
            f"Pushbroom camera {self._samples}x{self._lines}, "
            f"f={self.focal_length_px} px, line period={self.line_period} s"
        )
    
    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LinearPushbroomCamera":
        """Create from dictionary.
        
        The orientation is given either as ``orientation_matrix`` (3x3,
        camera-to-world) or ``orientation_euler_deg`` (extrinsic "xyz").
        """
        if "orientation_matrix" in data:
            R = np.asarray(data["orientation_matrix"], dtype=np.float64)
            if not is_valid_rotation_matrix(R):
                raise ValidationError("orientation_matrix is not a valid rotation matrix")
            orientation = Rotation.from_matrix(R)
        else:
            orientation = Rotation.from_euler(
                "xyz", data.get("orientation_euler_deg", [0.0, 0.0, 0.0]), degrees=True
            )
        
        return cls(
            samples=data["samples"],
            lines=data["lines"],
            focal_length_px=data["focal_length_px"],
            position=data["position"],
            velocity=data["velocity"],
            orientation=orientation,
            line_period=data.get("line_period", 1e-3),
            start_time=data.get("start_time", 0.0),
            principal_sample=data.get("principal_sample"),
        )
    
    def samples(self) -> int:
        return self._samples
    
    def lines(self) -> int:
        return self._lines
    
    def time_at(self, pixel: ArrayLike) -> float:
        return self.start_time + as_pixel(pixel)[1] * self.line_period
    
    def _center_at_time(self, t: float) -> NDArray[np.float64]:
        return self.position + self.velocity * (t - self.start_time)
    
    def camera_center(self, pixel: ArrayLike) -> NDArray[np.float64]:
        return self._center_at_time(self.time_at(pixel))
    
    def camera_pose(self, pixel: ArrayLike) -> Rotation:
        return self.orientation
    
    def pixel_to_vector(self, pixel: ArrayLike) -> NDArray[np.float64]:
        sample = as_pixel(pixel)[0]
        direction = np.array([
            (sample - self.principal_sample) / self.focal_length_px,
            0.0,
            1.0,
        ])
        return self.orientation.apply(normalize(direction))
    
    def point_to_pixel(self, point: ArrayLike) -> NDArray[np.float64]:
        """Project a world point to (sample, line).
        
        Raises:
            ValueError: If the velocity lies in the scan plane or the point
                is behind the sensor.
        """
        point = as_vector3(point, "point")
        
        # Camera Y of the point is a - b * (t - start_time)
        a = self.orientation.inv().apply(point - self.position)[1]
        b = self.orientation.inv().apply(self.velocity)[1]
        if abs(b) < 1e-12:
            raise ValidationError("Sensor velocity lies in the scan plane")
        
        t = self.start_time + a / b
        q = self.orientation.inv().apply(point - self._center_at_time(t))
        if q[2] <= 0:
            raise ValidationError(f"Point {point.tolist()} is behind the sensor")
        
        sample = self.focal_length_px * q[0] / q[2] + self.principal_sample
        line = (t - self.start_time) / self.line_period
        return np.array([sample, line], dtype=np.float64)
