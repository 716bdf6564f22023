"""Base (unadjusted) camera model contract.

The adjustment layer treats the raw sensor model as a black box that
answers the questions below. Pixels are ``(sample, line)`` pairs and the
line coordinate determines acquisition time.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

import numpy as np
from numpy.typing import ArrayLike, NDArray
from scipy.spatial.transform import Rotation


class BaseCameraModel(ABC):
    """Raw linescan sensor geometry."""
    
    @abstractmethod
    def time_at(self, pixel: ArrayLike) -> float:
        """Acquisition time of a pixel; monotonic in the line coordinate."""
    
    @abstractmethod
    def camera_center(self, pixel: ArrayLike) -> NDArray[np.float64]:
        """Sensor position when the pixel was acquired."""
    
    @abstractmethod
    def camera_pose(self, pixel: ArrayLike) -> Rotation:
        """Camera-to-world rotation when the pixel was acquired."""
    
    @abstractmethod
    def pixel_to_vector(self, pixel: ArrayLike) -> NDArray[np.float64]:
        """Unit look direction of a pixel in the world frame."""
    
    @abstractmethod
    def point_to_pixel(self, point: ArrayLike) -> NDArray[np.float64]:
        """Project a world point to a pixel.
        
        Raises:
            ValueError: If the point cannot be imaged (e.g. behind the sensor).
        """
    
    @abstractmethod
    def samples(self) -> int:
        """Image width in pixels."""
    
    @abstractmethod
    def lines(self) -> int:
        """Image height in lines."""
    
    def contains(self, pixel: ArrayLike, margin: float = 0.0) -> bool:
        """Check if a pixel lies inside the image domain (plus margin)."""
        sample, line = np.asarray(pixel, dtype=np.float64).reshape(-1)[:2]
        return bool(
            -margin <= sample <= self.samples() + margin
            and -margin <= line <= self.lines() + margin
        )
