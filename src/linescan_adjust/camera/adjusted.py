"""Linescan camera model with time-varying adjustments.

``AdjustedCameraModel`` wraps a base (unadjusted) camera with a position
equation and a pose equation, both evaluated at each pixel's acquisition
time:

    center(p)    = C_b(p) + dP(t)
    pose(p)      = R_c(t) * R_b(p)
    direction(p) = R_c(t) d_b(p)

where ``dP`` is the position equation, ``R_c`` the rotation built from
the pose equation's three angles (extrinsic "xyz", radians) and
``t = base.time_at(p)``. Position offsets move the ray origin only.

Example:
    >>> blank = PolynomialEquation(0)
    >>> cam = AdjustedCameraModel(base, blank, blank, image_id="E1701676")
    >>> pixel = cam.point_to_pixel(cam.camera_center([10, 20]) + 1e5 * cam.pixel_to_vector([10, 20]))
"""

from __future__ import annotations

from typing import Optional

import numpy as np
from numpy.typing import ArrayLike, NDArray
from scipy.spatial.transform import Rotation

from linescan_adjust.camera.base import BaseCameraModel
from linescan_adjust.camera.inverse import (
    InversionResult,
    SolverConfig,
    solve_point_to_pixel,
)
from linescan_adjust.common.logging import get_logger
from linescan_adjust.common.transforms import compose_pose, correction_rotation
from linescan_adjust.equations.base import Equation
from linescan_adjust.exceptions import ConvergenceError, ValidationError
from linescan_adjust.io.adjustment_file import AdjustmentRecord

logger = get_logger(__name__)


class AdjustedCameraModel(BaseCameraModel):
    """Base camera plus position and pose adjustment equations.
    
    The equations are held by reference: an optimizer may change their
    coefficients between calls and the camera picks up the change on the
    next evaluation. Nothing is cached between calls.
    
    Args:
        base: Unadjusted camera model.
        position_equation: Position offset as a function of time.
        pose_equation: Orientation correction angles as a function of time.
        image_id: Identifier of the image (cube) this camera belongs to.
        solver_config: Settings for ``point_to_pixel``.
    """
    
    def __init__(
        self,
        base: BaseCameraModel,
        position_equation: Equation,
        pose_equation: Equation,
        image_id: str = "",
        solver_config: Optional[SolverConfig] = None,
    ) -> None:
        self._base = base
        self.position_equation = position_equation
        self.pose_equation = pose_equation
        self.image_id = image_id
        self.solver_config = solver_config or SolverConfig()
        
        logger.debug(
            f"Adjusted camera '{image_id}': position={position_equation!r}, "
            f"pose={pose_equation!r}"
        )
    
    @property
    def base(self) -> BaseCameraModel:
        return self._base
    
    def samples(self) -> int:
        return self._base.samples()
    
    def lines(self) -> int:
        return self._base.lines()
    
    def time_at(self, pixel: ArrayLike) -> float:
        return self._base.time_at(pixel)
    
    def position_correction(self, t: float) -> NDArray[np.float64]:
        """Position offset at time ``t``."""
        return self.position_equation.evaluate(t)
    
    def pose_correction(self, t: float) -> Rotation:
        """Orientation correction at time ``t``."""
        return correction_rotation(self.pose_equation.evaluate(t))
    
    def camera_center(self, pixel: ArrayLike) -> NDArray[np.float64]:
        t = self._base.time_at(pixel)
        return np.asarray(self._base.camera_center(pixel), dtype=np.float64) + (
            self.position_correction(t)
        )
    
    def camera_pose(self, pixel: ArrayLike) -> Rotation:
        t = self._base.time_at(pixel)
        return compose_pose(self.pose_correction(t), self._base.camera_pose(pixel))
    
    def pixel_to_vector(self, pixel: ArrayLike) -> NDArray[np.float64]:
        t = self._base.time_at(pixel)
        return self.pose_correction(t).apply(self._base.pixel_to_vector(pixel))
    
    def try_point_to_pixel(
        self,
        point: ArrayLike,
        seed: Optional[ArrayLike] = None,
    ) -> InversionResult:
        """Inverse projection returning an explicit result instead of raising."""
        return solve_point_to_pixel(self, point, self.solver_config, seed)
    
    def point_to_pixel(
        self,
        point: ArrayLike,
        seed: Optional[ArrayLike] = None,
    ) -> NDArray[np.float64]:
        """Project a world point to the pixel that images it.
        
        Raises:
            ConvergenceError: If the solver fails or lands outside the image.
        """
        result = self.try_point_to_pixel(point, seed)
        if not result.success:
            logger.warning(f"point_to_pixel failed for '{self.image_id}': {result.message}")
            raise ConvergenceError(result.message, result)
        return result.pixel
    
    def points_to_pixels(self, points: ArrayLike) -> NDArray[np.float64]:
        """Project Nx3 points to Nx2 pixels; raises on the first failure."""
        points = np.asarray(points, dtype=np.float64)
        if points.ndim == 1:
            points = points.reshape(1, -1)
        if points.shape[1] != 3:
            raise ValidationError(f"Expected Nx3 points, got {points.shape}")
        
        return np.array([self.point_to_pixel(p) for p in points], dtype=np.float64).reshape(-1, 2)
    
    def pixels_to_vectors(self, pixels: ArrayLike) -> NDArray[np.float64]:
        """Look directions for Nx2 pixels."""
        pixels = np.asarray(pixels, dtype=np.float64)
        if pixels.ndim == 1:
            pixels = pixels.reshape(1, -1)
        if pixels.shape[1] != 2:
            raise ValidationError(f"Expected Nx2 pixels, got {pixels.shape}")
        
        return np.array([self.pixel_to_vector(p) for p in pixels], dtype=np.float64).reshape(-1, 3)
    
    def to_record(self, notes: str = "") -> AdjustmentRecord:
        """Snapshot the adjustment as an ``AdjustmentRecord``."""
        return AdjustmentRecord(
            image_id=self.image_id,
            position=self.position_equation.copy(),
            pose=self.pose_equation.copy(),
            notes=notes,
        )
