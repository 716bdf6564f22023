"""Rotation and vector helpers.

Coordinate Convention:
    Camera poses are camera-to-world rotations (``scipy`` ``Rotation``):
    a direction ``d_cam`` in the camera frame maps to the world frame as

        d_world = pose.apply(d_cam)

    Orientation corrections are three small angles (radians) about the
    world X, Y and Z axes, combined as extrinsic ``"xyz"`` Euler angles.
    The correction is applied after the base pose:

        adjusted_pose = correction * base_pose

    so an adjusted look direction is ``correction.apply(base_direction)``.

Example:
    >>> from scipy.spatial.transform import Rotation
    >>> base = Rotation.identity()
    >>> pose = compose_pose(correction_rotation([0.0, 0.0, 0.0]), base)
    >>> is_valid_rotation_matrix(pose.as_matrix())
    True
"""

from __future__ import annotations

import numpy as np
from numpy.typing import ArrayLike, NDArray
from scipy.spatial.transform import Rotation

from linescan_adjust.exceptions import ValidationError


CORRECTION_EULER_ORDER = "xyz"


def as_vector3(value: ArrayLike, name: str = "vector") -> NDArray[np.float64]:
    """Coerce input to a float64 3-vector.
    
    Raises:
        ValidationError: If the input does not hold exactly 3 values.
    """
    vec = np.asarray(value, dtype=np.float64).reshape(-1)
    if vec.shape != (3,):
        raise ValidationError(f"Expected 3-element {name}, got shape {np.shape(value)}")
    return vec


def as_pixel(value: ArrayLike) -> NDArray[np.float64]:
    """Coerce input to a float64 (sample, line) pair."""
    pix = np.asarray(value, dtype=np.float64).reshape(-1)
    if pix.shape != (2,):
        raise ValidationError(f"Expected (sample, line) pixel, got shape {np.shape(value)}")
    return pix


def normalize(vector: ArrayLike) -> NDArray[np.float64]:
    """Scale a vector to unit length.
    
    Raises:
        ValidationError: If the vector has (near) zero length.
    """
    vec = np.asarray(vector, dtype=np.float64)
    norm = np.linalg.norm(vec)
    if norm < 1e-15:
        raise ValidationError("Cannot normalize a zero-length vector")
    return vec / norm


def correction_rotation(angles: ArrayLike) -> Rotation:
    """Build the orientation correction from three per-axis angles.
    
    Args:
        angles: Rotation angles in radians about X, Y and Z.
        
    Returns:
        Rotation built from extrinsic "xyz" Euler angles.
    """
    return Rotation.from_euler(CORRECTION_EULER_ORDER, as_vector3(angles, "angle triple"))


def compose_pose(correction: Rotation, base_pose: Rotation) -> Rotation:
    """Apply an orientation correction on top of a camera-to-world pose."""
    return correction * base_pose


def is_valid_rotation_matrix(
    R: NDArray[np.float64], 
    tol: float = 1e-6
) -> bool:
    """Check if a matrix is a valid rotation matrix.
    
    A valid rotation matrix satisfies:
    - R @ R.T = I (orthogonality)
    - det(R) = 1 (proper rotation, not reflection)
    
    Args:
        R: Matrix to check.
        tol: Tolerance for numerical checks.
        
    Returns:
        True if R is a valid rotation matrix.
    """
    R = np.asarray(R, dtype=np.float64)
    
    if R.shape != (3, 3):
        return False
    
    if not np.allclose(R @ R.T, np.eye(3), atol=tol):
        return False
    
    if not np.isclose(np.linalg.det(R), 1.0, atol=tol):
        return False
    
    return True
