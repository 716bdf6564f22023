"""Round-trip projection error.

A pixel is cast forward to a 3D point at a fixed depth along its adjusted
ray, then projected back with ``point_to_pixel``. For a consistent camera
the recovered pixel equals the original one; the distance between them is
the round-trip error.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

import numpy as np
from numpy.typing import ArrayLike, NDArray

from linescan_adjust.camera.adjusted import AdjustedCameraModel
from linescan_adjust.common.logging import get_logger
from linescan_adjust.exceptions import ValidationError

logger = get_logger(__name__)


DEFAULT_DEPTH = 100000.0


@dataclass
class RoundTripMetrics:
    """Round-trip error metrics in pixels.
    
    Attributes:
        rmse: Root mean square error.
        median: Median error.
        max: Maximum error.
        std: Standard deviation.
        num_points: Number of pixels that round-tripped.
        num_failures: Number of pixels whose inverse projection failed.
    """
    
    rmse: float
    median: float
    max: float
    std: float
    num_points: int
    num_failures: int
    
    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "rmse": self.rmse,
            "median": self.median,
            "max": self.max,
            "std": self.std,
            "num_points": self.num_points,
            "num_failures": self.num_failures,
        }


def sample_pixels(
    samples: int,
    lines: int,
    n: int = 100,
    seed: Optional[int] = None,
) -> NDArray[np.float64]:
    """Draw random pixels inside an image at 0.1 pixel resolution.
    
    Coordinates fall in ``[1, size - 0.1]`` on each axis.
    
    Returns:
        Array of shape (n, 2) with (sample, line) rows.
    """
    if samples < 2 or lines < 2:
        raise ValidationError(f"Image too small to sample: {samples}x{lines}")
    
    rng = np.random.default_rng(seed)
    sample = rng.integers(10, 10 * samples, size=n) / 10.0
    line = rng.integers(10, 10 * lines, size=n) / 10.0
    return np.column_stack([sample, line]).astype(np.float64)


def cast_points(
    camera: AdjustedCameraModel,
    pixels: ArrayLike,
    depth: float = DEFAULT_DEPTH,
) -> NDArray[np.float64]:
    """Points at ``depth`` along the adjusted ray of each pixel."""
    pixels = np.asarray(pixels, dtype=np.float64).reshape(-1, 2)
    return np.array(
        [camera.camera_center(p) + depth * camera.pixel_to_vector(p) for p in pixels],
        dtype=np.float64,
    ).reshape(-1, 3)


def compute_roundtrip_errors(
    camera: AdjustedCameraModel,
    pixels: ArrayLike,
    depth: float = DEFAULT_DEPTH,
) -> NDArray[np.float64]:
    """Round-trip error for each pixel.
    
    Args:
        camera: Adjusted camera model.
        pixels: Nx2 pixels.
        depth: Distance along each ray at which points are placed.
        
    Returns:
        Array of N errors in pixels; NaN where inverse projection failed.
    """
    if depth <= 0:
        raise ValidationError(f"Depth must be positive, got {depth}")
    
    pixels = np.asarray(pixels, dtype=np.float64).reshape(-1, 2)
    points = cast_points(camera, pixels, depth)
    
    errors = np.full(len(pixels), np.nan, dtype=np.float64)
    for i, (pixel, point) in enumerate(zip(pixels, points)):
        result = camera.try_point_to_pixel(point)
        if result.success:
            errors[i] = float(np.linalg.norm(result.pixel - pixel))
    
    return errors


def compute_roundtrip_metrics(
    camera: AdjustedCameraModel,
    pixels: ArrayLike,
    depth: float = DEFAULT_DEPTH,
) -> RoundTripMetrics:
    """Summarize round-trip errors over a set of pixels."""
    errors = compute_roundtrip_errors(camera, pixels, depth)
    valid = errors[np.isfinite(errors)]
    num_failures = int(len(errors) - len(valid))
    
    if num_failures:
        logger.warning(f"{num_failures} of {len(errors)} pixels failed to round-trip")
    
    if len(valid) == 0:
        return RoundTripMetrics(
            rmse=float("nan"),
            median=float("nan"),
            max=float("nan"),
            std=float("nan"),
            num_points=0,
            num_failures=num_failures,
        )
    
    metrics = RoundTripMetrics(
        rmse=float(np.sqrt(np.mean(valid ** 2))),
        median=float(np.median(valid)),
        max=float(np.max(valid)),
        std=float(np.std(valid)),
        num_points=int(len(valid)),
        num_failures=num_failures,
    )
    logger.info(
        f"Round-trip error over {metrics.num_points} pixels: "
        f"RMSE={metrics.rmse:.2e} px, max={metrics.max:.2e} px"
    )
    return metrics
