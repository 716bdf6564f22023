"""Inverse projection for adjusted linescan cameras.

Projecting a point into an adjusted camera requires the acquisition time,
which depends on the unknown line coordinate. The solver works on the
line coordinate alone:

1. Seed a pixel with the base model's own ``point_to_pixel``.
2. At the current pixel, evaluate the corrections at its time and move
   the point into the unadjusted geometry:

       X_b = C_b + R_c(t)^-1 (X - dP(t) - C_b)

   so that ``X`` lies on the adjusted ray of a pixel exactly when ``X_b``
   lies on the base ray of the same pixel.
3. Project ``X_b`` with the base model. Its line is ``f(line)``; the
   solution is the root of ``f(line) - line``, found with secant steps.
   The first slope comes from a probe one line past the seed; a plain
   fixed-point step is taken whenever the slope vanishes. The sample
   comes from the base projection at the current line.
4. Stop when the projection reproduces the current pixel to within
   ``tolerance_px``, or fail once ``max_iterations`` is reached.

The solver never raises for expected numeric failures; it returns an
``InversionResult`` with ``success=False`` and a message instead.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Optional

import numpy as np
from numpy.typing import ArrayLike, NDArray

from linescan_adjust.common.logging import get_logger
from linescan_adjust.common.transforms import as_pixel, as_vector3, correction_rotation
from linescan_adjust.exceptions import ValidationError

if TYPE_CHECKING:
    from linescan_adjust.camera.adjusted import AdjustedCameraModel

logger = get_logger(__name__)


PROBE_STEP_LINES = 1.0


@dataclass
class SolverConfig:
    """Configuration for the inverse projection solver.
    
    Attributes:
        max_iterations: Maximum number of solver iterations.
        tolerance_px: Convergence threshold on both pixel coordinates.
        enforce_bounds: Whether a converged pixel outside the image counts
            as a failure.
        bounds_margin_px: Extra margin around the image when enforcing bounds.
    """
    
    max_iterations: int = 50
    tolerance_px: float = 1e-6
    enforce_bounds: bool = True
    bounds_margin_px: float = 0.0
    
    def __post_init__(self) -> None:
        if self.max_iterations < 1:
            raise ValidationError(f"max_iterations must be >= 1, got {self.max_iterations}")
        if self.tolerance_px <= 0:
            raise ValidationError(f"tolerance_px must be positive, got {self.tolerance_px}")
    
    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SolverConfig":
        """Create from dictionary."""
        return cls(
            max_iterations=data.get("max_iterations", 50),
            tolerance_px=data.get("tolerance_px", 1e-6),
            enforce_bounds=data.get("enforce_bounds", True),
            bounds_margin_px=data.get("bounds_margin_px", 0.0),
        )
    
    @classmethod
    def from_yaml(cls, path: Path | str) -> "SolverConfig":
        """Load from a YAML file.
        
        The solver settings are read from a top-level ``solver`` mapping
        when present, otherwise from the document root.
        """
        import yaml
        
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        
        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}
        
        return cls.from_dict(data.get("solver", data))


@dataclass
class InversionResult:
    """Outcome of one inverse projection.
    
    Attributes:
        pixel: Final (sample, line) estimate, or None if no estimate exists.
        success: Whether the solver converged to a pixel inside the image.
        iterations: Number of iterations performed.
        step_px: Size of the last update in pixels.
        message: Status message or failure description.
        history: Pixel iterates, starting with the seed.
    """
    
    pixel: Optional[NDArray[np.float64]]
    success: bool
    iterations: int
    step_px: float
    message: str
    history: List[NDArray[np.float64]] = field(default_factory=list)
    
    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "pixel": None if self.pixel is None else self.pixel.tolist(),
            "success": self.success,
            "iterations": self.iterations,
            "step_px": self.step_px,
            "message": self.message,
        }


def back_correct_point(
    camera: "AdjustedCameraModel",
    point: NDArray[np.float64],
    pixel: NDArray[np.float64],
) -> NDArray[np.float64]:
    """Move a point into the unadjusted geometry of a pixel's time."""
    base = camera.base
    t = base.time_at(pixel)
    center = base.camera_center(pixel)
    offset = camera.position_equation.evaluate(t)
    correction = correction_rotation(camera.pose_equation.evaluate(t))
    return center + correction.inv().apply(point - offset - center)


def _reproject(
    camera: "AdjustedCameraModel",
    point: NDArray[np.float64],
    pixel: NDArray[np.float64],
) -> NDArray[np.float64]:
    return np.asarray(
        camera.base.point_to_pixel(back_correct_point(camera, point, pixel)),
        dtype=np.float64,
    )


def solve_point_to_pixel(
    camera: "AdjustedCameraModel",
    point: ArrayLike,
    config: Optional[SolverConfig] = None,
    seed: Optional[ArrayLike] = None,
) -> InversionResult:
    """Find the pixel that images a point under the adjusted geometry.
    
    Args:
        camera: Adjusted camera model.
        point: 3D point in the world frame.
        config: Solver configuration (defaults to ``SolverConfig()``).
        seed: Optional initial pixel; defaults to the base projection.
        
    Returns:
        InversionResult describing the outcome.
    """
    config = config or SolverConfig()
    base = camera.base
    point = as_vector3(point, "point")
    
    if seed is not None:
        pixel = as_pixel(seed)
    else:
        try:
            pixel = np.asarray(base.point_to_pixel(point), dtype=np.float64)
        except ValueError as e:
            pixel = np.array([base.samples() / 2.0, base.lines() / 2.0])
            logger.debug(f"Base projection failed ({e}); seeding at image center")
    
    history = [pixel.copy()]
    prev_line: Optional[float] = None
    prev_residual: Optional[float] = None
    step = float("inf")
    
    for iteration in range(1, config.max_iterations + 1):
        try:
            projected = _reproject(camera, point, pixel)
        except ValueError as e:
            return _failure(
                pixel, iteration, step, f"Base projection failed: {e}", history
            )

        if not np.all(np.isfinite(projected)):
            return _failure(pixel, iteration, step, "Non-finite iterate", history)

        line = pixel[1]
        residual = projected[1] - line
        sample_change = projected[0] - pixel[0]

        if abs(residual) < config.tolerance_px and abs(sample_change) < config.tolerance_px:
            history.append(projected)
            step = float(max(abs(residual), abs(sample_change)))
            return _finish(base, projected, iteration, step, history, config)

        if prev_line is None:
            probe = np.array([pixel[0], line + PROBE_STEP_LINES])
            try:
                probe_projected = _reproject(camera, point, probe)
            except ValueError as e:
                logger.debug(f"Slope probe failed ({e}); taking a fixed-point step")
            else:
                if np.all(np.isfinite(probe_projected)):
                    prev_line = probe[1]
                    prev_residual = probe_projected[1] - probe[1]

        new_line = projected[1]
        if prev_line is not None:
            denominator = residual - prev_residual
            if abs(denominator) > 1e-12:
                new_line = line - residual * (line - prev_line) / denominator
        prev_line, prev_residual = line, residual
        
        new_pixel = np.array([projected[0], new_line], dtype=np.float64)
        step = float(np.max(np.abs(new_pixel - pixel)))
        pixel = new_pixel
        history.append(pixel.copy())
    
    return _failure(
        pixel,
        config.max_iterations,
        step,
        f"No convergence after {config.max_iterations} iterations "
        f"(last step {step:.3g} px)",
        history,
    )


def _finish(
    base,
    pixel: NDArray[np.float64],
    iterations: int,
    step: float,
    history: List[NDArray[np.float64]],
    config: SolverConfig,
) -> InversionResult:
    # Border pixels converge to within one tolerance of the edge
    slack = config.bounds_margin_px + config.tolerance_px
    if config.enforce_bounds and not base.contains(pixel, slack):
        return _failure(
            pixel,
            iterations,
            step,
            f"Converged pixel ({pixel[0]:.3f}, {pixel[1]:.3f}) is outside the "
            f"{base.samples()}x{base.lines()} image",
            history,
        )
    
    logger.debug(f"Inverse projection converged in {iterations} iterations")
    return InversionResult(
        pixel=pixel,
        success=True,
        iterations=iterations,
        step_px=step,
        message="Converged",
        history=history,
    )


def _failure(
    pixel: Optional[NDArray[np.float64]],
    iterations: int,
    step: float,
    message: str,
    history: List[NDArray[np.float64]],
) -> InversionResult:
    logger.debug(f"Inverse projection failed: {message}")
    return InversionResult(
        pixel=pixel,
        success=False,
        iterations=iterations,
        step_px=step,
        message=message,
        history=history,
    )
