"""Tests for round-trip metrics."""

from __future__ import annotations

import math

import pytest
import numpy as np
from numpy.testing import assert_array_equal

from linescan_adjust.camera import AdjustedCameraModel, SolverConfig
from linescan_adjust.equations import PolynomialEquation, RPNEquation
from linescan_adjust.exceptions import ValidationError
from linescan_adjust.metrics import (
    RoundTripMetrics,
    cast_points,
    compute_roundtrip_errors,
    compute_roundtrip_metrics,
    sample_pixels,
)


class TestSamplePixels:
    """Tests for random pixel sampling."""
    
    def test_shape_and_range(self):
        pixels = sample_pixels(1000, 2000, n=500, seed=1)
        
        assert pixels.shape == (500, 2)
        assert pixels[:, 0].min() >= 1.0
        assert pixels[:, 0].max() <= 999.9
        assert pixels[:, 1].min() >= 1.0
        assert pixels[:, 1].max() <= 1999.9
    
    def test_tenth_pixel_resolution(self):
        pixels = sample_pixels(50, 50, n=100, seed=3)
        
        assert np.allclose(np.round(pixels * 10), pixels * 10)
    
    def test_seeded(self):
        assert_array_equal(sample_pixels(100, 100, seed=5), sample_pixels(100, 100, seed=5))
    
    def test_too_small(self):
        with pytest.raises(ValidationError):
            sample_pixels(1, 100)


class TestRoundTrip:
    """Tests for round-trip errors and metrics."""
    
    def test_cast_points_depth(self, orbital_camera, blank_equation):
        cam = AdjustedCameraModel(orbital_camera, blank_equation, blank_equation)
        pixels = np.array([[500.0, 0.0]])
        
        points = cast_points(cam, pixels, depth=1000.0)
        
        assert points.shape == (1, 3)
        assert np.allclose(points[0], [0.0, 0.0, 99000.0])
    
    def test_adjusted_camera_roundtrips(self, base_camera, pixels):
        position = RPNEquation("t 2 * 100 / 99 +", "t .8 * 1000 -", "t .5 * 2000 +")
        pose = PolynomialEquation(1, [0.005, 0.0, 0.0, -0.013, 0.001, 0.0])
        cam = AdjustedCameraModel(base_camera, position, pose)
        
        metrics = compute_roundtrip_metrics(cam, pixels)
        
        assert isinstance(metrics, RoundTripMetrics)
        assert metrics.num_points == len(pixels)
        assert metrics.num_failures == 0
        assert metrics.max < 0.001
        assert metrics.rmse <= metrics.max
    
    def test_failures_counted(self, orbital_camera, pixels):
        position = PolynomialEquation(1, [1000, 10, 2000, -10, -11000, 5])
        cam = AdjustedCameraModel(
            orbital_camera,
            position,
            PolynomialEquation(0),
            solver_config=SolverConfig(max_iterations=1),
        )
        
        errors = compute_roundtrip_errors(cam, pixels[:10])
        metrics = compute_roundtrip_metrics(cam, pixels[:10])
        
        assert np.all(np.isnan(errors))
        assert metrics.num_points == 0
        assert metrics.num_failures == 10
        assert math.isnan(metrics.rmse)
    
    def test_invalid_depth(self, orbital_camera, blank_equation, pixels):
        cam = AdjustedCameraModel(orbital_camera, blank_equation, blank_equation)
        
        with pytest.raises(ValidationError):
            compute_roundtrip_errors(cam, pixels, depth=0.0)
    
    def test_to_dict(self, orbital_camera, blank_equation, pixels):
        cam = AdjustedCameraModel(orbital_camera, blank_equation, blank_equation)
        
        data = compute_roundtrip_metrics(cam, pixels[:5]).to_dict()
        
        assert set(data) == {"rmse", "median", "max", "std", "num_points", "num_failures"}
