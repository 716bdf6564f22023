"""Tests for the adjusted camera model.

Points are generated 100 km along the adjusted ray of random pixels and
projected back; the camera is queried at unrelated pixels in between to
make sure nothing is remembered from one call to the next.
"""

from __future__ import annotations

import pytest
import numpy as np
from numpy.testing import assert_allclose

from linescan_adjust.camera import AdjustedCameraModel, SolverConfig
from linescan_adjust.equations import PolynomialEquation, RPNEquation
from linescan_adjust.exceptions import (
    ConvergenceError,
    EvaluationError,
    ValidationError,
)


RAY_DEPTH = 100000.0
TOLERANCE = 0.001


def cast_point(camera, pixel, depth=RAY_DEPTH):
    return camera.camera_center(pixel) + depth * camera.pixel_to_vector(pixel)


def fuzz_camera(camera, rng):
    """Query an unrelated pixel."""
    noise = [rng.uniform(1, camera.samples()), rng.uniform(1, camera.lines())]
    camera.pixel_to_vector(noise)


class TestNoAdjustment:
    """Zero equations reproduce the base geometry."""
    
    def test_matches_base(self, base_camera, blank_equation, pixels):
        cam = AdjustedCameraModel(base_camera, blank_equation, blank_equation, image_id="blank")
        rng = np.random.default_rng(7)
        points = [cast_point(cam, p) for p in pixels]
        fuzz_camera(cam, rng)
        
        for pixel, point in zip(pixels, points):
            fuzz_camera(cam, rng)
            assert_allclose(
                cam.camera_center(pixel), base_camera.camera_center(pixel), atol=TOLERANCE
            )
            assert_allclose(
                cam.camera_pose(pixel).as_matrix(),
                base_camera.camera_pose(pixel).as_matrix(),
                atol=TOLERANCE,
            )
            assert_allclose(
                cam.pixel_to_vector(pixel), base_camera.pixel_to_vector(pixel), atol=TOLERANCE
            )
            
            assert_allclose(cam.point_to_pixel(point), pixel, atol=TOLERANCE)
    
    def test_delegates_image_size(self, base_camera, blank_equation):
        cam = AdjustedCameraModel(base_camera, blank_equation, blank_equation)
        
        assert cam.samples() == base_camera.samples()
        assert cam.lines() == base_camera.lines()
        assert cam.time_at([3.0, 40.0]) == base_camera.time_at([3.0, 40.0])


class TestForwardProjection:
    """Tests for adjusted center, pose and direction."""
    
    def test_center_offset(self, orbital_camera, blank_equation):
        position = PolynomialEquation(1, [1000, 10, 2000, -10, -11000, 5])
        cam = AdjustedCameraModel(orbital_camera, position, blank_equation)
        pixel = [100.0, 500.0]  # t = 0.5 s
        
        offset = cam.camera_center(pixel) - orbital_camera.camera_center(pixel)
        
        assert_allclose(offset, [1005.0, 1995.0, -10997.5])
    
    def test_position_does_not_change_direction(self, orbital_camera, blank_equation):
        position = PolynomialEquation(1, [1000, 10, 2000, -10, -11000, 5])
        cam = AdjustedCameraModel(orbital_camera, position, blank_equation)
        
        assert_allclose(
            cam.pixel_to_vector([10.0, 20.0]), orbital_camera.pixel_to_vector([10.0, 20.0])
        )
    
    def test_pose_and_direction_agree(self, base_camera, pixels):
        """The adjusted direction is the adjusted pose applied to the camera-frame ray."""
        pose = RPNEquation(".005", "-.013 t *", "0.002")
        cam = AdjustedCameraModel(base_camera, PolynomialEquation(0), pose)
        
        for pixel in pixels[:10]:
            camera_frame = base_camera.camera_pose(pixel).inv().apply(
                base_camera.pixel_to_vector(pixel)
            )
            assert_allclose(
                cam.camera_pose(pixel).apply(camera_frame),
                cam.pixel_to_vector(pixel),
                atol=1e-12,
            )
            assert np.linalg.norm(cam.pixel_to_vector(pixel)) == pytest.approx(1.0)
    
    def test_pose_correction_about_z(self, orbital_camera):
        """A quarter turn about world Z maps the base direction accordingly."""
        pose = PolynomialEquation(0, [0.0, 0.0, np.pi / 2])
        cam = AdjustedCameraModel(orbital_camera, PolynomialEquation(0), pose)
        base_dir = orbital_camera.pixel_to_vector([0.0, 0.0])
        
        adjusted = cam.pixel_to_vector([0.0, 0.0])
        
        assert_allclose(adjusted, [-base_dir[1], base_dir[0], base_dir[2]], atol=1e-12)
    
    def test_equation_changes_are_picked_up(self, orbital_camera):
        position = PolynomialEquation(0)
        cam = AdjustedCameraModel(orbital_camera, position, PolynomialEquation(0))
        before = cam.camera_center([5.0, 5.0])
        
        position[1] = 42.0
        
        assert_allclose(cam.camera_center([5.0, 5.0]) - before, [0.0, 42.0, 0.0])


class TestPolynomialAdjustment:
    """Round trip and linear sensitivity with polynomial equations."""
    
    def test_roundtrip_and_shift(self, base_camera, pixels):
        position = PolynomialEquation(1, [1000, 10, 2000, -10, -11000, 5])
        pose = PolynomialEquation(0, [0.07, -0.1, 0.02])
        cam = AdjustedCameraModel(base_camera, position, pose, image_id="poly")
        rng = np.random.default_rng(11)
        points = [cast_point(cam, p) for p in pixels]
        fuzz_camera(cam, rng)
        
        for pixel, point in zip(pixels, points):
            rpixel = cam.point_to_pixel(point)
            assert_allclose(rpixel, pixel, atol=TOLERANCE)
            
            position[4] += 1000
            fuzz_camera(cam, rng)
            rpoint = cast_point(cam, rpixel)
            assert rpoint[0] - point[0] == pytest.approx(0.0, abs=TOLERANCE)
            assert rpoint[1] - point[1] == pytest.approx(0.0, abs=TOLERANCE)
            assert rpoint[2] - point[2] == pytest.approx(1000.0, abs=TOLERANCE)
            position[4] -= 1000
    
    @pytest.mark.parametrize("axis", [0, 1, 2])
    def test_constant_term_shifts_single_axis(self, orbital_camera, axis):
        position = PolynomialEquation(1, [5, 1, -3, 2, 7, -1])
        cam = AdjustedCameraModel(orbital_camera, position, PolynomialEquation(0))
        point = cast_point(cam, [321.5, 1234.5])
        rpixel = cam.point_to_pixel(point)
        
        position[axis * 2] += 250.0
        rpoint = cast_point(cam, rpixel)
        
        assert_allclose(rpoint - point, np.eye(3)[axis] * 250.0, atol=TOLERANCE)

    def test_roundtrip_on_image_border(self, base_camera):
        position = PolynomialEquation(1, [1000, 10, 2000, -10, -11000, 5])
        pose = PolynomialEquation(0, [0.07, -0.1, 0.02])
        cam = AdjustedCameraModel(base_camera, position, pose, image_id="border")
        samples, lines = cam.samples(), cam.lines()
        border = [
            [0.0, 0.0],
            [samples, 0.0],
            [0.0, lines],
            [samples, lines],
            [samples / 2.0, 0.0],
            [50.0, 0.0],
            [0.0, lines / 2.0],
            [samples, lines / 2.0],
        ]

        for pixel in border:
            result = cam.try_point_to_pixel(cast_point(cam, pixel))
            assert result.success, result.message
            assert_allclose(result.pixel, pixel, atol=TOLERANCE)


class TestRPNAdjustment:
    """Round trip with expression equations."""
    
    def test_roundtrip_and_shift(self, base_camera, pixels):
        position = RPNEquation("t 2 * 100 / 99 +", "t .8 * 1000 -", "t .5 * 2000 +")
        pose = RPNEquation(".005", "-.013 t *", "0")
        cam = AdjustedCameraModel(base_camera, position, pose, image_id="rpn")
        rng = np.random.default_rng(13)
        points = [cast_point(cam, p) for p in pixels]
        fuzz_camera(cam, rng)
        
        for pixel, point in zip(pixels, points):
            rpixel = cam.point_to_pixel(point)
            assert_allclose(rpixel, pixel, atol=TOLERANCE)
            
            position.set_expressions("t 2 * 100 / 99 + 500 -", "t .8 * 1000 -", "t .5 * 2000 +")
            fuzz_camera(cam, rng)
            rpoint = cast_point(cam, rpixel)
            assert rpoint[0] - point[0] == pytest.approx(-500.0, abs=TOLERANCE)
            assert rpoint[1] - point[1] == pytest.approx(0.0, abs=TOLERANCE)
            assert rpoint[2] - point[2] == pytest.approx(0.0, abs=TOLERANCE)
            position.set_expressions("t 2 * 100 / 99 +", "t .8 * 1000 -", "t .5 * 2000 +")


class TestInverseFailures:
    """Inverse projection failures are reported, never silent."""
    
    def test_point_outside_field_of_regard(self, orbital_camera, blank_equation):
        cam = AdjustedCameraModel(orbital_camera, blank_equation, blank_equation)
        point = cast_point(cam, [-50000.0, 500.0])
        
        with pytest.raises(ConvergenceError) as excinfo:
            cam.point_to_pixel(point)
        
        assert excinfo.value.result is not None
        assert "outside" in excinfo.value.result.message
    
    def test_point_behind_sensor(self, orbital_camera, blank_equation):
        cam = AdjustedCameraModel(orbital_camera, blank_equation, blank_equation)
        pixel = [400.0, 800.0]
        point = cam.camera_center(pixel) - RAY_DEPTH * cam.pixel_to_vector(pixel)
        
        with pytest.raises(ConvergenceError):
            cam.point_to_pixel(point)
    
    def test_iteration_bound(self, orbital_camera):
        position = PolynomialEquation(1, [1000, 10, 2000, -10, -11000, 5])
        cam = AdjustedCameraModel(
            orbital_camera,
            position,
            PolynomialEquation(0, [0.01, 0.0, 0.0]),
            solver_config=SolverConfig(max_iterations=1),
        )
        point = cast_point(cam, [500.0, 1000.0])
        
        with pytest.raises(ConvergenceError, match="No convergence"):
            cam.point_to_pixel(point)
    
    def test_convergence_error_is_runtime_error(self, orbital_camera, blank_equation):
        cam = AdjustedCameraModel(orbital_camera, blank_equation, blank_equation)
        
        with pytest.raises(RuntimeError):
            cam.point_to_pixel(cast_point(cam, [5000.0, 500.0]))
    
    def test_model_usable_after_failure(self, orbital_camera, blank_equation):
        cam = AdjustedCameraModel(orbital_camera, blank_equation, blank_equation)
        
        with pytest.raises(ConvergenceError):
            cam.point_to_pixel(cast_point(cam, [-50000.0, 500.0]))
        
        assert_allclose(cam.point_to_pixel(cast_point(cam, [50.0, 60.0])), [50.0, 60.0], atol=TOLERANCE)
    
    def test_evaluation_error_propagates(self, orbital_camera, blank_equation):
        position = RPNEquation("1 t /", "0", "0")
        cam = AdjustedCameraModel(orbital_camera, position, blank_equation)
        
        with pytest.raises(EvaluationError):
            cam.camera_center([10.0, 0.0])
        
        assert np.all(np.isfinite(cam.camera_center([10.0, 10.0])))


class TestBulkOperations:
    """Tests for the array helpers."""
    
    def test_points_to_pixels(self, orbital_camera, pixels):
        position = PolynomialEquation(1, [10, 1, 20, -1, 30, 2])
        cam = AdjustedCameraModel(orbital_camera, position, PolynomialEquation(0, [0.001, 0, 0]))
        points = np.array([cast_point(cam, p) for p in pixels[:20]])
        
        assert_allclose(cam.points_to_pixels(points), pixels[:20], atol=TOLERANCE)
    
    def test_pixels_to_vectors(self, orbital_camera, blank_equation, pixels):
        cam = AdjustedCameraModel(orbital_camera, blank_equation, blank_equation)
        
        vectors = cam.pixels_to_vectors(pixels[:5])
        
        assert vectors.shape == (5, 3)
        assert_allclose(vectors[0], orbital_camera.pixel_to_vector(pixels[0]))
    
    def test_bad_shapes(self, orbital_camera, blank_equation):
        cam = AdjustedCameraModel(orbital_camera, blank_equation, blank_equation)
        
        with pytest.raises(ValidationError):
            cam.points_to_pixels(np.zeros((4, 2)))
        with pytest.raises(ValidationError):
            cam.pixels_to_vectors(np.zeros((4, 3)))
