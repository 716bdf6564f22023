"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest
import numpy as np
from scipy.spatial.transform import Rotation

# Add src to path for development testing
src_path = Path(__file__).parent.parent / "src"
if src_path.exists():
    sys.path.insert(0, str(src_path))

from linescan_adjust.camera import LinearPushbroomCamera
from linescan_adjust.equations import PolynomialEquation
from linescan_adjust.metrics import sample_pixels


def make_orbital_camera() -> LinearPushbroomCamera:
    """Nadir-looking sensor at 100 km moving north at 7 km/s."""
    return LinearPushbroomCamera(
        samples=1000,
        lines=2000,
        focal_length_px=5000.0,
        position=[0.0, 0.0, 100000.0],
        velocity=[0.0, 7000.0, 0.0],
        orientation=Rotation.from_euler("y", 180, degrees=True),
        line_period=1e-3,
        start_time=0.0,
    )


def make_airborne_camera() -> LinearPushbroomCamera:
    """Nadir-looking sensor at 8 km flying east with a little crab."""
    return LinearPushbroomCamera(
        samples=600,
        lines=900,
        focal_length_px=1500.0,
        position=[1000.0, -500.0, 8000.0],
        velocity=[200.0, 5.0, 0.0],
        orientation=Rotation.from_euler("xyz", [180, 0, 90], degrees=True),
        line_period=2e-3,
        start_time=0.0,
    )


@pytest.fixture
def config_path() -> Path:
    """Path to the config directory."""
    return Path(__file__).parent.parent / "configs"


@pytest.fixture
def orbital_camera() -> LinearPushbroomCamera:
    return make_orbital_camera()


@pytest.fixture
def airborne_camera() -> LinearPushbroomCamera:
    return make_airborne_camera()


@pytest.fixture(params=["orbital", "airborne"])
def base_camera(request) -> LinearPushbroomCamera:
    """Each base camera geometry in turn."""
    if request.param == "orbital":
        return make_orbital_camera()
    return make_airborne_camera()


@pytest.fixture
def blank_equation() -> PolynomialEquation:
    """Degree-0 all-zero polynomial: no correction."""
    return PolynomialEquation(0)


@pytest.fixture
def pixels(base_camera) -> np.ndarray:
    """100 random pixels inside the base camera's image."""
    return sample_pixels(base_camera.samples(), base_camera.lines(), n=100, seed=42)
