"""Shared test fixtures and configuration."""

import shutil
import tempfile
from pathlib import Path
from typing import Generator

import numpy as np
import pytest
import trimesh

from bluecloud.core import Config


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    temp_path = Path(tempfile.mkdtemp())
    yield temp_path
    shutil.rmtree(temp_path)


@pytest.fixture
def test_config() -> Config:
    """Create a small, deterministic test configuration."""
    return Config(
        dart_throwing={"conflict_radius": 0.1, "max_attempts": 2000, "seed": 7},
        energy={"sigma": 0.08, "iterations": 3},
        io={"surface_samples": 2000},
    )


@pytest.fixture
def rng() -> np.random.Generator:
    """Seeded random generator."""
    return np.random.default_rng(12345)


@pytest.fixture
def unit_square_points(rng: np.random.Generator) -> np.ndarray:
    """2000 uniform random points in the unit square."""
    return rng.random((2000, 2))


@pytest.fixture
def simple_box_mesh() -> trimesh.Trimesh:
    """Create a simple box mesh for testing."""
    return trimesh.creation.box(extents=[1, 1, 1])


@pytest.fixture
def sphere_cloud(rng: np.random.Generator) -> tuple:
    """Oriented cloud of 1500 points on a sphere of radius 2 centred at (1, 2, 3)."""
    directions = rng.normal(size=(1500, 3))
    directions /= np.linalg.norm(directions, axis=1, keepdims=True)
    return directions * 2.0 + np.array([1.0, 2.0, 3.0]), directions


@pytest.fixture
def sample_stl_path(temp_dir: Path, simple_box_mesh: trimesh.Trimesh) -> Path:
    """Create a sample STL file."""
    stl_path = temp_dir / "test_box.stl"
    simple_box_mesh.export(stl_path)
    return stl_path


@pytest.fixture
def sample_xyz_path(temp_dir: Path, sphere_cloud: tuple) -> Path:
    """Create a sample XYZ file from the sphere cloud."""
    points, normals = sphere_cloud
    xyz_path = temp_dir / "sphere.xyz"
    np.savetxt(xyz_path, np.hstack([points, normals]))
    return xyz_path


# Markers for different test categories
def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests that test individual components"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests that test multiple components"
    )
    config.addinivalue_line(
        "markers", "slow: Tests that take more than 1 second"
    )
