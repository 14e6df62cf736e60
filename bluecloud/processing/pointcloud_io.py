"""Loading and saving oriented point clouds."""

from pathlib import Path
from typing import Optional, Tuple, Union

import numpy as np
import trimesh

from bluecloud.core.exceptions import PointCloudLoadError, PointCloudSaveError
from bluecloud.processing.normalization import normalize_vectors
from bluecloud.utils.logging import get_logger

logger = get_logger(__name__)


class PointCloudLoader:
    """Loads oriented point clouds from XYZ text files or mesh files.

    XYZ files hold one point per row as ``px py pz nx ny nz``; further
    columns are ignored. Mesh files are turned into an oriented candidate
    cloud by sampling their surface and taking the normal of the face each
    sample lies on.
    """

    XYZ_SUFFIXES = (".xyz", ".txt", ".pts")
    MESH_SUFFIXES = (".stl", ".ply", ".obj", ".off", ".glb")

    def __init__(self, surface_samples: int = 100000, seed: Optional[int] = None):
        """Initialize point cloud loader.

        Args:
            surface_samples: Number of samples drawn from mesh surfaces
            seed: Random seed for mesh surface sampling
        """
        self.surface_samples = surface_samples
        self.seed = seed

    def load(self, file_path: Union[str, Path]) -> Tuple[np.ndarray, np.ndarray]:
        """Load an oriented point cloud.

        Args:
            file_path: Path to point cloud or mesh file

        Returns:
            Tuple of (points, normals), both (N, 3) float64 with unit normals

        Raises:
            PointCloudLoadError: If the file cannot be read or holds no points
        """
        file_path = Path(file_path)
        if not file_path.exists():
            raise PointCloudLoadError(file_path, "File does not exist")
        if not file_path.is_file():
            raise PointCloudLoadError(file_path, "Path is not a file")

        suffix = file_path.suffix.lower()
        if suffix in self.XYZ_SUFFIXES:
            points, normals = self._load_xyz(file_path)
        elif suffix in self.MESH_SUFFIXES:
            points, normals = self._load_mesh(file_path)
        else:
            supported = ", ".join(self.XYZ_SUFFIXES + self.MESH_SUFFIXES)
            raise PointCloudLoadError(
                file_path, f"Unsupported format '{suffix}'. Supported: {supported}"
            )

        logger.debug("point_cloud_loaded", path=str(file_path), points=len(points))
        return points, normals

    def _load_xyz(self, file_path: Path) -> Tuple[np.ndarray, np.ndarray]:
        try:
            data = np.loadtxt(file_path, dtype=np.float64, ndmin=2, comments="#")
        except ValueError as e:
            raise PointCloudLoadError(file_path, f"Malformed XYZ data: {e}")

        if data.size == 0:
            raise PointCloudLoadError(file_path, "File contains no points")
        if data.shape[1] < 6:
            raise PointCloudLoadError(
                file_path, f"Expected 6 columns (px py pz nx ny nz), got {data.shape[1]}"
            )

        return data[:, :3].copy(), normalize_vectors(data[:, 3:6])

    def _load_mesh(self, file_path: Path) -> Tuple[np.ndarray, np.ndarray]:
        try:
            mesh = trimesh.load(file_path, force="mesh")
        except Exception as e:
            raise PointCloudLoadError(file_path, str(e))

        if not isinstance(mesh, trimesh.Trimesh):
            raise PointCloudLoadError(
                file_path, f"Expected Trimesh object, got {type(mesh).__name__}"
            )
        if len(mesh.faces) == 0 or mesh.area == 0:
            raise PointCloudLoadError(file_path, "Mesh has no surface to sample")

        points, face_indices = trimesh.sample.sample_surface(
            mesh, self.surface_samples, seed=self.seed
        )
        normals = normalize_vectors(mesh.face_normals[face_indices])
        return np.asarray(points, dtype=np.float64), normals


def save_xyz(
    file_path: Union[str, Path],
    points: np.ndarray,
    normals: np.ndarray,
) -> Path:
    """Save an oriented point cloud in XYZ format.

    Args:
        file_path: Output path
        points: Points (N, 3)
        normals: Normals (N, 3)

    Returns:
        Path written

    Raises:
        PointCloudSaveError: If shapes disagree or the file cannot be written
    """
    file_path = Path(file_path)
    points = np.asarray(points, dtype=np.float64)
    normals = np.asarray(normals, dtype=np.float64)
    if points.ndim != 2 or points.shape[1] != 3 or points.shape != normals.shape:
        raise PointCloudSaveError(
            file_path,
            f"points and normals must both be (N, 3), got {points.shape} and {normals.shape}",
        )

    try:
        file_path.parent.mkdir(parents=True, exist_ok=True)
        np.savetxt(file_path, np.hstack([points, normals]), fmt="%g")
    except OSError as e:
        raise PointCloudSaveError(file_path, str(e))

    logger.debug("point_cloud_saved", path=str(file_path), points=len(points))
    return file_path


def load_point_cloud(
    file_path: Union[str, Path],
    surface_samples: int = 100000,
    seed: Optional[int] = None,
) -> Tuple[np.ndarray, np.ndarray]:
    """Convenience function to load an oriented point cloud.

    Args:
        file_path: Path to point cloud or mesh file
        surface_samples: Number of samples drawn from mesh surfaces
        seed: Random seed for mesh surface sampling

    Returns:
        Tuple of (points, normals)
    """
    return PointCloudLoader(surface_samples=surface_samples, seed=seed).load(file_path)
