"""Rigid and scale normalization of oriented point clouds."""

from typing import Optional, Tuple

import numpy as np
import trimesh
from trimesh import transformations

from bluecloud.core.exceptions import InvalidInputError
from bluecloud.processing.stacking import as_vector_array


def normalize_vectors(vectors: np.ndarray) -> np.ndarray:
    """Scale rows to unit length; zero rows stay zero."""
    norms = np.linalg.norm(vectors, axis=1, keepdims=True)
    return np.divide(vectors, norms, out=np.zeros_like(vectors), where=norms > 0)


def _validate(points: np.ndarray, normals: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    points = as_vector_array(points, "points")
    normals = as_vector_array(normals, "normals")
    if len(points) == 0:
        raise InvalidInputError("point cloud is empty")
    if points.shape != normals.shape or points.shape[1] != 3:
        raise InvalidInputError(
            "points and normals must both have shape (N, 3)",
            points=points.shape,
            normals=normals.shape,
        )
    return points, normals


def apply_transform(
    points: np.ndarray,
    normals: np.ndarray,
    transform: np.ndarray,
) -> Tuple[np.ndarray, np.ndarray]:
    """Apply a 4x4 affine transform to an oriented point cloud.

    Normals are transformed by the inverse-transpose of the linear part and
    renormalized.

    Args:
        points: Points (N, 3)
        normals: Normals (N, 3)
        transform: Homogeneous transform (4, 4)

    Returns:
        Tuple of (points, normals)
    """
    points, normals = _validate(points, normals)
    transform = np.asarray(transform, dtype=np.float64)
    normal_matrix = np.linalg.inv(transform[:3, :3]).T
    return (
        trimesh.transform_points(points, transform),
        normalize_vectors(normals @ normal_matrix.T),
    )


def normalize_orientation_and_translation(
    points: np.ndarray,
    normals: np.ndarray,
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Move the centroid to the origin and align principal axes with x, y, z.

    Principal axes come from PCA of the positions, ordered by ascending
    variance.

    Returns:
        Tuple of (points, normals, inverse_transform)
    """
    points, normals = _validate(points, normals)
    centroid = points.mean(axis=0)
    centered = points - centroid

    _, eigenvectors = np.linalg.eigh(centered.T @ centered)
    rotation = eigenvectors.T
    if np.linalg.det(rotation) < 0:
        rotation[-1] *= -1  # keep a proper rotation

    forward = np.eye(4)
    forward[:3, :3] = rotation
    forward = forward @ transformations.translation_matrix(-centroid)

    new_points, new_normals = apply_transform(points, normals, forward)
    return new_points, new_normals, np.linalg.inv(forward)


def normalize_size(
    points: np.ndarray,
    normals: np.ndarray,
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Scale isotropically so that the longest side of the AABB is 1.

    Clouds with zero extent are left unscaled.

    Returns:
        Tuple of (points, normals, inverse_transform)
    """
    points, normals = _validate(points, normals)
    extent = float(np.max(points.max(axis=0) - points.min(axis=0)))
    scale = 1.0 / extent if extent > 0 else 1.0

    forward = transformations.scale_matrix(scale)
    return points * scale, normals.copy(), np.linalg.inv(forward)


def scale_to_unit_box(
    points: np.ndarray,
    normals: np.ndarray,
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Normalize orientation, translation and size in one step.

    Returns:
        Tuple of (points, normals, inverse_transform)
    """
    points, normals, inv_rigid = normalize_orientation_and_translation(points, normals)
    points, normals, inv_scale = normalize_size(points, normals)
    return points, normals, inv_rigid @ inv_scale


class PointCloudNormalizer:
    """Normalizes oriented point clouds before resampling."""

    def __init__(self, orient: bool = True, scale: bool = True):
        """Initialize normalizer.

        Args:
            orient: Whether to center and align principal axes
            scale: Whether to scale the longest side to unit length
        """
        self.orient = orient
        self.scale = scale

    def normalize(
        self,
        points: np.ndarray,
        normals: np.ndarray,
    ) -> Tuple[np.ndarray, np.ndarray, dict]:
        """Normalize an oriented point cloud.

        Args:
            points: Points (N, 3)
            normals: Normals (N, 3)

        Returns:
            Tuple of (points, normals, transform_info)
        """
        points, normals = _validate(points, normals)
        inverse = np.eye(4)
        transform_info = {
            "original_bounds": np.stack([points.min(axis=0), points.max(axis=0)]),
            "transformations": [],
        }

        if self.orient:
            points, normals, inv_rigid = normalize_orientation_and_translation(points, normals)
            inverse = inverse @ inv_rigid
            transform_info["transformations"].append("orient")

        if self.scale:
            points, normals, inv_scale = normalize_size(points, normals)
            inverse = inverse @ inv_scale
            transform_info["scale_factor"] = 1.0 / inv_scale[0, 0]
            transform_info["transformations"].append("scale")

        transform_info["inverse_transform"] = inverse
        transform_info["final_bounds"] = np.stack([points.min(axis=0), points.max(axis=0)])
        return points, normals, transform_info

    def restore(
        self,
        points: np.ndarray,
        normals: np.ndarray,
        transform_info: Optional[dict],
    ) -> Tuple[np.ndarray, np.ndarray]:
        """Map normalized points back to the frame they were loaded in."""
        if not transform_info or not transform_info.get("transformations"):
            return np.array(points, dtype=np.float64), np.array(normals, dtype=np.float64)
        return apply_transform(points, normals, transform_info["inverse_transform"])


def normalize_point_cloud(
    points: np.ndarray,
    normals: np.ndarray,
    orient: bool = True,
    scale: bool = True,
) -> Tuple[np.ndarray, np.ndarray, dict]:
    """Convenience function to normalize an oriented point cloud.

    Args:
        points: Points (N, 3)
        normals: Normals (N, 3)
        orient: Whether to center and align principal axes
        scale: Whether to scale the longest side to unit length

    Returns:
        Tuple of (points, normals, transform_info)
    """
    return PointCloudNormalizer(orient=orient, scale=scale).normalize(points, normals)
