"""Point cloud processing functionality for bluecloud."""

from bluecloud.processing.normalization import (
    PointCloudNormalizer,
    apply_transform,
    normalize_orientation_and_translation,
    normalize_point_cloud,
    normalize_size,
    normalize_vectors,
    scale_to_unit_box,
)
from bluecloud.processing.pointcloud_io import PointCloudLoader, load_point_cloud, save_xyz
from bluecloud.processing.stacking import (
    Stacker,
    bilateral_differential,
    positional_differential,
    stack_points_and_normals_weighted,
)

__all__ = [
    "PointCloudNormalizer",
    "apply_transform",
    "normalize_orientation_and_translation",
    "normalize_point_cloud",
    "normalize_size",
    "normalize_vectors",
    "scale_to_unit_box",
    "PointCloudLoader",
    "load_point_cloud",
    "save_xyz",
    "Stacker",
    "bilateral_differential",
    "positional_differential",
    "stack_points_and_normals_weighted",
]
