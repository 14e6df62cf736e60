"""Unit tests for point cloud normalization."""

import numpy as np
import pytest
import trimesh
from trimesh import transformations

from bluecloud.core.exceptions import InvalidInputError
from bluecloud.processing import (
    PointCloudNormalizer,
    apply_transform,
    normalize_orientation_and_translation,
    normalize_point_cloud,
    normalize_size,
    normalize_vectors,
    scale_to_unit_box,
)


@pytest.fixture
def box_cloud():
    """Anisotropic oriented cloud, rotated and translated."""
    rng = np.random.default_rng(3)
    points = rng.random((500, 3)) * np.array([4.0, 2.0, 1.0])
    normals = normalize_vectors(rng.normal(size=(500, 3)))
    rotation = transformations.rotation_matrix(0.7, [1.0, 2.0, 0.5])
    transform = transformations.translation_matrix([5.0, -3.0, 2.0]) @ rotation
    return apply_transform(points, normals, transform)


@pytest.mark.unit
class TestTransforms:
    """Test normalization building blocks."""

    def test_normalize_vectors_keeps_zero_rows(self):
        result = normalize_vectors(np.array([[3.0, 4.0, 0.0], [0.0, 0.0, 0.0]]))
        np.testing.assert_allclose(result, [[0.6, 0.8, 0.0], [0.0, 0.0, 0.0]])

    def test_apply_transform_scales_points_not_normals(self):
        points = np.array([[1.0, 1.0, 1.0]])
        normals = np.array([[0.0, 0.0, 1.0]])
        new_points, new_normals = apply_transform(
            points, normals, transformations.scale_matrix(2.0)
        )
        np.testing.assert_allclose(new_points, [[2.0, 2.0, 2.0]])
        np.testing.assert_allclose(new_normals, [[0.0, 0.0, 1.0]])

    def test_apply_transform_non_uniform_scale(self):
        # Plane x + y = 0 has normal (1, 1, 0); stretching x by 2 tilts it
        transform = np.diag([2.0, 1.0, 1.0, 1.0])
        _, normals = apply_transform(
            np.zeros((1, 3)), np.array([[1.0, 1.0, 0.0]]) / np.sqrt(2), transform
        )
        expected = np.array([0.5, 1.0, 0.0]) / np.linalg.norm([0.5, 1.0, 0.0])
        np.testing.assert_allclose(normals[0], expected)

    def test_orientation_centers_and_aligns(self, box_cloud):
        points, normals = box_cloud
        new_points, new_normals, inverse = normalize_orientation_and_translation(
            points, normals
        )

        np.testing.assert_allclose(new_points.mean(axis=0), 0.0, atol=1e-9)
        covariance = np.cov(new_points.T)
        off_diagonal = covariance - np.diag(np.diag(covariance))
        np.testing.assert_allclose(off_diagonal, 0.0, atol=1e-9)
        # Ascending variance along x, y, z
        assert covariance[0, 0] <= covariance[1, 1] <= covariance[2, 2]
        assert np.linalg.det(inverse[:3, :3]) == pytest.approx(1.0)
        np.testing.assert_allclose(np.linalg.norm(new_normals, axis=1), 1.0)

    def test_normalize_size(self, box_cloud):
        points, normals = box_cloud
        new_points, _, inverse = normalize_size(points, normals)
        extent = new_points.max(axis=0) - new_points.min(axis=0)
        assert extent.max() == pytest.approx(1.0)
        np.testing.assert_allclose(
            trimesh.transform_points(new_points, inverse), points
        )

    def test_normalize_size_degenerate(self):
        points = np.ones((5, 3))
        new_points, _, inverse = normalize_size(points, np.tile([0.0, 0.0, 1.0], (5, 1)))
        np.testing.assert_array_equal(new_points, points)
        np.testing.assert_allclose(inverse, np.eye(4))

    def test_scale_to_unit_box_round_trip(self, box_cloud):
        points, normals = box_cloud
        new_points, new_normals, inverse = scale_to_unit_box(points, normals)
        back_points, back_normals = apply_transform(new_points, new_normals, inverse)

        np.testing.assert_allclose(back_points, points, atol=1e-9)
        np.testing.assert_allclose(back_normals, normals, atol=1e-9)

    def test_empty_input(self):
        with pytest.raises(InvalidInputError):
            normalize_size(np.empty((0, 3)), np.empty((0, 3)))

    def test_mismatched_shapes(self):
        with pytest.raises(InvalidInputError):
            normalize_size(np.zeros((4, 3)), np.zeros((3, 3)))


@pytest.mark.unit
class TestPointCloudNormalizer:
    """Test PointCloudNormalizer."""

    def test_normalize_and_restore(self, box_cloud):
        points, normals = box_cloud
        normalizer = PointCloudNormalizer()
        new_points, new_normals, info = normalizer.normalize(points, normals)

        assert info["transformations"] == ["orient", "scale"]
        assert info["scale_factor"] > 0
        final_extent = info["final_bounds"][1] - info["final_bounds"][0]
        assert final_extent.max() == pytest.approx(1.0)
        np.testing.assert_allclose(info["original_bounds"][0], points.min(axis=0))

        back_points, back_normals = normalizer.restore(new_points, new_normals, info)
        np.testing.assert_allclose(back_points, points, atol=1e-9)
        np.testing.assert_allclose(back_normals, normals, atol=1e-9)

    def test_disabled_steps(self, box_cloud):
        points, normals = box_cloud
        new_points, _, info = PointCloudNormalizer(orient=False, scale=False).normalize(
            points, normals
        )
        assert info["transformations"] == []
        np.testing.assert_array_equal(new_points, points)

    def test_restore_without_info(self, box_cloud):
        points, normals = box_cloud
        back_points, _ = PointCloudNormalizer().restore(points, normals, None)
        np.testing.assert_array_equal(back_points, points)

    def test_convenience_function(self, box_cloud):
        points, normals = box_cloud
        new_points, _, _ = normalize_point_cloud(points, normals)
        extent = new_points.max(axis=0) - new_points.min(axis=0)
        assert extent.max() == pytest.approx(1.0)
