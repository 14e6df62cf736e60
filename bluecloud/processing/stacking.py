"""Weighted stacking of position and feature vectors."""

from typing import Optional, Tuple

import numpy as np

from bluecloud.core.exceptions import InvalidInputError


class Stacker:
    """Stacks a position and a feature vector into one composite vector.

    The weights control how much position and feature differences each
    contribute to the L2 distance between composite vectors, which makes
    the stacked metric an augmentative form of the bilateral differential.
    """

    def __init__(self, position_weight: float = 1.0, feature_weight: float = 0.05):
        """Initialize stacker.

        Args:
            position_weight: Scale applied to positional components
            feature_weight: Scale applied to feature components
        """
        self.position_weight = float(position_weight)
        self.feature_weight = float(feature_weight)

    def __call__(self, position: np.ndarray, feature: np.ndarray) -> np.ndarray:
        """Stack a single position/feature pair."""
        return np.concatenate([
            np.asarray(position, dtype=np.float64).ravel() * self.position_weight,
            np.asarray(feature, dtype=np.float64).ravel() * self.feature_weight,
        ])

    def stack(self, positions: np.ndarray, features: Optional[np.ndarray] = None) -> np.ndarray:
        """Stack parallel arrays of positions (N, P) and features (N, F).

        Args:
            positions: Position array
            features: Feature array, or None to stack positions only

        Returns:
            Composite array (N, P + F)

        Raises:
            InvalidInputError: If lengths differ
        """
        positions = as_vector_array(positions, "positions")
        if features is None:
            return positions * self.position_weight

        features = as_vector_array(features, "features")
        if len(positions) != len(features):
            raise InvalidInputError(
                "positions and features differ in length",
                positions=len(positions),
                features=len(features),
            )
        return np.hstack([positions * self.position_weight, features * self.feature_weight])

    def unstack(
        self, stacked: np.ndarray, position_dims: int
    ) -> Tuple[np.ndarray, np.ndarray]:
        """Split composite vectors and undo the weighting.

        Components whose weight is zero cannot be recovered and come back as 0.
        """
        stacked = as_vector_array(stacked, "stacked")
        positions = _unweight(stacked[:, :position_dims], self.position_weight)
        features = _unweight(stacked[:, position_dims:], self.feature_weight)
        return positions, features


def _unweight(values: np.ndarray, weight: float) -> np.ndarray:
    if weight == 0:
        return np.zeros_like(values)
    return values / weight


def as_vector_array(values, name: str = "vectors") -> np.ndarray:
    """Convert input to a float64 (N, D) array; 1D input becomes (N, 1)."""
    arr = np.asarray(values, dtype=np.float64)
    if arr.ndim == 1:
        arr = arr.reshape(-1, 1)
    if arr.ndim != 2:
        raise InvalidInputError(f"{name} must be a 2D array", shape=arr.shape)
    return arr


def stack_points_and_normals_weighted(
    points: np.ndarray,
    normals: np.ndarray,
    point_weight: float = 1.0,
    normal_weight: float = 1.0,
) -> np.ndarray:
    """Stack 3D points and normals into 6D tuples with separate weights.

    Args:
        points: Points (N, 3)
        normals: Normals (N, 3)
        point_weight: Weight for points
        normal_weight: Weight for normals

    Returns:
        Stacked array (N, 6)
    """
    return Stacker(point_weight, normal_weight).stack(points, normals)


def positional_differential(
    p0: np.ndarray, n0: np.ndarray, p1: np.ndarray, n1: np.ndarray
) -> float:
    """Distance between two oriented points using positions only."""
    return float(np.linalg.norm(np.asarray(p1) - np.asarray(p0)))


def bilateral_differential(
    p0: np.ndarray,
    n0: np.ndarray,
    p1: np.ndarray,
    n1: np.ndarray,
    normal_sigma: float = 25.0,
) -> float:
    """Augmentative bilateral differential of two oriented points.

    Combines the positional distance with a normal term that is 0 for equal
    normals and 1 / normal_sigma for opposite ones.
    """
    positional = np.linalg.norm(np.asarray(p1) - np.asarray(p0))
    normal_term = (np.dot(n1, -np.asarray(n0)) * 0.5 + 0.5) / normal_sigma
    return float(np.hypot(positional, normal_term))
