"""Constraints applied to samples during energy minimization.

Every constraint is a callable ``(position, feature) -> None`` that edits the
two row views it receives in place.
"""

from typing import Callable, Optional

import numpy as np
from scipy.spatial import cKDTree

from bluecloud.core.exceptions import InvalidInputError
from bluecloud.processing.stacking import as_vector_array

Constraint = Callable[[np.ndarray, np.ndarray], None]


class ClampToBox:
    """Clamps positions into an axis-aligned box."""

    def __init__(self, lower, upper):
        self.lower = np.asarray(lower, dtype=np.float64)
        self.upper = np.asarray(upper, dtype=np.float64)
        if np.any(self.lower > self.upper):
            raise InvalidInputError(
                "box lower corner exceeds upper corner",
                lower=self.lower.tolist(),
                upper=self.upper.tolist(),
            )

    def __call__(self, position: np.ndarray, feature: np.ndarray) -> None:
        np.clip(position, self.lower, self.upper, out=position)

    def __repr__(self) -> str:
        return f"ClampToBox(lower={self.lower.tolist()}, upper={self.upper.tolist()})"


class SnapToReference:
    """Moves a sample onto the nearest reference sample.

    The reference feature (e.g. the surface normal) is copied along, so
    relaxed samples stay on the input surface with consistent normals.
    """

    def __init__(self, positions: np.ndarray, features: Optional[np.ndarray] = None):
        """Initialize the constraint.

        Args:
            positions: Reference positions (N, P)
            features: Optional reference features (N, F)

        Raises:
            InvalidInputError: If there are no references or lengths differ
        """
        self.positions = as_vector_array(positions, "positions")
        if len(self.positions) == 0:
            raise InvalidInputError("no reference samples given")

        self.features = None
        if features is not None:
            self.features = as_vector_array(features, "features")
            if len(self.features) != len(self.positions):
                raise InvalidInputError(
                    "reference positions and features differ in length",
                    positions=len(self.positions),
                    features=len(self.features),
                )

        self._tree = cKDTree(self.positions)

    def __call__(self, position: np.ndarray, feature: np.ndarray) -> None:
        _, index = self._tree.query(position)
        position[:] = self.positions[index]
        if self.features is not None and feature.size:
            feature[:] = self.features[index]


class NormalizeFeature:
    """Rescales the feature to unit length; zero features are left as they are."""

    def __call__(self, position: np.ndarray, feature: np.ndarray) -> None:
        norm = np.linalg.norm(feature)
        if norm > 0:
            feature /= norm


def compose(*constraints: Optional[Constraint]) -> Constraint:
    """Chain constraints; they are applied in the given order.

    ``None`` entries are skipped.
    """
    active = [constraint for constraint in constraints if constraint is not None]

    def apply(position: np.ndarray, feature: np.ndarray) -> None:
        for constraint in active:
            constraint(position, feature)

    return apply
