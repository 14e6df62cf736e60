"""Spacing and spectral measures for blue-noise sample sets."""

import math
from typing import Any, Dict, Tuple

import numpy as np
from scipy.spatial import cKDTree

from bluecloud.processing.stacking import as_vector_array


def nearest_neighbor_distances(vectors: np.ndarray) -> np.ndarray:
    """Distance from every vector to its nearest other vector.

    Args:
        vectors: Array of shape (N, D)

    Returns:
        Array of shape (N,); empty when fewer than two vectors are given
    """
    vectors = as_vector_array(vectors, "vectors")
    if len(vectors) < 2:
        return np.empty(0, dtype=np.float64)

    distances, _ = cKDTree(vectors).query(vectors, k=2)
    return distances[:, 1]


def min_pairwise_distance(vectors: np.ndarray) -> float:
    """Smallest distance between two distinct vectors (inf for fewer than two)."""
    distances = nearest_neighbor_distances(vectors)
    if len(distances) == 0:
        return math.inf
    return float(distances.min())


def is_conflict_free(vectors: np.ndarray, radius: float, tolerance: float = 1e-9) -> bool:
    """Check that no two vectors are closer than ``radius``.

    Args:
        vectors: Array of shape (N, D)
        radius: Conflict radius
        tolerance: Slack for floating point rounding

    Returns:
        True if every pairwise distance is at least ``radius - tolerance``
    """
    return min_pairwise_distance(vectors) >= radius - tolerance


def distribution_stats(vectors: np.ndarray) -> Dict[str, Any]:
    """Summarize the nearest-neighbour spacing of a sample set.

    A low coefficient of variation means evenly spaced samples.
    """
    distances = nearest_neighbor_distances(vectors)
    stats: Dict[str, Any] = {"count": len(as_vector_array(vectors, "vectors"))}
    if len(distances) == 0:
        stats.update(nn_min=None, nn_mean=None, nn_std=None, nn_cv=None)
        return stats

    mean = float(distances.mean())
    std = float(distances.std())
    stats.update(
        nn_min=float(distances.min()),
        nn_mean=mean,
        nn_std=std,
        nn_cv=std / mean if mean > 0 else None,
    )
    return stats


def radial_power_spectrum(
    points: np.ndarray,
    resolution: int = 64,
) -> Tuple[np.ndarray, np.ndarray]:
    """Radially averaged periodogram of a 2D point set in the unit square.

    The periodogram ``|sum_j exp(-2 pi i k . x_j)|^2 / N`` is evaluated on the
    integer frequency lattice ``[-resolution/2, resolution/2)^2`` and averaged
    over rings of equal ``|k|``. Blue noise shows low power at low
    frequencies and a flat tail around 1.

    Args:
        points: Array of shape (N, 2)
        resolution: Number of frequencies per axis

    Returns:
        Tuple of (frequencies, power), DC term excluded
    """
    points = as_vector_array(points, "points")
    if points.shape[1] != 2:
        raise ValueError(f"points must be 2D, got {points.shape[1]} dimensions")
    if len(points) == 0:
        raise ValueError("points must not be empty")

    half = resolution // 2
    freqs = np.arange(-half, resolution - half)
    kx, ky = np.meshgrid(freqs, freqs, indexing="ij")

    # (N, R) phase terms per axis; the 2D sum factorizes into a matrix product
    phase_x = np.exp(-2j * np.pi * np.outer(points[:, 0], freqs))
    phase_y = np.exp(-2j * np.pi * np.outer(points[:, 1], freqs))
    spectrum = phase_x.T @ phase_y
    periodogram = np.abs(spectrum) ** 2 / len(points)

    radius = np.rint(np.hypot(kx, ky)).astype(np.int64).ravel()
    totals = np.bincount(radius, weights=periodogram.ravel())
    counts = np.bincount(radius)

    rings = np.arange(1, half)
    return rings.astype(np.float64), totals[rings] / counts[rings]


def packing_bound(radius: float, extent: float, dims: int) -> int:
    """Upper bound on the size of a conflict-free set in a cube.

    Balls of radius ``radius / 2`` around conflict-free samples are disjoint
    and fit in the cube grown by ``radius / 2`` on every side.

    Args:
        radius: Conflict radius
        extent: Side length of the cube holding the samples
        dims: Dimensionality

    Returns:
        Maximum possible number of samples
    """
    if radius <= 0:
        raise ValueError(f"radius must be positive, got {radius}")
    if dims < 1:
        raise ValueError(f"dims must be at least 1, got {dims}")

    half = radius / 2.0
    ball_volume = math.pi ** (dims / 2.0) / math.gamma(dims / 2.0 + 1.0) * half ** dims
    box_volume = (extent + radius) ** dims
    return int(math.floor(box_volume / ball_volume))
