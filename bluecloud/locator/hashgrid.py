"""Hashed uniform grid locator."""

import itertools
import math
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

import numpy as np

from bluecloud.locator.base import Hit, Locator, squared_distances

# Integer cell coordinates, one per axis
Bucket = Tuple[int, ...]

# Relative slack for the sphere/box test; pruning must never drop a cell
# that a boundary point was hashed into.
_OVERLAP_TOLERANCE = 1e-9


def to_bucket(vector: np.ndarray, cell_size: float) -> Bucket:
    """Map a vector to the grid cell containing it."""
    return tuple(int(c) for c in np.floor(np.asarray(vector, dtype=np.float64) / cell_size))


def bucket_range(query: np.ndarray, radius: float, cell_size: float) -> Tuple[Bucket, Bucket]:
    """Inclusive range of buckets covered by the bounding box of a ball."""
    return to_bucket(query - radius, cell_size), to_bucket(query + radius, cell_size)


def iter_bucket_range(min_corner: Bucket, max_corner: Bucket) -> Iterator[Bucket]:
    """Iterate every bucket in the inclusive box, last axis varying fastest.

    Yields nothing if any axis of ``max_corner`` lies below ``min_corner``.
    """
    return itertools.product(
        *(range(lo, hi + 1) for lo, hi in zip(min_corner, max_corner))
    )


def ball_overlaps_bucket(
    center: np.ndarray,
    radius: float,
    bucket: Bucket,
    cell_size: float,
) -> bool:
    """Test whether a ball intersects the world-space bounds of a bucket.

    Sums the squared per-axis gaps between the center and the closest
    point of the cell ("On faster sphere-box overlap testing", Larsson et al.).
    An axis whose gap alone exceeds the radius rejects early.
    """
    lo = np.asarray(bucket, dtype=np.float64) * cell_size
    gaps = np.maximum(lo - center, 0.0) + np.maximum(center - (lo + cell_size), 0.0)
    limit = radius * (1.0 + _OVERLAP_TOLERANCE)
    if np.any(gaps > limit):
        return False
    return float(np.dot(gaps, gaps)) <= limit * limit


class HashGridLocator(Locator):
    """Locator that hashes vectors into a uniform grid of cells.

    A radius query visits only the cells overlapping the query ball, so the
    cost follows the local density instead of the total number of vectors.
    Vectors cannot be removed individually; call ``reset`` and rebuild.
    """

    def __init__(self, cell_size: float = 0.05, dims: Optional[int] = None):
        """Initialize an empty hash grid.

        Args:
            cell_size: Edge length of a grid cell. A query radius close to the
                cell size visits a few cells per axis.
            dims: Optional fixed dimensionality
        """
        if not cell_size > 0:
            raise ValueError(f"cell_size must be positive, got {cell_size}")
        super().__init__(dims)
        self.cell_size = float(cell_size)
        self._buckets: Dict[Bucket, List[int]] = {}

    @property
    def num_buckets(self) -> int:
        """Number of occupied buckets."""
        return len(self._buckets)

    def bucket_of(self, index: int) -> Bucket:
        """Bucket the vector at ``index`` was hashed into."""
        return to_bucket(self.get(index), self.cell_size)

    def find_any_within_radius(self, query: Iterable[float], radius: float) -> Optional[Hit]:
        q, r2 = self._prepare_query(query, radius)
        for indices in self._candidate_buckets(q, radius):
            d2 = squared_distances(self._buffer[indices], q)
            hits = np.flatnonzero(d2 <= r2)
            if len(hits) > 0:
                first = hits[0]
                return int(indices[first]), float(d2[first])
        return None

    def find_all_within_radius(
        self, query: Iterable[float], radius: float
    ) -> Tuple[np.ndarray, np.ndarray]:
        q, r2 = self._prepare_query(query, radius)
        found_indices = []
        found_dists = []
        for indices in self._candidate_buckets(q, radius):
            d2 = squared_distances(self._buffer[indices], q)
            mask = d2 <= r2
            if np.any(mask):
                found_indices.append(indices[mask])
                found_dists.append(d2[mask])
        if not found_indices:
            return np.empty(0, dtype=np.int64), np.empty(0, dtype=np.float64)
        return np.concatenate(found_indices), np.concatenate(found_dists)

    def find_closest_within_radius(self, query: Iterable[float], radius: float) -> Optional[Hit]:
        q, r2 = self._prepare_query(query, radius)
        best: Optional[Hit] = None
        for indices in self._candidate_buckets(q, radius):
            d2 = squared_distances(self._buffer[indices], q)
            local = int(np.argmin(d2))
            if d2[local] > r2:
                continue
            if best is None or d2[local] < best[1]:
                best = (int(indices[local]), float(d2[local]))
        return best

    def _index_vector(self, index: int, vector: np.ndarray) -> None:
        self._buckets.setdefault(to_bucket(vector, self.cell_size), []).append(index)

    def _reset_index(self) -> None:
        self._buckets = {}

    def _candidate_buckets(self, query: np.ndarray, radius: float) -> Iterator[np.ndarray]:
        """Yield index arrays of occupied buckets that overlap the query ball."""
        if self._size == 0:
            return
        min_corner, max_corner = bucket_range(query, radius, self.cell_size)
        n_cells = math.prod(hi - lo + 1 for lo, hi in zip(min_corner, max_corner))

        if n_cells <= len(self._buckets):
            for bucket in iter_bucket_range(min_corner, max_corner):
                indices = self._buckets.get(bucket)
                if indices is None:
                    continue
                if ball_overlaps_bucket(query, radius, bucket, self.cell_size):
                    yield np.asarray(indices, dtype=np.int64)
        else:
            # Fewer occupied cells than cells in the query box (sparse data or
            # high dimensionality): walk the occupied ones instead.
            for bucket, indices in self._buckets.items():
                inside = all(
                    lo <= b <= hi for b, lo, hi in zip(bucket, min_corner, max_corner)
                )
                if inside and ball_overlaps_bucket(query, radius, bucket, self.cell_size):
                    yield np.asarray(indices, dtype=np.int64)
