"""Base class and shared storage for spatial locators."""

from abc import ABC, abstractmethod
from typing import Iterable, Optional, Tuple

import numpy as np

from bluecloud.core.exceptions import DimensionMismatchError

# Result of single-hit queries: (index, squared distance)
Hit = Tuple[int, float]


class Locator(ABC):
    """Abstract base class for radius queries over n-dimensional vectors.

    Vectors are stored by value and receive dense sequential indices in
    insertion order. The dimensionality is fixed by the first insertion
    (or at construction) and checked for every later insertion and query.
    """

    _INITIAL_CAPACITY = 64

    def __init__(self, dims: Optional[int] = None):
        """Initialize an empty locator.

        Args:
            dims: Optional fixed dimensionality. If None, the first added
                vector determines it.
        """
        if dims is not None and dims < 1:
            raise ValueError(f"dims must be positive, got {dims}")
        self._fixed_dims = dims
        self._dims = dims
        self._size = 0
        self._buffer = np.empty((0, dims or 0), dtype=np.float64)

    @property
    def dims(self) -> Optional[int]:
        """Dimensionality of stored vectors, or None while unset."""
        return self._dims

    @property
    def points(self) -> np.ndarray:
        """Read-only view of all stored vectors (N, D)."""
        view = self._buffer[: self._size]
        view.flags.writeable = False
        return view

    def __len__(self) -> int:
        return self._size

    def reset(self) -> None:
        """Drop all stored vectors."""
        self._dims = self._fixed_dims
        self._size = 0
        self._buffer = np.empty((0, self._dims or 0), dtype=np.float64)
        self._reset_index()

    def add(self, vector: Iterable[float]) -> int:
        """Add a vector.

        Args:
            vector: Vector of the locator's dimensionality

        Returns:
            Sequential index of the stored vector
        """
        v = self._as_vector(vector)
        index = self._size
        self._reserve(index + 1)
        self._buffer[index] = v
        self._size += 1
        self._index_vector(index, self._buffer[index])
        return index

    def add_many(self, vectors: Iterable[Iterable[float]]) -> range:
        """Add vectors in order.

        Args:
            vectors: Array-like of shape (M, D)

        Returns:
            Range of the assigned indices
        """
        arr = np.asarray(vectors, dtype=np.float64)
        if arr.size == 0:
            return range(self._size, self._size)
        if arr.ndim != 2:
            raise ValueError(f"Expected a 2D array of vectors, got shape {arr.shape}")
        start = self._size
        for row in arr:
            self.add(row)
        return range(start, self._size)

    def get(self, index: int) -> np.ndarray:
        """Get the vector stored at ``index``.

        Raises:
            IndexError: If nothing was stored at that index
        """
        if not 0 <= index < self._size:
            raise IndexError(f"Locator index {index} out of range [0, {self._size})")
        view = self._buffer[index]
        view.flags.writeable = False
        return view

    @abstractmethod
    def find_any_within_radius(self, query: Iterable[float], radius: float) -> Optional[Hit]:
        """Find any stored vector within ``radius`` of ``query``.

        The hit is not necessarily the closest one.

        Returns:
            (index, squared distance) or None
        """
        pass

    @abstractmethod
    def find_all_within_radius(
        self, query: Iterable[float], radius: float
    ) -> Tuple[np.ndarray, np.ndarray]:
        """Find all stored vectors within ``radius`` of ``query``.

        Returns:
            Tuple of (indices, squared distances), unordered. Both arrays are
            empty when nothing is in range.
        """
        pass

    @abstractmethod
    def find_closest_within_radius(self, query: Iterable[float], radius: float) -> Optional[Hit]:
        """Find the closest stored vector within ``radius`` of ``query``.

        Ties resolve to the first vector met in the internal scan order.

        Returns:
            (index, squared distance) or None
        """
        pass

    def _index_vector(self, index: int, vector: np.ndarray) -> None:
        """Hook for strategies that maintain an auxiliary structure."""

    def _reset_index(self) -> None:
        """Hook for strategies that maintain an auxiliary structure."""

    def _reserve(self, capacity: int) -> None:
        if capacity <= len(self._buffer):
            return
        new_capacity = max(capacity, 2 * len(self._buffer), self._INITIAL_CAPACITY)
        grown = np.empty((new_capacity, self._dims), dtype=np.float64)
        grown[: self._size] = self._buffer[: self._size]
        self._buffer = grown

    def _as_vector(self, vector: Iterable[float]) -> np.ndarray:
        v = np.asarray(vector, dtype=np.float64)
        if v.ndim != 1:
            raise ValueError(f"Expected a 1D vector, got shape {v.shape}")
        if self._dims is None:
            self._dims = v.shape[0]
            self._buffer = np.empty((0, self._dims), dtype=np.float64)
        elif v.shape[0] != self._dims:
            raise DimensionMismatchError(self._dims, v.shape[0])
        return v

    def _prepare_query(self, query: Iterable[float], radius: float) -> Tuple[np.ndarray, float]:
        if radius < 0:
            raise ValueError(f"radius must be non-negative, got {radius}")
        q = np.asarray(query, dtype=np.float64)
        if q.ndim != 1:
            raise ValueError(f"Expected a 1D query vector, got shape {q.shape}")
        if self._dims is not None and q.shape[0] != self._dims:
            raise DimensionMismatchError(self._dims, q.shape[0])
        return q, float(radius) * float(radius)


def squared_distances(points: np.ndarray, query: np.ndarray) -> np.ndarray:
    """Squared L2 distances from every row of ``points`` to ``query``."""
    diff = points - query
    return np.einsum("ij,ij->i", diff, diff)
