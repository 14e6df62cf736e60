"""Exhaustive-search locator."""

from typing import Iterable, Optional, Tuple

import numpy as np

from bluecloud.locator.base import Hit, Locator, squared_distances


class BruteForceLocator(Locator):
    """Locator that scans every stored vector for each query.

    O(N) per query. Serves as the correctness baseline and is the faster
    choice for small sets or high dimensionality.
    """

    def find_any_within_radius(self, query: Iterable[float], radius: float) -> Optional[Hit]:
        q, r2 = self._prepare_query(query, radius)
        if self._size == 0:
            return None
        d2 = squared_distances(self._buffer[: self._size], q)
        hits = np.flatnonzero(d2 <= r2)
        if len(hits) == 0:
            return None
        index = int(hits[0])
        return index, float(d2[index])

    def find_all_within_radius(
        self, query: Iterable[float], radius: float
    ) -> Tuple[np.ndarray, np.ndarray]:
        q, r2 = self._prepare_query(query, radius)
        if self._size == 0:
            return np.empty(0, dtype=np.int64), np.empty(0, dtype=np.float64)
        d2 = squared_distances(self._buffer[: self._size], q)
        hits = np.flatnonzero(d2 <= r2).astype(np.int64)
        return hits, d2[hits]

    def find_closest_within_radius(self, query: Iterable[float], radius: float) -> Optional[Hit]:
        q, r2 = self._prepare_query(query, radius)
        if self._size == 0:
            return None
        d2 = squared_distances(self._buffer[: self._size], q)
        # argmin returns the first occurrence on ties
        index = int(np.argmin(d2))
        if d2[index] > r2:
            return None
        return index, float(d2[index])
