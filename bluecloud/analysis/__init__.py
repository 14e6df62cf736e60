"""Quality measures for resampled point sets."""

from bluecloud.analysis.metrics import (
    distribution_stats,
    is_conflict_free,
    min_pairwise_distance,
    nearest_neighbor_distances,
    packing_bound,
    radial_power_spectrum,
)

__all__ = [
    "distribution_stats",
    "is_conflict_free",
    "min_pairwise_distance",
    "nearest_neighbor_distances",
    "packing_bound",
    "radial_power_spectrum",
]
