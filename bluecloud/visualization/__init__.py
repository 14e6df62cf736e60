"""Visualization tools for bluecloud."""

from bluecloud.visualization.point_cloud import (
    PointCloudVisualizer,
    compare_spectra,
    plot_samples,
)

__all__ = [
    "PointCloudVisualizer",
    "compare_spectra",
    "plot_samples",
]
