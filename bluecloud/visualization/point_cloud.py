"""Visualization of resampled point sets."""

from pathlib import Path
from typing import Dict, Optional, Sequence, Tuple, Union

import matplotlib.pyplot as plt
import numpy as np
from matplotlib.figure import Figure
from mpl_toolkits.mplot3d import Axes3D

from bluecloud.analysis import radial_power_spectrum


class PointCloudVisualizer:
    """Visualizer for sample sets, their spectra and relaxation history."""

    def __init__(self, figsize: Tuple[int, int] = (10, 8), style: str = "seaborn-v0_8"):
        """Initialize visualizer.

        Args:
            figsize: Figure size for matplotlib
            style: Matplotlib style
        """
        self.figsize = figsize
        if style in plt.style.available:
            plt.style.use(style)

    def plot_samples_2d(
        self,
        points: np.ndarray,
        title: str = "Samples",
        features: Optional[np.ndarray] = None,
        radius: Optional[float] = None,
        size: float = 4.0,
    ) -> Figure:
        """Plot a 2D sample set.

        Args:
            points: Sample positions (N, 2)
            title: Plot title
            features: Optional features (N,) or (N, F); colored by the first column
            radius: Optional conflict radius, drawn as a disc of radius/2 per sample
            size: Marker size

        Returns:
            Matplotlib figure
        """
        fig, ax = plt.subplots(figsize=self.figsize)

        color = None
        if features is not None:
            features = np.asarray(features)
            color = features if features.ndim == 1 else features[:, 0]

        scatter = ax.scatter(points[:, 0], points[:, 1], c=color, s=size, cmap="viridis")
        if color is not None:
            fig.colorbar(scatter, ax=ax)

        if radius is not None:
            for x, y in points[:, :2]:
                ax.add_patch(plt.Circle((x, y), radius / 2, fill=False, lw=0.3, alpha=0.5))

        ax.set_xlabel("X")
        ax.set_ylabel("Y")
        ax.set_title(f"{title} ({len(points)} samples)")
        ax.set_aspect("equal")

        plt.tight_layout()
        return fig

    def plot_points_3d(
        self,
        points: np.ndarray,
        title: str = "Point Cloud",
        color: Optional[np.ndarray] = None,
        size: float = 1.0,
        alpha: float = 0.8,
        elev: float = 30,
        azim: float = 45,
    ) -> Figure:
        """Plot 3D point cloud.

        Args:
            points: Point cloud array (N, 3)
            title: Plot title
            color: Color array (N,) or (N, 3) or single color
            size: Point size
            alpha: Point transparency
            elev: Elevation viewing angle
            azim: Azimuth viewing angle

        Returns:
            Matplotlib figure
        """
        fig = plt.figure(figsize=self.figsize)
        ax = fig.add_subplot(111, projection="3d")

        if color is None:
            color = points[:, 2]

        scatter = ax.scatter(
            points[:, 0],
            points[:, 1],
            points[:, 2],
            c=color,
            s=size,
            alpha=alpha,
            cmap="viridis",
        )

        if isinstance(color, np.ndarray) and color.ndim == 1:
            plt.colorbar(scatter, ax=ax, pad=0.1)

        ax.set_xlabel("X")
        ax.set_ylabel("Y")
        ax.set_zlabel("Z")
        ax.set_title(title)
        ax.view_init(elev=elev, azim=azim)
        self._set_axes_equal(ax)

        plt.tight_layout()
        return fig

    def plot_with_normals(
        self,
        points: np.ndarray,
        normals: np.ndarray,
        title: str = "Point Cloud with Normals",
        normal_length: float = 0.1,
        subsample: int = 10,
    ) -> Figure:
        """Plot point cloud with normal vectors.

        Args:
            points: Point cloud array (N, 3)
            normals: Normal vectors (N, 3)
            title: Plot title
            normal_length: Length of normal arrows
            subsample: Show every nth normal for clarity

        Returns:
            Matplotlib figure
        """
        fig = plt.figure(figsize=self.figsize)
        ax = fig.add_subplot(111, projection="3d")

        ax.scatter(points[:, 0], points[:, 1], points[:, 2], c="blue", s=1, alpha=0.5)

        shown = slice(None, None, max(1, subsample))
        ax.quiver(
            points[shown, 0],
            points[shown, 1],
            points[shown, 2],
            normals[shown, 0],
            normals[shown, 1],
            normals[shown, 2],
            length=normal_length,
            color="red",
            alpha=0.6,
            arrow_length_ratio=0.3,
        )

        ax.set_xlabel("X")
        ax.set_ylabel("Y")
        ax.set_zlabel("Z")
        ax.set_title(title)

        self._set_axes_equal(ax)
        plt.tight_layout()
        return fig

    def plot_power_spectrum(
        self,
        spectra: Dict[str, Tuple[np.ndarray, np.ndarray]],
        title: str = "Radial Power Spectrum",
    ) -> Figure:
        """Plot radially averaged power spectra.

        Args:
            spectra: Mapping from label to (frequencies, power)
            title: Plot title

        Returns:
            Matplotlib figure
        """
        fig, ax = plt.subplots(figsize=self.figsize)
        for label, (frequencies, power) in spectra.items():
            ax.plot(frequencies, power, label=label)

        ax.axhline(1.0, color="gray", linestyle="--", linewidth=0.8)
        ax.set_xlabel("Frequency")
        ax.set_ylabel("Power")
        ax.set_title(title)
        ax.legend()

        plt.tight_layout()
        return fig

    def plot_energy_history(
        self,
        energies: Sequence[float],
        title: str = "Energy Minimization",
    ) -> Figure:
        """Plot total energy per relaxation iteration."""
        fig, ax = plt.subplots(figsize=self.figsize)
        ax.plot(np.arange(len(energies)), energies, marker="o")
        ax.set_xlabel("Iteration")
        ax.set_ylabel("Total energy")
        ax.set_title(title)

        plt.tight_layout()
        return fig

    def save_figure(self, fig: Figure, path: Union[str, Path], dpi: int = 150) -> None:
        """Save figure to file.

        Args:
            fig: Matplotlib figure
            path: Output file path
            dpi: Resolution in dots per inch
        """
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(path, dpi=dpi, bbox_inches="tight")
        plt.close(fig)

    def _set_axes_equal(self, ax: Axes3D) -> None:
        """Set equal aspect ratio for 3D axes."""
        limits = np.array([ax.get_xlim3d(), ax.get_ylim3d(), ax.get_zlim3d()])
        half_range = np.abs(limits[:, 1] - limits[:, 0]).max() / 2
        middles = limits.mean(axis=1)

        ax.set_xlim3d([middles[0] - half_range, middles[0] + half_range])
        ax.set_ylim3d([middles[1] - half_range, middles[1] + half_range])
        ax.set_zlim3d([middles[2] - half_range, middles[2] + half_range])


# Convenience functions
def plot_samples(
    points: np.ndarray,
    title: str = "Samples",
    save_path: Optional[Union[str, Path]] = None,
    **kwargs,
) -> Figure:
    """Quick function to plot a 2D or 3D sample set.

    Args:
        points: Sample positions (N, 2) or (N, 3)
        title: Plot title
        save_path: Optional path to save figure
        **kwargs: Additional arguments for plotting

    Returns:
        Figure object
    """
    viz = PointCloudVisualizer()
    if points.shape[1] == 2:
        fig = viz.plot_samples_2d(points, title, **kwargs)
    else:
        fig = viz.plot_points_3d(points, title, **kwargs)

    if save_path:
        viz.save_figure(fig, save_path)
    return fig


def compare_spectra(
    point_sets: Dict[str, np.ndarray],
    output_path: Optional[Union[str, Path]] = None,
    resolution: int = 64,
    title: str = "Radial Power Spectrum",
) -> Figure:
    """Compare the power spectra of several 2D sample sets in the unit square.

    Args:
        point_sets: Mapping from label to points (N, 2)
        output_path: Optional path to save comparison
        resolution: Frequencies per axis
        title: Figure title

    Returns:
        Comparison figure
    """
    viz = PointCloudVisualizer()
    spectra = {
        label: radial_power_spectrum(points, resolution=resolution)
        for label, points in point_sets.items()
    }
    fig = viz.plot_power_spectrum(spectra, title)

    if output_path:
        viz.save_figure(fig, output_path)
    return fig
