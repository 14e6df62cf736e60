"""Unit tests for visualization functionality."""

import numpy as np
import pytest
import matplotlib
matplotlib.use("Agg")  # Use non-interactive backend for testing
import matplotlib.pyplot as plt

from bluecloud.visualization import PointCloudVisualizer, compare_spectra, plot_samples


@pytest.fixture
def sample_points():
    """Generate a 3D sample set."""
    return np.random.default_rng(0).random((100, 3)) * 2 - 1


@pytest.fixture
def visualizer():
    """Create visualizer instance."""
    return PointCloudVisualizer(figsize=(8, 6))


@pytest.mark.unit
class TestPointCloudVisualizer:
    """Test PointCloudVisualizer class."""

    def test_init(self):
        viz = PointCloudVisualizer(figsize=(10, 8))
        assert viz.figsize == (10, 8)

    def test_plot_samples_2d(self, visualizer, sample_points):
        fig = visualizer.plot_samples_2d(sample_points[:, :2], title="Blue", radius=0.1)
        assert fig.axes[0].get_title() == "Blue (100 samples)"
        plt.close(fig)

    def test_plot_samples_2d_with_features(self, visualizer, sample_points):
        fig = visualizer.plot_samples_2d(sample_points[:, :2], features=sample_points)
        # Scatter plus colorbar
        assert len(fig.axes) == 2
        plt.close(fig)

    def test_plot_points_3d(self, visualizer, sample_points):
        fig = visualizer.plot_points_3d(sample_points, title="Test Points", size=2.0)
        assert len(fig.axes) >= 1
        assert fig.axes[0].get_title() == "Test Points"
        plt.close(fig)

    def test_plot_with_normals(self, visualizer, sample_points):
        normals = np.random.default_rng(1).normal(size=(len(sample_points), 3))
        normals /= np.linalg.norm(normals, axis=1, keepdims=True)

        fig = visualizer.plot_with_normals(sample_points, normals, subsample=10)
        assert fig is not None
        plt.close(fig)

    def test_plot_power_spectrum(self, visualizer):
        frequencies = np.arange(1, 16, dtype=float)
        fig = visualizer.plot_power_spectrum(
            {"white": (frequencies, np.ones(15)), "blue": (frequencies, frequencies / 15)}
        )
        assert len(fig.axes[0].get_lines()) == 3  # two spectra and the reference line
        plt.close(fig)

    def test_plot_energy_history(self, visualizer):
        fig = visualizer.plot_energy_history([10.0, 8.0, 7.5])
        assert fig.axes[0].get_xlabel() == "Iteration"
        plt.close(fig)

    def test_save_figure(self, visualizer, sample_points, tmp_path):
        fig = visualizer.plot_points_3d(sample_points)
        output_path = tmp_path / "plots" / "test_plot.png"

        visualizer.save_figure(fig, output_path, dpi=100)

        assert output_path.exists()
        assert output_path.stat().st_size > 0

    def test_axes_equal(self, visualizer):
        fig = plt.figure()
        ax = fig.add_subplot(111, projection="3d")
        ax.scatter([0, 1], [0, 2], [0, 3])

        visualizer._set_axes_equal(ax)

        x_range = np.diff(ax.get_xlim3d())[0]
        y_range = np.diff(ax.get_ylim3d())[0]
        z_range = np.diff(ax.get_zlim3d())[0]
        assert np.allclose(x_range, y_range)
        assert np.allclose(y_range, z_range)
        plt.close(fig)


@pytest.mark.unit
class TestConvenienceFunctions:
    """Test convenience functions."""

    def test_plot_samples_dispatches_on_dims(self, sample_points, tmp_path):
        fig = plot_samples(sample_points[:, :2])
        assert fig.axes[0].name == "rectilinear"
        plt.close(fig)

        output_path = tmp_path / "samples_3d.png"
        plot_samples(sample_points, save_path=output_path)
        assert output_path.exists()

    def test_compare_spectra(self, tmp_path):
        rng = np.random.default_rng(2)
        output_path = tmp_path / "spectra.png"
        compare_spectra(
            {"a": rng.random((100, 2)), "b": rng.random((100, 2))},
            output_path=output_path,
            resolution=16,
        )
        assert output_path.exists()
