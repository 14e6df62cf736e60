"""Main resampling pipeline for oriented point clouds."""

import time
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

import numpy as np
from rich.console import Console

from bluecloud.analysis import distribution_stats
from bluecloud.core.config import Config
from bluecloud.core.exceptions import InvalidInputError
from bluecloud.processing import PointCloudLoader, PointCloudNormalizer, Stacker, save_xyz
from bluecloud.processing.stacking import as_vector_array
from bluecloud.sampling import (
    ClampToBox,
    DartThrowing,
    EnergyMinimization,
    NormalizeFeature,
    SnapToReference,
)
from bluecloud.utils.logging import (
    StructuredLogger,
    get_logger,
    log_performance,
    log_resample_result,
)

logger = get_logger(__name__)


class ResampleResult:
    """Result of a resampling operation."""

    def __init__(
        self,
        success: bool,
        input_path: Optional[Path] = None,
        output_path: Optional[Path] = None,
        indices: Optional[np.ndarray] = None,
        positions: Optional[np.ndarray] = None,
        normals: Optional[np.ndarray] = None,
        gave_up: bool = False,
        error: Optional[str] = None,
        metrics: Optional[Dict[str, Any]] = None,
    ):
        """Initialize resample result.

        Args:
            success: Whether resampling succeeded
            input_path: Input file path (None for in-memory input)
            output_path: Output XYZ file path (if written)
            indices: Candidate indices picked by dart throwing
            positions: Resampled positions in the input frame
            normals: Resampled normals in the input frame
            gave_up: Whether dart throwing hit its attempt budget
            error: Error message (if failed)
            metrics: Timing and quality metrics
        """
        self.success = success
        self.input_path = input_path
        self.output_path = output_path
        self.indices = indices
        self.positions = positions
        self.normals = normals
        self.gave_up = gave_up
        self.error = error
        self.metrics = metrics or {}
        self.timestamp = time.time()

    @property
    def num_samples(self) -> int:
        return 0 if self.positions is None else len(self.positions)


class Resampler:
    """Blue-noise resampler: normalize, dart-throw, relax, restore."""

    def __init__(
        self,
        config: Optional[Config] = None,
        console: Optional[Console] = None,
    ):
        """Initialize resampler.

        Args:
            config: Configuration object
            console: Rich console for output
        """
        self.config = config or Config()
        self.console = console or Console()
        self.loader = PointCloudLoader(
            surface_samples=self.config.io.surface_samples,
            seed=self.config.dart_throwing.seed,
        )
        self.normalizer = PointCloudNormalizer()
        self.stacker = Stacker(
            position_weight=self.config.stacking.position_weight,
            feature_weight=self.config.stacking.feature_weight,
        )

    def resample(
        self,
        positions: np.ndarray,
        normals: np.ndarray,
        progress_callback: Optional[Callable[[str], None]] = None,
    ) -> ResampleResult:
        """Resample an in-memory oriented point cloud.

        Radii and sigma are measured in the normalized frame when
        normalization is enabled, i.e. relative to the longest side.

        Args:
            positions: Candidate positions (N, 3)
            normals: Candidate normals (N, 3)
            progress_callback: Optional callback for progress updates

        Returns:
            ResampleResult with the resampled cloud

        Raises:
            InvalidInputError: If the input is empty or shapes disagree
        """
        positions = as_vector_array(positions, "positions")
        normals = as_vector_array(normals, "normals")
        if len(positions) == 0:
            raise InvalidInputError("point cloud is empty")
        if positions.shape != normals.shape:
            raise InvalidInputError(
                "positions and normals differ in shape",
                positions=positions.shape,
                normals=normals.shape,
            )

        start_time = time.time()
        metrics: Dict[str, Any] = {"candidates": len(positions)}

        # 1. Normalize
        transform_info = None
        if self.config.normalization.enabled:
            positions, normals, transform_info = self.normalizer.normalize(positions, normals)
            metrics["scale_factor"] = transform_info.get("scale_factor")

        # 2. Dart throwing
        if progress_callback:
            progress_callback(f"Dart throwing over {len(positions)} candidates...")

        step_start = time.time()
        dart = self._create_dart_throwing()
        dart_result = dart.resample(positions, normals)
        metrics["dart_throwing_time"] = time.time() - step_start
        metrics["acceptance_rate"] = dart_result.acceptance_rate
        log_performance(
            logger, "dart_throwing", metrics["dart_throwing_time"], accepted=len(dart_result)
        )

        sample_positions = positions[dart_result.indices]
        sample_normals = normals[dart_result.indices]

        # 3. Energy minimization
        if self.config.energy.iterations > 0:
            if progress_callback:
                progress_callback(
                    f"Relaxing {len(sample_positions)} samples "
                    f"({self.config.energy.iterations} iterations)..."
                )

            step_start = time.time()
            energy_result = self._create_energy_minimization().minimize(
                sample_positions,
                sample_normals,
                constrain=self._create_constraint(positions, normals),
                iterations=self.config.energy.iterations,
            )
            sample_positions = energy_result.positions
            sample_normals = energy_result.features
            metrics["relaxation_time"] = time.time() - step_start
            metrics["energies"] = energy_result.energies
            metrics["final_energy"] = energy_result.final_energy
            log_performance(
                logger,
                "energy_minimization",
                metrics["relaxation_time"],
                final_energy=energy_result.final_energy,
            )

        stats = distribution_stats(sample_positions)
        metrics["nn_min"] = stats["nn_min"]
        metrics["nn_cv"] = stats["nn_cv"]

        # 4. Restore the input frame
        if transform_info is not None and self.config.normalization.restore:
            sample_positions, sample_normals = self.normalizer.restore(
                sample_positions, sample_normals, transform_info
            )

        metrics["samples"] = len(sample_positions)
        metrics["total_time"] = time.time() - start_time

        return ResampleResult(
            success=True,
            indices=dart_result.indices,
            positions=sample_positions,
            normals=sample_normals,
            gave_up=dart_result.gave_up,
            metrics=metrics,
        )

    def resample_file(
        self,
        input_path: Union[str, Path],
        output_path: Optional[Union[str, Path]] = None,
        progress_callback: Optional[Callable[[str], None]] = None,
    ) -> ResampleResult:
        """Resample a point cloud or mesh file into an XYZ file.

        Args:
            input_path: Path to input point cloud or mesh
            output_path: Path for output XYZ file (auto-generated if None)
            progress_callback: Optional callback for progress updates

        Returns:
            ResampleResult with success status and metrics
        """
        input_path = Path(input_path)
        if output_path is None:
            output_path = input_path.with_name(
                f"{input_path.stem}{self.config.io.output_suffix}.xyz"
            )
        else:
            output_path = Path(output_path)

        start_time = time.time()
        metrics: Dict[str, Any] = {}

        try:
            with StructuredLogger(logger, "resample_file", input_file=str(input_path)):
                # 1. Load
                if progress_callback:
                    progress_callback(f"Loading {input_path.name}...")

                positions, normals = self.loader.load(input_path)
                metrics["load_time"] = time.time() - start_time

                # 2. Resample
                result = self.resample(positions, normals, progress_callback)
                metrics.update(result.metrics)

                # 3. Save
                if progress_callback:
                    progress_callback(f"Writing {result.num_samples} samples...")

                save_xyz(output_path, result.positions, result.normals)
                metrics["total_time"] = time.time() - start_time

            result.input_path = input_path
            result.output_path = output_path
            result.metrics = metrics

        except Exception as e:
            result = ResampleResult(
                success=False,
                input_path=input_path,
                error=f"Failed to resample {input_path.name}: {e}",
                metrics=metrics,
            )

        log_resample_result(logger, result)
        return result

    def resample_batch(
        self,
        paths: List[Union[str, Path]],
        output_dir: Optional[Union[str, Path]] = None,
        progress_callback: Optional[Callable[[str], None]] = None,
    ) -> List[ResampleResult]:
        """Resample multiple files, one after the other.

        Args:
            paths: Input file paths
            output_dir: Output directory (uses input dirs if None)
            progress_callback: Optional callback for progress updates

        Returns:
            List of ResampleResult objects, in input order
        """
        results = []
        for i, path in enumerate(paths):
            path = Path(path)
            if progress_callback:
                progress_callback(f"Processing file {i + 1}/{len(paths)}: {path.name}")

            output_path = None
            if output_dir:
                output_path = Path(output_dir) / f"{path.stem}{self.config.io.output_suffix}.xyz"

            results.append(self.resample_file(path, output_path, progress_callback))

        return results

    def _locator_params(self) -> Dict[str, Any]:
        return {"cell_size": self.config.locator.cell_size}

    def _create_dart_throwing(self) -> DartThrowing:
        cfg = self.config.dart_throwing
        return DartThrowing(
            conflict_radius=cfg.conflict_radius,
            max_attempts=cfg.max_attempts,
            seed=cfg.seed,
            locator=self.config.locator.strategy,
            locator_params=self._locator_params(),
            stacker=self.stacker,
            progress_interval=cfg.progress_interval,
        )

    def _create_energy_minimization(self) -> EnergyMinimization:
        cfg = self.config.energy
        return EnergyMinimization(
            sigma=cfg.sigma,
            step_size=cfg.step_size,
            max_search_radius=cfg.max_search_radius,
            locator=self.config.locator.strategy,
            locator_params=self._locator_params(),
            stacker=self.stacker,
        )

    def _create_constraint(self, positions: np.ndarray, normals: np.ndarray):
        constraint = self.config.energy.constraint
        if constraint == "snap":
            return SnapToReference(positions, normals)
        if constraint == "clamp":
            return ClampToBox(positions.min(axis=0), positions.max(axis=0))
        if constraint == "normalize":
            return NormalizeFeature()
        return None
