"""Sample relaxation by Gaussian energy minimization."""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

import numpy as np
from tqdm import tqdm

from bluecloud.core.exceptions import ConfigurationError, InvalidInputError
from bluecloud.locator import Locator, LocatorFactory
from bluecloud.processing.stacking import Stacker, as_vector_array
from bluecloud.utils.logging import get_logger

logger = get_logger(__name__)

# Called with views of one sample's position and feature; edits them in place
ConstraintFn = Callable[[np.ndarray, np.ndarray], None]
IterationCallback = Callable[[int, np.ndarray, np.ndarray, float], None]

# Gaussian cutoff covering 99% of the kernel mass
DEFAULT_CUTOFF_SIGMAS = 2.576
DEFAULT_STEP_FACTOR = 0.03


@dataclass
class EnergyResult:
    """Outcome of an energy minimization run.

    Attributes:
        positions: Relaxed positions (N, P)
        features: Features after constraints (N, F), or None if none were given
        energies: Total energy at the start of every iteration
        final_energy: Total energy of the returned configuration
    """

    positions: np.ndarray
    features: Optional[np.ndarray]
    energies: List[float] = field(default_factory=list)
    final_energy: float = 0.0

    @property
    def iterations(self) -> int:
        return len(self.energies)


class EnergyMinimization:
    """Relaxes a sample set by gradient descent on a pairwise Gaussian energy.

    Every sample is pushed away from its neighbours along the negative
    gradient of a sum of Gaussian bumps centred on all other samples.
    Distances are measured between stacked vectors but only the positional
    part moves; features are carried along unless the constraint changes them.
    """

    def __init__(
        self,
        sigma: float = 0.03,
        step_size: Optional[float] = None,
        max_search_radius: Optional[float] = None,
        locator: str = "hashgrid",
        locator_params: Optional[Dict[str, Any]] = None,
        stacker: Optional[Stacker] = None,
        show_progress: bool = False,
    ):
        """Initialize energy minimization.

        Args:
            sigma: Gaussian kernel bandwidth
            step_size: Gradient descent step (default 0.03 * sigma^2)
            max_search_radius: Neighbour cutoff (default 2.576 * sigma)
            locator: Locator strategy name
            locator_params: Additional locator arguments
            stacker: Stacker for position/feature input (default weights if None)
            show_progress: Whether to show a progress bar over iterations
        """
        if not sigma > 0:
            raise ConfigurationError(f"sigma must be positive, got {sigma}")
        self.sigma = float(sigma)
        self.step_size = (
            DEFAULT_STEP_FACTOR * self.sigma ** 2 if step_size is None else float(step_size)
        )
        self.max_search_radius = (
            DEFAULT_CUTOFF_SIGMAS * self.sigma
            if max_search_radius is None
            else float(max_search_radius)
        )
        if not self.step_size > 0:
            raise ConfigurationError(f"step_size must be positive, got {self.step_size}")
        if not self.max_search_radius > 0:
            raise ConfigurationError(
                f"max_search_radius must be positive, got {self.max_search_radius}"
            )

        self.locator = locator
        self.locator_params = dict(locator_params or {})
        self.stacker = stacker or Stacker()
        self.show_progress = show_progress

    def minimize(
        self,
        positions: np.ndarray,
        features: Optional[np.ndarray] = None,
        constrain: Optional[ConstraintFn] = None,
        iterations: int = 10,
        callback: Optional[IterationCallback] = None,
    ) -> EnergyResult:
        """Relax samples for a fixed number of iterations.

        Args:
            positions: Sample positions (N, P)
            features: Optional sample features (N, F)
            constrain: Applied in place to every updated sample
            iterations: Number of gradient steps
            callback: Called after every iteration with
                ``(iteration, positions, features, energy)``. The arrays are
                reused by the next iteration; copy them to keep them.

        Returns:
            EnergyResult with the relaxed samples

        Raises:
            InvalidInputError: If the input is empty or lengths differ
        """
        if iterations < 0:
            raise ConfigurationError(f"iterations must be non-negative, got {iterations}")
        positions, feature_array = self._validate(positions, features)
        n_samples, position_dims = positions.shape

        # Two generations; each iteration reads one and writes the other
        current = (positions.copy(), feature_array.copy())
        following = (positions.copy(), feature_array.copy())
        loc = self._create_locator()
        energies: List[float] = []

        for iteration in tqdm(
            range(iterations), desc="Energy minimization", disable=not self.show_progress
        ):
            cur_positions, cur_features = current
            next_positions, next_features = following

            self._rebuild(loc, cur_positions, cur_features)
            points = loc.points

            total_energy = 0.0
            for i in range(n_samples):
                energy, gradient = self._sample_energy(i, loc, points)
                total_energy += energy

                next_positions[i] = cur_positions[i] - self.step_size * gradient[:position_dims]
                next_features[i] = cur_features[i]

                if constrain is not None:
                    constrain(next_positions[i], next_features[i])

            energies.append(total_energy)
            logger.debug(
                "energy_minimization_iteration",
                iteration=iteration,
                progress_pct=round((iteration + 1) / iterations * 100, 2),
                total_energy=total_energy,
            )

            current, following = following, current
            if callback is not None:
                callback(iteration, current[0], current[1], total_energy)

        result_positions, result_features = current
        final_energy = self._total_energy(loc, result_positions, result_features)
        logger.info(
            "energy_minimization_completed",
            samples=n_samples,
            iterations=iterations,
            final_energy=final_energy,
        )

        return EnergyResult(
            positions=result_positions,
            features=result_features if features is not None else None,
            energies=energies,
            final_energy=final_energy,
        )

    def compute_energy(
        self,
        positions: np.ndarray,
        features: Optional[np.ndarray] = None,
    ) -> float:
        """Total pairwise energy of a configuration (each pair counted twice)."""
        positions, feature_array = self._validate(positions, features)
        return self._total_energy(self._create_locator(), positions, feature_array)

    def _total_energy(
        self,
        loc: Locator,
        positions: np.ndarray,
        features: np.ndarray,
    ) -> float:
        self._rebuild(loc, positions, features)
        points = loc.points
        return float(sum(self._sample_energy(i, loc, points)[0] for i in range(len(points))))

    def _sample_energy(
        self,
        index: int,
        loc: Locator,
        points: np.ndarray,
    ) -> Tuple[float, np.ndarray]:
        """Energy and gradient of one sample with respect to its neighbours."""
        query = points[index]
        gradient = np.zeros_like(query)

        neighbor_ids, dists2 = loc.find_all_within_radius(query, self.max_search_radius)
        not_self = neighbor_ids != index
        neighbor_ids = neighbor_ids[not_self]
        dists2 = dists2[not_self]
        if len(neighbor_ids) == 0:
            return 0.0, gradient

        inv_sigma2 = 1.0 / (self.sigma * self.sigma)
        weights = np.exp(-0.5 * dists2 * inv_sigma2)
        gradient = ((points[neighbor_ids] - query) * (weights * inv_sigma2)[:, None]).sum(axis=0)
        return float(weights.sum()), gradient

    def _rebuild(self, loc: Locator, positions: np.ndarray, features: np.ndarray) -> None:
        loc.reset()
        loc.add_many(self.stacker.stack(positions, features))

    def _create_locator(self) -> Locator:
        return LocatorFactory.create_for_radius(
            self.locator, self.max_search_radius, **self.locator_params
        )

    @staticmethod
    def _validate(
        positions: np.ndarray,
        features: Optional[np.ndarray],
    ) -> Tuple[np.ndarray, np.ndarray]:
        positions = as_vector_array(positions, "positions")
        if len(positions) == 0:
            raise InvalidInputError("no samples given")
        if features is None:
            return positions, np.empty((len(positions), 0), dtype=np.float64)

        features = as_vector_array(features, "features")
        if len(features) != len(positions):
            raise InvalidInputError(
                "positions and features differ in length",
                positions=len(positions),
                features=len(features),
            )
        return positions, features
