"""Blue-noise resampling by dart throwing."""

import itertools
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Optional, Union

import numpy as np
from tqdm import tqdm

from bluecloud.core.exceptions import ConfigurationError, InvalidInputError
from bluecloud.locator import LocatorFactory
from bluecloud.processing.stacking import Stacker, as_vector_array
from bluecloud.utils.logging import get_logger

logger = get_logger(__name__)

# Either a callable drawing one candidate from the generator, or a stream
Sampler = Union[Callable[[np.random.Generator], np.ndarray], Iterable[np.ndarray]]


@dataclass
class DartThrowingResult:
    """Outcome of a dart throwing run.

    Attributes:
        samples: Accepted vectors (M, D) in acceptance order
        indices: Source indices of accepted candidates (finite mode only)
        num_processed: Candidates examined
        gave_up: True if the attempt budget ended the run before the
            candidates did
    """

    samples: np.ndarray
    indices: Optional[np.ndarray]
    num_processed: int
    gave_up: bool

    def __len__(self) -> int:
        return len(self.samples)

    @property
    def acceptance_rate(self) -> float:
        """Fraction of examined candidates that were accepted."""
        if self.num_processed == 0:
            return 0.0
        return len(self.samples) / self.num_processed


class DartThrowing:
    """Greedy randomized sample acceptance under a conflict radius.

    Candidates are visited in random order; a candidate is accepted if no
    previously accepted sample lies within the conflict radius. Fixing the
    seed and the input order makes the result reproducible.
    """

    def __init__(
        self,
        conflict_radius: float = 0.01,
        max_attempts: int = 100000,
        seed: Optional[int] = None,
        rng: Optional[np.random.Generator] = None,
        locator: str = "hashgrid",
        locator_params: Optional[Dict[str, Any]] = None,
        stacker: Optional[Stacker] = None,
        progress_interval: int = 5000,
        show_progress: bool = False,
    ):
        """Initialize dart throwing.

        Args:
            conflict_radius: Minimum distance between accepted samples
            max_attempts: Consecutive rejections before giving up (finite mode)
                and number of draws (streaming mode)
            seed: Random seed, ignored when ``rng`` is given
            rng: Caller-owned generator, advanced by every call (overrides ``seed``)
            locator: Locator strategy name
            locator_params: Additional locator arguments
            stacker: Stacker for position/feature input (default weights if None)
            progress_interval: Candidates between progress log events
            show_progress: Whether to show a progress bar
        """
        if not conflict_radius > 0:
            raise ConfigurationError(f"conflict_radius must be positive, got {conflict_radius}")
        if max_attempts < 1:
            raise ConfigurationError(f"max_attempts must be at least 1, got {max_attempts}")

        self.conflict_radius = float(conflict_radius)
        self.max_attempts = int(max_attempts)
        self.seed = seed
        self._rng = rng
        self.locator = locator
        self.locator_params = dict(locator_params or {})
        self.stacker = stacker or Stacker()
        self.progress_interval = max(1, int(progress_interval))
        self.show_progress = show_progress

    def resample(
        self,
        positions: np.ndarray,
        features: Optional[np.ndarray] = None,
    ) -> DartThrowingResult:
        """Resample a finite candidate set.

        Args:
            positions: Candidate positions (N, P)
            features: Optional candidate features (N, F), stacked with the
                positions before distances are measured

        Returns:
            Result with accepted source indices and stacked samples

        Raises:
            InvalidInputError: If the input is empty or lengths differ
        """
        positions = as_vector_array(positions, "positions")
        if len(positions) == 0:
            raise InvalidInputError("no candidates given")
        candidates = self.stacker.stack(positions, features)

        order = self._generator().permutation(len(candidates))
        loc = self._create_locator()
        accepted = []
        attempt = 0
        processed = 0

        with tqdm(
            total=len(order), desc="Dart throwing", unit="pt", disable=not self.show_progress
        ) as progress:
            for source_index in order:
                if attempt >= self.max_attempts:
                    break

                candidate = candidates[source_index]
                if loc.find_any_within_radius(candidate, self.conflict_radius) is None:
                    loc.add(candidate)
                    accepted.append(int(source_index))
                    attempt = 0
                else:
                    attempt += 1

                if processed % self.progress_interval == 0:
                    logger.debug(
                        "dart_throwing_progress",
                        processed_pct=round(processed / len(order) * 100, 2),
                        accepted=len(accepted),
                        processed=processed,
                    )
                processed += 1
                progress.update(1)

        # Only a budget hit with candidates left over counts as giving up
        gave_up = attempt >= self.max_attempts and processed < len(order)
        if gave_up:
            logger.warning(
                "dart_throwing_gave_up",
                max_attempts=self.max_attempts,
                accepted=len(accepted),
                processed=processed,
                candidates=len(order),
            )

        indices = np.asarray(accepted, dtype=np.int64)
        logger.info(
            "dart_throwing_completed",
            accepted=len(indices),
            processed=processed,
            candidates=len(order),
            gave_up=gave_up,
        )
        return DartThrowingResult(
            samples=candidates[indices],
            indices=indices,
            num_processed=processed,
            gave_up=gave_up,
        )

    def resample_stream(
        self,
        sampler: Sampler,
        max_draws: Optional[int] = None,
    ) -> DartThrowingResult:
        """Resample candidates generated on demand.

        Exactly ``max_draws`` candidates are pulled, however many of them
        are rejected; an iterable sampler that runs dry ends the run early.

        Args:
            sampler: Callable receiving the run's generator and returning
                one candidate vector, or an iterable of candidate vectors
            max_draws: Number of draws (defaults to ``max_attempts``)

        Returns:
            Result with the accepted vectors; ``indices`` is None
        """
        budget = self.max_attempts if max_draws is None else int(max_draws)
        if budget < 1:
            raise ConfigurationError(f"max_draws must be at least 1, got {budget}")

        if callable(sampler):
            rng = self._generator()
            draws = (sampler(rng) for _ in range(budget))
        else:
            draws = itertools.islice(sampler, budget)

        loc = self._create_locator()
        processed = 0

        with tqdm(
            total=budget, desc="Dart throwing", unit="draw", disable=not self.show_progress
        ) as progress:
            for candidate in draws:
                candidate = np.asarray(candidate, dtype=np.float64).ravel()
                if loc.find_any_within_radius(candidate, self.conflict_radius) is None:
                    loc.add(candidate)

                if processed % self.progress_interval == 0:
                    logger.debug(
                        "dart_throwing_progress",
                        processed_pct=round(processed / budget * 100, 2),
                        accepted=len(loc),
                        processed=processed,
                    )
                processed += 1
                progress.update(1)

        samples = np.array(loc.points, dtype=np.float64)
        if samples.size == 0:
            samples = samples.reshape(0, loc.dims or 0)
        logger.info(
            "dart_throwing_stream_completed",
            accepted=len(samples),
            draws=processed,
        )
        return DartThrowingResult(
            samples=samples,
            indices=None,
            num_processed=processed,
            gave_up=processed >= budget,
        )

    def _generator(self) -> np.random.Generator:
        """Random source for one run; a fresh seeded generator unless one was given."""
        if self._rng is not None:
            return self._rng
        return np.random.default_rng(self.seed)

    def _create_locator(self):
        return LocatorFactory.create_for_radius(
            self.locator, self.conflict_radius, **self.locator_params
        )
