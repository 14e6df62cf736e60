"""Unit tests for dart throwing."""

import numpy as np
import pytest

from bluecloud.analysis import is_conflict_free, packing_bound
from bluecloud.core.exceptions import ConfigurationError, InvalidInputError
from bluecloud.processing import Stacker
from bluecloud.sampling import DartThrowing, DartThrowingResult


@pytest.mark.unit
class TestDartThrowing:
    """Test finite-mode dart throwing."""

    def test_two_close_points(self):
        """Only one of two points closer than the radius survives."""
        dart = DartThrowing(conflict_radius=0.1, seed=0)
        result = dart.resample(np.array([[0.0, 0.0], [0.05, 0.0]]))

        assert isinstance(result, DartThrowingResult)
        assert len(result) == 1
        assert result.indices[0] in (0, 1)
        assert result.num_processed == 2
        assert not result.gave_up

    def test_two_distant_points(self):
        dart = DartThrowing(conflict_radius=0.1, seed=0)
        result = dart.resample(np.array([[0.0, 0.0], [0.5, 0.0]]))
        assert sorted(result.indices.tolist()) == [0, 1]

    def test_unit_square_conflict_free(self, unit_square_points):
        radius = 0.05
        result = DartThrowing(conflict_radius=radius, seed=1).resample(unit_square_points)

        assert len(result) > 50
        assert len(result) <= packing_bound(radius, 1.0, 2)
        assert is_conflict_free(unit_square_points[result.indices], radius)
        assert len(np.unique(result.indices)) == len(result.indices)
        np.testing.assert_array_equal(result.samples, unit_square_points[result.indices])

    def test_deterministic_with_seed(self, unit_square_points):
        first = DartThrowing(conflict_radius=0.05, seed=42).resample(unit_square_points)
        second = DartThrowing(conflict_radius=0.05, seed=42).resample(unit_square_points)
        np.testing.assert_array_equal(first.indices, second.indices)

    def test_repeated_calls_on_one_instance_match(self, unit_square_points):
        dart = DartThrowing(conflict_radius=0.05, seed=3)
        first = dart.resample(unit_square_points)
        second = dart.resample(unit_square_points)
        np.testing.assert_array_equal(first.indices, second.indices)

    def test_given_generator_advances_between_calls(self, unit_square_points):
        rng = np.random.default_rng(3)
        dart = DartThrowing(conflict_radius=0.05, rng=rng)
        first = dart.resample(unit_square_points)
        second = dart.resample(unit_square_points)
        assert not np.array_equal(first.indices, second.indices)

    @pytest.mark.parametrize("seed", [0, 1, 2, 17, 123])
    def test_four_corners_all_accepted(self, seed):
        corners = np.array([[0.0, 0.0], [1.0, 0.0], [0.0, 1.0], [1.0, 1.0]])
        result = DartThrowing(conflict_radius=0.1, seed=seed).resample(corners)

        assert sorted(result.indices.tolist()) == [0, 1, 2, 3]
        assert not result.gave_up

    def test_locator_strategies_agree(self, unit_square_points):
        grid = DartThrowing(conflict_radius=0.05, seed=3, locator="hashgrid")
        brute = DartThrowing(conflict_radius=0.05, seed=3, locator="bruteforce")
        np.testing.assert_array_equal(
            grid.resample(unit_square_points).indices,
            brute.resample(unit_square_points).indices,
        )

    def test_larger_radius_keeps_fewer_samples(self, unit_square_points):
        small = DartThrowing(conflict_radius=0.02, seed=5).resample(unit_square_points)
        large = DartThrowing(conflict_radius=0.1, seed=5).resample(unit_square_points)
        assert len(large) < len(small)

    @pytest.mark.parametrize("dims", [3, 6])
    def test_higher_dimensions(self, dims):
        rng = np.random.default_rng(dims)
        points = rng.random((500, dims))
        result = DartThrowing(conflict_radius=0.3, seed=0).resample(points)
        assert is_conflict_free(points[result.indices], 0.3)

    def test_gives_up_after_consecutive_rejections(self):
        points = np.zeros((100, 2))
        result = DartThrowing(conflict_radius=0.1, max_attempts=1, seed=0).resample(points)

        assert len(result) == 1
        assert result.gave_up
        assert result.num_processed == 2

    def test_budget_hit_on_last_candidate_is_not_giving_up(self):
        points = np.zeros((2, 2))
        result = DartThrowing(conflict_radius=0.1, max_attempts=1, seed=0).resample(points)
        assert len(result) == 1
        assert not result.gave_up

    def test_features_separate_coincident_points(self):
        positions = np.zeros((2, 3))
        normals = np.array([[0.0, 0.0, 1.0], [0.0, 0.0, -1.0]])
        stacker = Stacker(position_weight=1.0, feature_weight=1.0)
        result = DartThrowing(conflict_radius=0.5, seed=0, stacker=stacker).resample(
            positions, normals
        )

        assert len(result) == 2
        assert result.samples.shape == (2, 6)

    def test_acceptance_rate(self):
        result = DartThrowing(conflict_radius=0.1, seed=0).resample(
            np.array([[0.0, 0.0], [0.05, 0.0]])
        )
        assert result.acceptance_rate == pytest.approx(0.5)

    def test_empty_input(self):
        with pytest.raises(InvalidInputError):
            DartThrowing(conflict_radius=0.1).resample(np.empty((0, 2)))

    def test_mismatched_features(self):
        with pytest.raises(InvalidInputError):
            DartThrowing(conflict_radius=0.1).resample(np.zeros((3, 2)), np.zeros((2, 3)))

    @pytest.mark.parametrize("kwargs", [{"conflict_radius": 0.0}, {"max_attempts": 0}])
    def test_invalid_parameters(self, kwargs):
        with pytest.raises(ConfigurationError):
            DartThrowing(**kwargs)


@pytest.mark.unit
class TestDartThrowingStream:
    """Test streaming-mode dart throwing."""

    def test_callable_sampler_draws_exactly_budget(self):
        dart = DartThrowing(conflict_radius=0.1, seed=0)
        result = dart.resample_stream(lambda rng: rng.random(2), max_draws=500)

        assert result.num_processed == 500
        assert result.gave_up
        assert result.indices is None
        assert 0 < len(result) <= 500
        assert is_conflict_free(result.samples, 0.1)

    def test_default_budget_is_max_attempts(self):
        dart = DartThrowing(conflict_radius=0.2, max_attempts=50, seed=0)
        result = dart.resample_stream(lambda rng: rng.random(2))
        assert result.num_processed == 50

    def test_iterable_sampler_running_dry(self):
        candidates = [np.array([float(i), 0.0]) for i in range(10)]
        dart = DartThrowing(conflict_radius=0.5, seed=0)
        result = dart.resample_stream(iter(candidates), max_draws=100)

        assert result.num_processed == 10
        assert not result.gave_up
        assert len(result) == 10

    def test_stream_is_deterministic(self):
        first = DartThrowing(conflict_radius=0.1, seed=9).resample_stream(
            lambda rng: rng.random(2), max_draws=200
        )
        second = DartThrowing(conflict_radius=0.1, seed=9).resample_stream(
            lambda rng: rng.random(2), max_draws=200
        )
        np.testing.assert_array_equal(first.samples, second.samples)

    def test_stream_repeats_on_one_instance(self):
        dart = DartThrowing(conflict_radius=0.1, seed=9)
        first = dart.resample_stream(lambda rng: rng.random(2), max_draws=200)
        second = dart.resample_stream(lambda rng: rng.random(2), max_draws=200)
        np.testing.assert_array_equal(first.samples, second.samples)

    def test_invalid_budget(self):
        with pytest.raises(ConfigurationError):
            DartThrowing(conflict_radius=0.1).resample_stream(lambda rng: rng.random(2), 0)
