"""Tests for the sequential early-stopping scan.

Covers:
- Identical arms never trigger a stop
- A clear winner stops early and the output ends at the stopping step
- Cumulative totals, posteriors and step numbering
- Unequal series lengths and empty input
- Argument validation
"""

import pytest

from bayesab.stats.bayesian import BetaParams, Observation, posterior
from bayesab.stats.errors import DegenerateSampleCount, InvalidObservation
from bayesab.stats.sampling import make_rng
from bayesab.stats.sequential import is_stopping, iter_sequential, sequential_test


def daily(successes: int, trials: int, days: int) -> list[Observation]:
    return [Observation(successes, trials) for _ in range(days)]


# ======================================================================
# Stopping behaviour
# ======================================================================


class TestSequentialStopping:

    def test_identical_arms_never_stop(self):
        data = daily(10, 100, 8)
        steps = sequential_test(data, data, n_samples=10_000, rng=make_rng(42))
        assert len(steps) == 8
        for step in steps:
            assert step.probability_b_greater_than_a == pytest.approx(0.5, abs=0.03)
            assert step.should_stop is False

    def test_clear_winner_stops_early(self):
        data_a = daily(10, 200, 20)
        data_b = daily(30, 200, 20)
        steps = sequential_test(data_a, data_b, n_samples=5_000, rng=make_rng(42))
        assert len(steps) < 20
        assert steps[-1].should_stop is True
        assert steps[-1].probability_b_greater_than_a >= 0.95
        assert all(not s.should_stop for s in steps[:-1])

    def test_a_winning_also_stops(self):
        data_a = daily(30, 200, 20)
        data_b = daily(10, 200, 20)
        steps = sequential_test(data_a, data_b, n_samples=5_000, rng=make_rng(42))
        assert steps[-1].should_stop is True
        assert steps[-1].probability_b_greater_than_a <= 0.05

    def test_lower_threshold_stops_no_later(self):
        data_a = daily(10, 100, 15)
        data_b = daily(16, 100, 15)
        strict = sequential_test(data_a, data_b, threshold=0.99, n_samples=5_000, rng=make_rng(1))
        loose = sequential_test(data_a, data_b, threshold=0.8, n_samples=5_000, rng=make_rng(1))
        assert len(loose) <= len(strict)

    def test_is_stopping(self):
        assert is_stopping(0.96, 0.95)
        assert is_stopping(0.95, 0.95)
        assert is_stopping(0.04, 0.95)
        assert not is_stopping(0.5, 0.95)


# ======================================================================
# State accumulation
# ======================================================================


class TestSequentialState:

    def test_cumulative_totals_and_posteriors(self):
        data_a = [Observation(1, 10), Observation(2, 10), Observation(0, 5)]
        data_b = [Observation(3, 10), Observation(1, 10), Observation(2, 5)]
        prior = BetaParams(2.0, 2.0)
        steps = sequential_test(data_a, data_b, prior=prior, threshold=0.999, n_samples=2_000, rng=make_rng(0))
        assert [s.step for s in steps] == [1, 2, 3]
        assert steps[1].cumulative_a == Observation(3, 20)
        assert steps[2].cumulative_a == Observation(3, 25)
        assert steps[2].cumulative_b == Observation(6, 25)
        assert steps[2].posterior_a == posterior(3, 25, prior)
        assert steps[2].posterior_b == posterior(6, 25, prior)

    def test_totals_monotone(self):
        data_a = daily(3, 50, 6)
        data_b = daily(4, 50, 6)
        steps = sequential_test(data_a, data_b, n_samples=2_000, rng=make_rng(5))
        for prev, cur in zip(steps, steps[1:]):
            assert cur.cumulative_a.trials >= prev.cumulative_a.trials
            assert cur.cumulative_b.successes >= prev.cumulative_b.successes

    def test_probability_matches_expected_loss(self):
        steps = sequential_test(daily(5, 50, 3), daily(7, 50, 3), n_samples=2_000, rng=make_rng(2))
        for step in steps:
            assert step.probability_b_greater_than_a == step.expected_loss.probability_b_beats_a

    def test_unequal_lengths_use_shorter(self):
        steps = sequential_test(daily(5, 50, 6), daily(5, 50, 4), n_samples=2_000, rng=make_rng(3))
        assert len(steps) == 4

    def test_empty_input(self):
        assert sequential_test([], [], n_samples=100) == []

    def test_generator_form_is_lazy(self):
        scan = iter_sequential(daily(5, 50, 100), daily(5, 50, 100), n_samples=1_000, rng=make_rng(4))
        first = next(scan)
        assert first.step == 1


# ======================================================================
# Validation
# ======================================================================


class TestSequentialValidation:

    @pytest.mark.parametrize("threshold", [0.0, 1.0, 1.5])
    def test_invalid_threshold(self, threshold):
        with pytest.raises(ValueError):
            sequential_test(daily(1, 10, 2), daily(1, 10, 2), threshold=threshold)

    def test_zero_samples(self):
        with pytest.raises(DegenerateSampleCount):
            sequential_test(daily(1, 10, 2), daily(1, 10, 2), n_samples=0)

    def test_invalid_observation_rejected(self):
        with pytest.raises(InvalidObservation):
            sequential_test([Observation(1, 10), Observation(5, 3)], daily(1, 10, 2))
