"""Tests for Monte Carlo decision quantities.

Covers:
- P(B > A) for symmetric, clearly separated and concrete scenarios
- Expected loss values and their relation to P(B > A)
- Agreement between the Monte Carlo and quadrature estimators
- The decision summary (HDIs, log evidence ratio) and recommendation rule
- Fail-fast behaviour for degenerate sample counts
"""

import numpy as np
import pytest
from scipy import integrate
from scipy import stats as sp_stats

from bayesab.stats.bayesian import BetaParams, credible_interval, posterior
from bayesab.stats.decisions import (
    LossResult,
    decide,
    expected_loss,
    probability_b_beats_a,
    probability_b_beats_a_integrated,
    recommend,
)
from bayesab.stats.errors import DegenerateSampleCount
from bayesab.stats.sampling import make_rng


def exact_probability_b_beats_a(a: BetaParams, b: BetaParams) -> float:
    """Reference value via scipy adaptive quadrature."""
    value, _ = integrate.quad(
        lambda x: sp_stats.beta.pdf(x, a.alpha, a.beta) * sp_stats.beta.sf(x, b.alpha, b.beta),
        0.0,
        1.0,
        points=[a.alpha / (a.alpha + a.beta), b.alpha / (b.alpha + b.beta)],
        limit=200,
    )
    return value


# ======================================================================
# P(B > A)
# ======================================================================


class TestProbabilityBBeatsA:

    @pytest.mark.parametrize(
        "params",
        [BetaParams(1, 1), BetaParams(0.5, 0.5), BetaParams(51, 51), BetaParams(6, 114), BetaParams(0.5, 3)],
    )
    def test_identical_posteriors_near_half(self, params):
        prob = probability_b_beats_a(params, params, 10_000, make_rng(42))
        assert prob == pytest.approx(0.5, abs=0.02)

    def test_concrete_scenario_b_clearly_better(self):
        """A = 150/1000, B = 180/1000 under a uniform prior."""
        post_a = posterior(150, 1000)
        post_b = posterior(180, 1000)
        assert post_a == BetaParams(151.0, 851.0)
        assert post_b == BetaParams(181.0, 821.0)
        prob = probability_b_beats_a(post_a, post_b, 10_000, make_rng(42))
        assert prob > 0.9
        assert prob == pytest.approx(exact_probability_b_beats_a(post_a, post_b), abs=0.02)

    def test_clearly_better_a(self):
        prob = probability_b_beats_a(posterior(20, 100), posterior(2, 100), 10_000, make_rng(1))
        assert prob < 0.01

    def test_reproducible_with_seed(self):
        a, b = posterior(10, 100), posterior(12, 100)
        assert probability_b_beats_a(a, b, 5_000, make_rng(7)) == probability_b_beats_a(
            a, b, 5_000, make_rng(7)
        )

    def test_zero_samples_fail_fast(self):
        with pytest.raises(DegenerateSampleCount):
            probability_b_beats_a(posterior(1, 10), posterior(2, 10), 0)

    def test_result_in_unit_interval(self):
        prob = probability_b_beats_a(BetaParams(0.5, 0.5), BetaParams(2, 8), 1_000, make_rng(3))
        assert 0.0 <= prob <= 1.0


class TestIntegratedEstimator:

    @pytest.mark.parametrize(
        "a,b",
        [
            (BetaParams(151, 851), BetaParams(181, 821)),
            (BetaParams(51, 51), BetaParams(51, 51)),
            (BetaParams(2, 8), BetaParams(3, 7)),
            (BetaParams(6, 114), BetaParams(2, 118)),
        ],
    )
    def test_agrees_with_monte_carlo(self, a, b):
        mc = probability_b_beats_a(a, b, 20_000, make_rng(42))
        quad = probability_b_beats_a_integrated(a, b)
        assert quad == pytest.approx(mc, abs=0.02)

    def test_agrees_with_reference(self):
        a, b = BetaParams(2.0, 8.0), BetaParams(3.0, 7.0)
        assert probability_b_beats_a_integrated(a, b) == pytest.approx(
            exact_probability_b_beats_a(a, b), abs=2e-3
        )

    def test_symmetric_is_half(self):
        p = BetaParams(20.0, 30.0)
        assert probability_b_beats_a_integrated(p, p) == pytest.approx(0.5, abs=1e-3)

    def test_complementary(self):
        a, b = BetaParams(5.0, 20.0), BetaParams(8.0, 18.0)
        total = probability_b_beats_a_integrated(a, b) + probability_b_beats_a_integrated(b, a)
        assert total == pytest.approx(1.0, abs=2e-3)

    def test_invalid_resolution(self):
        with pytest.raises(ValueError):
            probability_b_beats_a_integrated(BetaParams(1, 1), BetaParams(1, 1), resolution=0)

    def test_narrow_posteriors_use_a_local_grid(self):
        """sd ~ 5e-4 on both arms, far below the full-interval grid step."""
        a, b = posterior(400_000, 1_000_000), posterior(400_800, 1_000_000)
        lo, hi = 0.395, 0.406
        reference, _ = integrate.quad(
            lambda x: sp_stats.beta.pdf(x, a.alpha, a.beta) * sp_stats.beta.sf(x, b.alpha, b.beta),
            lo,
            hi,
            points=[a.alpha / (a.alpha + a.beta), b.alpha / (b.alpha + b.beta)],
            limit=200,
        )
        assert probability_b_beats_a_integrated(a, b) == pytest.approx(reference, abs=2e-3)

    def test_unresolvable_posterior_raises(self):
        wide, narrow = BetaParams(1, 1), posterior(400_000, 1_000_000)
        with pytest.raises(ValueError, match="too concentrated"):
            probability_b_beats_a_integrated(wide, narrow)


# ======================================================================
# Expected loss
# ======================================================================


class TestExpectedLoss:

    def test_identical_posteriors_have_equal_loss(self):
        p = posterior(50, 100)
        loss = expected_loss(p, p, 10_000, make_rng(42))
        assert loss.probability_b_beats_a == pytest.approx(0.5, abs=0.02)
        assert loss.loss_a == pytest.approx(loss.loss_b, rel=0.1)

    def test_better_b_means_choosing_a_is_riskier(self):
        loss = expected_loss(posterior(150, 1000), posterior(180, 1000), 10_000, make_rng(42))
        assert loss.loss_a > loss.loss_b
        assert loss.loss_a == pytest.approx(0.03, abs=0.005)
        assert loss.loss_b < 0.001

    def test_losses_non_negative_and_consistent(self):
        a, b = posterior(12, 80), posterior(15, 90)
        loss = expected_loss(a, b, 10_000, make_rng(8))
        assert loss.loss_a >= 0 and loss.loss_b >= 0
        # E[B - A] = loss_a - loss_b
        mean_diff = b.alpha / (b.alpha + b.beta) - a.alpha / (a.alpha + a.beta)
        assert loss.loss_a - loss.loss_b == pytest.approx(mean_diff, abs=0.005)

    def test_zero_samples_fail_fast(self):
        with pytest.raises(DegenerateSampleCount):
            expected_loss(BetaParams(1, 1), BetaParams(1, 1), 0)


# ======================================================================
# Decision summary and recommendation
# ======================================================================


class TestDecide:

    def test_fields(self):
        a, b = posterior(150, 1000), posterior(180, 1000)
        result = decide(a, b, 0.95, 10_000, make_rng(42))
        assert result.probability_b_greater_than_a > 0.9
        assert result.expected_loss_a > result.expected_loss_b
        assert result.credible_interval_a.lower < 0.15 < result.credible_interval_a.upper
        assert result.credible_interval_b.lower < 0.18 < result.credible_interval_b.upper
        assert result.bayes_factor > 0
        assert np.isfinite(result.bayes_factor)

    def test_identical_arms(self):
        p = posterior(50, 100)
        result = decide(p, p, 0.95, 10_000, make_rng(42))
        assert result.probability_b_greater_than_a == pytest.approx(0.5, abs=0.02)
        assert result.bayes_factor == pytest.approx(1.0)
        assert result.credible_interval_a == result.credible_interval_b

    def test_hdi_brackets_posterior_mean(self):
        a, b = posterior(150, 1000), posterior(180, 1000)
        result = decide(a, b, 0.95, 10_000, make_rng(42))
        assert result.hdi_a.lower < a.alpha / (a.alpha + a.beta) < result.hdi_a.upper
        assert result.hdi_b.lower < b.alpha / (b.alpha + b.beta) < result.hdi_b.upper
        # near-symmetric posterior, so the HDI sits close to the equal-tailed interval
        exact = credible_interval(a, 0.95, method="exact")
        assert result.hdi_a.lower == pytest.approx(exact.lower, abs=2e-3)
        assert result.hdi_a.upper == pytest.approx(exact.upper, abs=2e-3)

    def test_log_bayes_factor_matches(self):
        a, b = posterior(150, 1000), posterior(180, 1000)
        result = decide(a, b, 0.95, 1_000, make_rng(1))
        assert np.exp(result.log_bayes_factor) == pytest.approx(result.bayes_factor, rel=1e-9)


class TestRecommend:

    def test_recommends_b(self):
        loss = LossResult(0.03, 0.0001, 0.97)
        rec = recommend(0.97, loss)
        assert rec.variant == "B"
        assert rec.confidence == "high"
        assert rec.probability == pytest.approx(0.97)
        assert rec.expected_loss == pytest.approx(0.0001)

    def test_recommends_a(self):
        loss = LossResult(0.0002, 0.02, 0.1)
        rec = recommend(0.1, loss)
        assert rec.variant == "A"
        assert rec.probability == pytest.approx(0.9)
        assert rec.expected_loss == pytest.approx(0.0002)

    def test_inconclusive(self):
        loss = LossResult(0.01, 0.012, 0.55)
        rec = recommend(0.55, loss)
        assert rec.variant == "inconclusive"
        assert rec.confidence == "low"
        assert rec.probability == pytest.approx(0.55)
        assert rec.expected_loss == pytest.approx(0.01)

    def test_invalid_bounds(self):
        with pytest.raises(ValueError):
            recommend(0.5, LossResult(0, 0, 0.5), upper=0.2, lower=0.8)
