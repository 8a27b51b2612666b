"""Superiority probability, expected loss, and the two-arm decision summary.

Expected loss is the Bayesian answer to "how much am I leaving on the table
if I pick the wrong variant?".  Together with P(B > A) it drives the
recommendation rule.  Both are Monte Carlo estimates over paired posterior
draws; ``probability_b_beats_a_integrated`` is an independent quadrature
estimator of the same probability, kept as a cross-check.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from bayesab.stats.bayesian import (
    BetaParams,
    Interval,
    bayes_factor,
    credible_interval,
    hdi_from_samples,
    log_bayes_factor,
    posterior_mean,
    posterior_std,
)
from bayesab.stats.errors import DegenerateSampleCount
from bayesab.stats.sampling import DEFAULT_SAMPLES, make_rng, monte_carlo_sample
from bayesab.stats.special import beta_pdf_array

# Half-width, in posterior standard deviations, of the quadrature window.
WINDOW_SDS = 10.0


@dataclass(frozen=True)
class LossResult:
    """Expected loss of committing to each arm.

    ``loss_a`` is E[max(0, theta_B - theta_A)], the loss from choosing A
    when B is better; ``loss_b`` is the mirror image.
    """

    loss_a: float
    loss_b: float
    probability_b_beats_a: float


@dataclass(frozen=True)
class DecisionResult:
    probability_b_greater_than_a: float
    expected_loss_a: float
    expected_loss_b: float
    credible_interval_a: Interval
    credible_interval_b: Interval
    hdi_a: Interval
    hdi_b: Interval
    bayes_factor: float
    log_bayes_factor: float


@dataclass(frozen=True)
class Recommendation:
    variant: str  # "A" | "B" | "inconclusive"
    confidence: str  # "high" | "low"
    probability: float
    expected_loss: float


# ======================================================================
# Monte Carlo estimators
# ======================================================================

def _paired_samples(
    post_a: BetaParams,
    post_b: BetaParams,
    n_samples: int,
    rng: np.random.Generator | None,
) -> tuple[np.ndarray, np.ndarray]:
    if n_samples <= 0:
        raise DegenerateSampleCount(f"n_samples must be positive, got {n_samples}")
    rng = rng if rng is not None else make_rng()
    samples_a = monte_carlo_sample(post_a, n_samples, rng)
    samples_b = monte_carlo_sample(post_b, n_samples, rng)
    return samples_a, samples_b


def probability_b_beats_a(
    post_a: BetaParams,
    post_b: BetaParams,
    n_samples: int = DEFAULT_SAMPLES,
    rng: np.random.Generator | None = None,
) -> float:
    """Monte Carlo estimate of P(theta_B > theta_A).

    Parameters
    ----------
    post_a : BetaParams
        The control / baseline posterior.
    post_b : BetaParams
        The challenger posterior.
    n_samples : int
        Number of paired draws.
    rng : numpy.random.Generator | None
        Random source; unseeded when omitted.

    Returns
    -------
    float
        Fraction of pairs where the B draw exceeds the A draw.
    """
    samples_a, samples_b = _paired_samples(post_a, post_b, n_samples, rng)
    return float(np.mean(samples_b > samples_a))


def expected_loss(
    post_a: BetaParams,
    post_b: BetaParams,
    n_samples: int = DEFAULT_SAMPLES,
    rng: np.random.Generator | None = None,
) -> LossResult:
    """Expected loss for each arm plus P(B > A), all from one paired draw.

    A lower loss means less risk in committing to that arm.
    """
    samples_a, samples_b = _paired_samples(post_a, post_b, n_samples, rng)
    return _loss_from_samples(samples_a, samples_b)


def _loss_from_samples(samples_a: np.ndarray, samples_b: np.ndarray) -> LossResult:
    diff = samples_b - samples_a
    return LossResult(
        loss_a=float(np.mean(np.maximum(diff, 0.0))),
        loss_b=float(np.mean(np.maximum(-diff, 0.0))),
        probability_b_beats_a=float(np.mean(diff > 0)),
    )


# ======================================================================
# Quadrature estimator
# ======================================================================

def probability_b_beats_a_integrated(
    post_a: BetaParams,
    post_b: BetaParams,
    resolution: int = 1000,
) -> float:
    """P(theta_B > theta_A) = integral of pdf_A(x) * (1 - cdf_B(x)) over [0, 1].

    Midpoint rule on ``resolution`` points spanning both posteriors' bulk
    (mean +/- ``WINDOW_SDS`` standard deviations, clipped to [0, 1]).
    ``cdf_B`` is accumulated along the same grid instead of being
    re-integrated per point.

    Raises
    ------
    ValueError
        If either posterior is narrower than two grid steps, where the
        midpoint rule can no longer resolve its density.
    """
    if resolution < 1:
        raise ValueError("resolution must be at least 1")
    moments = [(posterior_mean(p), posterior_std(p)) for p in (post_a, post_b)]
    lo = max(0.0, min(m - WINDOW_SDS * s for m, s in moments))
    hi = min(1.0, max(m + WINDOW_SDS * s for m, s in moments))
    h = (hi - lo) / resolution
    if min(s for _, s in moments) < 2 * h:
        raise ValueError(
            "posterior is too concentrated for this resolution; increase resolution"
        )
    x = lo + (np.arange(resolution) + 0.5) * h
    pdf_a = beta_pdf_array(x, post_a.alpha, post_a.beta)
    pdf_b = beta_pdf_array(x, post_b.alpha, post_b.beta)

    if pdf_a.sum() == 0.0 or pdf_b.sum() == 0.0:
        raise ValueError("posterior is too concentrated for this resolution")
    # Normalise on the grid so both densities integrate to exactly 1 there.
    pdf_a /= pdf_a.sum() * h
    pdf_b /= pdf_b.sum() * h
    cdf_b = (np.cumsum(pdf_b) - 0.5 * pdf_b) * h

    probability = float(np.sum(pdf_a * (1.0 - cdf_b)) * h)
    return min(1.0, max(0.0, probability))


# ======================================================================
# Summary and recommendation
# ======================================================================

def decide(
    post_a: BetaParams,
    post_b: BetaParams,
    confidence: float = 0.95,
    n_samples: int = DEFAULT_SAMPLES,
    rng: np.random.Generator | None = None,
) -> DecisionResult:
    """Compute the full two-arm decision summary for a pair of posteriors.

    Loss, P(B > A) and the HDIs all come from the same paired draw.
    """
    samples_a, samples_b = _paired_samples(post_a, post_b, n_samples, rng)
    loss = _loss_from_samples(samples_a, samples_b)
    return DecisionResult(
        probability_b_greater_than_a=loss.probability_b_beats_a,
        expected_loss_a=loss.loss_a,
        expected_loss_b=loss.loss_b,
        credible_interval_a=credible_interval(post_a, confidence),
        credible_interval_b=credible_interval(post_b, confidence),
        hdi_a=hdi_from_samples(samples_a, confidence),
        hdi_b=hdi_from_samples(samples_b, confidence),
        bayes_factor=bayes_factor(post_a, post_b),
        log_bayes_factor=log_bayes_factor(post_a, post_b),
    )


def recommend(
    probability: float,
    loss: LossResult,
    upper: float = 0.8,
    lower: float = 0.2,
) -> Recommendation:
    """Map P(B > A) and expected loss to a recommended arm.

    B when ``probability > upper``, A when ``probability < lower``,
    otherwise inconclusive.
    """
    if not 0 <= lower < upper <= 1:
        raise ValueError("expected 0 <= lower < upper <= 1")
    if probability > upper:
        return Recommendation("B", "high", probability, loss.loss_b)
    if probability < lower:
        return Recommendation("A", "high", 1 - probability, loss.loss_a)
    return Recommendation(
        "inconclusive",
        "low",
        max(probability, 1 - probability),
        min(loss.loss_a, loss.loss_b),
    )
