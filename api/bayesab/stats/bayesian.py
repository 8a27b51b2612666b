"""Conjugate Beta-Binomial model for conversion rate estimation.

``BetaParams`` is an immutable ``(alpha, beta)`` pair.  ``update()`` and
``posterior()`` return a *new* value, so callers can safely compare pre- and
post-update distributions.  Summaries (moments, credible intervals,
posterior predictive, evidence) are plain functions of a ``BetaParams``.
"""

from __future__ import annotations

import math
import numbers
from dataclasses import dataclass
from typing import NamedTuple

import numpy as np
from scipy import stats as sp_stats

from bayesab.stats.errors import InvalidObservation
from bayesab.stats.special import beta_pdf_array, check_shape, inverse_normal_cdf, log_beta


class Interval(NamedTuple):
    lower: float
    upper: float


# ======================================================================
# Value types
# ======================================================================

@dataclass(frozen=True, slots=True)
class BetaParams:
    """Shape parameters of a Beta distribution.

    Parameters
    ----------
    alpha : float
        Pseudo-successes.  Must be positive.
    beta : float
        Pseudo-failures.  Must be positive.
    """

    alpha: float
    beta: float

    def __post_init__(self) -> None:
        check_shape(self.alpha, self.beta)

    def update(self, successes: int, trials: int) -> BetaParams:
        """Return a **new** BetaParams with the posterior after observing data."""
        return posterior(successes, trials, self)

    def __repr__(self) -> str:
        return f"BetaParams(alpha={self.alpha:g}, beta={self.beta:g})"


@dataclass(frozen=True, slots=True)
class Observation:
    """Observed ``successes`` out of ``trials`` for one arm."""

    successes: int
    trials: int

    def __post_init__(self) -> None:
        for name, value in (("successes", self.successes), ("trials", self.trials)):
            if not isinstance(value, numbers.Integral) or isinstance(value, bool):
                raise InvalidObservation(f"{name} must be an integer, got {value!r}")
            if value < 0:
                raise InvalidObservation(f"{name} must be non-negative")
        if self.successes > self.trials:
            raise InvalidObservation("successes cannot exceed trials")

    @property
    def failures(self) -> int:
        return self.trials - self.successes

    @property
    def rate(self) -> float:
        """Observed conversion rate; 0.0 when no trials have been recorded."""
        return self.successes / self.trials if self.trials else 0.0

    def __add__(self, other: Observation) -> Observation:
        if not isinstance(other, Observation):
            return NotImplemented
        return Observation(self.successes + other.successes, self.trials + other.trials)


UNIFORM = BetaParams(1.0, 1.0)


# ======================================================================
# Posterior update
# ======================================================================

def posterior(successes: int, trials: int, prior: BetaParams = UNIFORM) -> BetaParams:
    """Conjugate update: ``Beta(prior.alpha + s, prior.beta + n - s)``.

    Raises
    ------
    InvalidObservation
        If either count is negative or ``successes > trials``.
    """
    obs = Observation(successes, trials)
    return BetaParams(prior.alpha + obs.successes, prior.beta + obs.failures)


# ======================================================================
# Moments and intervals
# ======================================================================

def posterior_mean(params: BetaParams) -> float:
    """alpha / (alpha + beta)."""
    return params.alpha / (params.alpha + params.beta)


def posterior_variance(params: BetaParams) -> float:
    """Var = alpha * beta / ((alpha + beta)^2 * (alpha + beta + 1))"""
    ab = params.alpha + params.beta
    return (params.alpha * params.beta) / (ab * ab * (ab + 1))


def posterior_std(params: BetaParams) -> float:
    return math.sqrt(posterior_variance(params))


def credible_interval(
    params: BetaParams,
    confidence: float = 0.95,
    method: str = "normal",
) -> Interval:
    """Equal-tailed credible interval for the conversion rate.

    The default ``"normal"`` method is the normal approximation
    ``mean +/- z * sd`` clipped to [0, 1], with ``z`` from
    ``inverse_normal_cdf``.  It is not an exact Beta quantile and is
    noticeably off for small or skewed posteriors.  ``"exact"`` uses the
    inverse regularised incomplete Beta function from scipy.

    Parameters
    ----------
    params : BetaParams
        The distribution to summarise.
    confidence : float
        Probability mass of the interval, e.g. 0.95.
    method : str
        ``"normal"`` or ``"exact"``.

    Returns
    -------
    Interval
        (lower, upper)
    """
    if not 0 < confidence < 1:
        raise ValueError("confidence must be between 0 and 1 exclusive")
    lower_tail = (1 - confidence) / 2

    if method == "normal":
        mean = posterior_mean(params)
        margin = inverse_normal_cdf(1 - lower_tail) * posterior_std(params)
        return Interval(max(0.0, mean - margin), min(1.0, mean + margin))
    if method == "exact":
        dist = sp_stats.beta(params.alpha, params.beta)
        return Interval(float(dist.ppf(lower_tail)), float(dist.ppf(1 - lower_tail)))
    raise ValueError(f"unknown interval method {method!r}; expected 'normal' or 'exact'")


def hdi_from_samples(samples: np.ndarray, credible_mass: float = 0.95) -> Interval:
    """Compute the Highest Density Interval from Monte Carlo samples.

    Uses the sorted-interval method: find the shortest interval containing
    ``credible_mass`` proportion of sorted samples.
    """
    if not 0 < credible_mass < 1:
        raise ValueError("credible_mass must be between 0 and 1 exclusive")
    sorted_samples = np.sort(np.asarray(samples))
    n = len(sorted_samples)
    if n == 0:
        raise ValueError("samples must not be empty")
    interval_size = int(np.ceil(credible_mass * n))
    if interval_size >= n:
        return Interval(float(sorted_samples[0]), float(sorted_samples[-1]))

    widths = sorted_samples[interval_size:] - sorted_samples[: n - interval_size]
    best_idx = int(np.argmin(widths))
    return Interval(float(sorted_samples[best_idx]), float(sorted_samples[best_idx + interval_size]))


def density_grid(params: BetaParams, num_points: int = 100) -> list[tuple[float, float]]:
    """``num_points + 1`` evenly spaced ``(x, pdf(x))`` pairs covering [0, 1]."""
    if num_points < 1:
        raise ValueError("num_points must be at least 1")
    xs = np.linspace(0.0, 1.0, num_points + 1)
    ys = beta_pdf_array(xs, params.alpha, params.beta)
    return [(float(x), float(y)) for x, y in zip(xs, ys)]


# ======================================================================
# Posterior predictive and evidence
# ======================================================================

@dataclass(frozen=True)
class PredictiveSummary:
    """Moments of the Beta-Binomial predictive for ``trials`` future trials."""

    alpha: float
    beta: float
    trials: int
    expected_successes: float
    variance: float


def posterior_predictive(params: BetaParams, future_trials: int) -> PredictiveSummary:
    """Beta-Binomial predictive mean and variance for ``future_trials``.

    mean = n * alpha / (alpha + beta)
    var  = n * alpha * beta * (alpha + beta + n) / ((alpha + beta)^2 * (alpha + beta + 1))
    """
    if not isinstance(future_trials, numbers.Integral) or isinstance(future_trials, bool):
        raise InvalidObservation("future_trials must be an integer")
    if future_trials < 0:
        raise InvalidObservation("future_trials must be non-negative")
    a, b, n = params.alpha, params.beta, int(future_trials)
    ab = a + b
    return PredictiveSummary(
        alpha=a,
        beta=b,
        trials=n,
        expected_successes=posterior_mean(params) * n,
        variance=n * a * b * (ab + n) / (ab * ab * (ab + 1)),
    )


def evidence(params: BetaParams) -> float:
    """Marginal-likelihood proxy ``B(alpha, beta)``.

    Underflows to 0.0 once both shapes reach a few hundred; ``bayes_factor``
    works in log space to avoid dividing two underflowed values.
    """
    return math.exp(log_beta(params.alpha, params.beta))


def log_bayes_factor(post_a: BetaParams, post_b: BetaParams) -> float:
    """Natural log of ``bayes_factor``; finite whenever both shapes are."""
    return log_beta(post_b.alpha, post_b.beta) - log_beta(post_a.alpha, post_a.beta)


def bayes_factor(post_a: BetaParams, post_b: BetaParams) -> float:
    """Evidence ratio ``evidence(B) / evidence(A)``.

    A comparative score between the two posteriors, not a Bayes factor
    against a null model.  Returns ``inf`` when the ratio overflows a float;
    ``log_bayes_factor`` stays finite in that case.
    """
    log_ratio = log_bayes_factor(post_a, post_b)
    try:
        return math.exp(log_ratio)
    except OverflowError:
        return math.inf
