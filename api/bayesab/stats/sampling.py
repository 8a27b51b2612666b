"""Beta-distributed random variates.

Two sampler families are dispatched on the shape regime:

- ``JOHNK_REJECTION`` for ``alpha <= 1`` and ``beta <= 1``: draw
  ``x = u1**(1/alpha)``, ``y = u2**(1/beta)`` and accept ``x / (x + y)``
  when ``x + y <= 1``.  Evaluated in log space so very small shapes do not
  underflow to ``0 / 0``.
- Cheng's log-logistic acceptance-rejection otherwise.  ``CHENG_BB`` covers
  ``min(alpha, beta) >= 1``; ``CHENG_BC`` covers the mixed regime where one
  shape is below 1 and the other above, where BB's ``lambda`` is undefined.

Every routine takes an explicit ``numpy.random.Generator`` so results are
reproducible when the caller seeds it.  Without one a fresh, unseeded
generator is used.
"""

from __future__ import annotations

import enum
import math

import numpy as np

from bayesab.stats.bayesian import BetaParams
from bayesab.stats.errors import DegenerateSampleCount, SamplingError
from bayesab.stats.special import check_shape

DEFAULT_SAMPLES = 10_000
DEFAULT_MAX_ATTEMPTS = 10_000
DEFAULT_MAX_ROUNDS = 1_000
LOG4 = math.log(4.0)  # 1.3862944


class BetaAlgorithm(str, enum.Enum):
    JOHNK_REJECTION = "johnk_rejection"
    CHENG_BB = "cheng_bb"
    CHENG_BC = "cheng_bc"


def make_rng(seed: int | None = None) -> np.random.Generator:
    """Build a generator; ``seed=None`` draws fresh OS entropy."""
    return np.random.default_rng(seed)


def select_algorithm(alpha: float, beta: float) -> BetaAlgorithm:
    """Pick the sampler for a shape pair."""
    check_shape(alpha, beta)
    if alpha <= 1 and beta <= 1:
        return BetaAlgorithm.JOHNK_REJECTION
    if min(alpha, beta) >= 1:
        return BetaAlgorithm.CHENG_BB
    return BetaAlgorithm.CHENG_BC


# ======================================================================
# Batch kernels
# ======================================================================
# Each kernel draws ``size`` candidates and returns (values, accepted).
# Only entries where ``accepted`` is True are valid draws.

def _open_uniform(rng: np.random.Generator, size: int) -> np.ndarray:
    """Uniforms on the open interval (0, 1)."""
    u = rng.random(size)
    u[u == 0.0] = np.nextafter(0.0, 1.0)
    return u


def _johnk_batch(
    alpha: float, beta: float, rng: np.random.Generator, size: int
) -> tuple[np.ndarray, np.ndarray]:
    log_x = np.log(_open_uniform(rng, size)) / alpha
    log_y = np.log(_open_uniform(rng, size)) / beta
    log_sum = np.logaddexp(log_x, log_y)
    accepted = log_sum <= 0.0
    return np.exp(log_x - log_sum), accepted


class _ChengSetup:
    """Constants for Cheng's BB / BC samplers.

    ``a`` is the smaller shape for BB and the larger one for BC; in both
    cases ``w / (b + w)`` is a Beta(a, b) draw, so the result is flipped
    whenever the caller's ``alpha`` is not ``a``.
    """

    __slots__ = ("a", "b", "gamma", "lam", "mu", "alpha_is_a")

    def __init__(self, alpha: float, beta: float, algorithm: BetaAlgorithm) -> None:
        if algorithm is BetaAlgorithm.CHENG_BB:
            a, b = min(alpha, beta), max(alpha, beta)
            gamma = a + b
            lam = math.sqrt((gamma - 2.0) / (2.0 * a * b - gamma))
        else:
            a, b = max(alpha, beta), min(alpha, beta)
            gamma = a + b
            lam = 1.0 / b
        self.a = a
        self.b = b
        self.gamma = gamma
        self.lam = lam
        self.mu = a + 1.0 / lam
        self.alpha_is_a = alpha == a


def _cheng_batch(
    setup: _ChengSetup, rng: np.random.Generator, size: int
) -> tuple[np.ndarray, np.ndarray]:
    u1 = _open_uniform(rng, size)
    u2 = _open_uniform(rng, size)
    with np.errstate(over="ignore", divide="ignore", invalid="ignore"):
        v = setup.lam * np.log(u1 / (1.0 - u1))
        w = setup.a * np.exp(v)
        bw = setup.b + w
        lhs = setup.gamma * np.log(setup.gamma / bw) + setup.mu * v - LOG4
        accepted = np.isfinite(bw) & (lhs >= np.log(u1 * u1 * u2))
        values = w / bw if setup.alpha_is_a else setup.b / bw
    return values, accepted


def _kernel(alpha: float, beta: float):
    algorithm = select_algorithm(alpha, beta)
    if algorithm is BetaAlgorithm.JOHNK_REJECTION:
        return lambda rng, size: _johnk_batch(alpha, beta, rng, size)
    setup = _ChengSetup(alpha, beta, algorithm)
    return lambda rng, size: _cheng_batch(setup, rng, size)


# ======================================================================
# Public API
# ======================================================================

def sample_beta(
    alpha: float,
    beta: float,
    rng: np.random.Generator | None = None,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
) -> float:
    """Draw a single Beta(alpha, beta) variate.

    Raises
    ------
    InvalidShapeParameters
        If either shape is not positive.
    SamplingError
        If ``max_attempts`` candidates are all rejected.
    """
    kernel = _kernel(alpha, beta)
    rng = rng if rng is not None else make_rng()
    for _ in range(max_attempts):
        values, accepted = kernel(rng, 1)
        if accepted[0]:
            return float(values[0])
    raise SamplingError(
        f"no Beta({alpha}, {beta}) candidate accepted after {max_attempts} attempts"
    )


def monte_carlo_sample(
    params: BetaParams,
    n: int = DEFAULT_SAMPLES,
    rng: np.random.Generator | None = None,
    max_rounds: int = DEFAULT_MAX_ROUNDS,
) -> np.ndarray:
    """Draw ``n`` independent variates from ``Beta(params.alpha, params.beta)``.

    Candidates are generated in vectorised batches with the same kernels
    ``sample_beta`` uses, keeping accepted draws until ``n`` are collected.

    Parameters
    ----------
    params : BetaParams
        Distribution to sample from.
    n : int
        Number of draws.  Precision/performance knob; standard errors of
        downstream estimates shrink as ``1 / sqrt(n)``.
    rng : numpy.random.Generator | None
        Random source; unseeded when omitted.
    max_rounds : int
        Retry ceiling on the number of batches.

    Returns
    -------
    np.ndarray
        Array of shape (n,) with values in [0, 1].
    """
    if n <= 0:
        raise DegenerateSampleCount(f"n must be positive, got {n}")
    kernel = _kernel(params.alpha, params.beta)
    rng = rng if rng is not None else make_rng()

    out = np.empty(n, dtype=float)
    filled = 0
    for _ in range(max_rounds):
        remaining = n - filled
        values, accepted = kernel(rng, remaining + remaining // 2 + 16)
        kept = values[accepted][:remaining]
        out[filled : filled + len(kept)] = kept
        filled += len(kept)
        if filled == n:
            return out
    raise SamplingError(
        f"only {filled} of {n} draws from {params!r} accepted after {max_rounds} rounds"
    )
