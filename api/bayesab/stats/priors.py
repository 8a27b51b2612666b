"""Prior selection for the Beta-Binomial model.

Five named presets plus arbitrary user-chosen shapes.  A prior is an
immutable ``PriorConfig`` passed explicitly into every posterior or
estimation call; nothing here is shared mutable state.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from bayesab.stats.bayesian import (
    BetaParams,
    Interval,
    credible_interval,
    posterior,
    posterior_mean,
    posterior_variance,
)


@dataclass(frozen=True)
class PriorConfig:
    name: str
    params: BetaParams
    description: str = ""

    @property
    def alpha(self) -> float:
        return self.params.alpha

    @property
    def beta(self) -> float:
        return self.params.beta


PRIOR_PRESETS: dict[str, PriorConfig] = {
    p.name: p
    for p in (
        PriorConfig("uniform", BetaParams(1.0, 1.0), "Non-informative, every rate equally likely"),
        PriorConfig("jeffreys", BetaParams(0.5, 0.5), "Jeffreys reference prior"),
        PriorConfig("conservative", BetaParams(2.0, 2.0), "Weak pull toward 50%"),
        PriorConfig("optimistic", BetaParams(2.0, 8.0), "Centred on a 20% baseline"),
        PriorConfig("pessimistic", BetaParams(1.0, 9.0), "Centred on a 10% baseline"),
    )
}

DEFAULT_PRIOR = PRIOR_PRESETS["uniform"]


def get_prior(name: str) -> PriorConfig:
    """Look up a preset by name (case-insensitive)."""
    try:
        return PRIOR_PRESETS[name.lower()]
    except KeyError:
        raise KeyError(
            f"unknown prior {name!r}; expected one of {sorted(PRIOR_PRESETS)}"
        ) from None


def custom_prior(alpha: float, beta: float) -> PriorConfig:
    """A user-chosen prior.  Only positivity is enforced."""
    return PriorConfig("custom", BetaParams(alpha, beta))


def as_params(prior: PriorConfig | BetaParams) -> BetaParams:
    return prior.params if isinstance(prior, PriorConfig) else prior


def user_elicited_prior(expected_rate: float, strength: float) -> PriorConfig:
    """Build a prior from an expected rate and a strength in pseudo-observations.

    Parameters
    ----------
    expected_rate : float
        Expected conversion rate (0 < rate < 1).
    strength : float
        Prior weight in pseudo-observations.  Higher = tighter prior.

    Returns
    -------
    PriorConfig
        Prior with alpha = rate * strength, beta = (1 - rate) * strength.
    """
    if not (0 < expected_rate < 1):
        raise ValueError("expected_rate must be between 0 and 1 exclusive")
    if strength <= 0:
        raise ValueError("strength must be positive")

    alpha = expected_rate * strength
    beta = (1 - expected_rate) * strength
    return PriorConfig(
        "elicited",
        BetaParams(max(alpha, 0.01), max(beta, 0.01)),
        f"{expected_rate:.1%} expected rate, {strength:g} pseudo-observations",
    )


# ======================================================================
# Prior diagnostics
# ======================================================================

@dataclass(frozen=True)
class PriorImpact:
    mean: float
    variance: float
    effective_sample_size: float


def prior_impact(prior: PriorConfig | BetaParams) -> PriorImpact:
    """Mean, variance and effective sample size (alpha + beta - 2) of a prior."""
    params = as_params(prior)
    return PriorImpact(
        mean=posterior_mean(params),
        variance=posterior_variance(params),
        effective_sample_size=params.alpha + params.beta - 2,
    )


@dataclass(frozen=True)
class SensitivityRow:
    prior: PriorConfig
    posterior: BetaParams
    expected_value: float
    credible_interval: Interval


def sensitivity_analysis(
    successes: int,
    trials: int,
    priors: Iterable[PriorConfig] | None = None,
    confidence: float = 0.95,
) -> list[SensitivityRow]:
    """Posterior summary of the same data under each prior.

    Defaults to every preset, in preset order.
    """
    rows = []
    for prior in priors if priors is not None else PRIOR_PRESETS.values():
        post = posterior(successes, trials, prior.params)
        rows.append(
            SensitivityRow(
                prior=prior,
                posterior=post,
                expected_value=posterior_mean(post),
                credible_interval=credible_interval(post, confidence),
            )
        )
    return rows
