"""InferenceEngine — façade that ties priors, posteriors, Monte Carlo
estimation, sequential testing and predictive summaries together.

The engine holds only its configuration (prior, Monte Carlo sample count,
optional seed).  It is immutable: ``with_prior`` / ``with_samples`` return a
reconfigured copy, and nothing is memoised between calls.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

import numpy as np

from bayesab.stats.bayesian import (
    BetaParams,
    Observation,
    PredictiveSummary,
    posterior,
    posterior_predictive,
)
from bayesab.stats.decisions import DecisionResult, decide, probability_b_beats_a
from bayesab.stats.errors import DegenerateSampleCount
from bayesab.stats.priors import DEFAULT_PRIOR, PriorConfig, SensitivityRow, sensitivity_analysis
from bayesab.stats.sampling import DEFAULT_SAMPLES, make_rng
from bayesab.stats.sequential import DEFAULT_THRESHOLD, SequentialStep, sequential_test

logger = logging.getLogger(__name__)


class InferenceEngine:
    """Two-arm Beta-Binomial inference with a fixed configuration.

    Parameters
    ----------
    prior : PriorConfig
        Prior applied to both arms.  Defaults to uniform Beta(1, 1).
    n_samples : int
        Monte Carlo draws per arm for every estimate.
    seed : int | None
        When set, every call starts from ``default_rng(seed)`` so repeated
        calls with the same inputs return identical estimates.
    """

    __slots__ = ("_prior", "_n_samples", "_seed")

    def __init__(
        self,
        prior: PriorConfig = DEFAULT_PRIOR,
        n_samples: int = DEFAULT_SAMPLES,
        seed: int | None = None,
    ) -> None:
        if n_samples <= 0:
            raise DegenerateSampleCount(f"n_samples must be positive, got {n_samples}")
        self._prior = prior
        self._n_samples = n_samples
        self._seed = seed

    @property
    def prior(self) -> PriorConfig:
        return self._prior

    @property
    def n_samples(self) -> int:
        return self._n_samples

    @property
    def seed(self) -> int | None:
        return self._seed

    # ------------------------------------------------------------------
    # Reconfiguration (returns a new engine)
    # ------------------------------------------------------------------

    def with_prior(self, prior: PriorConfig) -> InferenceEngine:
        return InferenceEngine(prior, self._n_samples, self._seed)

    def with_samples(self, n_samples: int) -> InferenceEngine:
        return InferenceEngine(self._prior, n_samples, self._seed)

    def _rng(self) -> np.random.Generator:
        return make_rng(self._seed)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def posterior(self, observation: Observation) -> BetaParams:
        return posterior(observation.successes, observation.trials, self._prior.params)

    def probability_b_beats_a(self, obs_a: Observation, obs_b: Observation) -> float:
        return probability_b_beats_a(
            self.posterior(obs_a), self.posterior(obs_b), self._n_samples, self._rng()
        )

    def analyze(
        self,
        obs_a: Observation,
        obs_b: Observation,
        confidence: float = 0.95,
    ) -> DecisionResult:
        """Posteriors for both arms followed by the full decision summary."""
        post_a = self.posterior(obs_a)
        post_b = self.posterior(obs_b)
        result = decide(post_a, post_b, confidence, self._n_samples, self._rng())
        logger.debug(
            "Analyzed %r vs %r under %s prior: P(B > A) = %.4f",
            post_a, post_b, self._prior.name, result.probability_b_greater_than_a,
        )
        return result

    def sequential(
        self,
        data_a: Sequence[Observation],
        data_b: Sequence[Observation],
        threshold: float = DEFAULT_THRESHOLD,
    ) -> list[SequentialStep]:
        return sequential_test(
            data_a,
            data_b,
            prior=self._prior.params,
            threshold=threshold,
            n_samples=self._n_samples,
            rng=self._rng(),
        )

    def predictive(self, observation: Observation, future_trials: int) -> PredictiveSummary:
        return posterior_predictive(self.posterior(observation), future_trials)

    def sensitivity(
        self,
        observation: Observation,
        priors: Iterable[PriorConfig] | None = None,
        confidence: float = 0.95,
    ) -> list[SensitivityRow]:
        return sensitivity_analysis(observation.successes, observation.trials, priors, confidence)

    def __repr__(self) -> str:
        return (
            f"InferenceEngine(prior={self._prior.name}, n_samples={self._n_samples}, "
            f"seed={self._seed})"
        )


def engine_from_settings() -> InferenceEngine:
    """Default engine built from ``bayesab.core.config.settings``."""
    from bayesab.core.config import settings
    from bayesab.stats.priors import get_prior

    return InferenceEngine(
        prior=get_prior(settings.DEFAULT_PRIOR),
        n_samples=settings.MONTE_CARLO_SAMPLES,
        seed=settings.RANDOM_SEED,
    )
