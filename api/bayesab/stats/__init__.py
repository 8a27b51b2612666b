"""Bayesian inference engine for two-arm conversion experiments.

Public API:
- BetaParams / Observation: immutable posterior and data values
- posterior: conjugate Beta-Binomial update
- sample_beta / monte_carlo_sample: Jöhnk and Cheng Beta samplers
- probability_b_beats_a / expected_loss: Monte Carlo decision quantities
- sequential_test: peeking-safe early stopping over a time series
- posterior_predictive / bayes_factor: predictive moments and evidence ratio
- InferenceEngine: façade bundling a prior and a Monte Carlo budget
"""

from bayesab.stats.bayesian import (
    BetaParams,
    Observation,
    bayes_factor,
    credible_interval,
    evidence,
    hdi_from_samples,
    log_bayes_factor,
    posterior,
    posterior_mean,
    posterior_predictive,
    posterior_variance,
)
from bayesab.stats.decisions import (
    DecisionResult,
    LossResult,
    decide,
    expected_loss,
    probability_b_beats_a,
    probability_b_beats_a_integrated,
    recommend,
)
from bayesab.stats.engine import InferenceEngine
from bayesab.stats.errors import (
    DegenerateSampleCount,
    InvalidObservation,
    InvalidShapeParameters,
    SamplingError,
    StatsError,
)
from bayesab.stats.priors import PRIOR_PRESETS, PriorConfig, custom_prior, get_prior
from bayesab.stats.sampling import BetaAlgorithm, make_rng, monte_carlo_sample, sample_beta
from bayesab.stats.sequential import SequentialStep, sequential_test

__all__ = [
    "BetaParams",
    "Observation",
    "posterior",
    "posterior_mean",
    "posterior_variance",
    "credible_interval",
    "posterior_predictive",
    "evidence",
    "bayes_factor",
    "log_bayes_factor",
    "hdi_from_samples",
    "DecisionResult",
    "LossResult",
    "decide",
    "expected_loss",
    "probability_b_beats_a",
    "probability_b_beats_a_integrated",
    "recommend",
    "InferenceEngine",
    "StatsError",
    "InvalidObservation",
    "InvalidShapeParameters",
    "DegenerateSampleCount",
    "SamplingError",
    "PRIOR_PRESETS",
    "PriorConfig",
    "custom_prior",
    "get_prior",
    "BetaAlgorithm",
    "make_rng",
    "sample_beta",
    "monte_carlo_sample",
    "SequentialStep",
    "sequential_test",
]
