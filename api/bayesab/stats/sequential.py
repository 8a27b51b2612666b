"""Sequential (peeking) test with an early-stopping rule.

Walks two equally indexed observation series forward once.  At step *i*
the step's observations are added to running totals, the posteriors are
recomputed, and P(B > A) plus expected loss are estimated.  The scan stops
after the first step whose probability reaches ``threshold`` or falls to
``1 - threshold``; that step is the last one emitted.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from dataclasses import dataclass

import numpy as np

from bayesab.stats.bayesian import UNIFORM, BetaParams, Observation, posterior
from bayesab.stats.decisions import LossResult, expected_loss
from bayesab.stats.errors import DegenerateSampleCount
from bayesab.stats.sampling import DEFAULT_SAMPLES, make_rng

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = 0.95


@dataclass(frozen=True)
class SequentialStep:
    step: int
    cumulative_a: Observation
    cumulative_b: Observation
    posterior_a: BetaParams
    posterior_b: BetaParams
    probability_b_greater_than_a: float
    expected_loss: LossResult
    should_stop: bool


def is_stopping(probability: float, threshold: float) -> bool:
    return probability >= threshold or probability <= 1 - threshold


def iter_sequential(
    data_a: Sequence[Observation],
    data_b: Sequence[Observation],
    prior: BetaParams = UNIFORM,
    threshold: float = DEFAULT_THRESHOLD,
    n_samples: int = DEFAULT_SAMPLES,
    rng: np.random.Generator | None = None,
) -> Iterator[SequentialStep]:
    """Yield one ``SequentialStep`` per index until the stopping rule fires.

    Each element of ``data_a`` / ``data_b`` is the *increment* observed in
    that period.  If the series differ in length only the common prefix is
    processed.  Arguments are validated before the first step is yielded.
    """
    if not 0 < threshold < 1:
        raise ValueError("threshold must be between 0 and 1 exclusive")
    if n_samples <= 0:
        raise DegenerateSampleCount(f"n_samples must be positive, got {n_samples}")
    if len(data_a) != len(data_b):
        logger.debug(
            "Series lengths differ (%d vs %d); scanning the first %d steps",
            len(data_a), len(data_b), min(len(data_a), len(data_b)),
        )
    return _scan(data_a, data_b, prior, threshold, n_samples, rng)


def _scan(
    data_a: Sequence[Observation],
    data_b: Sequence[Observation],
    prior: BetaParams,
    threshold: float,
    n_samples: int,
    rng: np.random.Generator | None,
) -> Iterator[SequentialStep]:
    rng = rng if rng is not None else make_rng()
    total_a = Observation(0, 0)
    total_b = Observation(0, 0)

    for index, (obs_a, obs_b) in enumerate(zip(data_a, data_b), start=1):
        total_a = total_a + obs_a
        total_b = total_b + obs_b
        post_a = posterior(total_a.successes, total_a.trials, prior)
        post_b = posterior(total_b.successes, total_b.trials, prior)

        loss = expected_loss(post_a, post_b, n_samples, rng)
        probability = loss.probability_b_beats_a
        stop = is_stopping(probability, threshold)

        yield SequentialStep(
            step=index,
            cumulative_a=total_a,
            cumulative_b=total_b,
            posterior_a=post_a,
            posterior_b=post_b,
            probability_b_greater_than_a=probability,
            expected_loss=loss,
            should_stop=stop,
        )
        if stop:
            logger.info(
                "Sequential test stopped at step %d: P(B > A) = %.4f (threshold %.2f)",
                index, probability, threshold,
            )
            return


def sequential_test(
    data_a: Sequence[Observation],
    data_b: Sequence[Observation],
    prior: BetaParams = UNIFORM,
    threshold: float = DEFAULT_THRESHOLD,
    n_samples: int = DEFAULT_SAMPLES,
    rng: np.random.Generator | None = None,
) -> list[SequentialStep]:
    """Run the full scan and return every emitted step.

    Returns
    -------
    list[SequentialStep]
        Ends at the first step with ``should_stop`` set, or at the end of the
        shorter series when the rule never fires.
    """
    return list(iter_sequential(data_a, data_b, prior, threshold, n_samples, rng))
