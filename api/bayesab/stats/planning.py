"""Pre-test sample-size planning for a two-proportion test.

Classical power analysis, used to size an experiment before any data is
collected.  The z-values come from ``inverse_normal_cdf`` so ``alpha`` and
``power`` are honoured exactly instead of being pinned to 1.96 / 0.84.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from bayesab.stats.special import inverse_normal_cdf


@dataclass(frozen=True)
class SampleSizePlan:
    per_variant: int
    total: int
    baseline_rate: float
    expected_rate: float
    expected_lift: float
    alpha: float
    power: float
    daily_traffic: int | None = None
    expected_duration_days: int | None = None
    actual_duration_days: int | None = None
    actual_total: int | None = None
    feasibility: str | None = None  # "feasible" | "challenging"


def required_sample_size(
    baseline_rate: float,
    expected_lift: float,
    alpha: float = 0.05,
    power: float = 0.8,
    daily_traffic: int | None = None,
    max_duration_days: int | None = None,
) -> SampleSizePlan:
    """Visitors needed per variant to detect a relative ``expected_lift``.

    n = (z_{1-alpha/2} * sqrt(2 p (1-p)) + z_{power} * sqrt(p1 q1 + p2 q2))^2 / (p2 - p1)^2
    with ``p`` the pooled rate.  When ``daily_traffic`` is given the plan
    also carries the duration, capped at ``max_duration_days``.
    """
    if not 0 < baseline_rate < 1:
        raise ValueError("baseline_rate must be between 0 and 1 exclusive")
    if expected_lift == 0:
        raise ValueError("expected_lift must be non-zero")
    expected_rate = baseline_rate * (1 + expected_lift)
    if not 0 < expected_rate < 1:
        raise ValueError("baseline_rate * (1 + expected_lift) must be between 0 and 1")
    if not 0 < alpha < 1 or not 0 < power < 1:
        raise ValueError("alpha and power must be between 0 and 1 exclusive")

    z_alpha = inverse_normal_cdf(1 - alpha / 2)
    z_beta = inverse_normal_cdf(power)
    p1, p2 = baseline_rate, expected_rate
    pooled = (p1 + p2) / 2

    numerator = (
        z_alpha * math.sqrt(2 * pooled * (1 - pooled))
        + z_beta * math.sqrt(p1 * (1 - p1) + p2 * (1 - p2))
    ) ** 2
    per_variant = math.ceil(numerator / (p2 - p1) ** 2)
    total = per_variant * 2

    plan = dict(
        per_variant=per_variant,
        total=total,
        baseline_rate=p1,
        expected_rate=p2,
        expected_lift=expected_lift,
        alpha=alpha,
        power=power,
    )
    if daily_traffic is None:
        return SampleSizePlan(**plan)

    if daily_traffic <= 0:
        raise ValueError("daily_traffic must be positive")
    expected_days = math.ceil(total / daily_traffic)
    actual_days = expected_days if max_duration_days is None else min(expected_days, max_duration_days)
    return SampleSizePlan(
        **plan,
        daily_traffic=daily_traffic,
        expected_duration_days=expected_days,
        actual_duration_days=actual_days,
        actual_total=min(total, daily_traffic * actual_days),
        feasibility="feasible" if expected_days <= actual_days else "challenging",
    )
