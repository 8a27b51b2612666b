"""Exception types raised by the Bayesian stats engine.

All of them derive from ``ValueError`` so callers that already guard
engine calls with ``except ValueError`` keep working.
"""

from __future__ import annotations


class StatsError(ValueError):
    """Base class for every error raised by ``bayesab.stats``."""


class InvalidObservation(StatsError):
    """Observed counts are negative, non-integral, or successes exceed trials."""


class InvalidShapeParameters(StatsError):
    """A Beta shape parameter is not a finite positive number."""


class DegenerateSampleCount(StatsError):
    """A Monte Carlo routine was asked for zero (or fewer) draws."""


class SamplingError(StatsError):
    """A rejection sampler exceeded its retry ceiling without accepting."""
