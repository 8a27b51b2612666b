"""Bayesian A/B inference engine with a thin FastAPI surface."""

__version__ = "0.1.0"
