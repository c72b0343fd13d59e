"""Continuous-delivery release pipeline."""

__version__ = "0.1.0"
