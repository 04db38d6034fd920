"""Sentinel core: alert correlation, flap suppression and SLO error budgets."""

__version__ = "0.1.0"
