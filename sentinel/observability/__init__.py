"""Logging and metrics for Sentinel."""
