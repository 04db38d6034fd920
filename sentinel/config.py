"""Configuration loading from environment variables."""

from __future__ import annotations

import os

from sentinel.models.config import (
    CorrelationConfig,
    FlapConfig,
    LogConfig,
    MetricsConfig,
    SentinelConfig,
    SLOConfig,
)


def _env(key: str, default: str = "") -> str:
    return os.environ.get(f"SENTINEL_{key}", default)


def _env_bool(key: str, default: bool = False) -> bool:
    val = _env(key, str(default).lower())
    return val.lower() in ("true", "1", "yes")


def _env_int(key: str, default: int, min_val: int | None = None, max_val: int | None = None) -> int:
    val = int(_env(key, str(default)))
    if min_val is not None:
        val = max(val, min_val)
    if max_val is not None:
        val = min(val, max_val)
    return val


def _validate_log_level(value: str) -> str:
    valid = {"debug", "info", "warning", "error"}
    if value.lower() not in valid:
        raise ValueError(f"Invalid log level: {value}. Must be one of {valid}")
    return value.lower()


def _validate_log_format(value: str) -> str:
    if value.lower() not in ("json", "console"):
        raise ValueError(f"Invalid log format: {value}. Must be 'json' or 'console'")
    return value.lower()


def load_config() -> SentinelConfig:
    """Load configuration from SENTINEL_* environment variables."""
    return SentinelConfig(
        flap=FlapConfig(
            max_flips=_env_int("FLAP_MAX_FLIPS", 3, min_val=1, max_val=20),
            window_seconds=_env_int("FLAP_WINDOW_SECONDS", 300, min_val=10),
        ),
        correlation=CorrelationConfig(
            window_seconds=_env_int("CORRELATION_WINDOW_SECONDS", 60, min_val=1, max_val=3600),
        ),
        slo=SLOConfig(
            burndown_points=_env_int("SLO_BURNDOWN_POINTS", 30, min_val=1, max_val=100),
            seed_demo_data=_env_bool("SLO_SEED_DEMO_DATA", False),
            evaluation_interval=_env_int("SLO_EVALUATION_INTERVAL", 60, min_val=5),
        ),
        metrics=MetricsConfig(
            enabled=_env_bool("METRICS_ENABLED", False),
            port=_env_int("METRICS_PORT", 9464, min_val=1024, max_val=65535),
        ),
        log=LogConfig(
            level=_validate_log_level(_env("LOG_LEVEL", "info")),
            format=_validate_log_format(_env("LOG_FORMAT", "json")),
        ),
    )
