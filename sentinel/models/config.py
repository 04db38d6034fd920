"""Configuration data structures."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class FlapConfig:
    """Flap detector configuration."""

    max_flips: int = 3
    window_seconds: int = 300


@dataclass
class CorrelationConfig:
    """Alert correlator configuration."""

    window_seconds: int = 60


@dataclass
class SLOConfig:
    """SLO tracking configuration."""

    burndown_points: int = 30
    seed_demo_data: bool = False
    evaluation_interval: int = 60


@dataclass
class MetricsConfig:
    """Prometheus exporter configuration."""

    enabled: bool = False
    port: int = 9464


@dataclass
class LogConfig:
    """Logging configuration."""

    level: str = "info"
    format: str = "json"


@dataclass
class SentinelConfig:
    """Top-level Sentinel configuration."""

    flap: FlapConfig = field(default_factory=FlapConfig)
    correlation: CorrelationConfig = field(default_factory=CorrelationConfig)
    slo: SLOConfig = field(default_factory=SLOConfig)
    metrics: MetricsConfig = field(default_factory=MetricsConfig)
    log: LogConfig = field(default_factory=LogConfig)
