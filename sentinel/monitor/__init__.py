"""Monitor package: health readings in, correlated incident groups out."""

from sentinel.monitor.pipeline import HealthPipeline, health_from_inspect

__all__ = ["HealthPipeline", "health_from_inspect"]
