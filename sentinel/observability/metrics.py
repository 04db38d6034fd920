"""Prometheus metrics for Sentinel.

Metrics are module-level collectors registered on the default registry;
``start_metrics_server`` exposes them over HTTP when enabled.
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, start_http_server

alerts_ingested_total = Counter(
    "sentinel_alerts_ingested_total",
    "Alerts accepted into the correlation window",
)

alerts_flap_suppressed_total = Counter(
    "sentinel_alerts_flap_suppressed_total",
    "Unhealthy transitions dropped because the container is flapping",
)

correlated_groups_active = Gauge(
    "sentinel_correlated_groups_active",
    "Correlation groups produced by the most recent recomputation",
)

downtime_events_total = Counter(
    "sentinel_downtime_events_total",
    "Downtime events recorded",
    ["service_id"],
)

error_budget_percent = Gauge(
    "sentinel_error_budget_percent",
    "Remaining error budget as a percentage of the allowed downtime",
    ["slo_id", "service_id"],
)

error_budget_burn_rate = Gauge(
    "sentinel_error_budget_burn_rate_per_day",
    "Error budget consumed per day, in percent",
    ["slo_id", "service_id"],
)


def start_metrics_server(port: int) -> None:
    """Serve the default registry on ``port``."""
    start_http_server(port)


def forget_slo(slo_id: str, service_id: str) -> None:
    """Drop per-SLO gauge series for a removed SLO."""
    for gauge in (error_budget_percent, error_budget_burn_rate):
        try:
            gauge.remove(slo_id, service_id)
        except KeyError:
            pass
