"""Health-reading pipeline: flap suppression in front of alert correlation.

The Docker polling loop itself lives outside this package; it hands
inspect payloads (or plain health readings) to ``HealthPipeline``, which
tracks state changes, drops flapping containers and reports the groups
currently inside the correlation window.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable, Mapping
from typing import Any

import structlog

from sentinel.correlation.correlator import AlertCorrelator
from sentinel.correlation.flap_detector import FlapDetector
from sentinel.graph.dependency_graph import DependencyGraph
from sentinel.models.alerts import Alert, CorrelationGroup
from sentinel.observability.metrics import alerts_flap_suppressed_total

_log = structlog.get_logger(component="monitor.pipeline")

_HEALTHY_STATUSES = ("healthy", "starting")


def health_from_inspect(info: Mapping[str, Any]) -> bool:
    """Derive health from a Docker inspect payload.

    Uses the healthcheck status when the container defines one, otherwise
    whether it is running.
    """
    state = info.get("State") or {}
    health = state.get("Health")
    if health:
        return health.get("Status") in _HEALTHY_STATUSES
    return bool(state.get("Running"))


class HealthPipeline:
    """Turns health state changes into correlated incident groups."""

    def __init__(
        self,
        flap_detector: FlapDetector,
        correlator: AlertCorrelator,
        dependency_graph: DependencyGraph,
    ) -> None:
        self._flap_detector = flap_detector
        self._correlator = correlator
        self._graph = dependency_graph
        self._last_health: dict[str, bool] = {}
        self._labels: dict[str, dict[str, str]] = {}
        self._lock = threading.Lock()

    @property
    def correlated_groups(self) -> list[CorrelationGroup]:
        """Groups recomputed from the alerts still inside the correlation window."""
        return self._correlator.groups()

    def sync_containers(self, payloads: Iterable[Mapping[str, Any]]) -> None:
        """Remember container labels and rebuild their dependency edges."""
        payloads = list(payloads)
        with self._lock:
            for info in payloads:
                container_id = str(info.get("Id", ""))
                if container_id:
                    labels = (info.get("Config") or {}).get("Labels") or {}
                    self._labels[container_id] = dict(labels)
        self._graph.populate_from_containers(payloads)

    def observe(
        self,
        container_id: str,
        is_healthy: bool,
        labels: Mapping[str, str] | None = None,
    ) -> list[CorrelationGroup]:
        """Process one health reading.

        Repeated readings of the same state are ignored. A change is counted
        as a flip; an unhealthy change that is not flap-suppressed becomes an
        alert for the correlator.

        Returns:
            The current correlated groups.
        """
        with self._lock:
            if labels is not None:
                self._labels[container_id] = dict(labels)
            changed = self._last_health.get(container_id) != is_healthy
            self._last_health[container_id] = is_healthy
            known_labels = dict(self._labels.get(container_id, {}))
        if not changed:
            return self.correlated_groups

        flap = self._flap_detector.record(container_id, is_healthy)
        if is_healthy:
            return self.correlated_groups
        if flap.suppress_alert:
            alerts_flap_suppressed_total.inc()
            _log.info("alert_suppressed_flapping", container_id=container_id)
            return self.correlated_groups

        alert = Alert(container_id=container_id, labels=known_labels, is_healthy=False)
        groups = self._correlator.add(alert)
        _log.info("container_alert_raised", container_id=container_id, alert_id=alert.alert_id, groups=len(groups))
        return groups

    def observe_inspect(self, info: Mapping[str, Any]) -> list[CorrelationGroup]:
        """Process a Docker inspect payload as a health reading."""
        container_id = str(info.get("Id", ""))
        labels = (info.get("Config") or {}).get("Labels")
        return self.observe(container_id, health_from_inspect(info), labels)

    def forget(self, container_id: str) -> None:
        """Drop all state for a container that is no longer monitored."""
        with self._lock:
            self._last_health.pop(container_id, None)
            self._labels.pop(container_id, None)
        self._flap_detector.clear(container_id)
        self._graph.clear_container(container_id)
        _log.info("container_forgotten", container_id=container_id)
