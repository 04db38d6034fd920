"""Alert correlation over a sliding time window.

Every ``add`` evicts expired alerts, stamps the new one and recomputes all
groups from scratch; no incremental grouping state is kept. Alerts are
grouped by Compose project, or by container when no project label exists.
Only groups with more than one alert are reported.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import replace
from datetime import UTC, datetime, timedelta

import structlog

from sentinel.graph.dependency_graph import DependencyGraph
from sentinel.models.alerts import Alert, CorrelationGroup, CorrelationSignal
from sentinel.observability.metrics import alerts_ingested_total, correlated_groups_active

_log = structlog.get_logger(component="correlation.correlator")

CORRELATION_WINDOW = timedelta(seconds=60)

_DEPENDENCY_BASE_PROBABILITY = 0.7
_DEPENDENCY_MAX_PROBABILITY = 0.95
_TEMPORAL_BASE_PROBABILITY = 0.5
_TEMPORAL_MAX_PROBABILITY = 0.8
_PROBABILITY_STEP = 0.05
_SHARED_DEPENDENCY_WEIGHT = 2


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


class AlertCorrelator:
    """Groups recent alerts into correlated incidents.

    Args:
        dependency_graph: Consulted for the root-cause container's
                          dependencies.
        window:           How long an alert stays eligible for correlation.
        clock:            Source of ingestion timestamps.
    """

    def __init__(
        self,
        dependency_graph: DependencyGraph,
        window: timedelta = CORRELATION_WINDOW,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._graph = dependency_graph
        self._window = window
        self._clock = clock
        self._recent: list[Alert] = []
        self._lock = threading.Lock()

    def add(self, alert: Alert) -> list[CorrelationGroup]:
        """Ingest ``alert`` and return every correlated group in the window."""
        now = self._clock()
        with self._lock:
            self._recent = [a for a in self._recent if a.timestamp is not None and now - a.timestamp < self._window]
            self._recent.append(replace(alert, timestamp=now))
            alerts_ingested_total.inc()
            window_alerts = len(self._recent)
            groups = self._correlate(list(self._recent))

        correlated_groups_active.set(len(groups))
        if groups:
            _log.debug(
                "alerts_correlated",
                container_id=alert.container_id,
                window_alerts=window_alerts,
                groups=len(groups),
            )
        return groups

    def groups(self) -> list[CorrelationGroup]:
        """Recompute groups from the current window without adding an alert."""
        now = self._clock()
        with self._lock:
            self._recent = [a for a in self._recent if a.timestamp is not None and now - a.timestamp < self._window]
            return self._correlate(list(self._recent))

    def clear(self) -> None:
        with self._lock:
            self._recent = []

    @property
    def window_size(self) -> int:
        """Number of alerts currently held in the window."""
        with self._lock:
            return len(self._recent)

    def _correlate(self, alerts: list[Alert]) -> list[CorrelationGroup]:
        buckets: dict[str, list[Alert]] = {}
        from_project: dict[str, bool] = {}
        for alert in alerts:
            project = alert.compose_project
            key = project or alert.container_id
            buckets.setdefault(key, []).append(alert)
            from_project.setdefault(key, project is not None)

        return [
            self._build_group(key, bucket, from_project[key])
            for key, bucket in buckets.items()
            if len(bucket) > 1
        ]

    def _build_group(self, key: str, alerts: list[Alert], from_project: bool) -> CorrelationGroup:
        ordered = sorted(alerts, key=lambda a: a.timestamp or datetime.min.replace(tzinfo=UTC))
        root_cause_id = ordered[0].container_id
        affected = list(dict.fromkeys(a.container_id for a in ordered))

        # Only the root-cause container's dependencies are checked.
        deps = self._graph.get_dependencies(root_cause_id)
        shared_dependency = len(deps) > 0

        signals = [
            CorrelationSignal.SAME_COMPOSE_PROJECT if from_project else CorrelationSignal.SAME_CONTAINER
        ]
        if shared_dependency:
            signals.append(CorrelationSignal.SHARED_DEPENDENCY)
        if len(alerts) > 2:
            signals.append(CorrelationSignal.CASCADE_PATTERN)

        if shared_dependency:
            probability = min(
                _DEPENDENCY_MAX_PROBABILITY,
                _DEPENDENCY_BASE_PROBABILITY + len(deps) * _PROBABILITY_STEP,
            )
        else:
            probability = min(
                _TEMPORAL_MAX_PROBABILITY,
                _TEMPORAL_BASE_PROBABILITY + len(alerts) * _PROBABILITY_STEP,
            )

        return CorrelationGroup(
            group_id=f"grp_{key}_{'_'.join(sorted(affected))}",
            root_cause_container_id=root_cause_id,
            root_cause_probability=round(probability, 2),
            affected_containers=affected,
            blast_radius=len(affected) + (_SHARED_DEPENDENCY_WEIGHT if shared_dependency else 0),
            correlation_signals=signals,
            suppressed_alerts=len(alerts) - 1,
            alerts=ordered,
        )
