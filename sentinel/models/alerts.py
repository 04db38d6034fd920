"""Alert and correlation data structures."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from uuid import uuid4

COMPOSE_PROJECT_LABEL = "com.docker.compose.project"
COMPOSE_SERVICE_LABEL = "com.docker.compose.service"
COMPOSE_DEPENDS_ON_LABEL = "com.docker.compose.depends_on"


class CorrelationSignal(StrEnum):
    """Reasons a set of alerts was grouped into one incident."""

    SAME_COMPOSE_PROJECT = "same_compose_project"
    SAME_CONTAINER = "same_container"
    SHARED_DEPENDENCY = "shared_dependency"
    CASCADE_PATTERN = "cascade_pattern"


@dataclass(frozen=True)
class Alert:
    """A raw container alert pushed by the monitoring loop.

    ``timestamp`` is assigned by the correlator on ingestion; values supplied
    by the producer are overwritten.
    """

    container_id: str
    labels: dict[str, str] = field(default_factory=dict)
    type: str = "container_failure"
    is_healthy: bool = False
    timestamp: datetime | None = None
    alert_id: str = field(default_factory=lambda: str(uuid4()))

    @property
    def compose_project(self) -> str | None:
        return (self.labels or {}).get(COMPOSE_PROJECT_LABEL) or None

    def to_dict(self) -> dict[str, object]:
        return {
            "alert_id": self.alert_id,
            "container_id": self.container_id,
            "labels": dict(self.labels or {}),
            "type": self.type,
            "is_healthy": self.is_healthy,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
        }


@dataclass
class CorrelationGroup:
    """An incident derived from two or more alerts in the correlation window.

    Recomputed on every ``AlertCorrelator.add`` call; never stored.
    """

    group_id: str
    root_cause_container_id: str
    root_cause_probability: float
    affected_containers: list[str]
    blast_radius: int
    correlation_signals: list[CorrelationSignal]
    suppressed_alerts: int
    alerts: list[Alert] = field(default_factory=list)

    def to_dict(self) -> dict[str, object]:
        return {
            "group_id": self.group_id,
            "root_cause_container_id": self.root_cause_container_id,
            "root_cause_probability": self.root_cause_probability,
            "affected_containers": list(self.affected_containers),
            "blast_radius": self.blast_radius,
            "correlation_signals": [s.value for s in self.correlation_signals],
            "suppressed_alerts": self.suppressed_alerts,
            "alerts": [a.to_dict() for a in self.alerts],
        }


@dataclass
class FlapState:
    """Per-container flip history held by the flap detector."""

    flips: list[datetime] = field(default_factory=list)
    suppressed: bool = False


@dataclass(frozen=True)
class FlapResult:
    """Outcome of recording one health flip."""

    flapping: bool
    suppress_alert: bool
