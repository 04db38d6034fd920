"""Shared fixtures for Sentinel tests.

Provides a controllable clock and factories for Docker inspect payloads,
alerts and downtime records so tests never depend on wall-clock time.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from sentinel.correlation.correlator import AlertCorrelator
from sentinel.correlation.flap_detector import FlapDetector
from sentinel.graph.dependency_graph import DependencyGraph
from sentinel.models.alerts import COMPOSE_DEPENDS_ON_LABEL, COMPOSE_PROJECT_LABEL, COMPOSE_SERVICE_LABEL, Alert
from sentinel.models.slo import DowntimeEvent

T0 = datetime(2026, 3, 1, 12, 0, 0, tzinfo=UTC)


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime = T0) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


# ---------------------------------------------------------------------------
# Factory helpers
# ---------------------------------------------------------------------------


def make_alert(container_id: str, project: str | None = None, **labels: str) -> Alert:
    """Create an Alert, optionally labelled with a Compose project."""
    all_labels = dict(labels)
    if project is not None:
        all_labels[COMPOSE_PROJECT_LABEL] = project
    return Alert(container_id=container_id, labels=all_labels)


def make_inspect(
    container_id: str,
    project: str | None = "shop",
    service: str | None = None,
    depends_on: str | None = None,
    networks: tuple[str, ...] = ("shop_default",),
    running: bool = True,
    health: str | None = None,
) -> dict:
    """Create a trimmed Docker inspect payload."""
    labels: dict[str, str] = {}
    if project is not None:
        labels[COMPOSE_PROJECT_LABEL] = project
    if service is not None:
        labels[COMPOSE_SERVICE_LABEL] = service
    if depends_on is not None:
        labels[COMPOSE_DEPENDS_ON_LABEL] = depends_on
    state: dict = {"Running": running}
    if health is not None:
        state["Health"] = {"Status": health}
    return {
        "Id": container_id,
        "Name": f"/{service or container_id}",
        "Config": {"Labels": labels},
        "NetworkSettings": {"Networks": {name: {} for name in networks}},
        "State": state,
    }


def make_downtime(
    minutes: float,
    resolved_at: datetime,
    service_id: str = "svc-1",
    description: str = "",
) -> DowntimeEvent:
    return DowntimeEvent(
        service_id=service_id,
        downtime_minutes=minutes,
        description=description,
        resolved_at=resolved_at,
        created_at=resolved_at - timedelta(minutes=minutes),
    )


# ---------------------------------------------------------------------------
# Component fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def graph() -> DependencyGraph:
    return DependencyGraph()


@pytest.fixture
def correlator(graph: DependencyGraph, clock: FakeClock) -> AlertCorrelator:
    return AlertCorrelator(graph, clock=clock)


@pytest.fixture
def flap_detector(clock: FakeClock) -> FlapDetector:
    return FlapDetector(max_flips=3, window=timedelta(minutes=5), clock=clock)
