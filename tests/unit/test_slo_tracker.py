"""Tests for SLOTracker downtime storage."""

from __future__ import annotations

from datetime import timedelta

import pytest

from sentinel.errors import InvalidParametersError
from sentinel.slo.tracker import SLOTracker

from ..conftest import T0, FakeClock


@pytest.fixture
def tracker(clock: FakeClock) -> SLOTracker:
    return SLOTracker(clock=clock)


class TestRecordDowntime:
    def test_records_completed_event(self, tracker: SLOTracker) -> None:
        event = tracker.record_downtime("svc-1", 10, "test")

        assert event.service_id == "svc-1"
        assert event.downtime_minutes == 10
        assert event.description == "test"
        assert event.resolved_at == T0
        assert event.created_at == T0 - timedelta(minutes=10)

    def test_event_is_returned_by_get_incidents(self, tracker: SLOTracker) -> None:
        tracker.record_downtime("svc-1", 10, "test")

        incidents = tracker.get_incidents("svc-1", T0 - timedelta(days=30))

        assert len(incidents) == 1
        assert incidents[0].downtime_minutes == 10

    def test_fractional_minutes_are_accepted(self, tracker: SLOTracker) -> None:
        assert tracker.record_downtime("svc-1", 0.5).downtime_minutes == 0.5

    @pytest.mark.parametrize("service_id", ["", None, 42])
    def test_rejects_missing_service_id(self, tracker: SLOTracker, service_id: object) -> None:
        with pytest.raises(InvalidParametersError):
            tracker.record_downtime(service_id, 5)  # type: ignore[arg-type]

    @pytest.mark.parametrize("minutes", [0, -1, "5", None, True, float("nan")])
    def test_rejects_non_positive_minutes(self, tracker: SLOTracker, minutes: object) -> None:
        with pytest.raises(InvalidParametersError):
            tracker.record_downtime("svc-1", minutes)  # type: ignore[arg-type]

        assert tracker.get_incidents("svc-1") == []

    @pytest.mark.parametrize("minutes", [float("inf"), 5e9, 1e20])
    def test_rejects_unrepresentable_minutes(self, tracker: SLOTracker, minutes: float) -> None:
        with pytest.raises(InvalidParametersError, match="Invalid downtime parameters"):
            tracker.record_downtime("svc-1", minutes)

        assert tracker.get_incidents("svc-1") == []

    def test_event_ids_are_unique(self, tracker: SLOTracker) -> None:
        first = tracker.record_downtime("svc-1", 1)
        second = tracker.record_downtime("svc-1", 1)
        assert first.id != second.id


class TestQueries:
    def test_unknown_service_has_no_incidents(self, tracker: SLOTracker) -> None:
        assert tracker.get_incidents("nope") == []

    def test_window_start_filters_on_resolution(self, tracker: SLOTracker, clock: FakeClock) -> None:
        tracker.record_downtime("svc-1", 5)
        clock.advance(days=10)
        tracker.record_downtime("svc-1", 7)

        recent = tracker.get_incidents("svc-1", clock.now - timedelta(days=7))

        assert [e.downtime_minutes for e in recent] == [7]
        assert len(tracker.get_incidents("svc-1")) == 2

    def test_all_incidents_newest_first(self, tracker: SLOTracker, clock: FakeClock) -> None:
        tracker.record_downtime("svc-1", 1)
        clock.advance(hours=1)
        tracker.record_downtime("svc-2", 2)
        clock.advance(hours=1)
        tracker.record_downtime("svc-1", 3)

        assert [e.downtime_minutes for e in tracker.get_all_incidents()] == [3, 2, 1]

    def test_services_and_clearing(self, tracker: SLOTracker) -> None:
        tracker.record_downtime("svc-1", 1)
        tracker.record_downtime("svc-2", 1)
        assert sorted(tracker.services()) == ["svc-1", "svc-2"]

        tracker.clear_service("svc-1")
        assert tracker.get_incidents("svc-1") == []
        assert tracker.services() == ["svc-2"]

        tracker.clear_all()
        assert tracker.get_all_incidents() == []


def test_seed_demo_data(tracker: SLOTracker) -> None:
    assert tracker.seed_demo_data() == 12
    assert sorted(tracker.services()) == [
        "api-gateway",
        "auth-service",
        "notification-service",
        "payment-service",
    ]
    for event in tracker.get_all_incidents():
        assert event.resolved_at <= T0
        assert event.created_at < event.resolved_at
