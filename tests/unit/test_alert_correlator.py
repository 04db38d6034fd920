"""Tests for AlertCorrelator grouping, scoring and window eviction."""

from __future__ import annotations

from datetime import timedelta

import pytest

from sentinel.correlation.correlator import AlertCorrelator
from sentinel.graph.dependency_graph import DependencyGraph
from sentinel.models.alerts import Alert, CorrelationSignal

from ..conftest import T0, FakeClock, make_alert


class TestGrouping:
    def test_single_alert_yields_no_group(self, correlator: AlertCorrelator) -> None:
        assert correlator.add(make_alert("web", project="shop")) == []

    def test_second_alert_in_project_forms_one_group(self, correlator: AlertCorrelator, clock: FakeClock) -> None:
        correlator.add(make_alert("web", project="shop"))
        clock.advance(seconds=5)
        groups = correlator.add(make_alert("db", project="shop"))

        assert len(groups) == 1
        group = groups[0]
        assert group.affected_containers == ["web", "db"]
        assert group.correlation_signals == [CorrelationSignal.SAME_COMPOSE_PROJECT]
        assert group.suppressed_alerts == 1
        assert len(group.alerts) == 2

    def test_every_project_alert_joins_the_same_group(self, correlator: AlertCorrelator, clock: FakeClock) -> None:
        for name in ("web", "db", "cache", "worker"):
            groups = correlator.add(make_alert(name, project="shop"))
            clock.advance(seconds=1)

        assert len(groups) == 1
        assert len(groups[0].alerts) == 4
        assert groups[0].suppressed_alerts == 3

    def test_unrelated_containers_stay_apart(self, correlator: AlertCorrelator) -> None:
        correlator.add(make_alert("web"))
        assert correlator.add(make_alert("db")) == []

    def test_repeated_alerts_for_unlabelled_container(self, correlator: AlertCorrelator) -> None:
        correlator.add(make_alert("web"))
        groups = correlator.add(make_alert("web"))

        assert len(groups) == 1
        assert groups[0].correlation_signals == [CorrelationSignal.SAME_CONTAINER]
        assert groups[0].affected_containers == ["web"]
        assert groups[0].group_id == "grp_web_web"

    def test_empty_project_label_falls_back_to_container(self, correlator: AlertCorrelator) -> None:
        correlator.add(make_alert("web", project=""))
        assert correlator.add(make_alert("db", project="")) == []

    def test_multiple_projects_produce_multiple_groups(self, correlator: AlertCorrelator) -> None:
        correlator.add(make_alert("web", project="shop"))
        correlator.add(make_alert("api", project="blog"))
        correlator.add(make_alert("db", project="shop"))
        groups = correlator.add(make_alert("cms", project="blog"))

        assert [g.group_id for g in groups] == ["grp_shop_db_web", "grp_blog_api_cms"]


class TestRootCause:
    def test_earliest_alert_is_root_cause(self, correlator: AlertCorrelator, clock: FakeClock) -> None:
        correlator.add(make_alert("db", project="shop"))
        clock.advance(seconds=3)
        groups = correlator.add(make_alert("web", project="shop"))

        assert groups[0].root_cause_container_id == "db"

    def test_ties_keep_insertion_order(self, correlator: AlertCorrelator) -> None:
        correlator.add(make_alert("web", project="shop"))
        groups = correlator.add(make_alert("db", project="shop"))

        assert groups[0].root_cause_container_id == "web"

    def test_probability_without_dependencies(self, correlator: AlertCorrelator) -> None:
        correlator.add(make_alert("web", project="shop"))
        groups = correlator.add(make_alert("db", project="shop"))

        assert groups[0].root_cause_probability == pytest.approx(0.6)
        assert groups[0].blast_radius == 2

    def test_probability_without_dependencies_is_capped(self, correlator: AlertCorrelator) -> None:
        for i in range(10):
            groups = correlator.add(make_alert(f"c{i}", project="shop"))

        assert groups[0].root_cause_probability == pytest.approx(0.8)

    def test_dependency_raises_confidence_and_blast_radius(
        self,
        correlator: AlertCorrelator,
        graph: DependencyGraph,
    ) -> None:
        graph.add_dependency("web", "db")
        correlator.add(make_alert("web", project="shop"))
        groups = correlator.add(make_alert("db", project="shop"))

        group = groups[0]
        assert group.root_cause_probability == pytest.approx(0.75)
        assert CorrelationSignal.SHARED_DEPENDENCY in group.correlation_signals
        assert group.blast_radius == 4

    def test_dependency_probability_is_capped(self, correlator: AlertCorrelator, graph: DependencyGraph) -> None:
        for i in range(10):
            graph.add_dependency("web", f"dep{i}")
        correlator.add(make_alert("web", project="shop"))
        groups = correlator.add(make_alert("db", project="shop"))

        assert groups[0].root_cause_probability == pytest.approx(0.95)

    def test_only_root_cause_dependencies_are_consulted(
        self,
        correlator: AlertCorrelator,
        graph: DependencyGraph,
    ) -> None:
        graph.add_dependency("db", "volume")
        correlator.add(make_alert("web", project="shop"))
        groups = correlator.add(make_alert("db", project="shop"))

        assert CorrelationSignal.SHARED_DEPENDENCY not in groups[0].correlation_signals

    def test_cascade_signal_for_more_than_two_alerts(self, correlator: AlertCorrelator) -> None:
        correlator.add(make_alert("web", project="shop"))
        groups = correlator.add(make_alert("db", project="shop"))
        assert CorrelationSignal.CASCADE_PATTERN not in groups[0].correlation_signals

        groups = correlator.add(make_alert("cache", project="shop"))
        assert CorrelationSignal.CASCADE_PATTERN in groups[0].correlation_signals


class TestGroupId:
    def test_group_id_is_stable_across_recomputation(self, correlator: AlertCorrelator, clock: FakeClock) -> None:
        correlator.add(make_alert("web", project="shop"))
        first = correlator.add(make_alert("db", project="shop"))
        clock.advance(seconds=2)
        second = correlator.add(make_alert("web", project="shop"))

        assert first[0].group_id == second[0].group_id == "grp_shop_db_web"

    def test_blast_radius_counts_distinct_containers(self, correlator: AlertCorrelator) -> None:
        correlator.add(make_alert("web", project="shop"))
        correlator.add(make_alert("web", project="shop"))
        groups = correlator.add(make_alert("db", project="shop"))

        assert groups[0].blast_radius == 2
        assert groups[0].suppressed_alerts == 2


class TestWindow:
    def test_alerts_older_than_window_are_evicted(self, correlator: AlertCorrelator, clock: FakeClock) -> None:
        correlator.add(make_alert("web", project="shop"))
        clock.advance(seconds=60)

        assert correlator.add(make_alert("db", project="shop")) == []
        assert correlator.window_size == 1

    def test_alerts_inside_window_are_kept(self, correlator: AlertCorrelator, clock: FakeClock) -> None:
        correlator.add(make_alert("web", project="shop"))
        clock.advance(seconds=59)

        assert len(correlator.add(make_alert("db", project="shop"))) == 1

    def test_timestamp_is_assigned_on_ingestion(self, correlator: AlertCorrelator, clock: FakeClock) -> None:
        stale = Alert(container_id="web", labels={}, timestamp=T0 - timedelta(days=1))
        correlator.add(stale)
        groups = correlator.add(Alert(container_id="web"))

        assert all(a.timestamp == clock.now for a in groups[0].alerts)

    def test_groups_recomputes_without_adding(self, correlator: AlertCorrelator, clock: FakeClock) -> None:
        correlator.add(make_alert("web", project="shop"))
        correlator.add(make_alert("db", project="shop"))
        assert len(correlator.groups()) == 1

        clock.advance(minutes=2)
        assert correlator.groups() == []
        assert correlator.window_size == 0

    def test_custom_window(self, graph: DependencyGraph, clock: FakeClock) -> None:
        correlator = AlertCorrelator(graph, window=timedelta(seconds=10), clock=clock)
        correlator.add(make_alert("web", project="shop"))
        clock.advance(seconds=11)
        assert correlator.add(make_alert("db", project="shop")) == []

    def test_clear_empties_window(self, correlator: AlertCorrelator) -> None:
        correlator.add(make_alert("web", project="shop"))
        correlator.clear()
        assert correlator.add(make_alert("db", project="shop")) == []


def test_group_serialises_to_plain_dict(correlator: AlertCorrelator, graph: DependencyGraph) -> None:
    graph.add_dependency("web", "db")
    correlator.add(make_alert("web", project="shop"))
    group = correlator.add(make_alert("db", project="shop"))[0]

    payload = group.to_dict()

    assert payload["group_id"] == "grp_shop_db_web"
    assert payload["correlation_signals"] == ["same_compose_project", "shared_dependency"]
    assert payload["alerts"][0]["container_id"] == "web"
    assert payload["alerts"][0]["timestamp"] == T0.isoformat()
