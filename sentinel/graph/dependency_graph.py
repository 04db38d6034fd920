"""In-memory container dependency graph.

Edges point from a container to the containers it depends on. They are
either declared (``com.docker.compose.depends_on``) or inferred from shared
Docker networks inside one Compose project. Declared edges always win: a
container with at least one declared edge never receives inferred ones.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable, Mapping
from typing import Any

import structlog

from sentinel.graph.models import ContainerInfo, EdgeType, GraphEdge
from sentinel.models.alerts import (
    COMPOSE_DEPENDS_ON_LABEL,
    COMPOSE_PROJECT_LABEL,
    COMPOSE_SERVICE_LABEL,
)

_log = structlog.get_logger(component="graph.dependency_graph")


class DependencyGraph:
    """Directed graph of container dependencies.

    Adjacency is held as ``source -> {target: GraphEdge}``; dict ordering
    keeps ``get_dependencies`` stable in insertion order.
    """

    def __init__(self) -> None:
        self._edges: dict[str, dict[str, GraphEdge]] = {}
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def add_dependency(
        self,
        container: str,
        dependency: str,
        edge_type: EdgeType = EdgeType.DEPENDS_ON,
    ) -> None:
        """Record that ``container`` depends on ``dependency``."""
        if not container or not dependency or container == dependency:
            return
        with self._lock:
            self._add_edge_locked(container, dependency, edge_type)

    def clear_container(self, container_id: str) -> None:
        """Remove every edge that starts or ends at ``container_id``."""
        with self._lock:
            removed = len(self._edges.pop(container_id, {}))
            for source in list(self._edges):
                targets = self._edges[source]
                if targets.pop(container_id, None) is not None:
                    removed += 1
                if not targets:
                    del self._edges[source]
        if removed:
            _log.debug("container_edges_cleared", container_id=container_id, edges=removed)

    def populate_from_containers(self, containers: Iterable[Mapping[str, Any]]) -> int:
        """Build edges from Docker inspect payloads.

        Containers are grouped by Compose project; those without a project
        label are skipped. Outgoing edges of every container in the payload
        are rebuilt from scratch.

        Returns:
            Number of edges added.
        """
        infos = [parse_container_info(c) for c in containers]
        by_project: dict[str, list[ContainerInfo]] = {}
        for info in infos:
            if info.project:
                by_project.setdefault(info.project, []).append(info)

        added = 0
        with self._lock:
            for info in infos:
                self._edges.pop(info.container_id, None)

            for project, members in by_project.items():
                by_service = {m.service: m.container_id for m in members if m.service}
                explicit: dict[str, list[str]] = {}
                for member in members:
                    explicit[member.container_id] = list(
                        dict.fromkeys(
                            by_service[svc]
                            for svc in member.depends_on
                            if svc in by_service and by_service[svc] != member.container_id
                        )
                    )

                for member in members:
                    targets = explicit[member.container_id]
                    for target in targets:
                        self._add_edge_locked(member.container_id, target, EdgeType.DEPENDS_ON)
                        added += 1
                    if targets:
                        continue
                    for other in members:
                        if other.container_id == member.container_id:
                            continue
                        # Never infer the reverse of a declared dependency.
                        if member.container_id in explicit[other.container_id]:
                            continue
                        if member.networks & other.networks:
                            self._add_edge_locked(member.container_id, other.container_id, EdgeType.SHARED_NETWORK)
                            added += 1
                _log.debug("project_graph_built", project=project, containers=len(members))

        _log.info("dependency_graph_populated", containers=len(infos), edges_added=added)
        return added

    def _add_edge_locked(self, source: str, target: str, edge_type: EdgeType) -> None:
        targets = self._edges.setdefault(source, {})
        existing = targets.get(target)
        # A declared edge is never downgraded to an inferred one.
        if existing is not None and existing.edge_type == EdgeType.DEPENDS_ON:
            return
        targets[target] = GraphEdge(source=source, target=target, edge_type=edge_type)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_dependencies(self, container_id: str) -> list[str]:
        """Return what ``container_id`` depends on (outgoing edges)."""
        with self._lock:
            return list(self._edges.get(container_id, {}))

    def get_dependents(self, container_id: str) -> list[str]:
        """Return the containers that depend on ``container_id``."""
        with self._lock:
            return [source for source, targets in self._edges.items() if container_id in targets]

    def edges(self) -> list[GraphEdge]:
        with self._lock:
            return [edge for targets in self._edges.values() for edge in targets.values()]

    @property
    def node_count(self) -> int:
        with self._lock:
            nodes = set(self._edges)
            for targets in self._edges.values():
                nodes.update(targets)
            return len(nodes)

    @property
    def edge_count(self) -> int:
        with self._lock:
            return sum(len(targets) for targets in self._edges.values())


def parse_container_info(payload: Mapping[str, Any]) -> ContainerInfo:
    """Extract graph-relevant fields from a Docker inspect payload."""
    config = payload.get("Config") or {}
    labels = config.get("Labels") or payload.get("Labels") or {}
    network_settings = payload.get("NetworkSettings") or {}
    networks = network_settings.get("Networks") or {}
    return ContainerInfo(
        container_id=str(payload.get("Id", "")),
        name=str(payload.get("Name", "")).lstrip("/"),
        project=labels.get(COMPOSE_PROJECT_LABEL) or None,
        service=labels.get(COMPOSE_SERVICE_LABEL) or None,
        depends_on=_parse_depends_on(labels.get(COMPOSE_DEPENDS_ON_LABEL, "")),
        networks=frozenset(networks),
    )


def _parse_depends_on(value: str) -> tuple[str, ...]:
    """Parse ``db:service_started:false,cache`` into ``("db", "cache")``."""
    services = []
    for entry in value.split(","):
        name = entry.strip().split(":", 1)[0].strip()
        if name:
            services.append(name)
    return tuple(services)
