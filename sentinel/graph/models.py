"""Data structures for the container dependency graph."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum


class EdgeType(StrEnum):
    """How a dependency between two containers was established."""

    DEPENDS_ON = "depends_on"  # explicit com.docker.compose.depends_on label
    SHARED_NETWORK = "shared_network"  # inferred from a common Docker network


@dataclass(frozen=True)
class GraphEdge:
    """A directed edge: ``source`` depends on ``target``."""

    source: str
    target: str
    edge_type: EdgeType
    discovered_at: datetime = field(default_factory=lambda: datetime.now(tz=UTC))


@dataclass(frozen=True)
class ContainerInfo:
    """The fields of a Docker inspect payload the graph cares about."""

    container_id: str
    name: str
    project: str | None
    service: str | None
    depends_on: tuple[str, ...]
    networks: frozenset[str]
