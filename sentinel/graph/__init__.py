"""Container dependency graph.

Built from Docker inspect payloads (Compose ``depends_on`` labels and shared
networks) and consulted by the alert correlator for root-cause confidence.
"""

from sentinel.graph.dependency_graph import DependencyGraph, parse_container_info
from sentinel.graph.models import ContainerInfo, EdgeType, GraphEdge

__all__ = [
    "ContainerInfo",
    "DependencyGraph",
    "EdgeType",
    "GraphEdge",
    "parse_container_info",
]
