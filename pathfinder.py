import networkx as nx
from dataclasses import dataclass, field
from typing import List, Optional

from models import RailwayGraph, Segment, Traversal


# =============================================================================
# PATHFINDER
# =============================================================================

@dataclass
class Path:
    """Ordered nodes and the traversals joining them."""
    nodes: List[str]
    traversals: List[Traversal] = field(default_factory=list)
    distance: float = 0.0

    @property
    def segments(self) -> List[Segment]:
        return [t.segment for t in self.traversals]


def _pick_traversal(graph: RailwayGraph, u: str, v: str) -> Traversal:
    # Shortest parallel track wins, earliest declared on ties.
    edges = graph.graph[u][v]
    return min(edges.values(), key=lambda attrs: attrs["length"])["traversal"]


def shortest_path(graph: RailwayGraph, start: str, goal: str) -> Optional[Path]:
    """Dijkstra over cumulative segment length.

    NetworkX pushes frontier entries with an insertion counter, so equal
    distances resolve to the first discovered node. Returns None when the
    goal cannot be reached.
    """
    if not graph.has_node(start) or not graph.has_node(goal):
        return None
    try:
        _, nodes = nx.single_source_dijkstra(graph.graph, start, target=goal, weight="length")
    except (nx.NetworkXNoPath, nx.NodeNotFound):
        return None

    traversals = [_pick_traversal(graph, nodes[i], nodes[i + 1]) for i in range(len(nodes) - 1)]
    return Path(nodes=list(nodes), traversals=traversals,
                distance=sum(t.segment.length for t in traversals))
