import logging
import networkx as nx
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

logger = logging.getLogger(__name__)

# Node kinds
STATION = "station"
JUNCTION = "junction"
SIGNAL = "signal"
NODE_KINDS = (STATION, JUNCTION, SIGNAL)

# Segment directionality
BIDIRECTIONAL = "bidirectional"
ONE_WAY = "one-way"
DIRECTIONALITIES = (BIDIRECTIONAL, ONE_WAY)

# Traversal direction along a segment
FORWARD = "forward"
REVERSE = "reverse"

# Train status
MOVING = "moving"
STOPPED = "stopped"
IDLE = "idle"

# Alert severity
LOW = "low"
HIGH = "high"


# =============================================================================
# ERRORS
# =============================================================================

class SimulationError(ValueError):
    """Base class for errors raised while building a simulation."""


class InvalidTopologyError(SimulationError):
    """The node/segment description cannot form a valid network."""


class InvalidTrainSpecError(SimulationError):
    """A train description does not fit the network it is placed on."""


# =============================================================================
# DATA STRUCTURES
# =============================================================================

@dataclass(frozen=True)
class Node:
    """A station, junction or signal."""
    id: str
    name: str
    kind: str = STATION


@dataclass(frozen=True)
class Segment:
    """A piece of track between two nodes."""
    id: str
    from_node: str
    to_node: str
    length: float
    speed_limit: float
    directionality: str = BIDIRECTIONAL
    capacity: int = 1

    @property
    def bidirectional(self) -> bool:
        return self.directionality == BIDIRECTIONAL


@dataclass(frozen=True)
class Traversal:
    """A segment travelled in one direction.

    Reverse traversals are views generated by the adjacency index; occupancy
    is always booked against ``segment.id``.
    """
    segment: Segment
    direction: str = FORWARD

    @property
    def traversal_id(self) -> str:
        if self.direction == REVERSE:
            return f"{self.segment.id}-r"
        return self.segment.id

    @property
    def from_node(self) -> str:
        if self.direction == REVERSE:
            return self.segment.to_node
        return self.segment.from_node

    @property
    def to_node(self) -> str:
        if self.direction == REVERSE:
            return self.segment.from_node
        return self.segment.to_node


@dataclass
class TrainAgent:
    """Holds the runtime state of a single train."""
    id: str
    name: str
    speed: float
    destination: str
    current_segment: Optional[str] = None
    direction: str = FORWARD
    progress: float = 0.0
    status: str = MOVING


@dataclass
class RoutePlan:
    """Cached path snapshot for display, not used to move trains."""
    train_id: str
    nodes: List[str]
    node_names: List[str] = field(default_factory=list)
    distance: float = 0.0


@dataclass(frozen=True)
class Alert:
    severity: str
    message: str


# =============================================================================
# GRAPH MODEL
# =============================================================================

class RailwayGraph:
    """Read-only network topology backed by a NetworkX multigraph.

    Every traversal is one edge of ``self.graph`` keyed by its traversal id,
    so parallel tracks between the same pair of nodes are kept apart.
    """

    def __init__(self, nodes: Dict[str, Node], segments: Dict[str, Segment]):
        self.nodes = nodes
        self.segments = segments
        self.graph = nx.MultiDiGraph()
        self._adjacency: Dict[str, List[Traversal]] = {node_id: [] for node_id in nodes}

        for node in nodes.values():
            self.graph.add_node(node.id, name=node.name, kind=node.kind)

        for segment in segments.values():
            self._add_traversal(Traversal(segment, FORWARD))
            if segment.bidirectional:
                self._add_traversal(Traversal(segment, REVERSE))

    def _add_traversal(self, traversal: Traversal):
        self.graph.add_edge(traversal.from_node, traversal.to_node,
                            key=traversal.traversal_id,
                            length=traversal.segment.length,
                            traversal=traversal)
        self._adjacency[traversal.from_node].append(traversal)

    def has_node(self, node_id: str) -> bool:
        return node_id in self.nodes

    def has_segment(self, segment_id: str) -> bool:
        return segment_id in self.segments

    def segment(self, segment_id: str) -> Segment:
        return self.segments[segment_id]

    def traversal(self, segment_id: str, direction: str = FORWARD) -> Traversal:
        return Traversal(self.segments[segment_id], direction)

    def neighbors(self, node_id: str) -> List[Tuple[str, Segment, str]]:
        """Reachable nodes from ``node_id`` in segment declaration order."""
        return [(t.to_node, t.segment, t.direction) for t in self._adjacency.get(node_id, [])]

    def node_names(self, node_ids: Iterable[str]) -> List[str]:
        return [self.nodes[n].name for n in node_ids]


def build_graph(nodes: Iterable[Node], segments: Iterable[Segment]) -> RailwayGraph:
    """Validates the topology and builds the adjacency index."""
    node_map: Dict[str, Node] = {}
    for node in nodes:
        if node.id in node_map:
            raise InvalidTopologyError(f"Duplicate node id '{node.id}'")
        if node.kind not in NODE_KINDS:
            raise InvalidTopologyError(f"Node '{node.id}' has unknown kind '{node.kind}'")
        node_map[node.id] = node

    segment_map: Dict[str, Segment] = {}
    for seg in segments:
        if seg.id in segment_map:
            raise InvalidTopologyError(f"Duplicate segment id '{seg.id}'")
        for endpoint in (seg.from_node, seg.to_node):
            if endpoint not in node_map:
                raise InvalidTopologyError(f"Segment '{seg.id}' references unknown node '{endpoint}'")
        if seg.length <= 0:
            raise InvalidTopologyError(f"Segment '{seg.id}' must have a positive length")
        if seg.speed_limit <= 0:
            raise InvalidTopologyError(f"Segment '{seg.id}' must have a positive speed limit")
        if seg.capacity < 1:
            raise InvalidTopologyError(f"Segment '{seg.id}' must have a capacity of at least 1")
        if seg.directionality not in DIRECTIONALITIES:
            raise InvalidTopologyError(
                f"Segment '{seg.id}' has unknown directionality '{seg.directionality}'")
        segment_map[seg.id] = seg

    graph = RailwayGraph(node_map, segment_map)
    logger.info("Graph built: %d nodes, %d segments, %d traversals",
                len(node_map), len(segment_map), graph.graph.number_of_edges())
    return graph
