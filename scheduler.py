import logging
from typing import List, Optional

import config
from ledger import OccupancyLedger
from models import (IDLE, LOW, MOVING, STOPPED, Alert, RailwayGraph, RoutePlan,
                    TrainAgent)
from pathfinder import shortest_path

logger = logging.getLogger(__name__)


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


# =============================================================================
# SCHEDULER (Train State Machine)
# =============================================================================

class Scheduler:
    """Moves trains one tick at a time against the occupancy ledger.

    Routing is greedy: at every segment boundary the next hop is the first
    segment of a fresh shortest path to the train's destination.
    """

    def __init__(self, graph_model: RailwayGraph, ledger: OccupancyLedger):
        self.graph_model = graph_model
        self.ledger = ledger

    def advance_train(self, train: TrainAgent) -> List[Alert]:
        """Runs one tick for ``train`` and returns the alerts it raised."""
        if train.current_segment is None:
            return []

        segment = self.graph_model.segment(train.current_segment)
        self.ledger.reserve(segment.id, train.id)

        # Entry gating: only trains still inside the safety buffer can be held back.
        committed = train.progress > config.SAFETY_BUFFER
        if not committed and not self.ledger.can_enter(segment.id, segment.capacity, ignoring=train.id):
            if train.status != STOPPED:
                logger.debug("Train %s held at entry of %s", train.id, segment.id)
            train.status = STOPPED
            return []

        train.status = MOVING
        effective_speed = clamp(train.speed, config.TRAIN_SPEED_MIN, segment.speed_limit)
        step = effective_speed / config.PROGRESS_SCALE * segment.length
        train.progress = clamp(train.progress + step, 0.0, 1.0)

        if train.progress >= 1.0:
            return self._leave_segment(train)
        return []

    def _leave_segment(self, train: TrainAgent) -> List[Alert]:
        traversal = self.graph_model.traversal(train.current_segment, train.direction)
        self.ledger.release(traversal.segment.id, train.id)

        path = shortest_path(self.graph_model, traversal.to_node, train.destination)
        if path is None or not path.traversals:
            logger.info("Train %s idle at %s", train.id, traversal.to_node)
            train.current_segment = None
            train.status = IDLE
            return []

        next_hop = path.traversals[0]
        if self.ledger.can_enter(next_hop.segment.id, next_hop.segment.capacity):
            self.ledger.reserve(next_hop.segment.id, train.id)
            logger.debug("Train %s %s -> %s", train.id, traversal.traversal_id, next_hop.traversal_id)
            train.current_segment = next_hop.segment.id
            train.direction = next_hop.direction
            train.progress = 0.0
            train.status = MOVING
            return []

        # Wait at the virtual signal on the segment boundary
        train.status = STOPPED
        train.progress = config.HOLD_PROGRESS
        return [Alert(LOW, f"{train.name} waiting for clearance on {next_hop.traversal_id}")]

    def plan_route(self, train: TrainAgent) -> Optional[RoutePlan]:
        """Current traversal followed by the shortest path onward to the destination."""
        if train.current_segment is None:
            return None
        traversal = self.graph_model.traversal(train.current_segment, train.direction)
        path = shortest_path(self.graph_model, traversal.to_node, train.destination)
        if path is None:
            return None
        nodes = [traversal.from_node] + path.nodes
        return RoutePlan(train_id=train.id, nodes=nodes,
                         node_names=self.graph_model.node_names(nodes),
                         distance=traversal.segment.length + path.distance)
