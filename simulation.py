import logging
import random
from dataclasses import asdict, dataclass, field, replace
from typing import Any, Dict, Iterable, List, Optional

import config
from ledger import OccupancyLedger
from models import (FORWARD, HIGH, IDLE, LOW, MOVING, REVERSE, STOPPED, Alert,
                    InvalidTrainSpecError, Node, RailwayGraph, RoutePlan, Segment,
                    TrainAgent, build_graph)
from scheduler import Scheduler, clamp

logger = logging.getLogger(__name__)


# =============================================================================
# SPECS & SNAPSHOTS
# =============================================================================

@dataclass
class GraphSpec:
    nodes: List[Node]
    segments: List[Segment]


@dataclass
class TrainSpec:
    """Initial placement of a train on the network."""
    id: str
    name: str
    speed: float
    start_segment: str
    destination: str
    direction: str = FORWARD
    progress: float = 0.0


@dataclass
class SystemStats:
    trains: int = 0
    occupied: int = 0
    conflicts: int = 0
    moving: int = 0
    stopped: int = 0
    idle: int = 0
    throughput: int = 0


@dataclass
class Snapshot:
    """Detached, read-only view of the engine between ticks."""
    tick: int
    running: bool
    speed_multiplier: float
    tick_interval_ms: float
    trains: List[TrainAgent]
    occupancy: Dict[str, List[str]]
    alerts: List[Alert]
    routes: List[RoutePlan]
    stats: SystemStats = field(default_factory=SystemStats)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# =============================================================================
# SIMULATION CLOCK & ALERT SINK
# =============================================================================

class Simulation:
    """Owns the network, the ledger and the fleet, and drives ticks."""

    def __init__(self, graph: RailwayGraph, trains: List[TrainAgent], rng: Optional[random.Random] = None):
        self.graph = graph
        self.ledger = OccupancyLedger()
        self.scheduler = Scheduler(graph, self.ledger)
        self.trains = trains
        self.rng = rng or random.Random(config.RANDOM_SEED)

        self.tick_count = 0
        self.running = True
        self.speed_multiplier = config.DEFAULT_SPEED_MULTIPLIER
        self.speed_accumulator = 0.0

        self.alerts: List[Alert] = []
        self.routes: List[RoutePlan] = []
        self.recompute_routes()

    @property
    def tick_interval_ms(self) -> float:
        return config.TICK_INTERVAL_BASE_MS / self.speed_multiplier

    def train(self, train_id: str) -> TrainAgent:
        for train in self.trains:
            if train.id == train_id:
                return train
        raise KeyError(train_id)

    def tick(self):
        """Advances every train once, in fleet order, then rebuilds the alert list."""
        self.tick_count += 1
        alerts: List[Alert] = []
        for train in self.trains:
            alerts.extend(self.scheduler.advance_train(train))
        alerts.extend(self.ledger.conflicts(self.graph))
        self.alerts = alerts

        high = sum(1 for a in alerts if a.severity == HIGH)
        if high:
            logger.warning("Tick %d: %d conflict(s) detected", self.tick_count, high)

    def advance(self, elapsed_ms: float) -> int:
        """Runs as many ticks as ``elapsed_ms`` of wall time allows."""
        if not self.running:
            return 0
        interval = self.tick_interval_ms
        self.speed_accumulator = min(self.speed_accumulator + elapsed_ms,
                                     config.MAX_TICKS_PER_ADVANCE * interval)
        ticks = 0
        while self.speed_accumulator >= interval:
            self.tick()
            self.speed_accumulator -= interval
            ticks += 1
        return ticks

    def set_running(self, running: bool):
        if running != self.running:
            logger.info("Simulation %s at tick %d", "resumed" if running else "paused", self.tick_count)
        self.running = running
        if not running:
            self.speed_accumulator = 0.0

    def toggle_running(self) -> bool:
        self.set_running(not self.running)
        return self.running

    def set_speed_multiplier(self, multiplier: float) -> float:
        value = clamp(multiplier, config.SPEED_MULTIPLIER_MIN, config.SPEED_MULTIPLIER_MAX)
        if value != multiplier:
            logger.warning("Speed multiplier %.2f out of range, using %.2f", multiplier, value)
        self.speed_multiplier = value
        return value

    def recompute_routes(self):
        self.routes = [plan for plan in (self.scheduler.plan_route(t) for t in self.trains) if plan]

    def trigger_reschedule(self):
        """Operator "recalculate": nudges speeds and refreshes the route plans."""
        for train in self.trains:
            delta = self.rng.uniform(-config.RESCHEDULE_MAX_DELTA, config.RESCHEDULE_MAX_DELTA)
            train.speed = clamp(train.speed + delta,
                                config.RESCHEDULE_SPEED_MIN, config.RESCHEDULE_SPEED_MAX)
        self.recompute_routes()
        self.alerts = [Alert(LOW, "Rescheduling applied: speeds adjusted based on congestion.")]
        logger.info("Reschedule applied at tick %d", self.tick_count)

    def stats(self) -> SystemStats:
        statuses = [t.status for t in self.trains]
        completed = sum(1 for t in self.trains if t.status == IDLE or t.progress >= 1)
        return SystemStats(
            trains=len(self.trains),
            occupied=len(self.ledger.occupancy()),
            conflicts=sum(1 for a in self.alerts if a.severity == HIGH),
            moving=statuses.count(MOVING),
            stopped=statuses.count(STOPPED),
            idle=statuses.count(IDLE),
            throughput=round(completed * config.THROUGHPUT_PER_TRAIN),
        )

    def snapshot(self) -> Snapshot:
        return Snapshot(
            tick=self.tick_count,
            running=self.running,
            speed_multiplier=self.speed_multiplier,
            tick_interval_ms=self.tick_interval_ms,
            trains=[replace(t) for t in self.trains],
            occupancy=self.ledger.occupancy(),
            alerts=list(self.alerts),
            routes=[replace(r, nodes=list(r.nodes), node_names=list(r.node_names)) for r in self.routes],
            stats=self.stats(),
        )


def _build_train(graph: RailwayGraph, spec: TrainSpec) -> TrainAgent:
    if not graph.has_segment(spec.start_segment):
        raise InvalidTrainSpecError(f"Train '{spec.id}' starts on unknown segment '{spec.start_segment}'")
    if not graph.has_node(spec.destination):
        raise InvalidTrainSpecError(f"Train '{spec.id}' has unknown destination '{spec.destination}'")
    if spec.direction not in (FORWARD, REVERSE):
        raise InvalidTrainSpecError(f"Train '{spec.id}' has unknown direction '{spec.direction}'")
    if spec.direction == REVERSE and not graph.segment(spec.start_segment).bidirectional:
        raise InvalidTrainSpecError(
            f"Train '{spec.id}' cannot run against one-way segment '{spec.start_segment}'")
    if not config.TRAIN_SPEED_MIN <= spec.speed <= config.TRAIN_SPEED_MAX:
        raise InvalidTrainSpecError(
            f"Train '{spec.id}' speed {spec.speed} outside "
            f"[{config.TRAIN_SPEED_MIN}, {config.TRAIN_SPEED_MAX}]")
    if not 0.0 <= spec.progress <= 1.0:
        raise InvalidTrainSpecError(f"Train '{spec.id}' progress {spec.progress} outside [0, 1]")

    return TrainAgent(id=spec.id, name=spec.name, speed=spec.speed, destination=spec.destination,
                      current_segment=spec.start_segment, direction=spec.direction,
                      progress=spec.progress, status=MOVING)


def initialize(graph_spec: GraphSpec, train_specs: Iterable[TrainSpec],
               rng: Optional[random.Random] = None) -> Simulation:
    """Builds the network and the fleet; raises on malformed input."""
    graph = build_graph(graph_spec.nodes, graph_spec.segments)

    trains: List[TrainAgent] = []
    seen = set()
    for spec in train_specs:
        if spec.id in seen:
            raise InvalidTrainSpecError(f"Duplicate train id '{spec.id}'")
        seen.add(spec.id)
        trains.append(_build_train(graph, spec))

    logger.info("Simulation initialized with %d trains", len(trains))
    return Simulation(graph, trains, rng=rng)
