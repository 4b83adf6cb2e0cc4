import random

import pytest

from models import BIDIRECTIONAL, ONE_WAY, Node, Segment, build_graph
from simulation import GraphSpec, TrainSpec, initialize


@pytest.fixture
def diamond():
    """A-B direct (10) or via C (3 + 3); D is isolated; E only reachable one-way from B."""
    nodes = [Node("A", "Alpha"), Node("B", "Beta"), Node("C", "Cross", "junction"),
             Node("D", "Delta"), Node("E", "Echo", "signal")]
    segments = [
        Segment("ab", "A", "B", length=10, speed_limit=80),
        Segment("ac", "A", "C", length=3, speed_limit=80),
        Segment("cb", "C", "B", length=3, speed_limit=80),
        Segment("be", "B", "E", length=2, speed_limit=60, directionality=ONE_WAY),
    ]
    return build_graph(nodes, segments)


@pytest.fixture
def make_sim():
    """Builds a seeded Simulation from node ids, segments and train specs."""
    def _make(node_ids, segments, trains, seed=1):
        nodes = [Node(n, f"Node {n}") for n in node_ids]
        return initialize(GraphSpec(nodes, segments), trains, rng=random.Random(seed))
    return _make


@pytest.fixture
def line_segments():
    return [
        Segment("e1", "A", "C", length=4, speed_limit=80, directionality=BIDIRECTIONAL),
        Segment("e2", "C", "B", length=4, speed_limit=80, directionality=BIDIRECTIONAL),
    ]


@pytest.fixture
def single_train():
    return [TrainSpec("T1", "T1 - Alpha → Beta", speed=60, start_segment="e1", destination="B")]
