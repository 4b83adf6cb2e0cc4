import pytest

from models import IDLE, LOW, MOVING, ONE_WAY, REVERSE, STOPPED, Segment
from simulation import TrainSpec


def test_train_moves_onto_next_segment_at_boundary(make_sim, line_segments, single_train):
    sim = make_sim(["A", "C", "B"], line_segments, single_train)
    train = sim.train("T1")

    for _ in range(4):
        sim.tick()
        assert train.current_segment == "e1"
        assert train.progress < 1.0
    assert train.progress == pytest.approx(0.96)

    sim.tick()
    assert train.current_segment == "e2"
    assert train.progress == 0.0
    assert train.status == MOVING
    assert sim.ledger.occupancy() == {"e2": ["T1"]}


def test_effective_speed_is_capped_by_speed_limit(make_sim):
    segments = [Segment("e1", "A", "B", length=1, speed_limit=50)]
    sim = make_sim(["A", "B"], segments, [TrainSpec("T1", "T1", speed=90, start_segment="e1", destination="B")])
    sim.tick()
    assert sim.train("T1").progress == pytest.approx(0.05)


def test_train_goes_idle_when_destination_unreachable(make_sim):
    segments = [Segment("e1", "A", "B", length=4, speed_limit=80)]
    sim = make_sim(["A", "B", "Z"], segments, [TrainSpec("T1", "T1", speed=50, start_segment="e1", destination="Z")])
    train = sim.train("T1")

    history = []
    for _ in range(20):
        sim.tick()
        history.append((train.status, train.current_segment))

    first_idle = history.index((IDLE, None))
    assert all(state == (MOVING, "e1") for state in history[:first_idle])
    assert all(state == (IDLE, None) for state in history[first_idle:])
    assert sim.ledger.occupancy() == {}


def test_train_goes_idle_on_reaching_destination(make_sim, line_segments, single_train):
    sim = make_sim(["A", "C", "B"], line_segments, single_train)
    for _ in range(15):
        sim.tick()
    train = sim.train("T1")
    assert train.status == IDLE
    assert train.current_segment is None
    assert sim.ledger.occupancy_count("e2") == 0


def test_idle_train_is_never_moved_again(make_sim, line_segments, single_train):
    sim = make_sim(["A", "C", "B"], line_segments, single_train)
    for _ in range(15):
        sim.tick()
    before = sim.snapshot().trains
    for _ in range(5):
        sim.tick()
    assert sim.snapshot().trains == before


def test_blocked_train_parks_at_boundary_until_segment_frees(make_sim):
    segments = [
        Segment("e1", "A", "B", length=10, speed_limit=80, directionality=ONE_WAY),
        Segment("e2", "B", "C", length=10, speed_limit=80, directionality=ONE_WAY),
    ]
    trains = [
        TrainSpec("X", "Blocker", speed=10, start_segment="e2", destination="C"),
        TrainSpec("T", "Train T", speed=60, start_segment="e1", destination="C"),
    ]
    sim = make_sim(["A", "B", "C"], segments, trains)
    train = sim.train("T")

    blocked_ticks = 0
    for _ in range(30):
        sim.tick()
        if train.current_segment == "e2":
            break
        if train.status == STOPPED:
            blocked_ticks += 1
            assert train.progress == 0.99
            assert len(sim.alerts) == 1
            assert sim.alerts[0].severity == LOW
            assert "Train T" in sim.alerts[0].message and "e2" in sim.alerts[0].message
    else:
        pytest.fail("train never entered e2")

    assert blocked_ticks >= 5
    assert train.progress == 0.0
    assert train.status == MOVING
    assert sim.alerts == []
    assert sim.train("X").status == IDLE
    assert sim.ledger.occupancy() == {"e2": ["T"]}


def test_second_train_held_at_entry_of_full_segment(make_sim):
    segments = [Segment("e1", "A", "B", length=4, speed_limit=80)]
    trains = [
        TrainSpec("T1", "T1", speed=60, start_segment="e1", destination="B"),
        TrainSpec("T2", "T2", speed=60, start_segment="e1", destination="B"),
    ]
    sim = make_sim(["A", "B"], segments, trains)
    sim.tick()

    assert sim.train("T1").status == MOVING
    assert sim.train("T1").progress > 0.05
    assert sim.train("T2").status == STOPPED
    assert sim.train("T2").progress == 0.0


def test_committed_train_is_not_turned_back(make_sim):
    segments = [Segment("e1", "A", "B", length=4, speed_limit=80)]
    trains = [
        TrainSpec("T1", "T1", speed=60, start_segment="e1", destination="B", progress=0.5),
        TrainSpec("T2", "T2", speed=60, start_segment="e1", destination="B", progress=0.5),
    ]
    sim = make_sim(["A", "B"], segments, trains)
    sim.tick()

    assert [t.status for t in sim.trains] == [MOVING, MOVING]
    assert [t.progress for t in sim.trains] == [pytest.approx(0.74)] * 2
    assert [a.severity for a in sim.alerts] == ["high"]


def test_reverse_start_travels_towards_from_node(make_sim, line_segments):
    trains = [TrainSpec("T1", "T1", speed=60, start_segment="e2", destination="A", direction=REVERSE)]
    sim = make_sim(["A", "C", "B"], line_segments, trains)
    for _ in range(5):
        sim.tick()
    train = sim.train("T1")
    assert train.current_segment == "e1"
    assert train.direction == REVERSE
    assert sim.ledger.occupancy() == {"e1": ["T1"]}


def test_same_tick_reservations_follow_fleet_order(make_sim):
    segments = [
        Segment("e1", "A", "C", length=10, speed_limit=80),
        Segment("e2", "B", "C", length=10, speed_limit=80),
        Segment("e3", "C", "D", length=10, speed_limit=80),
    ]
    first = TrainSpec("T1", "T1", speed=60, start_segment="e1", destination="D")
    second = TrainSpec("T2", "T2", speed=60, start_segment="e2", destination="D")

    sim = make_sim(["A", "B", "C", "D"], segments, [first, second])
    sim.tick()
    sim.tick()
    assert sim.train("T1").current_segment == "e3"
    assert sim.train("T2").status == STOPPED

    sim = make_sim(["A", "B", "C", "D"], segments, [second, first])
    sim.tick()
    sim.tick()
    assert sim.train("T2").current_segment == "e3"
    assert sim.train("T1").status == STOPPED


def test_route_plan_starts_with_current_segment(make_sim, line_segments, single_train):
    sim = make_sim(["A", "C", "B"], line_segments, single_train)
    plan = sim.routes[0]
    assert plan.train_id == "T1"
    assert plan.nodes == ["A", "C", "B"]
    assert plan.node_names == ["Node A", "Node C", "Node B"]
    assert plan.distance == 8
