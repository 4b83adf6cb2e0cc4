import json
import logging
from typing import Any, Dict, List, Tuple

from pydantic import TypeAdapter, ValidationError

from models import (BIDIRECTIONAL, JUNCTION, ONE_WAY, SIGNAL, STATION,
                    InvalidTopologyError, InvalidTrainSpecError, Node, Segment)
from schemas import NetworkModel, TrainModel
from simulation import GraphSpec, TrainSpec

_TRAINS = TypeAdapter(List[TrainModel])

logger = logging.getLogger(__name__)


# =============================================================================
# SCENARIOS
# =============================================================================

def demo_scenario() -> Tuple[GraphSpec, List[TrainSpec]]:
    """Small demo network: a diamond through junction C plus a signalled loop A-S1-B-S2-A."""
    nodes = [
        Node("A", "Alpha", STATION), Node("B", "Beta", STATION),
        Node("C", "Cross", JUNCTION), Node("D", "Delta", STATION),
        Node("S1", "Sig-1", SIGNAL), Node("S2", "Sig-2", SIGNAL),
    ]
    segments = [
        Segment("e1", "A", "C", length=4, speed_limit=80, directionality=BIDIRECTIONAL),
        Segment("e2", "C", "B", length=4, speed_limit=80, directionality=BIDIRECTIONAL),
        Segment("e3", "C", "D", length=6, speed_limit=70, directionality=BIDIRECTIONAL),
        Segment("e4", "A", "S1", length=2, speed_limit=60, directionality=ONE_WAY),
        Segment("e5", "S1", "B", length=2, speed_limit=60, directionality=ONE_WAY),
        Segment("e6", "B", "S2", length=2, speed_limit=60, directionality=ONE_WAY),
        Segment("e7", "S2", "A", length=2, speed_limit=60, directionality=ONE_WAY),
    ]
    trains = [
        TrainSpec("T1", "T1 - Alpha → Delta", speed=60, start_segment="e1", destination="D"),
        TrainSpec("T2", "T2 - Beta → Alpha", speed=55, start_segment="e2", destination="A"),
        TrainSpec("T3", "T3 - Loop", speed=40, start_segment="e6", destination="A"),
    ]
    return GraphSpec(nodes, segments), trains


def scenario_from_dict(data: Dict[str, Any]) -> Tuple[GraphSpec, List[TrainSpec]]:
    """Parses ``{"nodes": [...], "segments": [...], "trains": [...]}``.

    Keys match the field names of Node, Segment and TrainSpec. Documents are
    checked against the pydantic schemas first, so a wrong type surfaces as
    the matching construction error.
    """
    try:
        network = NetworkModel.model_validate(
            {"nodes": data.get("nodes", []), "segments": data.get("segments", [])})
    except ValidationError as exc:
        raise InvalidTopologyError(f"Malformed network description: {exc}") from exc

    try:
        fleet = _TRAINS.validate_python(data.get("trains", []))
    except ValidationError as exc:
        raise InvalidTrainSpecError(f"Malformed train description: {exc}") from exc

    nodes = [Node(**n.model_dump()) for n in network.nodes]
    segments = [Segment(**s.model_dump()) for s in network.segments]
    trains = [TrainSpec(**t.model_dump()) for t in fleet]
    return GraphSpec(nodes, segments), trains


def load_scenario(path: str) -> Tuple[GraphSpec, List[TrainSpec]]:
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    logger.info("Scenario loaded from %s", path)
    return scenario_from_dict(data)
