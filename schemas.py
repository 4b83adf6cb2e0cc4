from typing import List

from pydantic import BaseModel, ConfigDict, Field

from models import BIDIRECTIONAL, FORWARD, STATION


class _Strict(BaseModel):
    # No string-to-number coercion, no unknown keys.
    model_config = ConfigDict(strict=True, extra="forbid")


class NodeModel(_Strict):
    id: str = Field(..., description="Unique node identifier")
    name: str
    kind: str = STATION


class SegmentModel(_Strict):
    id: str = Field(..., description="Unique segment identifier")
    from_node: str
    to_node: str
    length: float = Field(..., gt=0)
    speed_limit: float = Field(..., gt=0)
    directionality: str = BIDIRECTIONAL
    capacity: int = Field(1, ge=1)


class NetworkModel(_Strict):
    nodes: List[NodeModel] = []
    segments: List[SegmentModel] = []


class TrainModel(_Strict):
    id: str = Field(..., description="Unique train identifier")
    name: str
    speed: float
    start_segment: str
    destination: str
    direction: str = FORWARD
    progress: float = 0.0


class ScenarioModel(NetworkModel):
    """Network plus fleet, as accepted by ``scenarios.scenario_from_dict``."""
    trains: List[TrainModel] = []
