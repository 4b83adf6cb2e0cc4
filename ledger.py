from typing import Dict, List, Optional

from models import HIGH, Alert, RailwayGraph


# =============================================================================
# OCCUPANCY LEDGER
# =============================================================================

class OccupancyLedger:
    """Reservation table: segment id -> trains currently on it.

    The ledger only records. Whether a train may enter a segment is decided by
    the caller before it reserves, and an over-capacity entry is reported by
    ``conflicts`` instead of being rejected.
    """

    def __init__(self):
        self.reservations: Dict[str, List[str]] = {}

    def reserve(self, segment_id: str, train_id: str):
        occupants = self.reservations.setdefault(segment_id, [])
        if train_id not in occupants:
            occupants.append(train_id)

    def release(self, segment_id: str, train_id: str):
        occupants = self.reservations.get(segment_id)
        if not occupants or train_id not in occupants:
            return
        occupants.remove(train_id)
        if not occupants:
            del self.reservations[segment_id]

    def occupants(self, segment_id: str) -> List[str]:
        return list(self.reservations.get(segment_id, []))

    def occupancy_count(self, segment_id: str) -> int:
        return len(self.reservations.get(segment_id, []))

    def can_enter(self, segment_id: str, capacity: int, ignoring: Optional[str] = None) -> bool:
        """True iff the occupants, not counting ``ignoring``, leave room."""
        count = self.occupancy_count(segment_id)
        if ignoring is not None and ignoring in self.reservations.get(segment_id, []):
            count -= 1
        return count < capacity

    def conflicts(self, graph: RailwayGraph) -> List[Alert]:
        alerts = []
        for segment in graph.segments.values():
            if self.occupancy_count(segment.id) > segment.capacity:
                alerts.append(Alert(HIGH, f"Conflict detected on {segment.id}"))
        return alerts

    def occupancy(self) -> Dict[str, List[str]]:
        return {seg_id: list(trains) for seg_id, trains in self.reservations.items()}
