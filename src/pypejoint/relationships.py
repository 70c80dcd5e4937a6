"""
Pipe/joint relationship tracker.

Records, per connection, which side the last propagation pass treated as
the source of truth:

- "j2p": the joint was already placed and determined the pipe
- "p2j": the pipe was already placed and determined the joint

Editing front-ends read these records to keep rotation drags consistent:
dragging a twist on a p2j connection turns the joint, so the drag sign is
reversed (see ``apply_relationship_direction``).
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Literal, NamedTuple, TypeAlias

from .geometry.mating import ConnectionSide

RelationshipType: TypeAlias = Literal["j2p", "p2j"]
RelationshipLookup: TypeAlias = Literal["j2p", "p2j", "unknown"]


class RelationshipKey(NamedTuple):
    pipe_id: str
    joint_id: str
    hole_id: int
    connection_type: ConnectionSide


class RelationshipTracker:
    """Lookup table keyed by (pipe_id, joint_id, hole_id, connection_type)."""

    def __init__(self):
        self._records: dict[RelationshipKey, RelationshipType] = {}

    def record(
        self,
        pipe_id: str,
        joint_id: str,
        hole_id: int,
        connection_type: ConnectionSide,
        relationship: RelationshipType,
    ) -> None:
        if relationship not in ("j2p", "p2j"):
            raise ValueError(f"Unknown relationship '{relationship}'. Valid: j2p, p2j")
        self._records[RelationshipKey(pipe_id, joint_id, hole_id, connection_type)] = relationship

    def get(
        self,
        pipe_id: str,
        joint_id: str,
        hole_id: int,
        connection_type: ConnectionSide,
    ) -> RelationshipLookup:
        """Relationship recorded for the connection, or "unknown"."""
        return self._records.get(RelationshipKey(pipe_id, joint_id, hole_id, connection_type), "unknown")

    def purge(
        self,
        pipe_id: str,
        joint_id: str,
        hole_id: int,
        connection_type: ConnectionSide,
    ) -> bool:
        """Drop the record of a removed connection. Returns True if one existed."""
        key = RelationshipKey(pipe_id, joint_id, hole_id, connection_type)
        return self._records.pop(key, None) is not None

    def purge_entity(self, entity_id: str) -> int:
        """Drop every record mentioning a pipe or joint id. Returns the count removed."""
        stale = [key for key in self._records if entity_id in (key.pipe_id, key.joint_id)]
        for key in stale:
            del self._records[key]
        return len(stale)

    def clear(self) -> None:
        self._records.clear()

    def items(self) -> list[tuple[RelationshipKey, RelationshipType]]:
        return list(self._records.items())

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[RelationshipKey]:
        return iter(self._records)

    def __contains__(self, key: object) -> bool:
        return key in self._records


def apply_relationship_direction(angle: float, relationship: RelationshipLookup) -> float:
    """
    Adjust a rotation-drag angle for the connection's relationship.

    p2j connections reverse the drag direction; j2p and unknown keep it.
    """
    return -angle if relationship == "p2j" else angle
