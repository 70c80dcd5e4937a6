#!/usr/bin/env python3
"""
Entity Model for Pipe/Joint Structures

This module defines the pipes, joints and connections that make up a
structure graph.

A pipe connects to joint holes through tagged connection objects:

    Pipe P_0001
        ├── start:  StartConnection  -> coupler_0001 hole 0
        ├── end:    EndConnection    -> elbow_0001 hole 1
        └── midway: [MidwayConnection(position=0.5) -> through-clamp_0001 hole 0]

Start and end connections carry no position; midway connections carry the
fraction along the pipe length at which the joint sits. Keeping the three
sides as separate classes means a "position on a start connection" cannot
be expressed.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator
from dataclasses import dataclass, field

from .geometry.holes import Hole
from .geometry.mating import ConnectionSide

# =============================================================================
# CONNECTIONS
# =============================================================================


@dataclass
class Connection(ABC):
    """
    Abstract base class for a pipe-to-hole binding.

    Attributes:
        id: Unique connection id (e.g., "P_0001-conn-1")
        joint_id: Id of the joint the pipe plugs into
        hole_id: Index into the joint's hole list
        rotation: Twist of the pipe about its own axis at this junction (degrees)
    """

    id: str
    joint_id: str
    hole_id: int
    rotation: float = 0.0

    @property
    @abstractmethod
    def side(self) -> ConnectionSide:
        """Which side of the pipe this connection occupies."""

    @property
    def position(self) -> float:
        """Fraction along the pipe; always 0 for start/end connections."""
        return 0.0


@dataclass
class StartConnection(Connection):
    """Connection at the pipe origin (local Z = 0)."""

    @property
    def side(self) -> ConnectionSide:
        return "start"


@dataclass
class EndConnection(Connection):
    """Connection at the far end of the pipe (local Z = length)."""

    @property
    def side(self) -> ConnectionSide:
        return "end"


@dataclass
class MidwayConnection(Connection):
    """
    Connection at an interior point of the pipe (THROUGH holes only).

    Attributes:
        fraction: Position along the pipe length, in [0, 1]
    """

    fraction: float = 0.0

    @property
    def side(self) -> ConnectionSide:
        return "midway"

    @property
    def position(self) -> float:
        return self.fraction


def make_connection(
    side: ConnectionSide,
    id: str,
    joint_id: str,
    hole_id: int,
    rotation: float = 0.0,
    position: float = 0.0,
) -> Connection:
    """Create the connection class matching ``side``."""
    if side == "start":
        return StartConnection(id=id, joint_id=joint_id, hole_id=hole_id, rotation=rotation)
    if side == "end":
        return EndConnection(id=id, joint_id=joint_id, hole_id=hole_id, rotation=rotation)
    if side == "midway":
        return MidwayConnection(id=id, joint_id=joint_id, hole_id=hole_id, rotation=rotation, fraction=position)
    raise ValueError(f"Unknown connection side '{side}'. Valid sides: start, end, midway")


@dataclass
class PipeConnections:
    """
    The connections of one pipe: at most one start, at most one end, and any
    number of midway connections.
    """

    start: StartConnection | None = None
    end: EndConnection | None = None
    midway: list[MidwayConnection] = field(default_factory=list)

    def __iter__(self) -> Iterator[Connection]:
        """Iterate in priority order: start, end, then midway in insertion order."""
        if self.start is not None:
            yield self.start
        if self.end is not None:
            yield self.end
        yield from self.midway

    def __len__(self) -> int:
        return sum(1 for _ in self)

    def ids(self) -> list[str]:
        return [conn.id for conn in self]

    def find(self, connection_id: str) -> Connection | None:
        for conn in self:
            if conn.id == connection_id:
                return conn
        return None

    def remove(self, connection_id: str) -> Connection | None:
        """Detach a connection by id and return it (None if absent)."""
        if self.start is not None and self.start.id == connection_id:
            removed: Connection = self.start
            self.start = None
            return removed
        if self.end is not None and self.end.id == connection_id:
            removed = self.end
            self.end = None
            return removed
        for index, conn in enumerate(self.midway):
            if conn.id == connection_id:
                return self.midway.pop(index)
        return None


# =============================================================================
# ENTITIES
# =============================================================================


@dataclass
class Pipe:
    """
    A rigid straight pipe segment.

    The pipe's local frame has its origin at the start face and its +Z axis
    running along the pipe, so the end face sits at local Z = length.
    """

    id: str
    diameter: float
    length: float
    connections: PipeConnections = field(default_factory=PipeConnections)


@dataclass
class Joint:
    """
    A joint fitting instance.

    Attributes:
        id: Unique joint id (e.g., "tee_0003")
        name: Joint type name from the catalog
        holes: Hole geometry, fixed at creation
    """

    id: str
    name: str
    holes: tuple[Hole, ...] = ()

    def hole(self, hole_id: int) -> Hole | None:
        """Get a hole by index, or None if the index is out of range."""
        if 0 <= hole_id < len(self.holes):
            return self.holes[hole_id]
        return None


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def iter_connections(pipes: list[Pipe]) -> Iterator[tuple[Pipe, Connection]]:
    """Iterate over every (pipe, connection) pair in priority order."""
    for pipe in pipes:
        for conn in pipe.connections:
            yield pipe, conn


def resolve_hole(joint: Joint | None, connection: Connection) -> Hole | None:
    """
    The hole a connection refers to, or None when the connection is unusable.

    A connection is unusable when its joint is missing, its hole index is out
    of range, or it places a FIX hole at a midway position.
    """
    if joint is None:
        return None
    hole = joint.hole(connection.hole_id)
    if hole is None:
        return None
    if connection.side == "midway" and not hole.is_through:
        return None
    return hole
