#!/usr/bin/env python3
"""
Consistency Validator for Pipe/Joint Structures.

Re-derives, for every connection, the hole pose implied by one side's
current transform and compares it with the pose the other side actually
has in the instance table. Three differences are measured:

- position: distance between the two frame origins
- axis: angle between the two frames' Z axes (the hole tunnel axis)
- right: angle between the two frames' X axes; catches twist about the
  tunnel axis that an axis comparison alone would miss

A connection whose difference exceeds the tolerance in any of the three is
reported as invalid. The validator never mutates the graph or transforms.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

from .geometry.mating import ConnectionSide, hole_frame, pipe_attachment_frame
from .geometry.transforms import Transform, angle_between
from .instances import InstanceTable
from .relationships import RelationshipLookup, RelationshipTracker
from .structure_graph import StructureGraph
from .structure_nodes import Connection, Pipe, iter_connections, resolve_hole

logger = logging.getLogger(__name__)

DEFAULT_TOLERANCE = 1e-3


@dataclass
class ConnectionCheck:
    """
    Comparison of the two frames of one connection.

    ``expected`` is derived from the side the last propagation pass treated
    as authoritative (the pipe unless the connection was recorded as j2p);
    ``actual`` is the frame of the other side.
    """

    connection_id: str
    pipe_id: str
    joint_id: str
    hole_id: int
    side: ConnectionSide
    relationship: RelationshipLookup
    expected: Transform
    actual: Transform
    position_diff: float
    axis_diff: float
    right_diff: float

    def within(self, tolerance: float) -> bool:
        return max(self.position_diff, self.axis_diff, self.right_diff) <= tolerance


@dataclass
class InvalidConnection:
    """
    Diagnostic record for a connection whose frames disagree.

    Carries both poses so a debug visualizer can draw the expected and the
    actual hole frame side by side.
    """

    connection_id: str
    pipe_id: str
    joint_id: str
    hole_id: int
    side: ConnectionSide
    position_diff: float
    axis_diff: float
    right_diff: float
    expected_position: np.ndarray
    expected_rotation: np.ndarray
    actual_position: np.ndarray
    actual_rotation: np.ndarray

    @classmethod
    def from_check(cls, check: ConnectionCheck) -> InvalidConnection:
        return cls(
            connection_id=check.connection_id,
            pipe_id=check.pipe_id,
            joint_id=check.joint_id,
            hole_id=check.hole_id,
            side=check.side,
            position_diff=check.position_diff,
            axis_diff=check.axis_diff,
            right_diff=check.right_diff,
            expected_position=check.expected.position.copy(),
            expected_rotation=check.expected.rotation.copy(),
            actual_position=check.actual.position.copy(),
            actual_rotation=check.actual.rotation.copy(),
        )


class ConsistencyValidator:
    """Read-only checker of connection geometry against current transforms."""

    def __init__(
        self,
        graph: StructureGraph,
        instances: InstanceTable | None = None,
        relationships: RelationshipTracker | None = None,
        tolerance: float = DEFAULT_TOLERANCE,
    ):
        self.graph = graph
        self.instances = instances if instances is not None else graph.instances
        self.relationships = relationships if relationships is not None else graph.relationships
        self.tolerance = tolerance

    def check_connection(self, pipe: Pipe, conn: Connection) -> ConnectionCheck | None:
        """
        Compare both frames of one connection.

        Returns:
            None when there is nothing to compare: the joint or hole is
            missing, the hole cannot take this side, or either entity has no
            instance yet.
        """
        joint = self.graph.get_joint(conn.joint_id)
        hole = resolve_hole(joint, conn)
        if hole is None:
            return None
        pipe_transform = self.instances.get_transform(pipe.id)
        joint_transform = self.instances.get_transform(conn.joint_id)
        if pipe_transform is None or joint_transform is None:
            return None

        pipe_frame = pipe_attachment_frame(pipe_transform, pipe.length, conn.side, conn.position)
        joint_frame = hole_frame(joint_transform, hole, conn.rotation)

        relationship = self.relationships.get(pipe.id, conn.joint_id, conn.hole_id, conn.side)
        if relationship == "j2p":
            expected, actual = joint_frame, pipe_frame
        else:
            expected, actual = pipe_frame, joint_frame

        return ConnectionCheck(
            connection_id=conn.id,
            pipe_id=pipe.id,
            joint_id=conn.joint_id,
            hole_id=conn.hole_id,
            side=conn.side,
            relationship=relationship,
            expected=expected,
            actual=actual,
            position_diff=float(np.linalg.norm(expected.position - actual.position)),
            axis_diff=angle_between(expected.z_axis, actual.z_axis),
            right_diff=angle_between(expected.x_axis, actual.x_axis),
        )

    def check_all(self) -> list[ConnectionCheck]:
        """Checks for every comparable connection, in graph order."""
        checks = []
        for pipe, conn in iter_connections(self.graph.pipes):
            check = self.check_connection(pipe, conn)
            if check is not None:
                checks.append(check)
        return checks

    def find_invalid_connections(self) -> list[InvalidConnection]:
        """Connections whose frames differ by more than the tolerance."""
        invalid = [
            InvalidConnection.from_check(check)
            for check in self.check_all()
            if not check.within(self.tolerance)
        ]
        if invalid:
            logger.info("%d connection(s) out of tolerance %g", len(invalid), self.tolerance)
        return invalid
