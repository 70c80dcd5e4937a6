#!/usr/bin/env python3
"""
Structure Graph for Pipe/Joint Assemblies

This module owns the in-memory structure: pipes, joints, and the
connections binding pipe sides to joint holes. It provides the CRUD
operations an editing front-end drives, generates stable ids, and keeps the
instance table and relationship tracker in step with structural edits.

Example:
    graph = StructureGraph()
    pipe = graph.add_pipe(diameter=0.022, length=0.9)
    cap = graph.add_joint("end-cap", catalog["end-cap"].holes)
    graph.add_connection(pipe, cap, hole_id=0, side="start")

Id formats:
    pipes:        P_0001, P_0002, ...
    joints:       <type name>_0001, sequential per type name
    connections:  <pipe id>-conn-1, sequential per pipe

Referential problems (unknown pipe/joint, hole index out of range, an
occupied FIX hole) never raise: the edit is ignored and logged, because a
half-built structure is a normal state while editing. Invalid argument
values raise ValueError.
"""

from __future__ import annotations

import logging
import warnings
from collections import deque
from collections.abc import Sequence
from typing import Any

from .geometry.holes import Hole
from .geometry.mating import CONNECTION_SIDES, ConnectionSide
from .instances import InstanceTable
from .relationships import RelationshipTracker
from .structure_nodes import (
    Connection,
    Joint,
    MidwayConnection,
    Pipe,
    make_connection,
    resolve_hole,
)

logger = logging.getLogger(__name__)

PIPE_ID_PREFIX = "P_"
CONNECTION_ID_INFIX = "-conn-"

CONNECTION_FIELDS = ("rotation", "position", "joint_id", "hole_id")
PIPE_FIELDS = ("length", "diameter")


def _parse_sequence(value: str, prefix: str) -> int | None:
    """Sequence number of an id of the form ``<prefix><digits>``, else None."""
    if not value.startswith(prefix):
        return None
    suffix = value[len(prefix):]
    return int(suffix) if suffix.isdigit() else None


def _check_positive(name: str, value: float) -> float:
    value = float(value)
    if not value > 0:
        raise ValueError(f"Pipe {name} must be positive, got {value}")
    return value


def _check_fraction(value: float) -> float:
    value = float(value)
    if not 0.0 <= value <= 1.0:
        raise ValueError(f"Midway position must be within [0, 1], got {value}")
    return value


class StructureGraph:
    """
    Mutable pipe/joint graph.

    The graph is handed its collaborators rather than reaching for globals:
    the instance table receives a transform slot for every pipe (and every
    joint whose geometry is available), and the relationship tracker is
    purged whenever a connection disappears.
    """

    def __init__(
        self,
        instances: InstanceTable | None = None,
        relationships: RelationshipTracker | None = None,
    ):
        self.instances = instances if instances is not None else InstanceTable()
        self.relationships = relationships if relationships is not None else RelationshipTracker()
        self._pipes: dict[str, Pipe] = {}
        self._joints: dict[str, Joint] = {}

    # -------------------------------------------------------------------------
    # ACCESSORS
    # -------------------------------------------------------------------------

    @property
    def pipes(self) -> list[Pipe]:
        """Pipes in insertion order."""
        return list(self._pipes.values())

    @property
    def joints(self) -> list[Joint]:
        """Joints in insertion order."""
        return list(self._joints.values())

    def get_pipe(self, pipe_id: str) -> Pipe | None:
        return self._pipes.get(pipe_id)

    def get_joint(self, joint_id: str) -> Joint | None:
        return self._joints.get(joint_id)

    def find_connection(self, connection_id: str) -> tuple[Pipe, Connection] | None:
        """Locate a connection by id, returning its owning pipe as well."""
        for pipe in self._pipes.values():
            conn = pipe.connections.find(connection_id)
            if conn is not None:
                return pipe, conn
        return None

    def connections_to_joint(self, joint_id: str) -> list[tuple[Pipe, Connection]]:
        """Every (pipe, connection) pair that references the joint."""
        return [
            (pipe, conn)
            for pipe in self._pipes.values()
            for conn in pipe.connections
            if conn.joint_id == joint_id
        ]

    def pipes_on_joint(self, joint_id: str) -> list[Pipe]:
        """Distinct pipes referencing any hole of the joint, in graph order."""
        return [
            pipe
            for pipe in self._pipes.values()
            if any(conn.joint_id == joint_id for conn in pipe.connections)
        ]

    @property
    def connection_count(self) -> int:
        return sum(len(pipe.connections) for pipe in self._pipes.values())

    # -------------------------------------------------------------------------
    # ID GENERATION
    # -------------------------------------------------------------------------

    def new_pipe_id(self) -> str:
        """Next free id of the form P_NNNN."""
        numbers = [n for n in (_parse_sequence(pid, PIPE_ID_PREFIX) for pid in self._pipes) if n is not None]
        return f"{PIPE_ID_PREFIX}{max(numbers, default=0) + 1:04d}"

    def new_joint_id(self, type_name: str) -> str:
        """Next free id of the form <type_name>_NNNN."""
        prefix = f"{type_name}_"
        numbers = [n for n in (_parse_sequence(jid, prefix) for jid in self._joints) if n is not None]
        return f"{prefix}{max(numbers, default=0) + 1:04d}"

    def new_connection_id(self, pipe_id: str) -> str:
        """Next free id of the form <pipe_id>-conn-N."""
        prefix = f"{pipe_id}{CONNECTION_ID_INFIX}"
        pipe = self._pipes.get(pipe_id)
        existing = pipe.connections.ids() if pipe is not None else []
        numbers = [n for n in (_parse_sequence(cid, prefix) for cid in existing) if n is not None]
        number = max(numbers, default=0) + 1
        # Ids are global; skip any number a hand-picked id elsewhere already took
        while self.find_connection(f"{prefix}{number}") is not None:
            number += 1
        return f"{prefix}{number}"

    # -------------------------------------------------------------------------
    # PIPES AND JOINTS
    # -------------------------------------------------------------------------

    def add_pipe(self, diameter: float, length: float, id: str | None = None) -> str:
        """
        Add a pipe and register its instance.

        Args:
            diameter: Pipe outer diameter
            length: Pipe length
            id: Optional explicit id (generated as P_NNNN when omitted)

        Returns:
            The pipe id. Adding an id that already exists changes nothing.
        """
        diameter = _check_positive("diameter", diameter)
        length = _check_positive("length", length)

        if id is None:
            id = self.new_pipe_id()
        elif id in self._pipes:
            warnings.warn(f"Pipe '{id}' already exists; keeping the existing pipe.", stacklevel=2)
            return id

        self._pipes[id] = Pipe(id=id, diameter=diameter, length=length)
        self.instances.register(id)
        logger.debug("Added pipe %s (diameter=%g, length=%g)", id, diameter, length)
        return id

    def add_joint(
        self,
        type_name: str,
        holes: Sequence[Hole],
        id: str | None = None,
        register_instance: bool = True,
    ) -> str:
        """
        Add a joint of the given type.

        Args:
            type_name: Joint type name (used as the id prefix)
            holes: Hole geometry of the type, in catalog order
            id: Optional explicit id (generated as <type_name>_NNNN when omitted)
            register_instance: False while the joint's geometry is still loading;
                the loader registers the instance once it is ready

        Returns:
            The joint id. Adding an id that already exists changes nothing.
        """
        if id is None:
            id = self.new_joint_id(type_name)
        elif id in self._joints:
            warnings.warn(f"Joint '{id}' already exists; keeping the existing joint.", stacklevel=2)
            return id

        self._joints[id] = Joint(id=id, name=type_name, holes=tuple(holes))
        if register_instance:
            self.instances.register(id)
        logger.debug("Added joint %s (%s, %d holes)", id, type_name, len(holes))
        return id

    def update_pipe(self, pipe_id: str, field: str, value: float) -> bool:
        """
        Change a pipe's length or diameter.

        Returns:
            False if the pipe does not exist
        """
        if field not in PIPE_FIELDS:
            raise ValueError(f"Unknown pipe field '{field}'. Valid fields: {list(PIPE_FIELDS)}")
        value = _check_positive(field, value)
        pipe = self._pipes.get(pipe_id)
        if pipe is None:
            return False
        setattr(pipe, field, value)
        return True

    def remove_pipe(self, pipe_id: str) -> bool:
        """Remove a pipe, its connections, and its instance."""
        pipe = self._pipes.get(pipe_id)
        if pipe is None:
            return False
        for conn in list(pipe.connections):
            self.remove_connection(conn.id)
        del self._pipes[pipe_id]
        self.instances.remove(pipe_id)
        self.relationships.purge_entity(pipe_id)
        logger.debug("Removed pipe %s", pipe_id)
        return True

    def remove_joint(self, joint_id: str) -> bool:
        """Remove a joint, every connection referencing it, and its instance."""
        if joint_id not in self._joints:
            return False
        for _pipe, conn in self.connections_to_joint(joint_id):
            self.remove_connection(conn.id)
        del self._joints[joint_id]
        self.instances.remove(joint_id)
        self.relationships.purge_entity(joint_id)
        logger.debug("Removed joint %s", joint_id)
        return True

    def clear_all(self) -> None:
        """Remove every pipe, joint, instance and relationship record."""
        self._pipes.clear()
        self._joints.clear()
        self.instances.clear()
        self.relationships.clear()

    # -------------------------------------------------------------------------
    # CONNECTIONS
    # -------------------------------------------------------------------------

    def _hole_occupant(self, joint_id: str, hole_id: int) -> tuple[Pipe, Connection] | None:
        for pipe, conn in self.connections_to_joint(joint_id):
            if conn.hole_id == hole_id:
                return pipe, conn
        return None

    def _check_target(
        self,
        pipe: Pipe,
        side: ConnectionSide,
        joint_id: str,
        hole_id: int,
        replacing: Connection | None,
    ) -> bool:
        """
        Validate a connection target; log and return False if it is unusable.

        ``replacing`` is the connection the new target would supersede, which
        may keep its own FIX hole.
        """
        joint = self._joints.get(joint_id)
        if joint is None:
            logger.warning("Ignoring connection on pipe %s: unknown joint %s", pipe.id, joint_id)
            return False
        hole = joint.hole(hole_id)
        if hole is None:
            logger.warning(
                "Ignoring connection on pipe %s: joint %s has no hole %s (%d holes)",
                pipe.id, joint_id, hole_id, len(joint.holes),
            )
            return False
        if side == "midway" and not hole.is_through:
            logger.warning(
                "Ignoring midway connection on pipe %s: hole %s of %s is FIX", pipe.id, hole_id, joint_id
            )
            return False
        if hole.kind == "FIX":
            occupant = self._hole_occupant(joint_id, hole_id)
            if occupant is not None and occupant[1] is not replacing:
                logger.warning(
                    "Ignoring connection on pipe %s: FIX hole %s of %s is already used by %s",
                    pipe.id, hole_id, joint_id, occupant[1].id,
                )
                return False
        return True

    def _forget(self, pipe: Pipe, conn: Connection) -> None:
        self.relationships.purge(pipe.id, conn.joint_id, conn.hole_id, conn.side)

    def add_connection(
        self,
        pipe_id: str,
        joint_id: str,
        hole_id: int,
        side: ConnectionSide,
        rotation: float | None = None,
        position: float | None = None,
        id: str | None = None,
    ) -> str | None:
        """
        Connect a pipe side to a joint hole.

        Args:
            pipe_id: Pipe to connect
            joint_id: Joint to connect to
            hole_id: Index of the joint hole
            side: "start", "end" or "midway"
            rotation: Twist of the pipe about its axis, in degrees (default 0)
            position: Fraction along the pipe for midway connections (default 0)
            id: Optional explicit connection id

        Returns:
            The connection id, or None if the connection was ignored.
            Re-adding an existing id on the same side is a no-op.

        Start/end are last-write-wins: connecting an occupied side replaces
        the existing connection and emits a UserWarning.
        """
        if side not in CONNECTION_SIDES:
            raise ValueError(f"Unknown connection side '{side}'. Valid sides: {list(CONNECTION_SIDES)}")

        pipe = self._pipes.get(pipe_id)
        if pipe is None:
            logger.warning("Ignoring connection to joint %s: unknown pipe %s", joint_id, pipe_id)
            return None

        existing: Connection | None = None
        if side == "midway":
            if id is not None and any(conn.id == id for conn in pipe.connections.midway):
                return id
            fraction = _check_fraction(position if position is not None else 0.0)
        else:
            existing = pipe.connections.start if side == "start" else pipe.connections.end
            if id is not None and existing is not None and existing.id == id:
                return id
            fraction = 0.0

        if not self._check_target(pipe, side, joint_id, hole_id, replacing=existing):
            return None

        if id is not None and self.find_connection(id) is not None:
            logger.warning("Ignoring connection on pipe %s: connection id %s is already in use", pipe_id, id)
            return None

        connection_id = id if id is not None else self.new_connection_id(pipe_id)
        conn = make_connection(
            side,
            id=connection_id,
            joint_id=joint_id,
            hole_id=hole_id,
            rotation=float(rotation) if rotation is not None else 0.0,
            position=fraction,
        )

        if isinstance(conn, MidwayConnection):
            pipe.connections.midway.append(conn)
        else:
            if existing is not None:
                warnings.warn(
                    f"Pipe '{pipe_id}' already has a {side} connection '{existing.id}'; "
                    f"replacing it with '{connection_id}'.",
                    stacklevel=2,
                )
                self._forget(pipe, existing)
            setattr(pipe.connections, side, conn)

        logger.debug("Connected %s %s -> %s hole %d as %s", pipe_id, side, joint_id, hole_id, connection_id)
        return connection_id

    def update_connection(self, connection_id: str, patch: dict[str, Any]) -> bool:
        """
        Patch a connection's rotation, position, joint_id or hole_id.

        ``position`` only applies to midway connections and is ignored on
        start/end connections. A patch that would point the connection at an
        unusable target is ignored as a whole.

        Returns:
            True if the connection was updated
        """
        unknown = set(patch) - set(CONNECTION_FIELDS)
        if unknown:
            raise ValueError(f"Unknown connection fields {sorted(unknown)}. Valid fields: {list(CONNECTION_FIELDS)}")

        found = self.find_connection(connection_id)
        if found is None:
            return False
        pipe, conn = found

        joint_id = patch.get("joint_id", conn.joint_id)
        hole_id = int(patch.get("hole_id", conn.hole_id))
        retargeted = (joint_id, hole_id) != (conn.joint_id, conn.hole_id)
        if retargeted and not self._check_target(pipe, conn.side, joint_id, hole_id, replacing=conn):
            return False

        fraction = None
        if "position" in patch and isinstance(conn, MidwayConnection):
            fraction = _check_fraction(patch["position"])

        if retargeted:
            self._forget(pipe, conn)
            conn.joint_id = joint_id
            conn.hole_id = hole_id
        if "rotation" in patch:
            conn.rotation = float(patch["rotation"])
        if fraction is not None:
            conn.fraction = fraction
        return True

    def remove_connection(self, connection_id: str) -> bool:
        """Detach a connection; the pipe and joint stay."""
        found = self.find_connection(connection_id)
        if found is None:
            return False
        pipe, conn = found
        pipe.connections.remove(connection_id)
        self._forget(pipe, conn)
        logger.debug("Removed connection %s", connection_id)
        return True

    # -------------------------------------------------------------------------
    # REACHABILITY
    # -------------------------------------------------------------------------

    def reachable_from(self, pipe_id: str) -> set[str]:
        """
        Pipe and joint ids connected to a pipe through usable connections.

        The pipe itself is included. Instance availability is not considered;
        this is the purely structural view.
        """
        if pipe_id not in self._pipes:
            return set()

        seen: set[str] = {pipe_id}
        queue: deque[str] = deque([pipe_id])
        while queue:
            pipe = self._pipes[queue.popleft()]
            for conn in pipe.connections:
                joint = self._joints.get(conn.joint_id)
                if resolve_hole(joint, conn) is None or conn.joint_id in seen:
                    continue
                seen.add(conn.joint_id)
                for other_pipe, other_conn in self.connections_to_joint(conn.joint_id):
                    if other_pipe.id in seen:
                        continue
                    if resolve_hole(joint, other_conn) is None:
                        continue
                    seen.add(other_pipe.id)
                    queue.append(other_pipe.id)
        return seen

    def orphaned_entities(self, root_id: str) -> set[str]:
        """Pipe and joint ids that have no structural path to the root pipe."""
        everything = set(self._pipes) | set(self._joints)
        return everything - self.reachable_from(root_id)
