#!/usr/bin/env python3
"""
Propagation Solver for Pipe/Joint Structures.

Given one root pipe and its absolute transform, this module computes the
world transform of every pipe and joint reachable from it so that every
traversed connection is geometrically satisfied.

The solver:
1. Applies the root transform to the root pipe
2. Works through a FIFO frontier of pipe ids
3. Places each pipe from an already placed joint ("j2p"), trying the start
   connection, then the end, then the first usable midway connection
4. Places each unplaced joint on a placed pipe ("p2j") and enqueues the
   other pipes hanging off that joint
5. Records the direction of every traversed connection in the relationship
   tracker and writes transforms to the instance table

Each entity is placed at most once per pass, so the traversal terminates on
cyclic graphs. Pipes with no path to the root keep their previous transform
and are reported in the result rather than raised.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field

from .geometry.mating import joint_transform_from_pipe, pipe_transform_from_joint
from .geometry.transforms import Transform
from .instances import InstanceTable
from .relationships import RelationshipTracker
from .structure_graph import StructureGraph
from .structure_nodes import Connection, Pipe, resolve_hole

logger = logging.getLogger(__name__)


@dataclass
class PropagationResult:
    """
    Outcome of one propagation pass.

    Attributes:
        root_id: Root pipe of the pass
        resolved_pipes: Pipe ids placed during the pass, in placement order
        resolved_joints: Joint ids placed during the pass, in placement order
        unresolved_pipes: Pipes left at their previous transform
        unresolved_joints: Joints left at their previous transform
        pending_joints: Joints skipped because their instance is not registered yet
        transforms: Transform computed for every resolved entity
    """

    root_id: str
    resolved_pipes: list[str] = field(default_factory=list)
    resolved_joints: list[str] = field(default_factory=list)
    unresolved_pipes: list[str] = field(default_factory=list)
    unresolved_joints: list[str] = field(default_factory=list)
    pending_joints: list[str] = field(default_factory=list)
    transforms: dict[str, Transform] = field(default_factory=dict)

    @property
    def orphaned(self) -> list[str]:
        """Every entity the pass could not place."""
        return self.unresolved_pipes + self.unresolved_joints

    @property
    def complete(self) -> bool:
        return not self.unresolved_pipes and not self.unresolved_joints

    def is_resolved(self, entity_id: str) -> bool:
        return entity_id in self.transforms


class PropagationSolver:
    """
    Breadth-first transform propagation over a StructureGraph.

    Example:
        solver = PropagationSolver(graph, graph.instances, graph.relationships)
        result = solver.propagate("P_0001", Transform.identity())
    """

    def __init__(
        self,
        graph: StructureGraph,
        instances: InstanceTable | None = None,
        relationships: RelationshipTracker | None = None,
    ):
        self.graph = graph
        self.instances = instances if instances is not None else graph.instances
        self.relationships = relationships if relationships is not None else graph.relationships

    def propagate(self, root_id: str, root_transform: Transform) -> PropagationResult:
        """
        Run one propagation pass from the root pipe.

        Args:
            root_id: Id of the pipe whose transform is given
            root_transform: Absolute world transform of the root pipe

        Returns:
            PropagationResult describing what was placed
        """
        result = PropagationResult(root_id=root_id)
        root = self.graph.get_pipe(root_id)
        if root is None:
            logger.warning("Propagation skipped: root pipe %s does not exist", root_id)
            result.unresolved_pipes = [p.id for p in self.graph.pipes]
            result.unresolved_joints = [j.id for j in self.graph.joints]
            return result

        # Working set: transforms placed during this pass. Derivations read
        # only from here, so a pass never depends on stale instance poses.
        solved = result.transforms
        pending: set[str] = set()

        self._place(result, root_id, root_transform.copy(), is_pipe=True)

        frontier: deque[str] = deque([root_id])
        queued: set[str] = {root_id}

        while frontier:
            pipe_id = frontier.popleft()
            queued.discard(pipe_id)
            pipe = self.graph.get_pipe(pipe_id)
            if pipe is None:
                continue

            if pipe_id not in solved and not self._resolve_pipe(result, pipe):
                # No placed neighbour yet; the pipe is enqueued again when one
                # of its joints gets placed.
                logger.debug("Deferring pipe %s: no placed joint", pipe_id)
                continue

            pipe_transform = solved[pipe_id]
            for conn in pipe.connections:
                if conn.joint_id in solved:
                    continue
                joint = self.graph.get_joint(conn.joint_id)
                hole = resolve_hole(joint, conn)
                if hole is None:
                    continue
                if conn.joint_id not in self.instances:
                    pending.add(conn.joint_id)
                    logger.debug("Joint %s has no instance yet; skipping", conn.joint_id)
                    continue

                joint_transform = joint_transform_from_pipe(
                    pipe_transform,
                    pipe.length,
                    conn.side,
                    hole,
                    rotation_deg=conn.rotation,
                    position=conn.position,
                )
                self._place(result, conn.joint_id, joint_transform, is_pipe=False)
                self.relationships.record(pipe.id, conn.joint_id, conn.hole_id, conn.side, "p2j")
                logger.debug("Placed joint %s from pipe %s (%s)", conn.joint_id, pipe.id, conn.side)

                for other in self.graph.pipes_on_joint(conn.joint_id):
                    if other.id in solved or other.id in queued:
                        continue
                    frontier.append(other.id)
                    queued.add(other.id)

        result.unresolved_pipes = [p.id for p in self.graph.pipes if p.id not in solved]
        result.unresolved_joints = [j.id for j in self.graph.joints if j.id not in solved]
        result.pending_joints = [j.id for j in self.graph.joints if j.id in pending and j.id not in solved]

        logger.info(
            "Propagated from %s: %d pipes, %d joints placed",
            root_id, len(result.resolved_pipes), len(result.resolved_joints),
        )
        if result.orphaned:
            logger.warning(
                "%d pipe(s) and %d joint(s) not reachable from root %s: %s",
                len(result.unresolved_pipes), len(result.unresolved_joints), root_id,
                ", ".join(result.orphaned),
            )
        return result

    # -------------------------------------------------------------------------
    # HELPERS
    # -------------------------------------------------------------------------

    def _resolve_pipe(self, result: PropagationResult, pipe: Pipe) -> bool:
        """Place a pipe from the first placed joint in start, end, midway order."""
        source = self._select_source(result, pipe)
        if source is None:
            return False

        conn, joint_transform = source
        hole = resolve_hole(self.graph.get_joint(conn.joint_id), conn)
        if hole is None:
            return False

        pipe_transform = pipe_transform_from_joint(
            joint_transform,
            pipe.length,
            conn.side,
            hole,
            rotation_deg=conn.rotation,
            position=conn.position,
        )
        self._place(result, pipe.id, pipe_transform, is_pipe=True)
        self.relationships.record(pipe.id, conn.joint_id, conn.hole_id, conn.side, "j2p")
        logger.debug("Placed pipe %s from joint %s (%s)", pipe.id, conn.joint_id, conn.side)
        return True

    def _select_source(self, result: PropagationResult, pipe: Pipe) -> tuple[Connection, Transform] | None:
        # PipeConnections iterates start, end, then midway in insertion order
        for conn in pipe.connections:
            joint_transform = result.transforms.get(conn.joint_id)
            if joint_transform is None:
                continue
            if resolve_hole(self.graph.get_joint(conn.joint_id), conn) is None:
                continue
            return conn, joint_transform
        return None

    def _place(self, result: PropagationResult, entity_id: str, transform: Transform, is_pipe: bool) -> None:
        result.transforms[entity_id] = transform
        if is_pipe:
            result.resolved_pipes.append(entity_id)
        else:
            result.resolved_joints.append(entity_id)
        if not self.instances.set_transform(entity_id, transform.position, transform.rotation):
            logger.debug("No instance for %s; transform kept in result only", entity_id)
