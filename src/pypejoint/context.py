#!/usr/bin/env python3
"""
Structure Context

Explicit handle owning one editable structure: the joint catalog, the
instance table, the relationship tracker, the structure graph, the
propagation solver and the consistency validator. Components that need the
structure receive the context (or one of its members); nothing is global.

Example:
    ctx = StructureContext()
    pipe = ctx.graph.add_pipe(diameter=0.022, length=0.9)
    cap = ctx.add_joint_from_catalog("end-cap")
    ctx.graph.add_connection(pipe, cap, 0, "end")
    ctx.set_root(pipe, Transform.identity())
    result = ctx.propagate()
    problems = ctx.validate()
"""

from __future__ import annotations

import logging

from .catalog.catalog_loader import JointCatalog, load_default_catalog
from .geometry.transforms import Transform
from .instances import InstanceTable
from .propagation import PropagationResult, PropagationSolver
from .relationships import RelationshipTracker
from .structure_graph import StructureGraph
from .structure_schema import ConnectionConfig, RootTransformConfig, StructureConfig
from .validator import DEFAULT_TOLERANCE, ConsistencyValidator, InvalidConnection

logger = logging.getLogger(__name__)


class StructureContext:
    """
    One structure and everything that operates on it.

    Args:
        catalog: Joint catalog (the packaged default catalog if omitted)
        tolerance: Validator tolerance; falls back to the catalog's
            ``settings.tolerance`` and then to 1e-3
    """

    def __init__(self, catalog: JointCatalog | None = None, tolerance: float | None = None):
        self.catalog = catalog if catalog is not None else load_default_catalog()
        if tolerance is None:
            tolerance = self.catalog.tolerance if self.catalog.tolerance is not None else DEFAULT_TOLERANCE

        self.instances = InstanceTable()
        self.relationships = RelationshipTracker()
        self.graph = StructureGraph(self.instances, self.relationships)
        self.solver = PropagationSolver(self.graph, self.instances, self.relationships)
        self.validator = ConsistencyValidator(self.graph, self.instances, self.relationships, tolerance)

        self.root_id: str | None = None
        self.root_transform = Transform.identity()
        self.last_result: PropagationResult | None = None

    # -------------------------------------------------------------------------
    # EDITING
    # -------------------------------------------------------------------------

    def add_joint_from_catalog(
        self,
        type_name: str,
        id: str | None = None,
        register_instance: bool = True,
    ) -> str | None:
        """
        Add a joint whose holes come from the catalog.

        Returns:
            The joint id, or None if the catalog does not list the type
        """
        joint_type = self.catalog.get(type_name)
        if joint_type is None:
            logger.warning("Unknown joint type '%s'; joint not added", type_name)
            return None
        return self.graph.add_joint(type_name, joint_type.holes, id=id, register_instance=register_instance)

    def set_root(self, pipe_id: str, transform: Transform | None = None) -> None:
        """Anchor the structure at a pipe (identity pose unless given)."""
        self.root_id = pipe_id
        self.root_transform = transform.copy() if transform is not None else Transform.identity()

    def clear(self) -> None:
        self.graph.clear_all()
        self.root_id = None
        self.root_transform = Transform.identity()
        self.last_result = None

    # -------------------------------------------------------------------------
    # SOLVING
    # -------------------------------------------------------------------------

    def propagate(self) -> PropagationResult | None:
        """
        Run a propagation pass from the current root.

        With no root set, the first pipe is used at its current transform.
        Returns None when the structure has no pipes.
        """
        if self.root_id is None or self.graph.get_pipe(self.root_id) is None:
            if not self.graph.pipes:
                logger.info("Nothing to propagate: structure has no pipes")
                return None
            first = self.graph.pipes[0].id
            self.set_root(first, self.instances.get_transform(first))

        self.last_result = self.solver.propagate(self.root_id, self.root_transform)
        return self.last_result

    def validate(self) -> list[InvalidConnection]:
        return self.validator.find_invalid_connections()

    # -------------------------------------------------------------------------
    # LOAD / SAVE
    # -------------------------------------------------------------------------

    def snapshot(self) -> StructureConfig:
        """Current structure in its load/save shape."""
        root = None
        if self.root_id is not None:
            root = RootTransformConfig(
                pipe_id=self.root_id,
                position=self.root_transform.position,
                rotation=self.root_transform.rotation,
            )
        return StructureConfig.from_graph(self.graph, root)

    def load(self, config: StructureConfig, propagate: bool = True) -> PropagationResult | None:
        """
        Replace the current structure with ``config``.

        Pipes are created first, then joints (geometry from the catalog), then
        each pipe's connections in start, end, midway order. The root comes
        from ``rootTransform``, or defaults to the first pipe.

        The config is validated first; a rejected config raises ValueError
        and leaves the current structure untouched.
        """
        config.validate()
        self.clear()

        for pipe in config.pipes:
            self.graph.add_pipe(pipe.diameter, pipe.length, id=pipe.id)
        for joint in config.joints:
            self.add_joint_from_catalog(joint.name, id=joint.id)

        for pipe in config.pipes:
            if pipe.start is not None:
                self._load_connection(pipe.id, "start", pipe.start)
            if pipe.end is not None:
                self._load_connection(pipe.id, "end", pipe.end)
            for conn in pipe.midway:
                self._load_connection(pipe.id, "midway", conn)

        root = config.root_transform
        if root is not None and self.graph.get_pipe(root.pipe_id) is not None:
            self.set_root(root.pipe_id, Transform(root.position, root.rotation))
        elif config.pipes:
            if root is not None:
                logger.warning("Root pipe %s not in structure; using first pipe", root.pipe_id)
            self.set_root(config.pipes[0].id)

        if propagate:
            return self.propagate()
        return None

    def _load_connection(self, pipe_id: str, side: str, conn: ConnectionConfig) -> None:
        self.graph.add_connection(
            pipe_id,
            conn.joint_id,
            conn.hole_id,
            side,  # type: ignore[arg-type]
            rotation=conn.rotation,
            position=conn.position if side == "midway" else None,
            id=conn.id,
        )
