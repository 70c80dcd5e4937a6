#!/usr/bin/env python3
"""
Joint Hole Geometry

Each joint type exposes an ordered list of holes. A hole is the joint-side
counterpart of a pipe end: it has a local coordinate frame
relative to the joint's origin.

Hole Coordinate Frame:
- Origin: ``offset`` (hole centre in joint local coordinates)
- Z-axis: the hole's tunnel axis, ``direction`` applied to joint +Z
- X-axis: rotational reference for the connection twist

Hole kinds:
- FIX: accepts exactly one connection, at a pipe's start or end
- THROUGH: may be pierced at any point along a pipe (start, end or midway)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, TypeAlias

import numpy as np

from .transforms import Z_AXIS, as_vector, normalize_quaternion, rotate_vector, rotation_to_align_z_with_direction

HoleKind: TypeAlias = Literal["FIX", "THROUGH"]


@dataclass(frozen=True, eq=False)
class Hole:
    """
    Immutable attachment point on a joint.

    Attributes:
        kind: "FIX" or "THROUGH"
        direction: Unit quaternion mapping joint +Z onto the tunnel axis
        offset: Hole centre relative to the joint origin
    """

    kind: HoleKind
    direction: np.ndarray
    offset: np.ndarray = field(default_factory=lambda: np.zeros(3))

    def __post_init__(self):
        if self.kind not in ("FIX", "THROUGH"):
            raise ValueError(f"Unknown hole kind '{self.kind}'. Valid kinds: FIX, THROUGH")
        # frozen dataclass: coerce through object.__setattr__
        object.__setattr__(self, "direction", normalize_quaternion(self.direction))
        object.__setattr__(self, "offset", as_vector(self.offset))

    @property
    def is_through(self) -> bool:
        return self.kind == "THROUGH"

    @property
    def axis(self) -> np.ndarray:
        """Tunnel axis in joint local coordinates."""
        return rotate_vector(self.direction, Z_AXIS)


def hole_from_definition(
    through: bool,
    to: tuple[float, float, float] | list[float],
    start: tuple[float, float, float] | list[float] | None = None,
) -> Hole:
    """
    Convert a catalog hole definition into a Hole.

    Args:
        through: True for a THROUGH hole, False for FIX
        to: Direction of the tunnel axis in joint coordinates
        start: Hole centre in joint coordinates (defaults to the origin)

    Returns:
        Hole whose direction rotates +Z onto ``to``
    """
    return Hole(
        kind="THROUGH" if through else "FIX",
        direction=rotation_to_align_z_with_direction(to),
        offset=as_vector(start),
    )


@dataclass(frozen=True)
class JointType:
    """
    A named joint type from the catalog.

    Attributes:
        name: Type name, also the prefix of generated joint ids
        category: Catalog category the type was listed under
        holes: Ordered holes; the index is the ``hole_id`` used by connections
    """

    name: str
    category: str
    holes: tuple[Hole, ...]

    @property
    def hole_count(self) -> int:
        return len(self.holes)

    def count_kind(self, kind: HoleKind) -> int:
        return sum(1 for hole in self.holes if hole.kind == kind)
