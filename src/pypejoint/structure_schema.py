"""
Load/save schema for pipe/joint structures.

This module defines the dataclasses for the structure file shape:

    {
      "pipes": [
        {"id": "P_0001", "diameter": 0.022, "length": 0.9,
         "connections": {
           "start":  {"id": "P_0001-conn-1", "jointId": "tee_0001", "holeId": 0,
                      "rotation": 0.0, "position": 0.0},
           "end":    {...},
           "midway": [{...}, ...]}}
      ],
      "joints": [{"id": "tee_0001", "name": "tee"}],
      "rootTransform": {"pipeId": "P_0001",
                        "position": [0, 0, 0], "rotation": [0, 0, 0, 1]}
    }

Joint hole geometry is not stored; it is looked up in the joint catalog by
``name`` on load. Files may be JSON or YAML.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml

if TYPE_CHECKING:
    from .structure_graph import StructureGraph
    from .structure_nodes import Connection


def _to_tuple3(value: list | tuple) -> tuple[float, float, float]:
    """Convert a list or tuple to a 3-element float tuple."""
    return (float(value[0]), float(value[1]), float(value[2]))


def _to_tuple4(value: list | tuple) -> tuple[float, float, float, float]:
    """Convert a list or tuple to a 4-element float tuple."""
    return (float(value[0]), float(value[1]), float(value[2]), float(value[3]))


@dataclass
class ConnectionConfig:
    """
    One pipe connection.

    Attributes:
        id: Connection id
        joint_id: Joint the pipe plugs into ("jointId" on disk)
        hole_id: Hole index on that joint ("holeId" on disk)
        rotation: Twist in degrees
        position: Fraction along the pipe (midway only; 0 for start/end)
    """

    id: str
    joint_id: str
    hole_id: int
    rotation: float = 0.0
    position: float = 0.0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ConnectionConfig:
        return cls(
            id=str(data["id"]),
            joint_id=str(data["jointId"]),
            hole_id=int(data["holeId"]),
            rotation=float(data.get("rotation", 0.0)),
            position=float(data.get("position", 0.0)),
        )

    @classmethod
    def from_connection(cls, conn: Connection) -> ConnectionConfig:
        return cls(
            id=conn.id,
            joint_id=conn.joint_id,
            hole_id=conn.hole_id,
            rotation=conn.rotation,
            position=conn.position,
        )

    def _to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "jointId": self.joint_id,
            "holeId": self.hole_id,
            "rotation": self.rotation,
            "position": self.position,
        }


@dataclass
class PipeConfig:
    """A pipe and its connections, grouped by side."""

    id: str
    diameter: float
    length: float
    start: ConnectionConfig | None = None
    end: ConnectionConfig | None = None
    midway: list[ConnectionConfig] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PipeConfig:
        connections = data.get("connections") or {}
        start = connections.get("start")
        end = connections.get("end")
        return cls(
            id=str(data["id"]),
            diameter=float(data["diameter"]),
            length=float(data["length"]),
            start=ConnectionConfig.from_dict(start) if start else None,
            end=ConnectionConfig.from_dict(end) if end else None,
            midway=[ConnectionConfig.from_dict(m) for m in connections.get("midway") or []],
        )

    def _to_dict(self) -> dict[str, Any]:
        connections: dict[str, Any] = {}
        if self.start is not None:
            connections["start"] = self.start._to_dict()
        if self.end is not None:
            connections["end"] = self.end._to_dict()
        connections["midway"] = [m._to_dict() for m in self.midway]
        return {
            "id": self.id,
            "diameter": self.diameter,
            "length": self.length,
            "connections": connections,
        }


@dataclass
class JointConfig:
    id: str
    name: str


@dataclass
class RootTransformConfig:
    """
    The anchor pose of a structure.

    Attributes:
        pipe_id: Root pipe ("pipeId" on disk)
        position: World position (x, y, z)
        rotation: World orientation quaternion (x, y, z, w)
    """

    pipe_id: str
    position: tuple[float, float, float] = (0.0, 0.0, 0.0)
    rotation: tuple[float, float, float, float] = (0.0, 0.0, 0.0, 1.0)

    def __post_init__(self):
        # Convert lists (from JSON/YAML) and numpy arrays to tuples
        self.position = _to_tuple3(self.position)
        self.rotation = _to_tuple4(self.rotation)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RootTransformConfig:
        return cls(
            pipe_id=str(data["pipeId"]),
            position=data.get("position", (0.0, 0.0, 0.0)),
            rotation=data.get("rotation", (0.0, 0.0, 0.0, 1.0)),
        )

    def _to_dict(self) -> dict[str, Any]:
        return {
            "pipeId": self.pipe_id,
            "position": list(self.position),
            "rotation": list(self.rotation),
        }


@dataclass
class StructureConfig:
    """Root of a structure file."""

    pipes: list[PipeConfig] = field(default_factory=list)
    joints: list[JointConfig] = field(default_factory=list)
    root_transform: RootTransformConfig | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> StructureConfig:
        if not isinstance(data, dict):
            raise ValueError(f"Structure must be a mapping, got {type(data).__name__}")
        root = data.get("rootTransform")
        return cls(
            pipes=[PipeConfig.from_dict(p) for p in data.get("pipes") or []],
            joints=[JointConfig(id=str(j["id"]), name=str(j["name"])) for j in data.get("joints") or []],
            root_transform=RootTransformConfig.from_dict(root) if root else None,
        )

    @classmethod
    def from_file(cls, path: str | Path) -> StructureConfig:
        """Load a structure from a JSON or YAML file."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Structure file not found: {path}")
        with open(path) as f:
            data = yaml.safe_load(f)
        return cls.from_dict(data or {})

    @classmethod
    def from_graph(cls, graph: StructureGraph, root_transform: RootTransformConfig | None = None) -> StructureConfig:
        """Snapshot the current state of a structure graph."""
        pipes = []
        for pipe in graph.pipes:
            conns = pipe.connections
            pipes.append(PipeConfig(
                id=pipe.id,
                diameter=pipe.diameter,
                length=pipe.length,
                start=ConnectionConfig.from_connection(conns.start) if conns.start else None,
                end=ConnectionConfig.from_connection(conns.end) if conns.end else None,
                midway=[ConnectionConfig.from_connection(m) for m in conns.midway],
            ))
        joints = [JointConfig(id=j.id, name=j.name) for j in graph.joints]
        return cls(pipes=pipes, joints=joints, root_transform=root_transform)

    def validate(self) -> None:
        """
        Check every value a structure graph would reject.

        Raises:
            ValueError: on a non-positive pipe size, a midway position outside
                [0, 1] or a zero-length root rotation
        """
        for pipe in self.pipes:
            if not (pipe.diameter > 0 and pipe.length > 0):
                raise ValueError(
                    f"Pipe {pipe.id}: diameter and length must be positive, "
                    f"got {pipe.diameter} and {pipe.length}"
                )
            for conn in pipe.midway:
                if not 0.0 <= conn.position <= 1.0:
                    raise ValueError(
                        f"Connection {conn.id}: midway position must be within [0, 1], got {conn.position}"
                    )
        if self.root_transform is not None and not any(self.root_transform.rotation):
            raise ValueError(f"Root pipe {self.root_transform.pipe_id}: rotation must be a non-zero quaternion")

    def to_dict(self) -> dict[str, Any]:
        """Convert to a dictionary suitable for JSON/YAML serialization."""
        result: dict[str, Any] = {
            "pipes": [p._to_dict() for p in self.pipes],
            "joints": [{"id": j.id, "name": j.name} for j in self.joints],
        }
        if self.root_transform is not None:
            result["rootTransform"] = self.root_transform._to_dict()
        return result

    def to_file(self, path: str | Path) -> None:
        """Save to ``path``; ``.json`` files are written as JSON, anything else as YAML."""
        path = Path(path)
        data = self.to_dict()
        with open(path, "w") as f:
            if path.suffix.lower() == ".json":
                json.dump(data, f, indent=2)
            else:
                yaml.dump(data, f, default_flow_style=False, sort_keys=False)
