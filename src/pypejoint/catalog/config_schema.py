"""
Configuration schema for joint-type catalogs.

This module defines the dataclasses used to describe the joint types a
structure can be assembled from. A catalog can be:
- Shipped with the package (see ``catalog_loader.load_default_catalog``)
- Written manually in YAML (or JSON, which YAML also reads)
- Generated programmatically and saved with ``to_yaml``
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml


def _to_tuple3(value: list | tuple) -> tuple[float, float, float]:
    """Convert a list or tuple to a 3-element float tuple."""
    return (float(value[0]), float(value[1]), float(value[2]))


@dataclass
class HoleConfig:
    """
    Configuration for a single hole on a joint type.

    Attributes:
        to: Direction of the hole's tunnel axis in joint coordinates
        through: True if pipes may pierce the hole at any point (THROUGH),
                 False for a FIX hole that takes one pipe end
        start: Hole centre in joint coordinates (None means the origin)
    """

    to: tuple[float, float, float]
    through: bool = False
    start: tuple[float, float, float] | None = None

    def __post_init__(self):
        # Convert lists to tuples if needed (from YAML loading)
        if isinstance(self.to, list):
            self.to = _to_tuple3(self.to)
        if isinstance(self.start, list):
            self.start = _to_tuple3(self.start)
        self.through = bool(self.through)


@dataclass
class JointTypeConfig:
    """
    Configuration for a joint type.

    Attributes:
        name: Type name (e.g., "end-cap", "tee")
        holes: Ordered hole definitions; the list index is the hole id
        description: Human-readable description
    """

    name: str
    holes: list[HoleConfig] = field(default_factory=list)
    description: str = ""

    def __post_init__(self):
        # Handle holes as list of dicts from YAML
        self.holes = [HoleConfig(**h) if isinstance(h, dict) else h for h in self.holes]


@dataclass
class JointCategoryConfig:
    """A named group of joint types (e.g., printed joints, metal joints)."""

    name: str
    types: list[JointTypeConfig] = field(default_factory=list)

    def __post_init__(self):
        self.types = [JointTypeConfig(**t) if isinstance(t, dict) else t for t in self.types]


@dataclass
class PipeColorConfig:
    name: str
    color: str


@dataclass
class PipeStockConfig:
    """
    Pipe stock offered to front-ends.

    Attributes:
        diameters: Available pipe diameters
        lengths: Available cut lengths
        colors: Named colours
    """

    diameters: list[float] = field(default_factory=list)
    lengths: list[float] = field(default_factory=list)
    colors: list[PipeColorConfig] = field(default_factory=list)

    def __post_init__(self):
        self.diameters = [float(d) for d in self.diameters]
        self.lengths = [float(length) for length in self.lengths]
        self.colors = [PipeColorConfig(**c) if isinstance(c, dict) else c for c in self.colors]


@dataclass
class JointCatalogConfig:
    """
    Root configuration for a joint catalog.

    Attributes:
        version: Config file version (currently "1.0")
        settings: Global settings dictionary (e.g., ``tolerance``)
        pipe: Pipe stock description
        categories: Joint categories, each listing joint types
    """

    version: str = "1.0"
    settings: dict = field(default_factory=dict)
    pipe: PipeStockConfig = field(default_factory=PipeStockConfig)
    categories: list[JointCategoryConfig] = field(default_factory=list)

    def __post_init__(self):
        if isinstance(self.pipe, dict):
            self.pipe = PipeStockConfig(**self.pipe)
        elif self.pipe is None:
            self.pipe = PipeStockConfig()
        if self.settings is None:
            self.settings = {}
        # Handle categories as list of dicts from YAML
        self.categories = [
            JointCategoryConfig(**c) if isinstance(c, dict) else c for c in self.categories
        ]

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "JointCatalogConfig":
        """Build a catalog configuration from a parsed YAML/JSON mapping."""
        return cls(**data)

    @classmethod
    def from_yaml(cls, yaml_path: str | Path) -> "JointCatalogConfig":
        """Load a joint catalog configuration from a YAML (or JSON) file."""
        path = Path(yaml_path)
        if not path.exists():
            raise FileNotFoundError(f"Catalog file not found: {path}")
        with open(path) as f:
            data = yaml.safe_load(f)
        return cls.from_dict(data or {})

    def to_yaml(self, yaml_path: str | Path) -> None:
        """Save the joint catalog configuration to a YAML file."""
        data = self._to_dict()
        with open(yaml_path, "w") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)

    def _to_dict(self) -> dict[str, Any]:
        """Convert to a dictionary suitable for YAML serialization."""
        result: dict[str, Any] = {"version": self.version}
        if self.settings:
            result["settings"] = dict(self.settings)
        if self.pipe.diameters or self.pipe.lengths or self.pipe.colors:
            result["pipe"] = {
                "diameters": list(self.pipe.diameters),
                "lengths": list(self.pipe.lengths),
                "colors": [{"name": c.name, "color": c.color} for c in self.pipe.colors],
            }
        result["categories"] = [
            {"name": c.name, "types": [self._type_to_dict(t) for t in c.types]}
            for c in self.categories
        ]
        return result

    def _type_to_dict(self, joint_type: JointTypeConfig) -> dict[str, Any]:
        """Convert a JointTypeConfig to a dictionary."""
        result: dict[str, Any] = {"name": joint_type.name}
        if joint_type.description:
            result["description"] = joint_type.description
        result["holes"] = [self._hole_to_dict(h) for h in joint_type.holes]
        return result

    def _hole_to_dict(self, hole: HoleConfig) -> dict[str, Any]:
        """Convert a HoleConfig to a dictionary."""
        result: dict[str, Any] = {"through": hole.through, "to": list(hole.to)}
        if hole.start is not None:
            result["start"] = list(hole.start)
        return result
