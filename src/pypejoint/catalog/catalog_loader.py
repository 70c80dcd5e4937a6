"""
Joint catalog loader.

Turns a JointCatalogConfig into JointType objects (hole geometry ready for
the structure graph) and indexes them by name.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from pathlib import Path

from ..geometry.holes import Hole, JointType, hole_from_definition
from .config_schema import HoleConfig, JointCatalogConfig, PipeStockConfig

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).parent / "data"
DEFAULT_CATALOG_PATH = DATA_DIR / "default_catalog.yaml"


class JointCatalog:
    """
    Static joint-type geometry provider.

    Example:
        catalog = JointCatalog.from_yaml("joints.yaml")
        tee = catalog["tee"]
        print(tee.hole_count)
    """

    def __init__(self, config: JointCatalogConfig):
        self.config = config
        self._types: dict[str, JointType] = {}

        for category in config.categories:
            for type_config in category.types:
                if type_config.name in self._types:
                    raise ValueError(
                        f"Duplicate joint type '{type_config.name}' in category '{category.name}'"
                    )
                holes = tuple(self._build_hole(h) for h in type_config.holes)
                self._types[type_config.name] = JointType(
                    name=type_config.name,
                    category=category.name,
                    holes=holes,
                )

        logger.debug("Loaded %d joint types from %d categories", len(self._types), len(config.categories))

    @classmethod
    def from_yaml(cls, yaml_path: str | Path) -> JointCatalog:
        return cls(JointCatalogConfig.from_yaml(yaml_path))

    @classmethod
    def from_dict(cls, data: dict) -> JointCatalog:
        return cls(JointCatalogConfig.from_dict(data))

    def _build_hole(self, config: HoleConfig) -> Hole:
        return hole_from_definition(config.through, config.to, config.start)

    # -------------------------------------------------------------------------
    # LOOKUP
    # -------------------------------------------------------------------------

    def get(self, name: str) -> JointType | None:
        """Get a joint type by name, or None if the catalog does not list it."""
        return self._types.get(name)

    def __getitem__(self, name: str) -> JointType:
        if name not in self._types:
            raise KeyError(f"Joint type '{name}' not found. Available: {list(self._types.keys())}")
        return self._types[name]

    def __contains__(self, name: object) -> bool:
        return name in self._types

    def __iter__(self) -> Iterator[JointType]:
        return iter(self._types.values())

    def __len__(self) -> int:
        return len(self._types)

    def names(self) -> list[str]:
        return list(self._types.keys())

    def categories(self) -> dict[str, list[str]]:
        """Map of category name to the joint type names listed under it."""
        result: dict[str, list[str]] = {}
        for category in self.config.categories:
            result[category.name] = [t.name for t in category.types]
        return result

    @property
    def pipe_stock(self) -> PipeStockConfig:
        return self.config.pipe

    @property
    def tolerance(self) -> float | None:
        """Validator tolerance from the catalog settings, if configured."""
        value = self.config.settings.get("tolerance")
        return None if value is None else float(value)


def load_default_catalog() -> JointCatalog:
    """Load the joint catalog shipped with the package."""
    return JointCatalog.from_yaml(DEFAULT_CATALOG_PATH)
