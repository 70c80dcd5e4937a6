"""
Instance table: the mutable world transforms of pipes and joints.

This is the solver-facing side of the render/instance layer. A renderer
keeps its own scene objects and mirrors these transforms; the solver only
reads and writes poses here.

An id with no instance is a valid transient state: joint geometry is
loaded asynchronously, and its instance is registered only once the load
completes.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator

import numpy as np

from .geometry.transforms import Transform

logger = logging.getLogger(__name__)


class InstanceTable:
    """Maps entity ids to their current world Transform."""

    def __init__(self):
        self._transforms: dict[str, Transform] = {}

    def register(self, entity_id: str, transform: Transform | None = None) -> Transform:
        """
        Create the instance for an entity (identity pose unless given).

        Registering an id that already has an instance keeps the existing
        transform.
        """
        existing = self._transforms.get(entity_id)
        if existing is not None:
            return existing
        instance = transform.copy() if transform is not None else Transform.identity()
        self._transforms[entity_id] = instance
        logger.debug("Registered instance %s", entity_id)
        return instance

    def remove(self, entity_id: str) -> bool:
        return self._transforms.pop(entity_id, None) is not None

    def clear(self) -> None:
        self._transforms.clear()

    def get_transform(self, entity_id: str) -> Transform | None:
        """Current transform of an entity (a copy), or None if it has no instance."""
        transform = self._transforms.get(entity_id)
        return None if transform is None else transform.copy()

    def set_transform(
        self,
        entity_id: str,
        position: tuple[float, float, float] | np.ndarray,
        rotation: tuple[float, float, float, float] | np.ndarray,
    ) -> bool:
        """
        Overwrite an entity's transform.

        Returns:
            False (and leaves the table unchanged) when the entity has no instance
        """
        if entity_id not in self._transforms:
            return False
        self._transforms[entity_id] = Transform(position, rotation)
        return True

    def __contains__(self, entity_id: object) -> bool:
        return entity_id in self._transforms

    def __len__(self) -> int:
        return len(self._transforms)

    def __iter__(self) -> Iterator[str]:
        return iter(self._transforms)

    def ids(self) -> list[str]:
        return list(self._transforms.keys())
