"""Per-entity cached world boxes for broad-phase overlap tests."""

from __future__ import annotations

import weakref
from dataclasses import dataclass
from typing import Optional

import structlog

from lounge.core.geometry import AABB, Vec3
from lounge.core.scene import Entity

logger = structlog.get_logger()


@dataclass(frozen=True)
class CachedBox:
    """World box of an entity as of the moment it was first tested.

    Attributes:
        box: World-space AABB
        center: Center of the box
    """

    box: AABB
    center: Vec3


class AABBCache:
    """Side table mapping entity identity to its CachedBox.

    A box is computed the first time an entity is looked up and then reused
    for as long as the entity lives; it is never refreshed, even if the entity
    moves. Entities without geometry are not cached, so they are looked at
    again on the next lookup.
    """

    def __init__(self) -> None:
        self._boxes: weakref.WeakKeyDictionary[Entity, CachedBox] = weakref.WeakKeyDictionary()

    def get(self, entity: Entity) -> Optional[CachedBox]:
        cached = self._boxes.get(entity)
        if cached is not None:
            return cached

        box = entity.world_box()
        if box is None:
            return None

        cached = CachedBox(box=box, center=box.center())
        self._boxes[entity] = cached
        logger.debug("aabb_cached", entity_id=entity.id, center=tuple(cached.center))
        return cached

    def __contains__(self, entity: Entity) -> bool:
        return entity in self._boxes

    def __len__(self) -> int:
        return len(self._boxes)
