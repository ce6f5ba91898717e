"""Unit tests for AABBCache."""

from __future__ import annotations

import gc

from lounge.core.aabb_cache import AABBCache
from lounge.core.geometry import Vec3
from lounge.core.scene import BoxGeometry, Entity


def test_box_is_computed_lazily_and_reused():
    """Test that the first lookup caches the box and later lookups reuse it."""
    cache = AABBCache()
    entity = Entity(position=Vec3(1, 2, 3), geometry=BoxGeometry(2, 2, 2))
    assert entity not in cache

    first = cache.get(entity)

    assert entity in cache
    assert first.center == Vec3(1, 2, 3)
    assert cache.get(entity) is first


def test_cached_box_is_not_refreshed_when_entity_moves():
    """Test that a moved entity keeps the box from its first lookup."""
    cache = AABBCache()
    entity = Entity(geometry=BoxGeometry(2, 2, 2))
    cached = cache.get(entity)

    entity.position.set(50, 0, 0)

    assert cache.get(entity) is cached
    assert cache.get(entity).box.max.x == 1.0
    assert entity.world_box().max.x == 51.0


def test_entity_without_geometry_is_not_cached():
    """Test that missing geometry yields None and is retried on the next lookup."""
    cache = AABBCache()
    entity = Entity()

    assert cache.get(entity) is None
    assert len(cache) == 0

    entity.geometry = BoxGeometry(1, 1, 1)
    assert cache.get(entity) is not None
    assert len(cache) == 1


def test_entries_are_dropped_with_their_entity():
    """Test that the side table does not keep entities alive."""
    cache = AABBCache()
    entity = Entity(geometry=BoxGeometry())
    cache.get(entity)

    del entity
    gc.collect()

    assert len(cache) == 0
