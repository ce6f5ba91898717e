"""Spatial event engine — scene graph, AABB collider, proximity monitor, frame loop."""

from lounge.core.collider import AABBCollider
from lounge.core.engine import SceneEngine
from lounge.core.geometry import AABB, Vec3
from lounge.core.proximity import ProximityMonitor
from lounge.core.scene import BoxGeometry, Entity, Scene

__all__ = [
    "AABB",
    "AABBCollider",
    "BoxGeometry",
    "Entity",
    "ProximityMonitor",
    "Scene",
    "SceneEngine",
    "Vec3",
]
