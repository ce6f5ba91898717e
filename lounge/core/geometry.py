"""Geometry primitives — 3D vectors and axis-aligned bounding boxes."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Optional


@dataclass
class Vec3:
    """Mutable 3D vector.

    Scene positions are mutated in place, so anything that needs to remember
    a position must take a copy() rather than hold the instance.
    """

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def copy(self) -> Vec3:
        return Vec3(self.x, self.y, self.z)

    def set(self, x: float, y: float, z: float) -> Vec3:
        self.x = x
        self.y = y
        self.z = z
        return self

    def copy_from(self, other: Vec3) -> Vec3:
        return self.set(other.x, other.y, other.z)

    def distance_to(self, other: Vec3) -> float:
        dx = self.x - other.x
        dy = self.y - other.y
        dz = self.z - other.z
        return math.sqrt(dx * dx + dy * dy + dz * dz)

    def same_components(self, other: Vec3) -> bool:
        """Exact component-wise equality, no tolerance."""
        return self.x == other.x and self.y == other.y and self.z == other.z

    def __add__(self, other: Vec3) -> Vec3:
        return Vec3(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other: Vec3) -> Vec3:
        return Vec3(self.x - other.x, self.y - other.y, self.z - other.z)

    def __iter__(self):
        yield self.x
        yield self.y
        yield self.z


@dataclass(frozen=True)
class AABB:
    """Axis-aligned bounding box with min <= max on every axis."""

    min: Vec3
    max: Vec3

    def __post_init__(self) -> None:
        if self.min.x > self.max.x or self.min.y > self.max.y or self.min.z > self.max.z:
            raise ValueError(f"AABB min {self.min} exceeds max {self.max}")

    @classmethod
    def from_points(cls, points: Iterable[Vec3]) -> Optional[AABB]:
        """Smallest box containing every point, or None for no points."""
        min_x = min_y = min_z = math.inf
        max_x = max_y = max_z = -math.inf
        seen = False
        for p in points:
            seen = True
            min_x, min_y, min_z = min(min_x, p.x), min(min_y, p.y), min(min_z, p.z)
            max_x, max_y, max_z = max(max_x, p.x), max(max_y, p.y), max(max_z, p.z)
        if not seen:
            return None
        return cls(Vec3(min_x, min_y, min_z), Vec3(max_x, max_y, max_z))

    @classmethod
    def from_center_size(cls, center: Vec3, width: float, height: float, depth: float) -> AABB:
        hw, hh, hd = width / 2.0, height / 2.0, depth / 2.0
        return cls(
            Vec3(center.x - hw, center.y - hh, center.z - hd),
            Vec3(center.x + hw, center.y + hh, center.z + hd),
        )

    def union(self, other: AABB) -> AABB:
        return AABB(
            Vec3(min(self.min.x, other.min.x), min(self.min.y, other.min.y), min(self.min.z, other.min.z)),
            Vec3(max(self.max.x, other.max.x), max(self.max.y, other.max.y), max(self.max.z, other.max.z)),
        )

    def center(self) -> Vec3:
        return Vec3(
            (self.min.x + self.max.x) / 2.0,
            (self.min.y + self.max.y) / 2.0,
            (self.min.z + self.max.z) / 2.0,
        )

    def overlaps(self, other: AABB) -> bool:
        """True if the boxes intersect on all three axes (touching counts)."""
        return (
            self.min.x <= other.max.x and self.max.x >= other.min.x
            and self.min.y <= other.max.y and self.max.y >= other.min.y
            and self.min.z <= other.max.z and self.max.z >= other.min.z
        )
