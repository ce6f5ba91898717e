"""Scene graph model — entities, local transforms, selectors and mutation notifications.

This is the host side of the spatial engine: colliders and monitors only
read from it (world boxes, positions, selector results) and subscribe to its
mutation notifications.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Iterator, Optional

import structlog

from lounge.core.geometry import AABB, Vec3

logger = structlog.get_logger()


@dataclass(frozen=True)
class BoxGeometry:
    """Renderable box volume centred on its entity's origin.

    Planes are boxes with zero depth.
    """

    width: float = 1.0
    height: float = 1.0
    depth: float = 1.0

    def corners(self) -> list[Vec3]:
        hw, hh, hd = self.width / 2.0, self.height / 2.0, self.depth / 2.0
        return [Vec3(sx * hw, sy * hh, sz * hd) for sx in (-1, 1) for sy in (-1, 1) for sz in (-1, 1)]


@dataclass(frozen=True)
class SceneMutation:
    """Notification delivered to scene observers.

    Attributes:
        kind: 'child_added' | 'child_removed' | 'attribute' | 'geometry_set' | 'geometry_removed'
        entity: The entity that changed
        name: Attribute name for 'attribute' mutations
    """

    kind: str
    entity: Entity
    name: Optional[str] = None


@dataclass(eq=False)
class Entity:
    """A positioned object in the scene graph.

    Identity is reference equality. The transform is local to the parent;
    rotation is in degrees, applied in XYZ Euler order.
    """

    id: str = ""
    tag: str = "a-entity"
    position: Vec3 = field(default_factory=Vec3)
    rotation: Vec3 = field(default_factory=Vec3)
    scale: Vec3 = field(default_factory=lambda: Vec3(1.0, 1.0, 1.0))
    geometry: Optional[BoxGeometry] = None
    classes: set[str] = field(default_factory=set)
    attributes: dict[str, Any] = field(default_factory=dict)
    children: list[Entity] = field(default_factory=list, repr=False)
    parent: Optional[Entity] = field(default=None, repr=False)
    _scene: Optional[Scene] = field(default=None, init=False, repr=False)

    @property
    def scene(self) -> Optional[Scene]:
        return self._scene

    def append(self, child: Entity) -> Entity:
        """Attach a child entity, notifying the scene if this entity is in one."""
        if child.parent is not None:
            child.parent.children.remove(child)
        elif child.scene is not None and child in child.scene.children:
            child.scene.children.remove(child)
        child.parent = self
        self.children.append(child)
        if self._scene is not None:
            self._scene._adopt(child)
            self._scene._notify(SceneMutation("child_added", child))
        return child

    def iter_subtree(self) -> Iterator[Entity]:
        """Yield this entity and all descendants, depth first."""
        yield self
        for child in self.children:
            yield from child.iter_subtree()

    def local_to_world(self, point: Vec3) -> Vec3:
        """Transform a point from this entity's local space to world space."""
        p = Vec3(point.x * self.scale.x, point.y * self.scale.y, point.z * self.scale.z)
        p = _rotate(p, self.rotation)
        p = p + self.position
        if self.parent is not None:
            return self.parent.local_to_world(p)
        return p

    def world_to_local(self, point: Vec3) -> Vec3:
        """Transform a world-space point into this entity's local space.

        Requires a non-zero scale on every axis of this entity and its ancestors.
        """
        p = self.parent.world_to_local(point) if self.parent is not None else point.copy()
        p = _rotate(p - self.position, self.rotation, inverse=True)
        return Vec3(p.x / self.scale.x, p.y / self.scale.y, p.z / self.scale.z)

    def world_position(self) -> Vec3:
        if self.parent is not None:
            return self.parent.local_to_world(self.position)
        return self.position.copy()

    def world_box(self) -> Optional[AABB]:
        """World-space AABB of this entity's geometry and its descendants'.

        Computed from the live transforms on every call. Returns None when
        nothing in the subtree has geometry.
        """
        box = None
        if self.geometry is not None:
            box = AABB.from_points(self.local_to_world(c) for c in self.geometry.corners())
        for child in self.children:
            child_box = child.world_box()
            if child_box is None:
                continue
            box = child_box if box is None else box.union(child_box)
        return box

    def matches(self, selector: str) -> bool:
        return any(part.matches(self) for part in parse_selector(selector))


def _rotate(v: Vec3, rotation: Vec3, inverse: bool = False) -> Vec3:
    rx, ry, rz = math.radians(rotation.x), math.radians(rotation.y), math.radians(rotation.z)
    if inverse:
        return _rot_z(_rot_y(_rot_x(v, -rx), -ry), -rz)
    return _rot_x(_rot_y(_rot_z(v, rz), ry), rx)


def _rot_x(v: Vec3, a: float) -> Vec3:
    if a == 0.0:
        return v
    c, s = math.cos(a), math.sin(a)
    return Vec3(v.x, c * v.y - s * v.z, s * v.y + c * v.z)


def _rot_y(v: Vec3, a: float) -> Vec3:
    if a == 0.0:
        return v
    c, s = math.cos(a), math.sin(a)
    return Vec3(c * v.x + s * v.z, v.y, -s * v.x + c * v.z)


def _rot_z(v: Vec3, a: float) -> Vec3:
    if a == 0.0:
        return v
    c, s = math.cos(a), math.sin(a)
    return Vec3(c * v.x - s * v.y, s * v.x + c * v.y, v.z)


# tag? then any number of #id, .class, [attr] or [attr=value]
_SIMPLE_SELECTOR = re.compile(r"^([a-zA-Z][\w-]*|\*)?((?:#[\w-]+|\.[\w-]+|\[[\w-]+(?:=[^\]]*)?\])*)$")
_SELECTOR_TOKEN = re.compile(r"#([\w-]+)|\.([\w-]+)|\[([\w-]+)(?:=([^\]]*))?\]")


@dataclass(frozen=True)
class SimpleSelector:
    """One comma-separated part of a selector expression."""

    tag: Optional[str] = None
    id: Optional[str] = None
    classes: tuple[str, ...] = ()
    attributes: tuple[tuple[str, Optional[str]], ...] = ()

    def matches(self, entity: Entity) -> bool:
        if self.tag is not None and entity.tag != self.tag:
            return False
        if self.id is not None and entity.id != self.id:
            return False
        if any(c not in entity.classes for c in self.classes):
            return False
        for name, value in self.attributes:
            if name not in entity.attributes:
                return False
            if value is not None and str(entity.attributes[name]) != value:
                return False
        return True


def parse_selector(selector: str) -> list[SimpleSelector]:
    """Parse a comma-separated list of simple selectors.

    Supports tag, #id, .class, [attr] and [attr=value]; combinators are not
    supported.

    Raises:
        ValueError: If any part of the expression is not a simple selector.
    """
    parts = []
    for raw in selector.split(","):
        text = raw.strip()
        match = _SIMPLE_SELECTOR.match(text)
        if not text or match is None:
            raise ValueError(f"Unsupported selector: {raw!r}")
        tag = match.group(1)
        id_ = None
        classes: list[str] = []
        attributes: list[tuple[str, Optional[str]]] = []
        for token in _SELECTOR_TOKEN.finditer(match.group(2)):
            if token.group(1):
                id_ = token.group(1)
            elif token.group(2):
                classes.append(token.group(2))
            else:
                value = token.group(4)
                if value is not None:
                    value = value.strip("'\"")
                attributes.append((token.group(3), value))
        parts.append(SimpleSelector(
            tag=None if tag in (None, "*") else tag,
            id=id_,
            classes=tuple(classes),
            attributes=tuple(attributes),
        ))
    return parts


class Scene:
    """Root of the scene graph.

    Structural and attribute changes made through the scene (or through
    Entity.append on an attached entity) are reported to observers. Direct
    writes to an entity's position, rotation or scale are not.
    """

    def __init__(self) -> None:
        self.children: list[Entity] = []
        self._observers: list[Callable[[SceneMutation], None]] = []

    def add(self, entity: Entity, parent: Optional[Entity] = None) -> Entity:
        """Add an entity (and its subtree) to the scene."""
        if parent is not None:
            if parent.scene is not self:
                raise ValueError("Parent entity is not part of this scene")
            return parent.append(entity)
        if entity.scene is self and entity.parent is None:
            return entity
        if entity.parent is not None:
            entity.parent.children.remove(entity)
            entity.parent = None
        self.children.append(entity)
        self._adopt(entity)
        self._notify(SceneMutation("child_added", entity))
        return entity

    def remove(self, entity: Entity) -> bool:
        """Detach an entity and its subtree from the scene.

        Returns:
            bool: True if the entity was removed, False if it wasn't in the scene.
        """
        if entity.scene is not self:
            logger.warning("entity_remove_failed", entity_id=entity.id, reason="not_found")
            return False
        if entity.parent is not None:
            entity.parent.children.remove(entity)
            entity.parent = None
        else:
            self.children.remove(entity)
        for node in entity.iter_subtree():
            node._scene = None
        self._notify(SceneMutation("child_removed", entity))
        return True

    def set_attribute(self, entity: Entity, name: str, value: Any) -> None:
        entity.attributes[name] = value
        self._notify(SceneMutation("attribute", entity, name))

    def remove_attribute(self, entity: Entity, name: str) -> None:
        if name in entity.attributes:
            del entity.attributes[name]
            self._notify(SceneMutation("attribute", entity, name))

    def set_geometry(self, entity: Entity, geometry: Optional[BoxGeometry]) -> None:
        entity.geometry = geometry
        kind = "geometry_removed" if geometry is None else "geometry_set"
        self._notify(SceneMutation(kind, entity))

    def observe(self, callback: Callable[[SceneMutation], None]) -> Callable[[], None]:
        """Register a mutation observer.

        Returns:
            A zero-argument function that unregisters the observer.
        """
        self._observers.append(callback)

        def disconnect() -> None:
            if callback in self._observers:
                self._observers.remove(callback)

        return disconnect

    @property
    def observer_count(self) -> int:
        return len(self._observers)

    def iter_entities(self) -> Iterator[Entity]:
        """Yield every entity in document order."""
        for child in self.children:
            yield from child.iter_subtree()

    def query_selector_all(self, selector: str) -> list[Entity]:
        parts = parse_selector(selector)
        return [e for e in self.iter_entities() if any(p.matches(e) for p in parts)]

    def query_selector(self, selector: str) -> Optional[Entity]:
        parts = parse_selector(selector)
        for entity in self.iter_entities():
            if any(p.matches(entity) for p in parts):
                return entity
        return None

    def get_by_id(self, entity_id: str) -> Optional[Entity]:
        for entity in self.iter_entities():
            if entity.id == entity_id:
                return entity
        return None

    def _adopt(self, entity: Entity) -> None:
        for node in entity.iter_subtree():
            node._scene = self

    def _notify(self, mutation: SceneMutation) -> None:
        for callback in list(self._observers):
            try:
                callback(mutation)
            except Exception as exc:
                logger.error(
                    "scene_observer_error",
                    kind=mutation.kind,
                    error=str(exc),
                    error_type=type(exc).__name__,
                )
