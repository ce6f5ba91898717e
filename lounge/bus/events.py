"""Event types published on the in-process event bus.

Events carry live entity handles, not serialized copies; listeners must treat
them as read-only references into the scene graph.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from lounge.core.scene import Entity


@dataclass(frozen=True)
class HitStart:
    """Published by an AABBCollider when an entity starts overlapping its reference.

    Attributes:
        entity: The entity that entered the intersecting set
        source: The collider's reference entity
    """

    entity: Entity
    source: Optional[Entity] = field(default=None, compare=False)


@dataclass(frozen=True)
class HitEnd:
    """Published by an AABBCollider when an entity stops overlapping its reference.

    Attributes:
        entity: The entity that left the intersecting set
        source: The collider's reference entity
    """

    entity: Entity
    source: Optional[Entity] = field(default=None, compare=False)


@dataclass(frozen=True)
class ObjectNear:
    """Published by a ProximityMonitor when the moved reference is within range.

    Attributes:
        entity: The monitored entity
        entity_id: The monitored entity's id attribute
        distance: Distance from the reference point to the entity
    """

    entity: Entity
    entity_id: str
    distance: float


@dataclass(frozen=True)
class ObjectFar:
    """Published by a ProximityMonitor when the moved reference is out of range.

    Attributes:
        entity: The monitored entity
        entity_id: The monitored entity's id attribute
    """

    entity: Entity
    entity_id: str
