"""Proximity reactions — scene side effects driven by near/far events.

The monitored entity's attributes decide what happens:

- sound: play on near, pause on far
- opacity-switch: material opacity stepped by distance on near, opaque on far
- light-switch: target light on (intensity 3) on near, off on far
- video-switch: target video shown and playing on near, paused and hidden on far
"""

from __future__ import annotations

from typing import Any, Optional

import structlog

from lounge.bus.channels import Channels
from lounge.bus.event_bus import EventBus
from lounge.bus.events import ObjectFar, ObjectNear
from lounge.core.scene import Entity, Scene

logger = structlog.get_logger()

LIGHT_ON_INTENSITY = 3.0
LIGHT_OFF_INTENSITY = 0.0


def opacity_for_distance(distance: float) -> float:
    """Opacity step for an entity seen from `distance` away."""
    if distance >= 12:
        return 0.8
    if distance > 7:
        return 0.6
    if distance > 5:
        return 0.3
    return 0.0


class ProximityReactions:
    """Subscribes to near/far events and applies attribute-driven side effects."""

    def __init__(self, scene: Scene, bus: EventBus) -> None:
        self.scene = scene
        self.bus = bus
        self._subscribed = False

    def subscribe(self) -> None:
        if self._subscribed:
            return
        self.bus.subscribe(Channels.NEAR, self.on_near, ObjectNear)
        self.bus.subscribe(Channels.FAR, self.on_far, ObjectFar)
        self._subscribed = True

    def unsubscribe(self) -> None:
        if not self._subscribed:
            return
        self.bus.unsubscribe(Channels.NEAR, self.on_near)
        self.bus.unsubscribe(Channels.FAR, self.on_far)
        self._subscribed = False

    def on_near(self, event: ObjectNear) -> None:
        entity = event.entity
        attributes = entity.attributes

        if "sound" in attributes:
            self._set_state(entity, "sound", playing=True)
        if "opacity-switch" in attributes:
            self._set_opacity(entity, opacity_for_distance(event.distance))
        if "light-switch" in attributes:
            light = self._target(entity, "light-switch")
            if light is not None:
                self._set_state(light, "light", intensity=LIGHT_ON_INTENSITY)
        if "video-switch" in attributes:
            video = self._target(entity, "video-switch")
            if video is not None:
                self.scene.set_attribute(video, "visible", True)
                self._set_state(video, "video", playing=True)

        logger.info("proximity_reaction_near", entity_id=event.entity_id, distance=round(event.distance, 2))

    def on_far(self, event: ObjectFar) -> None:
        entity = event.entity
        attributes = entity.attributes

        if "sound" in attributes:
            self._set_state(entity, "sound", playing=False)
        if "opacity-switch" in attributes:
            self._set_opacity(entity, 1.0)
        if "light-switch" in attributes:
            light = self._target(entity, "light-switch")
            if light is not None:
                self._set_state(light, "light", intensity=LIGHT_OFF_INTENSITY)
        if "video-switch" in attributes:
            video = self._target(entity, "video-switch")
            if video is not None:
                self._set_state(video, "video", playing=False)
                self.scene.set_attribute(video, "visible", False)

        logger.info("proximity_reaction_far", entity_id=event.entity_id)

    def _target(self, entity: Entity, attribute: str) -> Optional[Entity]:
        """Resolve the entity named by an attribute's `target` id."""
        config: Any = entity.attributes.get(attribute) or {}
        target_id = config.get("target") if isinstance(config, dict) else None
        if not target_id:
            logger.warning("proximity_reaction_no_target", entity_id=entity.id, attribute=attribute)
            return None
        target = self.scene.get_by_id(target_id)
        if target is None:
            logger.warning(
                "proximity_reaction_target_missing",
                entity_id=entity.id,
                attribute=attribute,
                target_id=target_id,
            )
        return target

    def _set_opacity(self, entity: Entity, opacity: float) -> None:
        material = dict(entity.attributes.get("material") or {})
        material["opacity"] = opacity
        self.scene.set_attribute(entity, "material", material)

    def _set_state(self, entity: Entity, attribute: str, **values: Any) -> None:
        state = dict(entity.attributes.get(attribute) or {})
        state.update(values)
        self.scene.set_attribute(entity, attribute, state)
