"""AABB collider — throttled broad-phase overlap detection with hitstart/hitend events.

The collider owns a reference entity. Every `interval_ms` it recomputes the
reference's world box, tests it against the cached boxes of its candidate
entities and publishes a transition event for each entity that started or
stopped overlapping since the previous check.
"""

from __future__ import annotations

from typing import Callable, Optional

import structlog

from lounge.bus.channels import Channels
from lounge.bus.event_bus import EventBus
from lounge.bus.events import HitEnd, HitStart
from lounge.core.aabb_cache import AABBCache
from lounge.core.candidates import CandidateRegistry
from lounge.core.scene import Entity, Scene, SceneMutation

logger = structlog.get_logger()


class AABBCollider:
    """Interval-throttled AABB collider for one reference entity.

    Candidate boxes come from an AABBCache and are never refreshed once
    cached, so a candidate that moves keeps being tested at its old place.
    The reference box is recomputed on every check.
    """

    def __init__(
        self,
        reference: Entity,
        scene: Scene,
        bus: EventBus,
        interval_ms: float = 80.0,
        objects: Optional[str] = None,
        cache: Optional[AABBCache] = None,
    ) -> None:
        """Initialize the collider.

        Args:
            reference: Entity whose box is tested against the candidates.
            scene: Scene graph providing candidates and mutation notifications.
            bus: Event bus receiving hitstart/hitend events.
            interval_ms: Minimum time between two checks.
            objects: Candidate selector; None or "" means all scene children.
            cache: Shared box cache; a private one is created if omitted.
        """
        self.reference = reference
        self.scene = scene
        self.bus = bus
        self.cache = cache if cache is not None else AABBCache()
        self.registry = CandidateRegistry(scene, exclude=reference)
        self.configure(interval_ms, objects)

        self.last_check_ms: Optional[float] = None
        self.check_count = 0
        self._previous: list[Entity] = []
        self._intersected: list[Entity] = []
        self._disconnect: Optional[Callable[[], None]] = None

    def configure(self, interval_ms: float, objects: Optional[str] = None) -> None:
        """Set the check interval and candidate selector.

        Raises:
            ValueError: If interval_ms is negative or the selector cannot be parsed.
        """
        if interval_ms < 0:
            raise ValueError(f"interval_ms must be >= 0, got {interval_ms}")
        self.interval_ms = interval_ms
        self.registry.selector = objects

    @property
    def objects(self) -> Optional[str]:
        return self.registry.selector

    @property
    def dirty(self) -> bool:
        return self.registry.dirty

    @property
    def intersected(self) -> tuple[Entity, ...]:
        """Entities overlapping the reference as of the last check."""
        return tuple(self._intersected)

    @property
    def attached(self) -> bool:
        return self._disconnect is not None

    def attach(self) -> None:
        """Start listening for scene mutations."""
        if self._disconnect is not None:
            return
        self._disconnect = self.scene.observe(self._on_scene_mutation)
        self.registry.mark_dirty()
        logger.info("collider_attached", reference_id=self.reference.id, objects=self.objects)

    def detach(self) -> None:
        """Stop listening for scene mutations."""
        if self._disconnect is None:
            return
        self._disconnect()
        self._disconnect = None
        logger.info("collider_detached", reference_id=self.reference.id)

    def mark_dirty(self) -> None:
        """Flag the candidate list for a rebuild before the next check."""
        self.registry.mark_dirty()

    def _on_scene_mutation(self, mutation: SceneMutation) -> None:
        self.mark_dirty()

    def on_tick(self, now_ms: float) -> None:
        """Run one check if at least interval_ms has passed since the last one.

        Args:
            now_ms: Monotonically increasing frame timestamp in milliseconds.
        """
        if self.last_check_ms is not None and now_ms - self.last_check_ms < self.interval_ms:
            return
        self.last_check_ms = now_ms
        self.check_count += 1

        self.registry.refresh_if_dirty()

        self._previous = self._intersected
        self._intersected = self._find_intersections()

        previous = set(self._previous)
        current = set(self._intersected)
        entered = [e for e in self._intersected if e not in previous]
        exited = [e for e in self._previous if e not in current]

        # hitend before hitstart
        for entity in exited:
            if entity is self.reference:
                continue
            self.bus.publish(Channels.HIT_END, HitEnd(entity=entity, source=self.reference))

        for entity in entered:
            if entity is self.reference:
                continue
            self.bus.publish(Channels.HIT_START, HitStart(entity=entity, source=self.reference))

        if entered or exited:
            logger.debug(
                "collider_transitions",
                reference_id=self.reference.id,
                entered=len(entered),
                exited=len(exited),
                intersecting=len(self._intersected),
                now_ms=now_ms,
            )

    def _find_intersections(self) -> list[Entity]:
        box = self.reference.world_box()
        if box is None:
            return []

        hits = []
        for candidate in self.registry.candidates:
            if candidate is self.reference:
                continue
            cached = self.cache.get(candidate)
            if cached is None:
                continue
            if box.overlaps(cached.box):
                hits.append(candidate)
        return hits
