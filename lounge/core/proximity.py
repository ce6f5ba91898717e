"""Proximity monitor — frame-sampled distance checks against a moving reference point.

Every `sample_every_n_frames` frames the monitor reads the reference position
(usually the camera). If the reference moved since the last sample, the
distance to the monitored entity is compared with `distance_limit` and a near
or far event is published. The monitor keeps itself alive by requesting the
next frame from the active frame session; without a session it simply stops.
"""

from __future__ import annotations

from enum import Enum
from typing import Callable, Optional, Union

import structlog

from lounge.bus.channels import Channels
from lounge.bus.event_bus import EventBus
from lounge.bus.events import ObjectFar, ObjectNear
from lounge.core.frames import FrameSession, FrameSessionHost
from lounge.core.geometry import Vec3
from lounge.core.scene import Entity

logger = structlog.get_logger()

ReferenceProvider = Callable[[], Vec3]


class ProximityState(str, Enum):
    NEAR = "near"
    FAR = "far"


class ProximityMonitor:
    """Publishes near/far events for one entity relative to a moving reference."""

    def __init__(
        self,
        entity: Entity,
        reference: Union[Entity, ReferenceProvider, None],
        bus: EventBus,
        frames: FrameSessionHost,
        distance_limit: float = 10.0,
        sample_every_n_frames: int = 60,
    ) -> None:
        """Initialize and configure the monitor.

        Args:
            entity: The monitored entity; its position attribute is measured.
            reference: Entity whose live position is the reference point, or a
                callable returning the live reference position.
            bus: Event bus receiving near/far events.
            frames: Host of the frame session that drives sampling.
            distance_limit: Distances below this are "near".
            sample_every_n_frames: Sampling stride in frames.

        Raises:
            ValueError: If reference is missing or the limits are invalid.
        """
        self.entity = entity
        self.bus = bus
        self.frames = frames
        self.frame_counter = 0
        self.sample_count = 0
        self.state: Optional[ProximityState] = None
        self._session: Optional[FrameSession] = None
        self._handle = 0
        self.configure(reference, distance_limit, sample_every_n_frames)

    def configure(
        self,
        reference: Union[Entity, ReferenceProvider, None],
        distance_limit: float,
        sample_every_n_frames: int,
    ) -> None:
        if reference is None:
            raise ValueError(f"Proximity monitor for {self.entity.id!r} needs a reference point")
        if distance_limit < 0:
            raise ValueError(f"distance_limit must be >= 0, got {distance_limit}")
        if sample_every_n_frames < 1:
            raise ValueError(f"sample_every_n_frames must be >= 1, got {sample_every_n_frames}")

        if isinstance(reference, Entity):
            reference_entity = reference
            self._reference: ReferenceProvider = lambda: reference_entity.position
        elif callable(reference):
            self._reference = reference
        else:
            raise ValueError(f"Unsupported reference point provider: {reference!r}")

        self.distance_limit = distance_limit
        self.sample_every_n_frames = sample_every_n_frames
        # Copy: the live position is mutated in place by the scene.
        self.last_position = self._reference().copy()

    @property
    def active(self) -> bool:
        """True while a frame request is pending on a live session."""
        return self._handle != 0 and self._session is not None and not self._session.ended

    def start(self) -> bool:
        """Request the first frame from the current session.

        Returns:
            bool: False if no session is available.
        """
        if self.active:
            return True
        started = self._request_next_frame()
        if started:
            logger.info(
                "proximity_monitor_started",
                entity_id=self.entity.id,
                distance_limit=self.distance_limit,
                stride=self.sample_every_n_frames,
            )
        return started

    def stop(self) -> None:
        if self._session is not None and self._handle:
            self._session.cancel_animation_frame(self._handle)
        self._handle = 0
        self._session = None

    def on_frame(self, now_ms: Optional[float] = None) -> None:
        """Count a frame, sample on every Nth one, then ask for the next frame."""
        was_running = self._session is not None
        # Drop any outstanding request so at most one is ever pending.
        self.stop()
        self.frame_counter += 1
        if self.frame_counter >= self.sample_every_n_frames:
            self.frame_counter = 0
            self._sample()
        if not self._request_next_frame() and was_running:
            logger.debug("proximity_monitor_stopped", entity_id=self.entity.id, reason="no_session")

    def _sample(self) -> None:
        self.sample_count += 1
        current = self._reference()
        if current.same_components(self.last_position):
            return

        distance = current.distance_to(self.entity.position)
        if distance < self.distance_limit:
            self.bus.publish(
                Channels.NEAR,
                ObjectNear(entity=self.entity, entity_id=self.entity.id, distance=distance),
            )
            self.state = ProximityState.NEAR
        else:
            self.bus.publish(Channels.FAR, ObjectFar(entity=self.entity, entity_id=self.entity.id))
            self.state = ProximityState.FAR

        logger.debug(
            "proximity_sampled",
            entity_id=self.entity.id,
            distance=round(distance, 3),
            state=self.state.value,
        )
        self.last_position = current.copy()

    def _request_next_frame(self) -> bool:
        session = self.frames.get_session()
        if session is None:
            self._session = None
            return False
        self._session = session
        self._handle = session.request_animation_frame(self.on_frame)
        return self._handle != 0
