"""Lounge entry point — demo scene runner.

This module builds a lounge with a few exhibits, attaches an AABB collider to
the camera rig and proximity monitors to the exhibits, then runs the frame
loop while the camera walks through the room.

Can be run directly via `python -m lounge.main`.
"""

from __future__ import annotations

import asyncio
import math
import signal
from typing import Optional

import structlog

from lounge.bus.channels import Channels
from lounge.bus.event_bus import EventBus
from lounge.bus.events import HitEnd, HitStart
from lounge.config import Settings
from lounge.core.collider import AABBCollider
from lounge.core.engine import SceneEngine
from lounge.core.frames import FrameSessionHost
from lounge.core.geometry import Vec3
from lounge.core.proximity import ProximityMonitor
from lounge.core.reactions import ProximityReactions
from lounge.core.room import LoungeLayout, build_lounge, make_plinth, place_at_entry_point, settle_on_floor
from lounge.core.scene import BoxGeometry, Entity, Scene


def configure_logging(level: str = "info") -> None:
    """Configure structured logging."""
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(min_level=level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )


logger = structlog.get_logger()

# Exhibit id → (x, z, attributes)
EXHIBITS = {
    "radio": (-3.0, -2.0, {"sound": {"src": "#radio-track", "playing": False}}),
    "ghost": (3.0, -2.0, {"opacity-switch": {}, "material": {"opacity": 1.0}}),
    "skull": (-3.0, 2.0, {"light-switch": {"target": "skull-light"}}),
    "elephant": (3.0, 2.0, {"video-switch": {"target": "elephant-video"}}),
}


class SceneRunner:
    """Builds the demo scene and manages its lifecycle and graceful shutdown."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self.settings = settings or Settings()
        self.scene = Scene()
        self.bus = EventBus()
        self.frames = FrameSessionHost()
        self.engine = SceneEngine(self.scene, self.bus, self.frames, self.settings)
        self.reactions = ProximityReactions(self.scene, self.bus)
        self.camera: Optional[Entity] = None
        self.shutdown_event = asyncio.Event()

    def build(self) -> None:
        """Create the lounge, the camera rig, exhibits, colliders and monitors."""
        settings = self.settings
        lounge = build_lounge(
            self.scene,
            LoungeLayout(
                width=settings.lounge_width,
                height=settings.lounge_height,
                depth=settings.lounge_depth,
                south="glass",
            ),
        )

        self.camera = self.scene.add(Entity(id="camera", geometry=BoxGeometry(0.5, 1.6, 0.5)))
        place_at_entry_point(self.camera, lounge)
        settle_on_floor(self.camera, lounge)

        self.scene.add(Entity(id="skull-light", attributes={"light": {"intensity": 0.0}}), parent=lounge.root)
        self.scene.add(
            Entity(id="elephant-video", attributes={"video": {"playing": False}, "visible": False}),
            parent=lounge.root,
        )

        for exhibit_id, (x, z, attributes) in EXHIBITS.items():
            plinth = make_plinth(entity_id=exhibit_id)
            plinth.classes.add("exhibit")
            plinth.attributes.update(attributes)
            plinth.position.set(x, 0.0, z)
            self.scene.add(plinth)
            settle_on_floor(plinth, lounge)
            self.engine.add_monitor(ProximityMonitor(
                plinth,
                self.camera,
                self.bus,
                self.frames,
                distance_limit=settings.distance_limit,
                sample_every_n_frames=settings.proximity_frame_stride,
            ))

        self.engine.add_collider(AABBCollider(
            self.camera,
            self.scene,
            self.bus,
            interval_ms=settings.collider_interval_ms,
            objects=settings.collider_objects or ".exhibit",
        ))

        self.reactions.subscribe()
        self.bus.subscribe(Channels.HIT_START, self._on_hit_start, HitStart)
        self.bus.subscribe(Channels.HIT_END, self._on_hit_end, HitEnd)
        logger.info("scene_built", entities=sum(1 for _ in self.scene.iter_entities()))

    def _on_hit_start(self, event: HitStart) -> None:
        logger.info("hit_start", entity_id=event.entity.id)

    def _on_hit_end(self, event: HitEnd) -> None:
        logger.info("hit_end", entity_id=event.entity.id)

    async def walk_camera(self, speed: float = 0.5) -> None:
        """Move the camera around the lounge on an ellipse until shutdown."""
        if self.camera is None:
            raise RuntimeError("Scene has not been built; call build() first")
        radius_x = self.settings.lounge_width / 3
        radius_z = self.settings.lounge_depth / 3
        angle = 0.0
        step = self.settings.tick_rate_ms / 1000.0
        while not self.shutdown_event.is_set():
            angle += speed * step
            self.camera.position.x = radius_x * math.cos(angle)
            self.camera.position.z = radius_z * math.sin(angle)
            await asyncio.sleep(step)

    async def run(self) -> None:
        logger.info("lounge_starting")
        self.build()
        self.engine.begin_session()

        def handle_shutdown(sig: int) -> None:
            logger.info("shutdown_signal_received", signal=sig)
            self.shutdown_event.set()

        loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, lambda s=sig: handle_shutdown(s))

        engine_task = asyncio.create_task(self.engine.run())
        walker_task = asyncio.create_task(self.walk_camera())
        logger.info("services_running", colliders=len(self.engine.colliders), monitors=len(self.engine.monitors))

        await self.shutdown_event.wait()

        logger.info("initiating_graceful_shutdown")
        self.engine.end_session()
        self.engine.stop()
        try:
            await asyncio.wait_for(
                asyncio.gather(engine_task, walker_task, return_exceptions=True),
                timeout=5.0,
            )
        except asyncio.TimeoutError:
            logger.warning("shutdown_timeout")
            engine_task.cancel()
            walker_task.cancel()

        logger.info("all_services_stopped")


async def main() -> None:
    """Main entry point."""
    settings = Settings()
    configure_logging(settings.log_level)
    runner = SceneRunner(settings)
    try:
        await runner.run()
    except KeyboardInterrupt:
        logger.info("keyboard_interrupt_received")
    except Exception as exc:
        logger.error("fatal_error", error=str(exc), error_type=type(exc).__name__)
        raise


if __name__ == "__main__":
    asyncio.run(main())
