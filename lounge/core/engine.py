"""Scene engine — the host frame loop that drives colliders and proximity monitors.

Each tick the engine:
1. Calls on_tick() on every collider with the current frame time
2. Runs one frame of the active frame session (proximity monitors sample here)
3. Flushes the event bus so listeners see this tick's events
4. Periodically logs a telemetry snapshot
"""

from __future__ import annotations

import asyncio
from dataclasses import asdict
from typing import Optional

import structlog

from lounge.bus.event_bus import EventBus
from lounge.config import Settings
from lounge.core.collider import AABBCollider
from lounge.core.frames import FrameSession, FrameSessionHost
from lounge.core.proximity import ProximityMonitor
from lounge.core.scene import Scene
from lounge.core.telemetry import collect_snapshot

logger = structlog.get_logger()


class SceneEngine:
    """Single-threaded frame loop for the spatial event engine.

    Coordinates:
    - AABB colliders (interval-throttled, driven every tick)
    - Proximity monitors (driven by the frame session)
    - Event delivery
    - Statistics collection
    """

    def __init__(
        self,
        scene: Scene,
        bus: EventBus,
        frames: FrameSessionHost,
        settings: Settings,
    ) -> None:
        """Initialize the engine.

        Args:
            scene: Scene graph the colliders and monitors observe.
            bus: Event bus that colliders and monitors publish to.
            frames: Host of the frame session driving proximity monitors.
            settings: Application settings.
        """
        self.scene = scene
        self.bus = bus
        self.frames = frames
        self.settings = settings

        self.colliders: list[AABBCollider] = []
        self.monitors: list[ProximityMonitor] = []

        self.tick_counter = 0
        self.running = False

    def add_collider(self, collider: AABBCollider) -> AABBCollider:
        collider.attach()
        self.colliders.append(collider)
        return collider

    def remove_collider(self, collider: AABBCollider) -> bool:
        if collider not in self.colliders:
            return False
        collider.detach()
        self.colliders.remove(collider)
        return True

    def add_monitor(self, monitor: ProximityMonitor) -> ProximityMonitor:
        """Register a monitor and start it if a frame session is active."""
        self.monitors.append(monitor)
        monitor.start()
        return monitor

    def remove_monitor(self, monitor: ProximityMonitor) -> bool:
        if monitor not in self.monitors:
            return False
        monitor.stop()
        self.monitors.remove(monitor)
        return True

    def begin_session(self, name: str = "immersive") -> FrameSession:
        """Start a new frame session and (re)start every registered monitor on it."""
        session = self.frames.start_session(name)
        for monitor in self.monitors:
            monitor.start()
        return session

    def end_session(self) -> None:
        """End the frame session; monitors stop on their own."""
        self.frames.end_session()

    def step(self, now_ms: float) -> None:
        """Run one engine tick.

        Args:
            now_ms: Frame timestamp in milliseconds, monotonically increasing.
        """
        self.tick_counter += 1

        for collider in self.colliders:
            try:
                collider.on_tick(now_ms)
            except Exception as exc:
                logger.error(
                    "collider_tick_error",
                    tick=self.tick_counter,
                    reference_id=collider.reference.id,
                    error=str(exc),
                    error_type=type(exc).__name__,
                )

        session = self.frames.get_session()
        if session is not None:
            session.run_frame(now_ms)

        self.bus.flush()

        if self.tick_counter % self.settings.stats_interval_ticks == 0:
            self._log_statistics()

    async def run(self) -> None:
        """Main frame loop.

        Runs until stop() is called, executing one tick per iteration and
        sleeping for the remainder of the tick budget.
        """
        self.running = True
        loop = asyncio.get_running_loop()
        started = loop.time()
        logger.info(
            "engine_starting",
            tick_rate_ms=self.settings.tick_rate_ms,
            colliders=len(self.colliders),
            monitors=len(self.monitors),
        )

        while self.running:
            tick_start = loop.time()

            try:
                self.step((tick_start - started) * 1000.0)
            except Exception as exc:
                # Never let the frame loop crash
                logger.error(
                    "tick_error",
                    tick=self.tick_counter,
                    error=str(exc),
                    error_type=type(exc).__name__,
                )

            tick_duration = loop.time() - tick_start
            budget = self.settings.tick_rate_ms / 1000.0
            if tick_duration > budget:
                logger.warning(
                    "tick_overrun",
                    tick=self.tick_counter,
                    duration_ms=tick_duration * 1000,
                    budget_ms=self.settings.tick_rate_ms,
                )

            await asyncio.sleep(max(0.0, budget - tick_duration))

        logger.info("engine_stopped", tick=self.tick_counter)

    def _log_statistics(self) -> None:
        snapshot = collect_snapshot(self)
        logger.info("spatial_stats", **asdict(snapshot))

    def stop(self) -> None:
        """Stop the frame loop gracefully.

        Sets the running flag to False, which will cause the loop
        to exit on the next iteration.
        """
        logger.info("engine_stopping", tick=self.tick_counter)
        self.running = False

    @property
    def session(self) -> Optional[FrameSession]:
        return self.frames.get_session()
