"""Telemetry for collecting snapshots of the spatial engine's state.

Snapshots are logged periodically by the engine for monitoring.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from lounge.core.engine import SceneEngine


@dataclass
class SpatialSnapshot:
    """Snapshot of engine state at a specific tick.

    Attributes:
        tick: Engine tick number when snapshot was taken
        collider_count: Number of registered colliders
        candidate_count: Candidates across all colliders
        intersecting_count: Entities currently overlapping any collider reference
        monitor_count: Number of registered proximity monitors
        active_monitors: Monitors with a pending frame request
        events_published: Total events published on the bus so far
        events_pending: Events waiting for the next flush
        timestamp: Unix timestamp when snapshot was collected
    """

    tick: int
    collider_count: int
    candidate_count: int
    intersecting_count: int
    monitor_count: int
    active_monitors: int
    events_published: int
    events_pending: int
    timestamp: float


def collect_snapshot(engine: SceneEngine) -> SpatialSnapshot:
    """Collect a snapshot of the engine's current state."""
    colliders = engine.colliders
    monitors = engine.monitors

    return SpatialSnapshot(
        tick=engine.tick_counter,
        collider_count=len(colliders),
        candidate_count=sum(len(c.registry) for c in colliders),
        intersecting_count=sum(len(c.intersected) for c in colliders),
        monitor_count=len(monitors),
        active_monitors=sum(1 for m in monitors if m.active),
        events_published=engine.bus.published_count,
        events_pending=engine.bus.pending_count,
        timestamp=time.time(),
    )
