"""Event bus infrastructure — channels, event payloads, in-process dispatch."""

from __future__ import annotations

from lounge.bus.channels import Channels
from lounge.bus.event_bus import EventBus
from lounge.bus import events

__all__ = [
    "EventBus",
    "Channels",
    "events",
]
