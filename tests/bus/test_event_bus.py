"""Tests for EventBus pub/sub functionality."""

import asyncio
from unittest.mock import MagicMock

import pytest

from lounge.bus.channels import Channels
from lounge.bus.event_bus import EventBus
from lounge.bus.events import HitEnd, HitStart, ObjectFar, ObjectNear
from lounge.core.scene import Entity


@pytest.fixture
def event_bus():
    """Create an empty EventBus."""
    return EventBus()


@pytest.fixture
def statue():
    return Entity(id="statue")


def test_publish_only_enqueues(event_bus, statue):
    """Test that publish never calls handlers directly."""
    handler = MagicMock()
    event_bus.subscribe(Channels.HIT_START, handler)

    event_bus.publish(Channels.HIT_START, HitStart(entity=statue))

    handler.assert_not_called()
    assert event_bus.pending_count == 1
    assert event_bus.published_count == 1


def test_flush_delivers_in_publish_order(event_bus, statue):
    """Test that flush dispatches queued events in order to matching channels."""
    received = []
    event_bus.subscribe(Channels.HIT_START, received.append)
    event_bus.subscribe(Channels.HIT_END, received.append)

    event_bus.publish(Channels.HIT_END, HitEnd(entity=statue))
    event_bus.publish(Channels.HIT_START, HitStart(entity=statue))
    event_bus.publish(Channels.NEAR, ObjectNear(entity=statue, entity_id="statue", distance=1.0))

    assert event_bus.flush() == 3
    assert [type(e) for e in received] == [HitEnd, HitStart]
    assert event_bus.pending_count == 0
    assert event_bus.delivered_count == 2


def test_handler_error_does_not_block_others(event_bus, statue):
    """Test that one failing handler is logged and the next still runs."""
    failing = MagicMock(side_effect=RuntimeError("boom"))
    healthy = MagicMock()
    event_bus.subscribe(Channels.FAR, failing)
    event_bus.subscribe(Channels.FAR, healthy)

    event_bus.publish(Channels.FAR, ObjectFar(entity=statue, entity_id="statue"))
    event_bus.flush()

    failing.assert_called_once()
    healthy.assert_called_once()


def test_type_mismatch_is_skipped(event_bus, statue):
    """Test that typed handlers never see events of the wrong type."""
    handler = MagicMock()
    event_bus.subscribe(Channels.NEAR, handler, ObjectNear)

    event_bus.publish(Channels.NEAR, ObjectFar(entity=statue, entity_id="statue"))
    event_bus.flush()

    handler.assert_not_called()


def test_unsubscribe(event_bus, statue):
    """Test removing a handler."""
    handler = MagicMock()
    event_bus.subscribe(Channels.HIT_START, handler)

    assert event_bus.unsubscribe(Channels.HIT_START, handler) is True
    assert event_bus.unsubscribe(Channels.HIT_START, handler) is False
    assert event_bus.handler_count(Channels.HIT_START) == 0

    event_bus.publish(Channels.HIT_START, HitStart(entity=statue))
    event_bus.flush()
    handler.assert_not_called()


def test_events_published_during_flush_wait_for_next_flush(event_bus, statue):
    """Test that a flush only delivers the batch queued before it started."""
    received = []

    def relay(event):
        received.append(event)
        event_bus.publish(Channels.HIT_END, HitEnd(entity=event.entity))

    event_bus.subscribe(Channels.HIT_START, relay)
    event_bus.subscribe(Channels.HIT_END, received.append)

    event_bus.publish(Channels.HIT_START, HitStart(entity=statue))
    assert event_bus.flush() == 1
    assert len(received) == 1
    assert event_bus.pending_count == 1

    assert event_bus.flush() == 1
    assert isinstance(received[1], HitEnd)


def test_clear_drops_pending(event_bus, statue):
    """Test that clear discards queued events."""
    handler = MagicMock()
    event_bus.subscribe(Channels.HIT_START, handler)
    event_bus.publish(Channels.HIT_START, HitStart(entity=statue))

    event_bus.clear()

    assert event_bus.flush() == 0
    handler.assert_not_called()


@pytest.mark.asyncio
async def test_async_handler_scheduled_on_running_loop(event_bus, statue):
    """Test that coroutine handlers run as tasks on the current loop."""
    received = []

    async def handler(event):
        received.append(event)

    event_bus.subscribe(Channels.HIT_START, handler)
    event_bus.publish(Channels.HIT_START, HitStart(entity=statue))
    event_bus.flush()

    assert received == []
    await asyncio.sleep(0)
    await asyncio.sleep(0)

    assert received == [HitStart(entity=statue)]


def test_async_handler_without_loop_is_dropped(event_bus, statue):
    """Test that coroutine handlers are closed, not leaked, outside a loop."""
    called = []

    async def handler(event):
        called.append(event)

    event_bus.subscribe(Channels.HIT_START, handler)
    event_bus.publish(Channels.HIT_START, HitStart(entity=statue))
    event_bus.flush()

    assert called == []


def test_unsubscribe_bound_method(event_bus, statue):
    """Test that a bound method handler can be removed via a fresh attribute access."""

    class Listener:
        def __init__(self):
            self.received = []

        def on_hit(self, event):
            self.received.append(event)

    listener = Listener()
    event_bus.subscribe(Channels.HIT_START, listener.on_hit)

    assert event_bus.unsubscribe(Channels.HIT_START, listener.on_hit) is True
    assert event_bus.handler_count(Channels.HIT_START) == 0

    event_bus.publish(Channels.HIT_START, HitStart(entity=statue))
    event_bus.flush()
    assert listener.received == []


def test_handler_clearing_queue_during_flush(event_bus, statue):
    """Test that a handler draining the queue mid-flush does not break delivery."""
    received = []

    def clearing(event):
        received.append(event)
        event_bus.clear()

    event_bus.subscribe(Channels.HIT_START, clearing)
    event_bus.publish(Channels.HIT_START, HitStart(entity=statue))
    event_bus.publish(Channels.HIT_START, HitStart(entity=Entity(id="bust")))

    assert event_bus.flush() == 2
    assert len(received) == 2
    assert event_bus.pending_count == 0
