"""In-process event bus for spatial events.

Producers (colliders, proximity monitors) publish from inside a tick and
never wait for listeners: publish() only enqueues, and the engine calls
flush() once per tick to deliver everything that was queued.
"""

from __future__ import annotations

import asyncio
import inspect
from collections import deque
from typing import Any, Callable, Optional, Type

import structlog

logger = structlog.get_logger()


class EventBus:
    """Fire-and-forget publish/subscribe channel keyed by channel name.

    Handlers may be plain callables or coroutine functions. Coroutine handlers
    are scheduled as tasks on the running event loop when flush() is called
    from inside one.
    """

    def __init__(self) -> None:
        self._handlers: dict[str, list[tuple[Callable, Optional[Type[Any]]]]] = {}
        self._pending: deque[tuple[str, Any]] = deque()
        self._tasks: set[asyncio.Task] = set()
        self.published_count = 0
        self.delivered_count = 0

    def publish(self, channel: str, event: Any) -> None:
        self._pending.append((channel, event))
        self.published_count += 1
        logger.debug("event_bus_publishing", channel=channel, event_type=type(event).__name__)

    def subscribe(self, channel: str, handler: Callable, event_type: Optional[Type[Any]] = None) -> None:
        if channel not in self._handlers:
            self._handlers[channel] = []
            logger.info("event_bus_subscribed_to_channel", channel=channel)
        self._handlers[channel].append((handler, event_type))
        logger.info("event_bus_handler_registered", channel=channel, handler_count=len(self._handlers[channel]))

    def unsubscribe(self, channel: str, handler: Callable) -> bool:
        """Remove a handler from a channel.

        Returns:
            bool: True if the handler was registered, False otherwise.
        """
        handlers = self._handlers.get(channel, [])
        for index, (registered, _) in enumerate(handlers):
            if registered == handler:
                del handlers[index]
                logger.info("event_bus_handler_removed", channel=channel, handler_count=len(handlers))
                return True
        return False

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def handler_count(self, channel: str) -> int:
        return len(self._handlers.get(channel, []))

    def flush(self) -> int:
        """Deliver every event queued before this call.

        Events published by handlers during the flush stay queued for the next
        one, so a single flush always does bounded work.

        Returns:
            int: Number of events dispatched.
        """
        batch = [self._pending.popleft() for _ in range(len(self._pending))]
        for channel, event in batch:
            self._dispatch(channel, event)
        return len(batch)

    def clear(self) -> None:
        """Drop queued events without delivering them."""
        dropped = len(self._pending)
        self._pending.clear()
        if dropped:
            logger.info("event_bus_cleared", dropped=dropped)

    def _dispatch(self, channel: str, event: Any) -> None:
        """Dispatch a single event to registered handlers."""
        handlers = list(self._handlers.get(channel, []))
        for handler, event_type in handlers:
            if event_type is not None and not isinstance(event, event_type):
                logger.warning(
                    "event_bus_type_mismatch",
                    channel=channel,
                    expected=event_type.__name__,
                    received=type(event).__name__,
                )
                continue
            try:
                result = handler(event)
                if inspect.isawaitable(result):
                    self._schedule(channel, result)
                self.delivered_count += 1
            except Exception as exc:
                logger.error(
                    "event_bus_handler_error",
                    channel=channel,
                    error=str(exc),
                    error_type=type(exc).__name__,
                )

    def _schedule(self, channel: str, awaitable: Any) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.error("event_bus_async_handler_without_loop", channel=channel)
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            return
        task = loop.create_task(awaitable)
        self._tasks.add(task)
        task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            exc = task.exception()
            logger.error("event_bus_handler_error", error=str(exc), error_type=type(exc).__name__)
