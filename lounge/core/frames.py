"""Frame sessions — the external per-frame scheduling source for proximity monitors.

A FrameSession behaves like an immersive rendering session: callbacks ask for
the next animation frame and are run once when it arrives. When the session
ends, no further frames are produced and pending callbacks are dropped.
"""

from __future__ import annotations

from typing import Callable, Optional

import structlog

logger = structlog.get_logger()

FrameCallback = Callable[[float], None]


class FrameSession:
    """Produces animation frames for one-shot callbacks."""

    def __init__(self, name: str = "session") -> None:
        self.name = name
        self.frame_number = 0
        self._callbacks: dict[int, FrameCallback] = {}
        self._next_handle = 1
        self._ended = False

    @property
    def ended(self) -> bool:
        return self._ended

    @property
    def pending_count(self) -> int:
        return len(self._callbacks)

    def request_animation_frame(self, callback: FrameCallback) -> int:
        """Schedule callback for the next frame.

        Returns:
            int: Handle usable with cancel_animation_frame(), or 0 if the
                session has ended.
        """
        if self._ended:
            return 0
        handle = self._next_handle
        self._next_handle += 1
        self._callbacks[handle] = callback
        return handle

    def cancel_animation_frame(self, handle: int) -> bool:
        return self._callbacks.pop(handle, None) is not None

    def run_frame(self, now_ms: float) -> int:
        """Run every callback requested before this frame.

        Callbacks requested while the frame runs are kept for the next one.
        A failing callback is logged and does not stop the others.

        Returns:
            int: Number of callbacks run.
        """
        if self._ended:
            return 0
        self.frame_number += 1
        callbacks = list(self._callbacks.values())
        self._callbacks.clear()
        for callback in callbacks:
            try:
                callback(now_ms)
            except Exception as exc:
                logger.error(
                    "frame_callback_error",
                    session=self.name,
                    frame=self.frame_number,
                    error=str(exc),
                    error_type=type(exc).__name__,
                )
        return len(callbacks)

    def end(self) -> None:
        if self._ended:
            return
        self._ended = True
        dropped = len(self._callbacks)
        self._callbacks.clear()
        logger.info("frame_session_ended", session=self.name, frames=self.frame_number, dropped=dropped)


class FrameSessionHost:
    """Holds the currently active frame session, if any."""

    def __init__(self) -> None:
        self._session: Optional[FrameSession] = None

    def get_session(self) -> Optional[FrameSession]:
        """Return the active session, or None when no frames are being produced."""
        if self._session is not None and self._session.ended:
            self._session = None
        return self._session

    def start_session(self, name: str = "session") -> FrameSession:
        if self._session is not None and not self._session.ended:
            self._session.end()
        self._session = FrameSession(name)
        logger.info("frame_session_started", session=name)
        return self._session

    def end_session(self) -> None:
        if self._session is not None:
            self._session.end()
            self._session = None
