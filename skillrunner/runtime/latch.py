"""
latch.py - One-shot completion latch for a single agent run.

The latch has exactly two states, open and closed, and only ever moves from
open to closed. Once closed, event handlers must stop touching run state and
the completion signal has fired exactly once.

Event delivery from the SDK may happen on the event loop thread or on a
reader thread, so the open/closed check and whatever the caller does under
it (appending an event, requesting an abort) are serialised with a lock:

    with latch.guard() as is_open:
        if not is_open:
            return
        metadata.events.append(event)

Waiters use ``await latch.wait()``; the underlying asyncio.Event is always
set on the loop that created the latch.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from contextlib import contextmanager
from typing import Iterator, Optional

logger = logging.getLogger(__name__)

# Reasons recorded when the latch closes
REASON_IDLE = "idle"
REASON_EARLY_TERMINATION = "early_termination"
REASON_ERROR = "error"


class CompletionLatch:
    """Monotonic open -> closed gate with a single-fire completion signal."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        if loop is None:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                loop = None
        self._loop = loop
        self._lock = threading.RLock()
        self._closed = False
        self._reason: Optional[str] = None
        self._signal = asyncio.Event()

    @property
    def closed(self) -> bool:
        with self._lock:
            return self._closed

    @property
    def reason(self) -> Optional[str]:
        """Why the latch closed, or None while it is still open."""
        with self._lock:
            return self._reason

    @contextmanager
    def guard(self) -> Iterator[bool]:
        """Hold the latch lock and yield whether the latch is still open.

        trip() cannot interleave with the body, so nothing observed as open
        here can be appended after another thread has closed the latch.
        """
        with self._lock:
            yield not self._closed

    def trip(self, reason: str) -> bool:
        """Close the latch.

        Returns:
            True if this call performed the open -> closed transition,
            False if the latch was already closed (no signal is re-sent).
        """
        with self._lock:
            if self._closed:
                return False
            self._closed = True
            self._reason = reason
        logger.debug("Completion latch closed (reason=%s)", reason)
        self._fire()
        return True

    async def wait(self) -> None:
        """Block until the latch closes."""
        await self._signal.wait()

    def _fire(self) -> None:
        loop = self._loop
        if loop is None or loop.is_closed():
            self._signal.set()
            return
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if running is loop:
            self._signal.set()
        else:
            loop.call_soon_threadsafe(self._signal.set)
