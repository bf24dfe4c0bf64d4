"""Tests for the one-shot completion latch.

These tests pin the latch invariants:
1. open -> closed is the only transition and happens once
2. trip() after closing neither changes the reason nor re-signals
3. guard() reports the state under the latch lock
4. wait() returns once tripped, including when tripped from another thread
"""

from __future__ import annotations

import asyncio
import threading

from skillrunner.runtime.latch import (
    REASON_EARLY_TERMINATION,
    REASON_IDLE,
    CompletionLatch,
)


class TestCompletionLatch:
    def test_starts_open(self):
        latch = CompletionLatch()
        assert latch.closed is False
        assert latch.reason is None

    def test_trip_closes_once(self):
        latch = CompletionLatch()

        assert latch.trip(REASON_IDLE) is True
        assert latch.closed is True
        assert latch.reason == REASON_IDLE

    def test_second_trip_is_noop(self):
        """A later trip does not overwrite the first reason."""
        latch = CompletionLatch()
        latch.trip(REASON_EARLY_TERMINATION)

        assert latch.trip(REASON_IDLE) is False
        assert latch.reason == REASON_EARLY_TERMINATION

    def test_guard_reflects_state(self):
        latch = CompletionLatch()
        with latch.guard() as is_open:
            assert is_open is True

        latch.trip(REASON_IDLE)
        with latch.guard() as is_open:
            assert is_open is False

    def test_trip_inside_guard_is_reentrant(self):
        latch = CompletionLatch()
        with latch.guard() as is_open:
            assert is_open
            assert latch.trip(REASON_IDLE) is True
        assert latch.closed

    def test_wait_returns_after_trip_on_loop(self):
        async def scenario():
            latch = CompletionLatch()
            asyncio.get_running_loop().call_soon(latch.trip, REASON_IDLE)
            await asyncio.wait_for(latch.wait(), timeout=1)
            return latch.reason

        assert asyncio.run(scenario()) == REASON_IDLE

    def test_wait_returns_after_trip_from_other_thread(self):
        async def scenario():
            latch = CompletionLatch()
            thread = threading.Thread(target=latch.trip, args=(REASON_IDLE,))
            thread.start()
            await asyncio.wait_for(latch.wait(), timeout=1)
            thread.join()
            return latch.closed

        assert asyncio.run(scenario()) is True

    def test_wait_after_trip_does_not_block(self):
        async def scenario():
            latch = CompletionLatch()
            latch.trip(REASON_IDLE)
            await asyncio.wait_for(latch.wait(), timeout=1)

        asyncio.run(scenario())
