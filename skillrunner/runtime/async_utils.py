"""
async_utils.py - Run agent coroutines from synchronous test code.

Most test suites call the runner from plain ``def test_...`` functions.
run_async_safely() gives those callers a blocking entry point without each
one managing an event loop.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import logging
from typing import Any, Coroutine, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

_BRIDGE_THREAD_PREFIX = "skillrunner-sync"


def _in_running_loop() -> bool:
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return False
    return True


def run_async_safely(coro: Coroutine[Any, Any, T]) -> T:
    """Block until coro finishes and return its result.

    Outside an event loop the coroutine gets its own loop. Inside one (a
    sync helper reached from async test code) it runs on a fresh loop in a
    single worker thread, since the caller's loop cannot be re-entered.
    """
    if not _in_running_loop():
        return asyncio.run(coro)

    logger.warning("Sync agent run requested inside an event loop; await run() instead")
    with concurrent.futures.ThreadPoolExecutor(
        max_workers=1, thread_name_prefix=_BRIDGE_THREAD_PREFIX
    ) as pool:
        return pool.submit(asyncio.run, coro).result()
