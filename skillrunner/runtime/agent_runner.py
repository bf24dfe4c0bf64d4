"""
agent_runner.py - Drive one real agent session end-to-end for a test.

run() owns every resource of a single run:
1. An isolated workspace directory
2. The Copilot client and the session opened against that workspace
3. The run's CompletionLatch and EventAggregator

It registers the event handler before the prompt is sent, waits for the
latch to close (idle signal, early termination, or failure), writes the
markdown report and returns the collected AgentMetadata.

Cleanup always runs, in order, each step guarded on its own:
destroy session -> stop client -> remove workspace.

Prerequisites for live runs:
- pip install github-copilot-sdk
- The Copilot CLI installed and authenticated (run `copilot` once)

Security note: RunConfig.setup receives the workspace path and executes
with full process permissions. Only use with trusted test code.

Usage:
    from skillrunner.runtime.agent_runner import run
    from skillrunner.runtime.types import RunConfig

    metadata = await run(RunConfig(prompt="How do I deploy my agent?"))
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import functools
import inspect
import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from skillrunner.config.runner_config import get_settings, is_debug

from .aggregator import EventAggregator
from .async_utils import run_async_safely
from .copilot_sdk import (
    build_client_options,
    build_session_config,
    create_client,
    event_from_sdk,
    get_sdk_module,
)
from .latch import REASON_ERROR, CompletionLatch
from .path_helpers import build_log_file_path
from .report import write_markdown_report
from .types import AgentMetadata, RunConfig
from .workspace import create_workspace, remove_workspace

logger = logging.getLogger(__name__)

ClientFactory = Callable[[Dict[str, Any]], Any]
_Pending = Union["asyncio.Future[Any]", "concurrent.futures.Future[Any]"]


def _schedule(loop: asyncio.AbstractEventLoop, coro_fn: Callable[[], Any]) -> _Pending:
    """Start coro_fn() on loop from whichever thread delivered the event."""
    try:
        running = asyncio.get_running_loop()
    except RuntimeError:
        running = None
    if running is loop:
        return loop.create_task(coro_fn())
    return asyncio.run_coroutine_threadsafe(coro_fn(), loop)


async def _await_quietly(pending: _Pending, what: str) -> None:
    try:
        if isinstance(pending, concurrent.futures.Future):
            await asyncio.wrap_future(pending)
        else:
            await pending
    except asyncio.CancelledError:
        pass
    except Exception as e:
        logger.debug("Ignoring %s error: %s", what, e)


async def _cleanup(
    session: Optional[Any],
    client: Optional[Any],
    workspace: Path,
    pending_aborts: List[_Pending],
) -> None:
    for pending in pending_aborts:
        await _await_quietly(pending, "session abort")

    try:
        if session is not None:
            await session.destroy()
    except Exception as e:
        logger.debug("Ignoring session cleanup error: %s", e)

    try:
        if client is not None:
            await client.stop()
    except Exception as e:
        logger.debug("Ignoring client cleanup error: %s", e)

    remove_workspace(workspace)


async def run_session(
    config: RunConfig,
    test_name: Optional[str] = None,
    client_factory: Optional[ClientFactory] = None,
) -> Tuple[AgentMetadata, Optional[Path]]:
    """Run an agent session and return its metadata and report path.

    Args:
        config: What to run.
        test_name: Test identity used for report/log paths; defaults to the
            current pytest test.
        client_factory: Builds the client from an options dict. Defaults to
            the Copilot SDK's CopilotClient.

    Returns:
        Tuple of (AgentMetadata, report path or None if the report failed).

    Raises:
        SDKUnavailableError: If no client_factory is given and the Copilot
            SDK cannot be imported.
        Exception: The first failure from setup, session creation or event
            handling, after cleanup has run.
    """
    if client_factory is None:
        get_sdk_module()
        client_factory = create_client

    settings = get_settings()
    debug = is_debug()
    loop = asyncio.get_running_loop()
    latch = CompletionLatch(loop)

    workspace = create_workspace()
    client: Optional[Any] = None
    session: Optional[Any] = None
    send_task: Optional["asyncio.Task[Any]"] = None
    pending_aborts: List[_Pending] = []

    try:
        if config.setup is not None:
            result = config.setup(workspace)
            if inspect.isawaitable(result):
                await result

        log_dir = build_log_file_path(test_name) if debug else None
        client = client_factory(
            build_client_options(
                workspace,
                non_interactive=config.non_interactive,
                log_dir=log_dir,
                debug=debug,
            )
        )
        await client.start()
        session = await client.create_session(
            build_session_config(settings, config.system_prompt)
        )
        opened = session

        def request_abort() -> None:
            pending_aborts.append(_schedule(loop, opened.abort))

        aggregator = EventAggregator(
            latch,
            should_early_terminate=config.should_early_terminate,
            on_abort=request_abort,
        )

        def on_event(raw: Any) -> None:
            try:
                event = event_from_sdk(raw)
            except Exception as e:
                aggregator.fail(e)
                return
            try:
                aggregator.ingest(event)
            except Exception as e:
                logger.debug("Event handling failed: %s", e)

        # Subscribe before sending so no early event is lost
        session.on(on_event)

        def on_sent(task: "asyncio.Task[Any]") -> None:
            if task.cancelled():
                return
            exc = task.exception()
            if exc is not None:
                aggregator.fail(exc)

        send_task = loop.create_task(session.send({"prompt": config.prompt}))
        send_task.add_done_callback(on_sent)

        await latch.wait()

        if aggregator.error is not None:
            raise aggregator.error

        # Blocking file I/O runs in the default executor
        report_path = await loop.run_in_executor(
            None,
            functools.partial(
                write_markdown_report, config.prompt, aggregator.metadata, test_name=test_name
            ),
        )
        return aggregator.metadata, report_path
    except asyncio.CancelledError:
        latch.trip(REASON_ERROR)
        logger.debug("Agent run cancelled")
        raise
    except Exception as e:
        latch.trip(REASON_ERROR)
        logger.error("Agent runner error: %s", e)
        raise
    finally:
        if send_task is not None and not send_task.done():
            send_task.cancel()
        await _cleanup(session, client, workspace, pending_aborts)


async def run(
    config: RunConfig,
    test_name: Optional[str] = None,
    client_factory: Optional[ClientFactory] = None,
) -> AgentMetadata:
    """Run an agent session with the given configuration."""
    metadata, _ = await run_session(config, test_name, client_factory)
    return metadata


def run_sync(
    config: RunConfig,
    test_name: Optional[str] = None,
    client_factory: Optional[ClientFactory] = None,
) -> AgentMetadata:
    """Synchronous wrapper for run()."""
    return run_async_safely(run(config, test_name, client_factory))


class AgentRunner:
    """Per-test runner that remembers the runs it performed.

    Example:
        >>> runner = AgentRunner(test_name="test_invokes_skill")
        >>> metadata = runner.run_sync(RunConfig(prompt="..."))
        >>> runner.report_paths
        [PosixPath('.../agent-metadata-....md')]
    """

    def __init__(
        self,
        test_name: Optional[str] = None,
        client_factory: Optional[ClientFactory] = None,
    ) -> None:
        self.test_name = test_name
        self.client_factory = client_factory
        self.runs: List[AgentMetadata] = []
        self.report_paths: List[Path] = []

    async def run(self, config: RunConfig) -> AgentMetadata:
        metadata, report_path = await run_session(
            config, self.test_name, self.client_factory
        )
        self.runs.append(metadata)
        if report_path is not None:
            self.report_paths.append(report_path)
        return metadata

    def run_sync(self, config: RunConfig) -> AgentMetadata:
        return run_async_safely(self.run(config))
