"""
Test fixtures and utilities for skillrunner tests.

This module provides a scripted stand-in for the Copilot client and session,
plus fixtures that isolate configuration, report output and the memoized
skip decision per test.
"""

import threading
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import pytest

from skillrunner.config.runner_config import reset_config
from skillrunner.runtime.skip_policy import reset_skip_decision

# ============================================================================
# Raw event builders (shaped like SDK payloads)
# ============================================================================


def raw(event_type: str, **data: Any) -> Dict[str, Any]:
    """Build a raw SDK-style event dict."""
    return {"type": event_type, "data": data}


def message(message_id: str, content: str) -> Dict[str, Any]:
    return raw("assistant.message", messageId=message_id, content=content)


def message_delta(message_id: str, delta: str) -> Dict[str, Any]:
    return raw("assistant.message_delta", messageId=message_id, deltaContent=delta)


def tool_start(call_id: str, tool_name: str, arguments: Any = None) -> Dict[str, Any]:
    return raw(
        "tool.execution_start",
        toolCallId=call_id,
        toolName=tool_name,
        arguments=arguments if arguments is not None else {},
    )


def tool_complete(
    call_id: str,
    success: bool = True,
    content: Optional[str] = None,
    error: Optional[str] = None,
) -> Dict[str, Any]:
    data: Dict[str, Any] = {"toolCallId": call_id, "success": success}
    if content is not None:
        data["result"] = {"content": content}
    if error is not None:
        data["error"] = {"message": error}
    return {"type": "tool.execution_complete", "data": data}


IDLE = raw("session.idle")


# ============================================================================
# Fake Copilot client / session
# ============================================================================


class FakeSession:
    """Scripted session: send() replays the script through the handlers.

    Every lifecycle call is recorded in the shared call log so tests can
    assert on cleanup order.
    """

    def __init__(
        self,
        script: Optional[List[Dict[str, Any]]] = None,
        call_log: Optional[List[str]] = None,
        destroy_error: Optional[Exception] = None,
        send_error: Optional[Exception] = None,
        threaded: bool = False,
    ):
        self.script = list(script or [])
        self.call_log = call_log if call_log is not None else []
        self.destroy_error = destroy_error
        self.send_error = send_error
        self.threaded = threaded
        self.handlers: List[Callable[[Any], None]] = []
        self.sent: List[Dict[str, Any]] = []
        self.abort_calls = 0
        self.thread: Optional[threading.Thread] = None

    def on(self, handler: Callable[[Any], None]) -> Callable[[], None]:
        self.call_log.append("on")
        self.handlers.append(handler)
        return lambda: self.handlers.remove(handler)

    def emit(self, event: Dict[str, Any]) -> None:
        for handler in list(self.handlers):
            handler(event)

    def _replay(self) -> None:
        for event in self.script:
            self.emit(event)

    async def send(self, message: Dict[str, Any]) -> str:
        self.call_log.append("send")
        self.sent.append(message)
        if self.send_error is not None:
            raise self.send_error
        if self.threaded:
            self.thread = threading.Thread(target=self._replay, daemon=True)
            self.thread.start()
        else:
            self._replay()
        return "message-id"

    async def abort(self) -> None:
        self.call_log.append("abort")
        self.abort_calls += 1

    async def destroy(self) -> None:
        self.call_log.append("destroy")
        if self.destroy_error is not None:
            raise self.destroy_error


class FakeClient:
    def __init__(
        self,
        options: Dict[str, Any],
        session: FakeSession,
        create_error: Optional[Exception] = None,
        stop_error: Optional[Exception] = None,
    ):
        self.options = options
        self.session = session
        self.create_error = create_error
        self.stop_error = stop_error
        self.session_config: Optional[Dict[str, Any]] = None

    async def start(self) -> None:
        self.session.call_log.append("start")

    async def create_session(self, config: Dict[str, Any]) -> FakeSession:
        self.session.call_log.append("create_session")
        self.session_config = config
        if self.create_error is not None:
            raise self.create_error
        return self.session

    async def stop(self) -> None:
        self.session.call_log.append("stop")
        if self.stop_error is not None:
            raise self.stop_error


class ClientFactory:
    """Callable client factory that remembers the clients it built."""

    def __init__(self, session: FakeSession, **client_kwargs: Any):
        self.session = session
        self.client_kwargs = client_kwargs
        self.clients: List[FakeClient] = []

    def __call__(self, options: Dict[str, Any]) -> FakeClient:
        client = FakeClient(options, self.session, **self.client_kwargs)
        self.clients.append(client)
        return client

    @property
    def client(self) -> FakeClient:
        return self.clients[-1]


# ============================================================================
# Isolation fixtures
# ============================================================================


@pytest.fixture(autouse=True)
def isolated_runner_env(tmp_path, monkeypatch):
    """Point reports at tmp_path and reset cached config and skip decision."""
    report_dir = tmp_path / "reports"
    monkeypatch.setenv("SKILLRUNNER_REPORT_DIR", str(report_dir))
    monkeypatch.delenv("DEBUG", raising=False)
    monkeypatch.delenv("SKILLRUNNER_MODEL", raising=False)
    monkeypatch.delenv("SKILLRUNNER_SKILL_DIR", raising=False)
    monkeypatch.delenv("SKILLRUNNER_PROJECT_ROOT", raising=False)
    reset_config()
    reset_skip_decision()
    yield report_dir
    reset_config()
    reset_skip_decision()


@pytest.fixture
def report_dir(isolated_runner_env) -> Path:
    return isolated_runner_env


@pytest.fixture
def workspace_probe():
    """Setup hook that records the workspace path it was given."""
    seen: List[Path] = []

    def setup(workspace: Path) -> None:
        seen.append(workspace)
        (workspace / "fixture.txt").write_text("seed", encoding="utf-8")

    setup.seen = seen  # type: ignore[attr-defined]
    return setup
