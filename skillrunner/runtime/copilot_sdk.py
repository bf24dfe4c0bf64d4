"""
copilot_sdk.py - Adapter for the GitHub Copilot Python SDK.

This module is the ONLY place that imports the Copilot SDK package.
It provides:
1. SDK availability detection (SDK_AVAILABLE, check_sdk_available)
2. Builders for client options and session config
3. event_from_sdk(): conversion of raw SDK events into the SessionEvent
   tagged union, so nothing downstream inspects SDK payload shapes

Usage:
    from skillrunner.runtime.copilot_sdk import (
        SDK_AVAILABLE,
        get_sdk_module,
        build_client_options,
        build_session_config,
        create_client,
        event_from_sdk,
    )
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from skillrunner.config.runner_config import RunnerSettings

from .types import (
    AssistantMessage,
    AssistantMessageDelta,
    AssistantReasoning,
    AssistantReasoningDelta,
    EventKind,
    OtherEvent,
    SessionError,
    SessionEvent,
    SessionIdle,
    SessionStart,
    SubagentCompleted,
    SubagentFailed,
    SubagentStarted,
    SystemPrompt,
    ToolExecutionComplete,
    ToolExecutionStart,
)

logger = logging.getLogger(__name__)


class SDKUnavailableError(ImportError):
    """The Copilot SDK could not be imported."""


# =============================================================================
# SDK Availability Detection
# =============================================================================

SDK_AVAILABLE: bool = False
_sdk_module: Optional[Any] = None
_sdk_import_error: Optional[str] = None

try:
    import copilot

    _sdk_module = copilot
    SDK_AVAILABLE = True
    logger.debug("copilot SDK imported successfully")
except ImportError as e:
    _sdk_import_error = str(e)
    logger.debug("copilot SDK not available: %s", e)


def get_sdk_module() -> Any:
    """Get the Copilot SDK module.

    Raises:
        SDKUnavailableError: If the SDK is not available.
    """
    if not SDK_AVAILABLE:
        raise SDKUnavailableError(
            f"Failed to load the Copilot SDK: {_sdk_import_error}. "
            "Install with: pip install github-copilot-sdk"
        )
    return _sdk_module


def check_sdk_available() -> bool:
    return SDK_AVAILABLE


# =============================================================================
# Options Builders
# =============================================================================


def build_client_options(
    workspace: Path,
    non_interactive: bool = False,
    log_dir: Optional[Path] = None,
    debug: bool = False,
) -> Dict[str, Any]:
    """Build CopilotClient options for a run.

    The agent CLI is started in the run workspace. Non-interactive runs use
    prompt mode with auto-approval ("-p" must precede every other flag).
    In debug mode the CLI logs everything into log_dir.
    """
    cli_args: List[str] = ["-p", "--yolo"] if non_interactive else []
    if debug and log_dir is not None:
        cli_args.extend(["--log-dir", str(log_dir)])

    return {
        "cwd": str(workspace),
        "log_level": "all" if debug else "error",
        "cli_args": cli_args,
    }


def build_session_config(
    settings: RunnerSettings,
    system_prompt: Optional[SystemPrompt] = None,
) -> Dict[str, Any]:
    """Build the create_session config from runner settings."""
    config: Dict[str, Any] = {
        "model": settings.model,
        "skill_directories": [str(d) for d in settings.skill_directories],
        "mcp_servers": settings.mcp_servers_dict(),
    }
    if system_prompt is not None:
        config["system_message"] = system_prompt.to_dict()
    return config


def create_client(options: Dict[str, Any]) -> Any:
    """Construct a CopilotClient. Does not start it."""
    sdk = get_sdk_module()
    return sdk.CopilotClient(options)


# =============================================================================
# Event Conversion
# =============================================================================


def _get(data: Any, *names: str) -> Any:
    """Read the first present field from a dict or attribute-style payload."""
    if data is None:
        return None
    for name in names:
        if isinstance(data, dict):
            if name in data:
                return data[name]
        elif hasattr(data, name):
            return getattr(data, name)
    return None


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    return value if isinstance(value, str) else str(value)


def _error_text(error: Any) -> Optional[str]:
    if error is None or isinstance(error, str):
        return error
    return _text(_get(error, "message"))


def _event_type(raw: Any) -> str:
    etype = _get(raw, "type")
    return str(getattr(etype, "value", etype) or "")


def _as_dict(data: Any) -> Dict[str, Any]:
    if data is None:
        return {}
    if isinstance(data, dict):
        return dict(data)
    return dict(getattr(data, "__dict__", {}))


_KNOWN_KINDS = {kind.value: kind for kind in EventKind if kind is not EventKind.OTHER}


def event_from_sdk(raw: Union[Dict[str, Any], Any]) -> SessionEvent:
    """Convert a raw SDK event into its SessionEvent variant.

    Accepts either SDK event objects (``event.type`` enum, ``event.data``
    attributes) or plain dicts using snake_case or camelCase field names.
    Unknown kinds become OtherEvent.
    """
    etype = _event_type(raw)
    data = _get(raw, "data")
    kind = _KNOWN_KINDS.get(etype)

    if kind is EventKind.SESSION_START:
        return SessionStart(session_id=_text(_get(data, "session_id", "sessionId")))
    if kind is EventKind.SESSION_IDLE:
        return SessionIdle()
    if kind is EventKind.SESSION_ERROR:
        return SessionError(
            error_type=_text(_get(data, "error_type", "errorType")),
            message=_text(_get(data, "message")),
        )
    if kind is EventKind.ASSISTANT_MESSAGE:
        return AssistantMessage(
            message_id=_text(_get(data, "message_id", "messageId")),
            content=_text(_get(data, "content")) or "",
        )
    if kind is EventKind.ASSISTANT_MESSAGE_DELTA:
        return AssistantMessageDelta(
            message_id=_text(_get(data, "message_id", "messageId")),
            delta_content=_text(_get(data, "delta_content", "deltaContent")) or "",
        )
    if kind is EventKind.ASSISTANT_REASONING:
        return AssistantReasoning(
            reasoning_id=_text(_get(data, "reasoning_id", "reasoningId")),
            content=_text(_get(data, "content")) or "",
        )
    if kind is EventKind.ASSISTANT_REASONING_DELTA:
        return AssistantReasoningDelta(
            reasoning_id=_text(_get(data, "reasoning_id", "reasoningId")),
            delta_content=_text(_get(data, "delta_content", "deltaContent")) or "",
        )
    if kind is EventKind.TOOL_EXECUTION_START:
        return ToolExecutionStart(
            tool_call_id=_text(_get(data, "tool_call_id", "toolCallId")),
            tool_name=_text(_get(data, "tool_name", "toolName")) or "",
            arguments=_get(data, "arguments"),
        )
    if kind is EventKind.TOOL_EXECUTION_COMPLETE:
        return ToolExecutionComplete(
            tool_call_id=_text(_get(data, "tool_call_id", "toolCallId")),
            success=bool(_get(data, "success")),
            result_content=_text(_get(_get(data, "result"), "content")),
            error_message=_error_text(_get(data, "error")),
        )
    if kind is EventKind.SUBAGENT_STARTED:
        return SubagentStarted(
            agent_name=_text(_get(data, "agent_name", "agentName")),
            agent_display_name=_text(_get(data, "agent_display_name", "agentDisplayName")),
        )
    if kind is EventKind.SUBAGENT_COMPLETED:
        return SubagentCompleted(agent_name=_text(_get(data, "agent_name", "agentName")))
    if kind is EventKind.SUBAGENT_FAILED:
        return SubagentFailed(
            agent_name=_text(_get(data, "agent_name", "agentName")),
            error=_error_text(_get(data, "error")),
        )

    return OtherEvent(event_type=etype, data=_as_dict(data))
