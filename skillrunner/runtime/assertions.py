"""
assertions.py - Query helpers for asserting on a finished run.

These read a run's AgentMetadata and answer the questions integration tests
ask: was a skill invoked, did the tool calls succeed, did the assistant
mention a keyword.

Usage:
    metadata = await runner.run(RunConfig(prompt="..."))
    assert is_skill_invoked(metadata, "microsoft-foundry")
    assert does_assistant_message_include_keyword(metadata, "rate limit")
"""

from __future__ import annotations

import json
from typing import Any, List, Optional

from .aggregator import collect_messages
from .report import SKILL_TOOL_NAME
from .types import AgentMetadata, ToolExecutionComplete, ToolExecutionStart


def _arguments_json(arguments: Any) -> str:
    try:
        return json.dumps(arguments)
    except (TypeError, ValueError):
        return str(arguments)


def get_tool_calls(
    metadata: AgentMetadata,
    tool_name: Optional[str] = None,
) -> List[ToolExecutionStart]:
    """All tool starts in arrival order, optionally filtered by tool name."""
    calls = [e for e in metadata.events if isinstance(e, ToolExecutionStart)]
    if tool_name:
        calls = [e for e in calls if e.tool_name == tool_name]
    return calls


def is_skill_invoked(metadata: AgentMetadata, skill_name: str) -> bool:
    """Check if a skill tool call named skill_name was made during the run."""
    return any(
        skill_name in _arguments_json(call.arguments)
        for call in get_tool_calls(metadata, SKILL_TOOL_NAME)
    )


def are_tool_calls_success(
    metadata: AgentMetadata,
    tool_name: Optional[str] = None,
) -> bool:
    """Check that at least one call was made and every call succeeded.

    A call succeeded when a tool.execution_complete with the same
    tool_call_id reported success.
    """
    starts = get_tool_calls(metadata, tool_name)

    succeeded = {
        e.tool_call_id
        for e in metadata.events
        if isinstance(e, ToolExecutionComplete) and e.success
    }
    return len(starts) > 0 and all(s.tool_call_id in succeeded for s in starts)


def does_assistant_message_include_keyword(
    metadata: AgentMetadata,
    keyword: str,
    case_sensitive: bool = False,
) -> bool:
    """Check if any reconstructed assistant message contains keyword."""
    messages = collect_messages(metadata).values()
    if case_sensitive:
        return any(keyword in message for message in messages)
    needle = keyword.lower()
    return any(needle in message.lower() for message in messages)
