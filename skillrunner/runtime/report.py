"""
report.py - Markdown transcript rendering for a finished agent run.

Rendering is a deterministic two-pass walk over the frozen event history:

1. Build the Tool Result Table: tool_call_id -> ToolResult, from every
   tool.execution_complete event, with long text truncated.
2. Walk events in arrival order and emit blocks:
   - assistant messages verbatim
   - reasoning as a block quote
   - tool starts as a fenced block with their stored result
   - skill invocations as just the invoked skill's name
   - sub-agent lifecycle and session errors as labelled fenced blocks

Delta events are never rendered on their own; a whole message/reasoning
event is expected to supersede its fragments.

Writing is best-effort: any failure is logged at DEBUG and swallowed so a
report problem never changes a run's outcome.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from skillrunner.config.runner_config import get_settings

from .path_helpers import build_share_file_path
from .types import (
    AgentMetadata,
    AssistantMessage,
    AssistantMessageDelta,
    AssistantReasoning,
    AssistantReasoningDelta,
    OtherEvent,
    SessionError,
    SessionIdle,
    SessionStart,
    SubagentCompleted,
    SubagentFailed,
    SubagentStarted,
    ToolExecutionComplete,
    ToolExecutionStart,
)

logger = logging.getLogger(__name__)

SKILL_TOOL_NAME = "skill"
TRUNCATION_MARKER = "... (truncated)"
FENCE = "```"

_SKILL_NAME_PATTERN = re.compile(r'"skill"\s*:\s*"([^"]+)"')


@dataclass(frozen=True)
class ToolResult:
    """Stored outcome of one tool call, text already truncated."""

    success: bool
    content: Optional[str] = None
    error: Optional[str] = None


def truncate(text: str, limit: int) -> str:
    """Cut text longer than limit and append the truncation marker."""
    if len(text) > limit:
        return text[:limit] + TRUNCATION_MARKER
    return text


def _limit(truncate_chars: Optional[int]) -> int:
    return truncate_chars if truncate_chars is not None else get_settings().truncate_chars


def build_tool_result_table(
    metadata: AgentMetadata,
    truncate_chars: Optional[int] = None,
) -> Dict[str, ToolResult]:
    """Pass 1: index every tool completion by its tool_call_id.

    A later completion for the same id overwrites an earlier one.
    """
    limit = _limit(truncate_chars)
    table: Dict[str, ToolResult] = {}
    for event in metadata.events:
        if not isinstance(event, ToolExecutionComplete) or not event.tool_call_id:
            continue
        table[event.tool_call_id] = ToolResult(
            success=event.success,
            content=truncate(event.result_content, limit) if event.result_content else None,
            error=truncate(event.error_message, limit) if event.error_message else None,
        )
    return table


def extract_skill_name(arguments: Any) -> str:
    """Best-effort skill name from skill tool arguments, else "unknown"."""
    try:
        args_str = json.dumps(arguments)
    except (TypeError, ValueError):
        args_str = str(arguments)
    match = _SKILL_NAME_PATTERN.search(args_str)
    return match.group(1) if match else "unknown"


def _format_arguments(arguments: Any) -> str:
    if arguments is None:
        return "{}"
    try:
        return json.dumps(arguments, indent=2)
    except (TypeError, ValueError):
        return str(arguments)


def _fenced(lines: List[str], *body: str) -> None:
    lines.append(FENCE)
    lines.extend(body)
    lines.append(FENCE)
    lines.append("")


def _render_tool_start(
    lines: List[str],
    event: ToolExecutionStart,
    tool_results: Dict[str, ToolResult],
) -> None:
    if event.tool_name == SKILL_TOOL_NAME:
        _fenced(lines, f"skill: {extract_skill_name(event.arguments)}")
        return

    body = [
        f"tool: {event.tool_name}",
        f"arguments: {_format_arguments(event.arguments)}",
    ]
    result = tool_results.get(event.tool_call_id) if event.tool_call_id else None
    if result is not None:
        if result.success and result.content:
            body.append(f"response: {result.content}")
        elif not result.success and result.error:
            body.append(f"error: {result.error}")
    _fenced(lines, *body)


def generate_markdown_report(
    prompt: str,
    metadata: AgentMetadata,
    truncate_chars: Optional[int] = None,
) -> str:
    """Render the run transcript as markdown.

    Args:
        prompt: The prompt the run was started with.
        metadata: The run's frozen event history.
        truncate_chars: Cap for tool responses and errors; defaults to the
            configured truncate_chars.

    Returns:
        The markdown document.
    """
    limit = _limit(truncate_chars)
    tool_results = build_tool_result_table(metadata, limit)

    lines: List[str] = ["# User Prompt", "", prompt, "", "# Assistant", ""]
    delta_messages = set()
    whole_messages = set()

    for event in metadata.events:
        if isinstance(event, AssistantMessage):
            if event.message_id:
                whole_messages.add(event.message_id)
            if event.content:
                lines.append(event.content)
                lines.append("")
        elif isinstance(event, AssistantReasoning):
            if event.content:
                lines.append("> **Reasoning:**")
                lines.append("> " + event.content.replace("\n", "\n> "))
                lines.append("")
        elif isinstance(event, ToolExecutionStart):
            _render_tool_start(lines, event, tool_results)
        elif isinstance(event, SubagentStarted):
            name = event.agent_display_name or event.agent_name or "unknown"
            _fenced(lines, f"subagent.started: {name}")
        elif isinstance(event, SubagentCompleted):
            _fenced(lines, f"subagent.completed: {event.agent_name or 'unknown'}")
        elif isinstance(event, SubagentFailed):
            _fenced(
                lines,
                f"subagent.failed: {event.agent_name or 'unknown'}",
                f"error: {truncate(event.error or 'unknown error', limit)}",
            )
        elif isinstance(event, SessionError):
            _fenced(
                lines,
                f"session.error: {event.error_type or 'unknown'}",
                f"message: {event.message or 'unknown error'}",
            )
        elif isinstance(event, AssistantMessageDelta):
            if event.message_id:
                delta_messages.add(event.message_id)
        elif isinstance(
            event,
            (AssistantReasoningDelta, ToolExecutionComplete, SessionStart, SessionIdle, OtherEvent),
        ):
            # Not rendered on their own
            pass

    orphaned = delta_messages - whole_messages
    if orphaned:
        logger.debug(
            "Report omits %d message(s) that only arrived as deltas: %s",
            len(orphaned),
            ", ".join(sorted(orphaned)),
        )

    return "\n".join(lines)


def write_markdown_report(
    prompt: str,
    metadata: AgentMetadata,
    test_name: Optional[str] = None,
    file_path: Optional[Path] = None,
) -> Optional[Path]:
    """Render and write the run report. Never raises.

    Returns:
        The path written, or None if rendering or writing failed.
    """
    try:
        path = file_path or build_share_file_path(test_name=test_name)
        path.parent.mkdir(parents=True, exist_ok=True)
        markdown = generate_markdown_report(prompt, metadata)
        path.write_text(markdown, encoding="utf-8")
    except Exception as e:
        logger.debug("Failed to write markdown report: %s", e, exc_info=True)
        return None

    logger.debug("Markdown report written to: %s", path)
    return path
