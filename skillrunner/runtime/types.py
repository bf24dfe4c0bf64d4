"""
types.py - Session event taxonomy and per-run data types.

Events arriving from the remote agent session are converted once, at the SDK
boundary, into one frozen dataclass per event kind. Everything downstream
(aggregation, projections, rendering, assertions) dispatches on the concrete
class instead of sniffing loosely-typed payload fields.

Usage:
    from skillrunner.runtime.types import (
        EventKind, SessionEvent,
        AssistantMessage, AssistantMessageDelta,
        ToolExecutionStart, ToolExecutionComplete,
        AgentMetadata, RunConfig, SystemPrompt,
    )
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import (
    Any,
    Awaitable,
    Callable,
    ClassVar,
    Dict,
    List,
    Literal,
    Optional,
    Union,
)


class EventKind(str, Enum):
    """Wire names of the session events the runner understands."""

    SESSION_START = "session.start"
    SESSION_IDLE = "session.idle"
    SESSION_ERROR = "session.error"
    ASSISTANT_MESSAGE = "assistant.message"
    ASSISTANT_MESSAGE_DELTA = "assistant.message_delta"
    ASSISTANT_REASONING = "assistant.reasoning"
    ASSISTANT_REASONING_DELTA = "assistant.reasoning_delta"
    TOOL_EXECUTION_START = "tool.execution_start"
    TOOL_EXECUTION_COMPLETE = "tool.execution_complete"
    SUBAGENT_STARTED = "subagent.started"
    SUBAGENT_COMPLETED = "subagent.completed"
    SUBAGENT_FAILED = "subagent.failed"
    OTHER = "other"


class _EventBase:
    kind: ClassVar[EventKind]

    @property
    def type(self) -> str:
        """Wire name of the event (e.g. "assistant.message")."""
        return self.kind.value


# =============================================================================
# Session lifecycle
# =============================================================================


@dataclass(frozen=True)
class SessionStart(_EventBase):
    kind: ClassVar[EventKind] = EventKind.SESSION_START

    session_id: Optional[str] = None


@dataclass(frozen=True)
class SessionIdle(_EventBase):
    """Terminal signal: the session has nothing more to do for this prompt."""

    kind: ClassVar[EventKind] = EventKind.SESSION_IDLE


@dataclass(frozen=True)
class SessionError(_EventBase):
    kind: ClassVar[EventKind] = EventKind.SESSION_ERROR

    error_type: Optional[str] = None
    message: Optional[str] = None


# =============================================================================
# Assistant output
# =============================================================================


@dataclass(frozen=True)
class AssistantMessage(_EventBase):
    """A whole assistant message. Replaces any fragments with the same id."""

    kind: ClassVar[EventKind] = EventKind.ASSISTANT_MESSAGE

    message_id: Optional[str] = None
    content: str = ""


@dataclass(frozen=True)
class AssistantMessageDelta(_EventBase):
    """A streaming fragment of an assistant message."""

    kind: ClassVar[EventKind] = EventKind.ASSISTANT_MESSAGE_DELTA

    message_id: Optional[str] = None
    delta_content: str = ""


@dataclass(frozen=True)
class AssistantReasoning(_EventBase):
    kind: ClassVar[EventKind] = EventKind.ASSISTANT_REASONING

    reasoning_id: Optional[str] = None
    content: str = ""


@dataclass(frozen=True)
class AssistantReasoningDelta(_EventBase):
    kind: ClassVar[EventKind] = EventKind.ASSISTANT_REASONING_DELTA

    reasoning_id: Optional[str] = None
    delta_content: str = ""


# =============================================================================
# Tools and sub-agents
# =============================================================================


@dataclass(frozen=True)
class ToolExecutionStart(_EventBase):
    kind: ClassVar[EventKind] = EventKind.TOOL_EXECUTION_START

    tool_call_id: Optional[str] = None
    tool_name: str = ""
    arguments: Any = None


@dataclass(frozen=True)
class ToolExecutionComplete(_EventBase):
    """Outcome of a tool call, correlated to its start by tool_call_id.

    Attributes:
        tool_call_id: Identifier shared with the matching ToolExecutionStart.
        success: Whether the tool reported success.
        result_content: Text content of the result, if any.
        error_message: Error text when the call failed, if any.
    """

    kind: ClassVar[EventKind] = EventKind.TOOL_EXECUTION_COMPLETE

    tool_call_id: Optional[str] = None
    success: bool = False
    result_content: Optional[str] = None
    error_message: Optional[str] = None


@dataclass(frozen=True)
class SubagentStarted(_EventBase):
    kind: ClassVar[EventKind] = EventKind.SUBAGENT_STARTED

    agent_name: Optional[str] = None
    agent_display_name: Optional[str] = None


@dataclass(frozen=True)
class SubagentCompleted(_EventBase):
    kind: ClassVar[EventKind] = EventKind.SUBAGENT_COMPLETED

    agent_name: Optional[str] = None


@dataclass(frozen=True)
class SubagentFailed(_EventBase):
    kind: ClassVar[EventKind] = EventKind.SUBAGENT_FAILED

    agent_name: Optional[str] = None
    error: Optional[str] = None


@dataclass(frozen=True)
class OtherEvent(_EventBase):
    """Any event kind outside the known taxonomy, kept verbatim."""

    kind: ClassVar[EventKind] = EventKind.OTHER

    event_type: str = ""
    data: Dict[str, Any] = field(default_factory=dict)

    @property
    def type(self) -> str:
        return self.event_type


SessionEvent = Union[
    SessionStart,
    SessionIdle,
    SessionError,
    AssistantMessage,
    AssistantMessageDelta,
    AssistantReasoning,
    AssistantReasoningDelta,
    ToolExecutionStart,
    ToolExecutionComplete,
    SubagentStarted,
    SubagentCompleted,
    SubagentFailed,
    OtherEvent,
]


# =============================================================================
# Run state and configuration
# =============================================================================


@dataclass
class AgentMetadata:
    """Events retained for one run, in arrival order.

    Grows append-only while the run's completion latch is open and is never
    touched again once the latch closes. Never shared between runs.
    """

    events: List[SessionEvent] = field(default_factory=list)


EarlyTerminationPolicy = Callable[[AgentMetadata], bool]
SetupHook = Callable[[Path], Union[None, Awaitable[None]]]


@dataclass(frozen=True)
class SystemPrompt:
    """System message override passed to the session.

    mode="append" adds content after the agent's default system message,
    mode="replace" substitutes it entirely.
    """

    mode: Literal["append", "replace"]
    content: str

    def to_dict(self) -> Dict[str, str]:
        return {"mode": self.mode, "content": self.content}


@dataclass
class RunConfig:
    """Configuration for a single agent run.

    Attributes:
        prompt: The user prompt sent to the session.
        setup: Optional hook run against the workspace before the session
            exists. May be sync or async. Runs with full process
            permissions, so only pass trusted test code.
        should_early_terminate: Optional predicate evaluated after every
            retained event; returning True aborts the session.
        non_interactive: Start the agent CLI in prompt/yolo mode.
        system_prompt: Optional system message override.
    """

    prompt: str
    setup: Optional[SetupHook] = None
    should_early_terminate: Optional[EarlyTerminationPolicy] = None
    non_interactive: bool = False
    system_prompt: Optional[SystemPrompt] = None
