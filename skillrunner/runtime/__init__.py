# skillrunner/runtime package
# Drives a single agent session end-to-end and aggregates its event stream.
#
# Core components:
#   - types: SessionEvent tagged union, AgentMetadata, RunConfig
#   - latch: CompletionLatch (one-shot open -> closed gate)
#   - aggregator: EventAggregator + message/reasoning projections
#   - agent_runner: run() / AgentRunner session lifecycle
#   - report: markdown transcript rendering
#   - skip_policy: process-wide integration skip decision
#   - assertions, policies, deploy_links: helpers for tests
#
# Usage:
#     from skillrunner.runtime import RunConfig, run, is_skill_invoked
#     metadata = await run(RunConfig(prompt="..."))
#     assert is_skill_invoked(metadata, "microsoft-foundry")

from .agent_runner import AgentRunner, run, run_session, run_sync
from .aggregator import (
    EventAggregator,
    collect_messages,
    collect_reasoning,
    get_all_assistant_messages,
)
from .assertions import (
    are_tool_calls_success,
    does_assistant_message_include_keyword,
    get_tool_calls,
    is_skill_invoked,
)
from .deploy_links import has_deploy_links
from .latch import CompletionLatch
from .policies import any_of, terminate_on_skill, terminate_on_tool
from .report import generate_markdown_report, write_markdown_report
from .skip_policy import get_integration_skip_reason, should_skip_integration_tests
from .types import (
    AgentMetadata,
    EventKind,
    RunConfig,
    SessionEvent,
    SystemPrompt,
)

__all__ = [
    "AgentMetadata",
    "AgentRunner",
    "CompletionLatch",
    "EventAggregator",
    "EventKind",
    "RunConfig",
    "SessionEvent",
    "SystemPrompt",
    "any_of",
    "are_tool_calls_success",
    "collect_messages",
    "collect_reasoning",
    "does_assistant_message_include_keyword",
    "generate_markdown_report",
    "get_all_assistant_messages",
    "get_integration_skip_reason",
    "get_tool_calls",
    "has_deploy_links",
    "is_skill_invoked",
    "run",
    "run_session",
    "run_sync",
    "should_skip_integration_tests",
    "terminate_on_skill",
    "terminate_on_tool",
    "write_markdown_report",
]
