"""
policies.py - Stock early-termination policies.

An early-termination policy is any callable taking the run's AgentMetadata
and returning True when the run has seen enough. The runner evaluates it
after every retained event and aborts the session the first time it
returns True.

Usage:
    # Stop at the first file creation to avoid unnecessary writes
    await runner.run(RunConfig(prompt=..., should_early_terminate=terminate_on_tool("create")))
"""

from __future__ import annotations

from .assertions import get_tool_calls, is_skill_invoked
from .types import AgentMetadata, EarlyTerminationPolicy


def terminate_on_tool(tool_name: str) -> EarlyTerminationPolicy:
    """Terminate as soon as a call to tool_name has started."""

    def policy(metadata: AgentMetadata) -> bool:
        return len(get_tool_calls(metadata, tool_name)) > 0

    policy.__name__ = f"terminate_on_tool_{tool_name}"
    return policy


def terminate_on_skill(skill_name: str) -> EarlyTerminationPolicy:
    """Terminate as soon as skill_name has been invoked."""

    def policy(metadata: AgentMetadata) -> bool:
        return is_skill_invoked(metadata, skill_name)

    policy.__name__ = f"terminate_on_skill_{skill_name}"
    return policy


def any_of(*policies: EarlyTerminationPolicy) -> EarlyTerminationPolicy:
    """Terminate when any of the given policies would."""

    def policy(metadata: AgentMetadata) -> bool:
        return any(p(metadata) for p in policies)

    return policy
