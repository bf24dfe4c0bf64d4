"""
pytest helpers for live agent integration tests.

This module imports pytest, which is not a core dependency. Install with
the pytest extra: pip install "skillrunner[pytest]" (add the copilot extra
for live runs).

Usage:
    from skillrunner.testing import agent_runner, requires_agent  # noqa: F401

    @requires_agent
    def test_invokes_skill(agent_runner):
        metadata = agent_runner.run_sync(RunConfig(prompt="..."))
        assert is_skill_invoked(metadata, "microsoft-foundry")

Importing the fixture into a test module (or a conftest.py) registers it.
"""

from __future__ import annotations

import pytest

from skillrunner.runtime.agent_runner import AgentRunner
from skillrunner.runtime.skip_policy import (
    get_integration_skip_reason,
    should_skip_integration_tests,
)

requires_agent = pytest.mark.skipif(
    should_skip_integration_tests(),
    reason=get_integration_skip_reason() or "integration tests enabled",
)


@pytest.fixture
def agent_runner(request) -> AgentRunner:
    """An AgentRunner whose reports are filed under the requesting test's id."""
    return AgentRunner(test_name=request.node.nodeid)
