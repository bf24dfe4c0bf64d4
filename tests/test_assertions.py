"""Tests for run assertion helpers and stock early-termination policies."""

from __future__ import annotations

import pytest

from skillrunner.runtime.assertions import (
    are_tool_calls_success,
    does_assistant_message_include_keyword,
    get_tool_calls,
    is_skill_invoked,
)
from skillrunner.runtime.policies import any_of, terminate_on_skill, terminate_on_tool
from skillrunner.runtime.types import (
    AgentMetadata,
    AssistantMessage,
    AssistantMessageDelta,
    ToolExecutionComplete,
    ToolExecutionStart,
)


@pytest.fixture
def deploy_run() -> AgentMetadata:
    return AgentMetadata(
        events=[
            ToolExecutionStart(tool_call_id="s1", tool_name="skill", arguments={"skill": "azure-deploy"}),
            ToolExecutionComplete(tool_call_id="s1", success=True, result_content="loaded"),
            ToolExecutionStart(tool_call_id="b1", tool_name="bash", arguments={"command": "azd up"}),
            ToolExecutionComplete(tool_call_id="b1", success=True, result_content="ok"),
            ToolExecutionStart(tool_call_id="b2", tool_name="bash", arguments={"command": "azd down"}),
            ToolExecutionComplete(tool_call_id="b2", success=False, error_message="denied"),
            AssistantMessageDelta(message_id="m1", delta_content="Deployed to "),
            AssistantMessageDelta(message_id="m1", delta_content="App Service"),
        ]
    )


class TestGetToolCalls:
    def test_all_calls_in_order(self, deploy_run):
        assert [c.tool_call_id for c in get_tool_calls(deploy_run)] == ["s1", "b1", "b2"]

    def test_filter_by_name(self, deploy_run):
        assert [c.tool_call_id for c in get_tool_calls(deploy_run, "bash")] == ["b1", "b2"]

    def test_no_match(self, deploy_run):
        assert get_tool_calls(deploy_run, "create") == []


class TestIsSkillInvoked:
    def test_invoked(self, deploy_run):
        assert is_skill_invoked(deploy_run, "azure-deploy") is True

    def test_not_invoked(self, deploy_run):
        assert is_skill_invoked(deploy_run, "microsoft-foundry") is False

    def test_other_tools_do_not_count(self):
        metadata = AgentMetadata(
            events=[ToolExecutionStart(tool_call_id="1", tool_name="bash", arguments={"skill": "azure-deploy"})]
        )
        assert is_skill_invoked(metadata, "azure-deploy") is False


class TestAreToolCallsSuccess:
    def test_all_skill_calls_succeeded(self, deploy_run):
        assert are_tool_calls_success(deploy_run, "skill") is True

    def test_one_failure_fails(self, deploy_run):
        assert are_tool_calls_success(deploy_run, "bash") is False

    def test_no_calls_is_not_success(self, deploy_run):
        assert are_tool_calls_success(deploy_run, "create") is False

    def test_missing_completion_is_not_success(self):
        metadata = AgentMetadata(events=[ToolExecutionStart(tool_call_id="1", tool_name="view")])
        assert are_tool_calls_success(metadata) is False


class TestKeyword:
    def test_keyword_in_reconstructed_deltas(self, deploy_run):
        assert does_assistant_message_include_keyword(deploy_run, "app service") is True

    def test_case_sensitive(self, deploy_run):
        assert does_assistant_message_include_keyword(deploy_run, "app service", case_sensitive=True) is False
        assert does_assistant_message_include_keyword(deploy_run, "App Service", case_sensitive=True) is True

    def test_tool_output_not_searched(self, deploy_run):
        assert does_assistant_message_include_keyword(deploy_run, "denied") is False

    def test_whole_message_supersedes_deltas(self):
        metadata = AgentMetadata(
            events=[
                AssistantMessageDelta(message_id="1", delta_content="draft"),
                AssistantMessage(message_id="1", content="final answer"),
            ]
        )
        assert does_assistant_message_include_keyword(metadata, "final") is True
        assert does_assistant_message_include_keyword(metadata, "draft") is False


class TestPolicies:
    def test_terminate_on_tool(self, deploy_run):
        assert terminate_on_tool("bash")(deploy_run) is True
        assert terminate_on_tool("create")(deploy_run) is False

    def test_terminate_on_skill(self, deploy_run):
        assert terminate_on_skill("azure-deploy")(deploy_run) is True
        assert terminate_on_skill("microsoft-foundry")(deploy_run) is False

    def test_any_of(self, deploy_run):
        policy = any_of(terminate_on_tool("create"), terminate_on_skill("azure-deploy"))
        assert policy(deploy_run) is True
        assert any_of(terminate_on_tool("create"))(deploy_run) is False

    def test_empty_metadata(self):
        assert terminate_on_tool("create")(AgentMetadata()) is False
