"""Tests for the integration-run skip gate."""

from __future__ import annotations

import logging

import pytest

from skillrunner.runtime import skip_policy
from skillrunner.runtime.skip_policy import (
    evaluate_skip_policy,
    get_integration_skip_reason,
    get_skip_decision,
    should_skip_integration_tests,
)


@pytest.fixture
def clean_env(monkeypatch):
    monkeypatch.delenv("CI", raising=False)
    monkeypatch.delenv("SKIP_INTEGRATION_TESTS", raising=False)
    monkeypatch.setattr(skip_policy, "_package_installed", lambda package: True)
    return monkeypatch


class TestEvaluateSkipPolicy:
    def test_ci_skips(self, clean_env):
        clean_env.setenv("CI", "true")

        decision = evaluate_skip_policy()

        assert decision.skip is True
        assert "CI" in decision.reason

    def test_explicit_flag_skips(self, clean_env):
        clean_env.setenv("SKIP_INTEGRATION_TESTS", "true")

        decision = evaluate_skip_policy()

        assert decision.skip is True
        assert decision.reason == "SKIP_INTEGRATION_TESTS=true"

    def test_ci_wins_over_flag(self, clean_env):
        clean_env.setenv("CI", "true")
        clean_env.setenv("SKIP_INTEGRATION_TESTS", "true")

        assert evaluate_skip_policy().reason == "Running in CI environment"

    def test_missing_package_skips(self, clean_env):
        clean_env.setattr(skip_policy, "_package_installed", lambda package: False)

        decision = evaluate_skip_policy()

        assert decision.skip is True
        assert decision.reason == "copilot not installed"

    @pytest.mark.parametrize("value", ["false", "1", "TRUE", ""])
    def test_only_literal_true_triggers(self, clean_env, value):
        clean_env.setenv("CI", value)
        clean_env.setenv("SKIP_INTEGRATION_TESTS", value)

        assert evaluate_skip_policy().skip is False

    def test_no_triggers_runs(self, clean_env):
        assert should_skip_integration_tests() is False
        assert get_integration_skip_reason() is None


class TestMemoization:
    def test_decision_computed_once(self, clean_env):
        calls = []
        real = skip_policy.evaluate_skip_policy

        def counting():
            calls.append(1)
            return real()

        clean_env.setattr(skip_policy, "evaluate_skip_policy", counting)

        first = get_skip_decision()
        clean_env.setenv("CI", "true")
        second = get_skip_decision()

        assert first is second
        assert second.skip is False
        assert len(calls) == 1

    def test_reset_recomputes(self, clean_env):
        assert should_skip_integration_tests() is False

        clean_env.setenv("CI", "true")
        skip_policy.reset_skip_decision()

        assert should_skip_integration_tests() is True

    def test_skip_logged_once(self, clean_env, caplog):
        clean_env.setenv("SKIP_INTEGRATION_TESTS", "true")

        with caplog.at_level(logging.INFO, logger="skillrunner.runtime.skip_policy"):
            get_skip_decision()
            get_skip_decision()

        assert caplog.text.count("Skipping integration tests") == 1
