"""
skip_policy.py - Process-wide gate for live agent integration runs.

Integration runs need an authenticated agent CLI and the Copilot SDK, so
they are skipped when:
- running in CI (CI=true)
- SKIP_INTEGRATION_TESTS=true is set
- the SDK package is not installed

The decision is computed once per process and memoized. The reason for a
skip is kept alongside it so test output can say why.

Usage:
    from skillrunner.runtime.skip_policy import (
        should_skip_integration_tests,
        get_integration_skip_reason,
    )

    if should_skip_integration_tests():
        print("Skipping:", get_integration_skip_reason())
"""

from __future__ import annotations

import importlib.util
import logging
import os
import threading
from dataclasses import dataclass
from typing import Optional

from skillrunner.config.runner_config import get_settings

logger = logging.getLogger(__name__)

ENV_CI = "CI"
ENV_SKIP_INTEGRATION = "SKIP_INTEGRATION_TESTS"


@dataclass(frozen=True)
class SkipDecision:
    skip: bool
    reason: Optional[str] = None


_decision: Optional[SkipDecision] = None
_decision_lock = threading.Lock()


def _package_installed(package: str) -> bool:
    try:
        return importlib.util.find_spec(package) is not None
    except (ImportError, ValueError):
        return False


def evaluate_skip_policy() -> SkipDecision:
    """Compute a fresh skip decision from the environment. Not memoized."""
    if os.environ.get(ENV_CI) == "true":
        return SkipDecision(True, "Running in CI environment")

    if os.environ.get(ENV_SKIP_INTEGRATION) == "true":
        return SkipDecision(True, f"{ENV_SKIP_INTEGRATION}=true")

    package = get_settings().sdk_package
    if not _package_installed(package):
        return SkipDecision(True, f"{package} not installed")

    return SkipDecision(False, None)


def get_skip_decision() -> SkipDecision:
    """The memoized process-wide decision, computed on first call."""
    global _decision
    with _decision_lock:
        if _decision is None:
            _decision = evaluate_skip_policy()
            if _decision.skip:
                logger.info("Skipping integration tests: %s", _decision.reason)
        return _decision


def should_skip_integration_tests() -> bool:
    return get_skip_decision().skip


def get_integration_skip_reason() -> Optional[str]:
    """Why integration runs are skipped, or None when they will run."""
    return get_skip_decision().reason


def reset_skip_decision() -> None:
    """Forget the memoized decision (for testing)."""
    global _decision
    with _decision_lock:
        _decision = None
