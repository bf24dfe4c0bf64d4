"""Path helpers for agent run reports and CLI logs.

Provides deterministic path construction for per-run artifacts so reports
from one test session land side by side.

Standard conventions:
- Reports: REPORT_DIR/test-run-<process stamp>/<test name>/agent-metadata-<stamp>.md
- CLI logs: REPORT_DIR/test-run-<process stamp>/<test name>/

The process stamp is taken once at import time and shared by every run in
the process. Stamps are ISO-8601 UTC with ":" and "." replaced by "-".

Usage:
    from skillrunner.runtime.path_helpers import (
        build_share_file_path,
        build_log_file_path,
        get_test_name,
        sanitize_file_name,
    )
"""

from __future__ import annotations

import os
import re
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from skillrunner.config.runner_config import get_settings

REPORT_PREFIX = "agent-metadata-"
REPORT_EXT = ".md"
RUN_DIR_PREFIX = "test-run-"

MAX_FILE_NAME_CHARS = 200

_INVALID_CHARS = re.compile(r'[<>:"/\\|?*]')
_WHITESPACE = re.compile(r"\s+")
_DASH_RUNS = re.compile(r"-+")
_UNDERSCORE_RUNS = re.compile(r"_+")

# pytest appends the phase to PYTEST_CURRENT_TEST: "path::test (call)"
_PYTEST_PHASE_SUFFIX = re.compile(r"\s+\((setup|call|teardown)\)$")


def format_timestamp(dt: datetime) -> str:
    """Format a datetime as a filesystem-safe ISO-8601 UTC stamp.

    Example:
        >>> format_timestamp(datetime(2025, 1, 2, 3, 4, 5, 678000, tzinfo=timezone.utc))
        '2025-01-02T03-04-05-678Z'
    """
    dt = dt.astimezone(timezone.utc)
    iso = dt.strftime("%Y-%m-%dT%H:%M:%S") + f".{dt.microsecond // 1000:03d}Z"
    return iso.replace(":", "-").replace(".", "-")


PROCESS_TIMESTAMP = format_timestamp(datetime.now(timezone.utc))


def sanitize_file_name(name: str) -> str:
    """Sanitize a string for use as a file or directory name.

    Example:
        >>> sanitize_file_name('skill: invokes "foundry"?')
        'skill-_invokes_-foundry-'
    """
    name = _INVALID_CHARS.sub("-", name)
    name = _WHITESPACE.sub("_", name)
    name = _DASH_RUNS.sub("-", name)
    name = _UNDERSCORE_RUNS.sub("_", name)
    name = name.replace("_-_", "-")
    return name[:MAX_FILE_NAME_CHARS]


def get_test_name() -> str:
    """Name of the currently running test, sanitized for the filesystem.

    Uses pytest's PYTEST_CURRENT_TEST. Outside pytest, falls back to
    "test-<epoch ms>".
    """
    current = os.environ.get("PYTEST_CURRENT_TEST")
    if current:
        return sanitize_file_name(_PYTEST_PHASE_SUFFIX.sub("", current))
    return f"test-{int(time.time() * 1000)}"


def _run_dir(report_dir: Optional[Path], test_name: Optional[str]) -> Path:
    base = report_dir if report_dir is not None else get_settings().report_dir
    name = sanitize_file_name(test_name) if test_name else get_test_name()
    return base / f"{RUN_DIR_PREFIX}{PROCESS_TIMESTAMP}" / name


def build_share_file_path(
    test_name: Optional[str] = None,
    report_dir: Optional[Path] = None,
    now: Optional[datetime] = None,
) -> Path:
    """Generate the markdown report path for a run.

    Args:
        test_name: Test identity; defaults to the current pytest test.
        report_dir: Report root; defaults to the configured report_dir.
        now: Timestamp for the file name; defaults to the current time.

    Returns:
        REPORT_DIR/test-run-<process stamp>/<test name>/agent-metadata-<stamp>.md
    """
    stamp = format_timestamp(now or datetime.now(timezone.utc))
    return _run_dir(report_dir, test_name) / f"{REPORT_PREFIX}{stamp}{REPORT_EXT}"


def build_log_file_path(
    test_name: Optional[str] = None,
    report_dir: Optional[Path] = None,
) -> Path:
    """Directory the agent CLI writes its logs to in debug mode."""
    return _run_dir(report_dir, test_name)
