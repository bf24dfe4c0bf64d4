"""Runner configuration registry.

Provides centralized settings for agent runs: the model, the skill
directories handed to each session, the MCP server table, where reports are
written and how long tool output may get before it is truncated.
Environment variables take precedence over YAML config.

Usage:
    from skillrunner.config.runner_config import get_settings, is_debug

    settings = get_settings()
    settings.model              # "claude-sonnet-4.5"
    settings.report_dir         # Path(".../reports")
    if is_debug():
        ...
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)

_CONFIG_PATH = Path(__file__).parent / "runner.yaml"

_cached_settings: Optional["RunnerSettings"] = None

ENV_MODEL = "SKILLRUNNER_MODEL"
ENV_SKILL_DIR = "SKILLRUNNER_SKILL_DIR"
ENV_REPORT_DIR = "SKILLRUNNER_REPORT_DIR"
ENV_DEBUG = "DEBUG"
ENV_PROJECT_ROOT = "SKILLRUNNER_PROJECT_ROOT"


def get_project_root() -> Path:
    """Directory that relative config paths resolve against.

    SKILLRUNNER_PROJECT_ROOT when set, otherwise the current working
    directory (where pytest is normally started).
    """
    override = os.environ.get(ENV_PROJECT_ROOT)
    if override:
        return Path(override).expanduser().resolve()
    return Path.cwd()


class McpServerConfig(BaseModel):
    """One MCP server entry passed through to the session."""

    type: str = Field(default="stdio")
    command: str
    args: List[str] = Field(default_factory=list)
    tools: List[str] = Field(default_factory=lambda: ["*"])


class RunnerSettings(BaseModel):
    """Resolved runner settings (YAML, then environment overrides)."""

    model: str = Field(default="claude-sonnet-4.5")
    skill_directories: List[Path] = Field(
        default_factory=lambda: [Path("plugin") / "skills"], validate_default=True
    )
    mcp_servers: Dict[str, McpServerConfig] = Field(default_factory=dict)
    report_dir: Path = Field(default=Path("reports"), validate_default=True)
    truncate_chars: int = Field(default=500, ge=1)
    sdk_package: str = Field(default="copilot", min_length=1)

    @field_validator("skill_directories")
    @classmethod
    def resolve_skill_directories(cls, v: List[Path]) -> List[Path]:
        return [_resolve(p) for p in v]

    @field_validator("report_dir")
    @classmethod
    def resolve_report_dir(cls, v: Path) -> Path:
        return _resolve(v)

    def mcp_servers_dict(self) -> Dict[str, Dict[str, Any]]:
        """MCP server table in the shape the session config expects."""
        return {name: server.model_dump() for name, server in self.mcp_servers.items()}


def _resolve(path: Path) -> Path:
    path = Path(path).expanduser()
    if not path.is_absolute():
        path = get_project_root() / path
    return path


def _default_config() -> Dict[str, Any]:
    """Return default configuration if runner.yaml doesn't exist."""
    return {
        "version": "1.0",
        "model": "claude-sonnet-4.5",
        "skill_directories": ["plugin/skills"],
        "mcp_servers": {
            "azure": {
                "type": "stdio",
                "command": "npx",
                "args": ["-y", "@azure/mcp", "server", "start"],
                "tools": ["*"],
            },
        },
        "report_dir": "reports",
        "truncate_chars": 500,
        "sdk_package": "copilot",
    }


def _load_config(path: Path = _CONFIG_PATH) -> Dict[str, Any]:
    if path.exists():
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            logger.warning("Ignoring %s: expected a mapping, got %s", path, type(data).__name__)
            return _default_config()
        return data
    return _default_config()


def _apply_env_overrides(data: Dict[str, Any]) -> Dict[str, Any]:
    data = dict(data)
    model = os.environ.get(ENV_MODEL)
    if model:
        data["model"] = model
    skill_dir = os.environ.get(ENV_SKILL_DIR)
    if skill_dir:
        data["skill_directories"] = [skill_dir]
    report_dir = os.environ.get(ENV_REPORT_DIR)
    if report_dir:
        data["report_dir"] = report_dir
    return data


def load_settings(path: Path = _CONFIG_PATH) -> RunnerSettings:
    """Load settings from a YAML file with environment overrides applied.

    Invalid configuration falls back to the built-in defaults (still with
    environment overrides) and logs a warning.
    """
    data = _apply_env_overrides(_load_config(path))
    data.pop("version", None)
    try:
        return RunnerSettings(**data)
    except ValidationError as e:
        logger.warning("Invalid runner config in %s, using defaults: %s", path, e)
        defaults = _apply_env_overrides(_default_config())
        defaults.pop("version", None)
        return RunnerSettings(**defaults)


def get_settings() -> RunnerSettings:
    """Get the process-wide settings, loading them on first use."""
    global _cached_settings
    if _cached_settings is None:
        _cached_settings = load_settings()
    return _cached_settings


def reset_config() -> None:
    """Reset cached settings (for testing)."""
    global _cached_settings
    _cached_settings = None


def is_debug() -> bool:
    """Verbose mode: the DEBUG environment variable is set to anything non-empty."""
    return bool(os.environ.get(ENV_DEBUG))
