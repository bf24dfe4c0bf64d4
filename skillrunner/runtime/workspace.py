"""
workspace.py - Isolated temporary workspace per agent run.

Each run gets its own directory under the system temp dir. The agent CLI is
started there, setup hooks write fixtures into it, and it is removed on
every exit path.

Usage:
    from skillrunner.runtime.workspace import create_workspace, remove_workspace

    workspace = create_workspace()
    try:
        ...
    finally:
        remove_workspace(workspace)
"""

from __future__ import annotations

import logging
import shutil
import tempfile
from pathlib import Path
from typing import Optional, Union

logger = logging.getLogger(__name__)

WORKSPACE_PREFIX = "skill-test-"


def create_workspace(
    prefix: str = WORKSPACE_PREFIX,
    base_dir: Optional[Union[str, Path]] = None,
) -> Path:
    """Create a fresh, empty workspace directory and return its path."""
    path = Path(tempfile.mkdtemp(prefix=prefix, dir=base_dir))
    logger.debug("Created workspace %s", path)
    return path


def remove_workspace(path: Optional[Path]) -> bool:
    """Recursively remove a workspace directory.

    Never raises; a missing directory counts as removed.

    Returns:
        True if the directory is gone afterwards.
    """
    if path is None:
        return True
    try:
        shutil.rmtree(path)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.debug("Failed to remove workspace %s: %s", path, e)
        return False
    return True
