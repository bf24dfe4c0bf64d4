"""
deploy_links.py - Detect Azure deployment links in assistant output.

Scans the reconstructed assistant message text of a run for URL shapes that
show the agent actually deployed something: portal resource links and
managed-hosting subdomains.
"""

from __future__ import annotations

import re
from typing import List, Pattern

from .aggregator import get_all_assistant_messages
from .types import AgentMetadata

DEPLOY_LINK_PATTERNS: List[Pattern[str]] = [
    # Azure Portal resource links
    re.compile(
        r"https://portal\.azure\.com/#[@/]resource/subscriptions/[a-f0-9-]+/resourceGroups/[\w-]+",
        re.IGNORECASE,
    ),
    # App Service
    re.compile(r"https?://[\w-]+\.azurewebsites\.net", re.IGNORECASE),
    # Static Web Apps
    re.compile(r"https://[\w-]+\.azurestaticapps\.net", re.IGNORECASE),
    # Container Apps
    re.compile(r"https://[\w-]+\.[\w-]+\.azurecontainerapps\.io", re.IGNORECASE),
    # Azure Portal blade links
    re.compile(r"https://portal\.azure\.com/#blade/[\w/]+", re.IGNORECASE),
]


def contains_deploy_link(text: str) -> bool:
    return any(pattern.search(text) for pattern in DEPLOY_LINK_PATTERNS)


def has_deploy_links(metadata: AgentMetadata) -> bool:
    """Check if the assistant's messages contain any Azure deployment link."""
    return contains_deploy_link(get_all_assistant_messages(metadata))
