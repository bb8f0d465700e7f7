"""User-Agent generation for Keysmith HTTP requests.

Format: keysmith-cli/{version} (external, {source})

Examples:
- CLI: keysmith-cli/0.3.1 (external, cli)
- CI: keysmith-cli/0.3.1 (external, ci)
"""

from __future__ import annotations

import os
from typing import Literal

from keysmith import __version__

UserAgentSource = Literal["cli", "ci", "vscode"]

KEYSMITH_CLIENT_SOURCE_ENV = "KEYSMITH_CLIENT_SOURCE"

DEFAULT_SOURCE: UserAgentSource = "cli"


def get_client_source() -> UserAgentSource:
    """Get the client source type from environment or default."""
    source = os.environ.get(KEYSMITH_CLIENT_SOURCE_ENV, "").lower()
    valid_sources: set[UserAgentSource] = {"cli", "ci", "vscode"}
    if source in valid_sources:
        return source  # type: ignore
    return DEFAULT_SOURCE


def build_user_agent(source: UserAgentSource | None = None) -> str:
    """Build the User-Agent header value."""
    if source is None:
        source = get_client_source()
    return f"keysmith-cli/{__version__} (external, {source})"
