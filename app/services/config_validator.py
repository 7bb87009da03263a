"""Validate a Jira connection configuration before any network call is made."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from app.schemas.jira import JiraConfig

if TYPE_CHECKING:
    from app.core.config import Settings

DEFAULT_HOST_SUFFIX = "atlassian.net"

# Project key from an issue URL such as https://x.atlassian.net/browse/PROJ-123
BROWSE_KEY_PATTERN = re.compile(r"/browse/([A-Z]+)-")


def extract_project_key(url: str) -> str | None:
    """Derive the project key from a /browse/<KEY>- URL segment; None if there is none."""
    if not url:
        return None
    match = BROWSE_KEY_PATTERN.search(url)
    return match.group(1) if match else None


def resolve_project_key(config: JiraConfig) -> str | None:
    """Explicit project key wins; otherwise derive it from the URL."""
    if config.project_key and config.project_key.strip():
        return config.project_key.strip()
    return extract_project_key(config.url)


def validate_config(config: JiraConfig, host_suffix: str = DEFAULT_HOST_SUFFIX) -> bool:
    """
    Return True only when the config is complete enough to start an export.

    Requires a non-empty URL containing the tracker host suffix, a username,
    an API token, and a project key (explicit or derivable from the URL).
    No network I/O.
    """
    url = (config.url or "").strip()
    if not url or host_suffix not in url:
        return False
    if not config.username or not config.username.strip():
        return False
    token = config.api_token.get_secret_value() if config.api_token is not None else ""
    if not token or not token.strip():
        return False
    return resolve_project_key(config) is not None


def jira_config_from_settings(settings: Settings) -> JiraConfig:
    """Build the run-scoped JiraConfig from the active settings."""
    token = settings.JIRA_API_TOKEN
    return JiraConfig(
        url=(settings.JIRA_BASE_URL or "").strip(),
        username=(settings.JIRA_EMAIL or "").strip(),
        api_token=token if token is not None else "",
        project_key=settings.JIRA_PROJECT_KEY,
    )
