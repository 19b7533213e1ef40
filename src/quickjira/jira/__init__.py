"""Jira Cloud client for quickjira.

Provides ticket search, creation, assignment and project lookups.
"""

from ..config import QuickJiraConfig, load_config
from ..credentials import resolve_jira_token
from .client import JiraClient, normalize_base_url
from .models import Board, Issue, IssueType, Project, Sprint, User


def create_client(config: QuickJiraConfig | None = None) -> JiraClient:
    """Create a Jira client from settings.toml and the keyring.

    Args:
        config: Optional configuration. Loads default if not provided.

    Returns:
        A configured JiraClient instance.
    """
    config = config or load_config()
    return JiraClient(
        config.jira.domain,
        config.jira.email,
        resolve_jira_token(config),
        timeout=config.jira.timeout,
    )


__all__ = [
    "Board",
    "Issue",
    "IssueType",
    "JiraClient",
    "Project",
    "Sprint",
    "User",
    "create_client",
    "normalize_base_url",
]
