"""Shared pytest fixtures for quickjira tests."""

from typing import Any
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from quickjira.config import QuickJiraConfig
from quickjira.database import RecentStore
from quickjira.jira.client import JiraClient


class MemoryStore:
    """In-memory KeyValueStore for tests."""

    def __init__(self, values: dict[str, str] | None = None):
        self.values = dict(values or {})

    async def get(self, key: str) -> str | None:
        return self.values.get(key)

    async def set(self, key: str, value: str) -> None:
        self.values[key] = value

    async def close(self) -> None:
        pass


@pytest.fixture
def make_client():
    """Factory for a JiraClient whose requests are answered by a handler."""

    def factory(handler) -> JiraClient:
        return JiraClient(
            "team.atlassian.net",
            "dev@example.com",
            "secret-token",
            transport=httpx.MockTransport(handler),
        )

    return factory


@pytest.fixture
def mock_config() -> QuickJiraConfig:
    """Create a mock configuration."""
    config = QuickJiraConfig()
    config.jira.domain = "team.atlassian.net"
    config.jira.email = "dev@example.com"
    config.jira.api_token = "secret-token"
    config.ai.api_key = "test-key"
    config.ai.model = "gpt-4o-mini"
    return config


@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def sample_issue_json() -> dict[str, Any]:
    """Raw issue as returned by /rest/api/3/search/jql."""
    return {
        "key": "ENG-42",
        "fields": {
            "summary": "Fix login bug",
            "status": {"name": "In Progress"},
            "assignee": {
                "accountId": "557058:abc",
                "displayName": "Ada Lovelace",
                "avatarUrls": {"48x48": "https://avatars.example.com/ada.png"},
            },
            "issuetype": {"name": "Bug", "iconUrl": "https://icons.example.com/bug.svg"},
            "priority": {"name": "High", "iconUrl": "https://icons.example.com/high.svg"},
            "project": {"key": "ENG", "name": "Engineering"},
            "created": "2024-01-10T09:00:00.000+0000",
            "updated": "2024-01-15T10:30:00.000+0000",
        },
    }


@pytest.fixture
def mock_ai_response() -> MagicMock:
    """Create a mock chat completion carrying a valid ticket draft."""
    mock_choice = MagicMock()
    mock_choice.message.content = (
        '{"summary": "Login fails with SSO", "description": "Users cannot log in via SSO."}'
    )

    mock_response = MagicMock()
    mock_response.choices = [mock_choice]
    return mock_response


@pytest.fixture
def mock_ai_client(mock_ai_response: MagicMock) -> MagicMock:
    """Create a mock OpenAI client."""
    mock_client = MagicMock()
    mock_client.chat.completions.create = AsyncMock(return_value=mock_ai_response)
    return mock_client


@pytest.fixture
async def recent_store(tmp_path) -> RecentStore:
    """Create a test store."""
    store = RecentStore(tmp_path / "test.db")
    await store.connect()
    yield store
    await store.close()
