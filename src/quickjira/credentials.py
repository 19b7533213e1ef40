"""Credential storage in the system keyring.

Secrets are stored per source as one JSON blob under the keyring service
``quickjira-<source>``.
"""

import json

import keyring
from keyring.errors import KeyringError, PasswordDeleteError

from .config import QuickJiraConfig
from .logging import get_logger

logger = get_logger("credentials")


def store_credentials(source: str, tokens: dict) -> None:
    """Store credentials for a source in the system keyring.

    Args:
        source: The source name (e.g., "jira", "ai")
        tokens: A dict containing the secrets to store
    """
    keyring.set_password(f"quickjira-{source}", "tokens", json.dumps(tokens))


def get_credentials(source: str) -> dict | None:
    """Retrieve credentials for a source from the system keyring.

    Returns:
        A dict containing the stored secrets, or None if not found.
    """
    try:
        tokens_json = keyring.get_password(f"quickjira-{source}", "tokens")
    except KeyringError as e:
        logger.warning(f"Keyring unavailable for {source}: {e}")
        return None
    if not tokens_json:
        return None
    try:
        return json.loads(tokens_json)
    except json.JSONDecodeError:
        logger.warning(f"Ignoring unreadable keyring entry for {source}")
        return None


def delete_credentials(source: str) -> None:
    """Delete credentials for a source from the system keyring."""
    try:
        keyring.delete_password(f"quickjira-{source}", "tokens")
    except PasswordDeleteError:
        pass  # Already deleted or never existed


def resolve_jira_token(config: QuickJiraConfig) -> str:
    """Return the Jira API token, preferring settings.toml over the keyring."""
    if config.jira.api_token:
        return config.jira.api_token
    creds = get_credentials("jira") or {}
    return creds.get("api_token", "")


def resolve_ai_key(config: QuickJiraConfig) -> str:
    """Return the AI API key, preferring settings.toml over the keyring."""
    if config.ai.api_key:
        return config.ai.api_key
    creds = get_credentials("ai") or {}
    return creds.get("api_key", "")
