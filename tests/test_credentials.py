"""Tests for keyring-backed credentials."""

from unittest.mock import patch

from keyring.errors import KeyringError, PasswordDeleteError

from quickjira.credentials import (
    delete_credentials,
    get_credentials,
    resolve_ai_key,
    resolve_jira_token,
    store_credentials,
)


def test_store_credentials():
    with patch("quickjira.credentials.keyring.set_password") as set_password:
        store_credentials("jira", {"api_token": "t"})
    set_password.assert_called_once_with("quickjira-jira", "tokens", '{"api_token": "t"}')


def test_get_credentials():
    with patch("quickjira.credentials.keyring.get_password", return_value='{"api_key": "k"}'):
        assert get_credentials("ai") == {"api_key": "k"}


def test_get_credentials_missing_or_unreadable():
    with patch("quickjira.credentials.keyring.get_password", return_value=None):
        assert get_credentials("ai") is None
    with patch("quickjira.credentials.keyring.get_password", return_value="{oops"):
        assert get_credentials("ai") is None
    with patch("quickjira.credentials.keyring.get_password", side_effect=KeyringError("locked")):
        assert get_credentials("ai") is None


def test_delete_missing_credentials_is_ignored():
    with patch(
        "quickjira.credentials.keyring.delete_password", side_effect=PasswordDeleteError("gone")
    ):
        delete_credentials("jira")


def test_settings_value_wins_over_keyring(mock_config):
    with patch("quickjira.credentials.get_credentials") as get_creds:
        assert resolve_jira_token(mock_config) == "secret-token"
        assert resolve_ai_key(mock_config) == "test-key"
    get_creds.assert_not_called()


def test_keyring_fallback(mock_config):
    mock_config.jira.api_token = ""
    mock_config.ai.api_key = ""
    with patch("quickjira.credentials.get_credentials", return_value={"api_token": "kt"}):
        assert resolve_jira_token(mock_config) == "kt"
        assert resolve_ai_key(mock_config) == ""
