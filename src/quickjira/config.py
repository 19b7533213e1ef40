"""Configuration management for quickjira.

Settings are loaded from ~/.quickjira/settings.toml with the following precedence:
1. CLI flags (highest)
2. Config file
3. Built-in defaults (lowest)

Secrets (API token, AI key) may live in the config file but are normally kept
in the system keyring, see credentials.py.
"""

from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any

import toml

# Default paths - stored in the user's home directory
QUICKJIRA_HOME = Path.home() / ".quickjira"
SETTINGS_FILE = QUICKJIRA_HOME / "settings.toml"
DATABASE_FILE = QUICKJIRA_HOME / "quickjira.db"

SECRET_KEYS = [("jira", "api_token"), ("ai", "api_key")]


@dataclass
class JiraConfig:
    """Jira site and account configuration."""

    domain: str = ""  # e.g. "team.atlassian.net" or "https://team.atlassian.net"
    email: str = ""
    api_token: str = ""  # normally empty, token is read from the keyring
    timeout: float = 30.0  # seconds per request


@dataclass
class AIConfig:
    """AI configuration section."""

    api_base: str = "https://api.openai.com/v1"
    api_key: str = ""
    model: str = "gpt-4o-mini"
    temperature: float = 0.3


@dataclass
class LoggingConfig:
    """Logging configuration section."""

    level: str = "info"  # file handler
    console_level: str = "warning"


@dataclass
class RecentConfig:
    """Recent selection tracking."""

    max_open_projects: int = 20


@dataclass
class QuickJiraConfig:
    """Main configuration container."""

    jira: JiraConfig = field(default_factory=JiraConfig)
    ai: AIConfig = field(default_factory=AIConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    recent: RecentConfig = field(default_factory=RecentConfig)


def ensure_quickjira_home() -> None:
    """Create the quickjira home directory if it doesn't exist."""
    QUICKJIRA_HOME.mkdir(parents=True, exist_ok=True)


def _sections(config: QuickJiraConfig) -> dict[str, Any]:
    return {f.name: getattr(config, f.name) for f in fields(config)}


def _merge_section(section: Any, values: dict) -> None:
    """Copy known keys from a toml table onto a section; unknown keys are ignored."""
    known = {f.name for f in fields(section)}
    for key, value in values.items():
        if key in known:
            setattr(section, key, value)


def load_config() -> QuickJiraConfig:
    """Load configuration from settings.toml, merging with defaults."""
    config = QuickJiraConfig()

    if not SETTINGS_FILE.exists():
        return config

    try:
        data = toml.load(SETTINGS_FILE)
    except (OSError, toml.TomlDecodeError):
        return config

    for name, section in _sections(config).items():
        values = data.get(name)
        if isinstance(values, dict):
            _merge_section(section, values)

    return config


def save_config(config: QuickJiraConfig) -> None:
    """Save configuration to settings.toml."""
    ensure_quickjira_home()

    data = asdict(config)
    # Empty secrets stay out of the file; "login" keeps them in the keyring
    for section, key in SECRET_KEYS:
        if not data[section][key]:
            del data[section][key]

    with open(SETTINGS_FILE, "w") as f:
        toml.dump(data, f)


def create_default_config() -> bool:
    """Create a default settings.toml if it doesn't exist.

    Returns:
        True if a new config was created (first run), False if it already existed.
    """
    ensure_quickjira_home()

    if SETTINGS_FILE.exists():
        return False

    commented_config = '''# quickjira configuration

[jira]
# Your Atlassian site, with or without scheme
# domain = "your-team.atlassian.net"
# email = "you@example.com"
# The API token is stored in the system keyring by "quickjira login".
# Create one at https://id.atlassian.com/manage-profile/security/api-tokens
timeout = 30.0

[ai]
# OpenAI-compatible API endpoint used to draft tickets
# For local models (Ollama): http://localhost:11434/v1
api_base = "https://api.openai.com/v1"
model = "gpt-4o-mini"
temperature = 0.3

[logging]
# File log level (~/.quickjira/logs/quickjira.log) and console log level
level = "info"
console_level = "warning"

[recent]
# How many recently opened projects to remember
max_open_projects = 20
'''

    SETTINGS_FILE.write_text(commented_config)
    return True
