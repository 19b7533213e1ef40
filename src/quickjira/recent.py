"""Recency ordering for projects, issue types and assignees.

The ranking functions are pure. Remembering what was used last is done
through a small injected key-value store, see RecentSelections.
"""

import json
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Protocol, TypeVar

from .logging import get_logger

logger = get_logger("recent")

T = TypeVar("T")

RECENT_PROJECT_KEY = "recentProjectKey"
RECENT_ISSUE_TYPE_ID = "recentIssueTypeId"
RECENT_ASSIGNEE_ID = "recentAssigneeId"
RECENT_OPEN_PROJECT_KEYS = "recentOpenProjectKeys"

MAX_RECENT_OPEN_PROJECTS = 20


def rank_by_recent(
    items: Sequence[T],
    key_of: Callable[[T], str],
    recent_key: str | None,
) -> Sequence[T]:
    """Move the items whose key equals ``recent_key`` to the front.

    Relative order inside both groups is kept. Without a recent key the
    input is returned as-is.
    """
    if not recent_key:
        return items
    recent = [item for item in items if key_of(item) == recent_key]
    rest = [item for item in items if key_of(item) != recent_key]
    return recent + rest


def rank_by_recent_list(
    items: Sequence[T],
    key_of: Callable[[T], str],
    recent_keys: Sequence[str],
) -> Sequence[T]:
    """Order items by their position in ``recent_keys`` (most recent first).

    Items missing from ``recent_keys`` follow all ranked items in their
    original relative order. An empty list returns the input as-is.
    """
    if not recent_keys:
        return items

    rank: dict[str, int] = {}
    for index, key in enumerate(recent_keys):
        rank.setdefault(key, index)

    unranked = len(recent_keys)
    # sorted() is stable, so ties keep their input order
    return sorted(items, key=lambda item: rank.get(key_of(item), unranked))


def push_recent(
    recent_keys: Sequence[str],
    key: str,
    limit: int = MAX_RECENT_OPEN_PROJECTS,
) -> list[str]:
    """Return a new most-recent-first list with ``key`` in front, deduplicated and capped."""
    return [key, *(k for k in recent_keys if k != key)][:limit]


class KeyValueStore(Protocol):
    """String key-value storage for remembered selections."""

    async def get(self, key: str) -> str | None:
        ...

    async def set(self, key: str, value: str) -> None:
        ...


@dataclass
class RecentState:
    """Everything remembered about previous selections."""

    project_key: str | None = None
    issue_type_id: str | None = None
    assignee_id: str | None = None
    open_project_keys: list[str] = field(default_factory=list)


def parse_recent_keys(raw: str | None) -> list[str]:
    """Decode the stored JSON list, dropping anything that is not a string."""
    if not raw:
        return []
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning(f"Ignoring invalid {RECENT_OPEN_PROJECT_KEYS} value")
        return []
    if not isinstance(parsed, list):
        return []
    return [key for key in parsed if isinstance(key, str)]


class RecentSelections:
    """Reads and records recent selections through a KeyValueStore."""

    def __init__(self, store: KeyValueStore, max_open_projects: int = MAX_RECENT_OPEN_PROJECTS):
        self.store = store
        self.max_open_projects = max_open_projects

    async def load(self) -> RecentState:
        return RecentState(
            project_key=await self.store.get(RECENT_PROJECT_KEY) or None,
            issue_type_id=await self.store.get(RECENT_ISSUE_TYPE_ID) or None,
            assignee_id=await self.store.get(RECENT_ASSIGNEE_ID) or None,
            open_project_keys=parse_recent_keys(await self.store.get(RECENT_OPEN_PROJECT_KEYS)),
        )

    async def remember_creation(
        self,
        project_key: str,
        issue_type_id: str,
        assignee_id: str | None = None,
    ) -> None:
        """Remember the choices of a successfully created ticket.

        The assignee is only overwritten when one was chosen.
        """
        await self.store.set(RECENT_PROJECT_KEY, project_key)
        await self.store.set(RECENT_ISSUE_TYPE_ID, issue_type_id)
        if assignee_id:
            await self.store.set(RECENT_ASSIGNEE_ID, assignee_id)

    async def record_project_open(self, project_key: str) -> list[str]:
        """Put a project at the front of the recently opened list and save it."""
        current = parse_recent_keys(await self.store.get(RECENT_OPEN_PROJECT_KEYS))
        updated = push_recent(current, project_key, self.max_open_projects)
        await self.store.set(RECENT_OPEN_PROJECT_KEYS, json.dumps(updated))
        return updated
