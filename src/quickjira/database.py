"""SQLite storage for remembered selections.

One table of string key-value pairs holds the last used project, issue type
and assignee plus the JSON list of recently opened projects.
"""

from datetime import datetime, timezone
from pathlib import Path

import aiosqlite

from .config import DATABASE_FILE, ensure_quickjira_home
from .logging import get_logger

logger = get_logger("database")

SCHEMA = """
CREATE TABLE IF NOT EXISTS recent_values (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at TIMESTAMP NOT NULL
);
"""

UPSERT = """
INSERT INTO recent_values (key, value, updated_at) VALUES (?, ?, ?)
ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
"""


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class RecentStore:
    """Key-value store for RecentSelections, backed by aiosqlite.

    Use ``async with RecentStore(path) as store`` or call connect()/close().
    """

    def __init__(self, db_path: Path | None = None):
        self.db_path = db_path or DATABASE_FILE
        self._db: aiosqlite.Connection | None = None

    async def connect(self) -> None:
        if self.db_path == DATABASE_FILE:
            ensure_quickjira_home()
        self._db = await aiosqlite.connect(self.db_path)
        await self._db.executescript(SCHEMA)
        await self._db.commit()
        logger.debug(f"Opened recent store at {self.db_path}")

    async def close(self) -> None:
        if self._db is not None:
            await self._db.close()
            self._db = None

    async def __aenter__(self) -> "RecentStore":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    @property
    def db(self) -> aiosqlite.Connection:
        if self._db is None:
            raise RuntimeError("RecentStore is not connected")
        return self._db

    async def get(self, key: str) -> str | None:
        async with self.db.execute("SELECT value FROM recent_values WHERE key = ?", (key,)) as cursor:
            row = await cursor.fetchone()
        return row[0] if row else None

    async def set(self, key: str, value: str) -> None:
        await self.db.execute(UPSERT, (key, value, utc_now().isoformat()))
        await self.db.commit()

    async def delete(self, key: str) -> bool:
        """Remove a key; True if it was present."""
        cursor = await self.db.execute("DELETE FROM recent_values WHERE key = ?", (key,))
        await self.db.commit()
        return cursor.rowcount > 0


async def get_recent_store() -> RecentStore:
    """A connected store at ~/.quickjira/quickjira.db."""
    store = RecentStore()
    await store.connect()
    return store
