"""SQLite-backed persistent draft store.

One row per storage key. Content is stored as JSON text alongside the
wall-clock time of the save in milliseconds.

The connection is opened lazily on first use and memoised: callers never
need an explicit open step, and concurrent first calls share a single
connection. ``aiosqlite.Error`` propagates to the caller: DraftCacheManager
is the error boundary and logs failures with the operation and key.
"""

from __future__ import annotations

import asyncio
import json
import time
from pathlib import Path
from typing import Any

import aiosqlite
import structlog

from draftkeeper.models.draft import DraftRecord

log = structlog.get_logger()

_CREATE_DRAFTS_TABLE = """
CREATE TABLE IF NOT EXISTS drafts (
    key        TEXT PRIMARY KEY,
    content    TEXT NOT NULL,
    timestamp  INTEGER NOT NULL
)
"""

# Timestamps never move backwards for a key even if the wall clock does.
_UPSERT_DRAFT = """
INSERT INTO drafts (key, content, timestamp) VALUES (?, ?, ?)
ON CONFLICT(key) DO UPDATE SET
    content = excluded.content,
    timestamp = MAX(drafts.timestamp, excluded.timestamp)
"""


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


class SqliteDraftStore:
    """Draft store implementing DraftStoreProtocol."""

    def __init__(self, db_path: str | Path) -> None:
        self._db_path = str(db_path)
        self._db: aiosqlite.Connection | None = None
        self._lock = asyncio.Lock()

    async def _connection(self) -> aiosqlite.Connection:
        if self._db is not None:
            return self._db
        async with self._lock:
            if self._db is None:
                if self._db_path != ":memory:":
                    Path(self._db_path).expanduser().parent.mkdir(parents=True, exist_ok=True)
                db = await aiosqlite.connect(str(Path(self._db_path).expanduser()))
                try:
                    await db.execute("PRAGMA journal_mode = WAL")
                    await db.execute(_CREATE_DRAFTS_TABLE)
                    await db.commit()
                except aiosqlite.Error:
                    await db.close()
                    raise
                self._db = db
                log.debug("draft_store_opened", db_path=self._db_path)
        return self._db

    async def get(self, key: str) -> DraftRecord | None:
        """Return the stored draft for *key*, or ``None`` if there is none."""
        db = await self._connection()
        cursor = await db.execute(
            "SELECT key, content, timestamp FROM drafts WHERE key = ?",
            (key,),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return DraftRecord(key=row[0], content=json.loads(row[1]), timestamp=row[2])

    async def set(self, key: str, content: Any) -> None:
        """Store *content* under *key*, replacing any existing draft."""
        payload = json.dumps(content, ensure_ascii=False)
        db = await self._connection()
        await db.execute(_UPSERT_DRAFT, (key, payload, _now_ms()))
        await db.commit()

    async def delete(self, key: str) -> None:
        """Remove the draft for *key*. No-op if absent."""
        db = await self._connection()
        await db.execute("DELETE FROM drafts WHERE key = ?", (key,))
        await db.commit()

    async def list_drafts(self) -> list[DraftRecord]:
        """Return every stored draft, most recently saved first."""
        db = await self._connection()
        cursor = await db.execute(
            "SELECT key, content, timestamp FROM drafts ORDER BY timestamp DESC, key"
        )
        return [
            DraftRecord(key=row[0], content=json.loads(row[1]), timestamp=row[2])
            for row in await cursor.fetchall()
        ]

    async def close(self) -> None:
        async with self._lock:
            if self._db is not None:
                await self._db.close()
                self._db = None
