"""Shared test fixtures for the draftkeeper test suite."""

from __future__ import annotations

import asyncio
from typing import Any

import pytest
import structlog

from draftkeeper.models.draft import DraftRecord
from draftkeeper.store import SqliteDraftStore


class RecordingStore:
    """In-memory DraftStoreProtocol that records every call.

    ``latency`` delays each operation; operations named in ``fail_on`` raise
    after being recorded.
    """

    def __init__(self, records: dict[str, Any] | None = None, *, latency: float = 0.0) -> None:
        self.records: dict[str, DraftRecord] = {
            key: DraftRecord(key=key, content=content, timestamp=1)
            for key, content in (records or {}).items()
        }
        self.calls: list[tuple[str, str, Any]] = []
        self.fail_on: set[str] = set()
        self.latency = latency
        self._clock = 1

    async def _enter(self, operation: str, key: str, content: Any = None) -> None:
        self.calls.append((operation, key, content))
        if self.latency:
            await asyncio.sleep(self.latency)
        if operation in self.fail_on:
            raise RuntimeError(f"{operation} failed")

    async def get(self, key: str) -> DraftRecord | None:
        await self._enter("get", key)
        return self.records.get(key)

    async def set(self, key: str, content: Any) -> None:
        await self._enter("set", key, content)
        self._clock += 1
        self.records[key] = DraftRecord(key=key, content=content, timestamp=self._clock)

    async def delete(self, key: str) -> None:
        await self._enter("delete", key)
        self.records.pop(key, None)

    def ops(self, operation: str) -> list[tuple[str, str, Any]]:
        return [call for call in self.calls if call[0] == operation]


class Host:
    """Editing host holding a single value."""

    def __init__(self, value: Any = "") -> None:
        self.value = value
        self.set_calls = 0

    def get_value(self) -> Any:
        return self.value

    def set_value(self, value: Any) -> None:
        self.set_calls += 1
        self.value = value


@pytest.fixture(autouse=True)
def _reset_structlog():
    yield
    structlog.reset_defaults()


@pytest.fixture()
def recording_store() -> RecordingStore:
    return RecordingStore()


@pytest.fixture()
def host() -> Host:
    return Host()


@pytest.fixture()
async def store():
    """SQLite draft store backed by an in-memory database."""
    draft_store = SqliteDraftStore(":memory:")
    yield draft_store
    await draft_store.close()


@pytest.fixture()
def make_store() -> type[RecordingStore]:
    """Factory for recording stores pre-seeded with drafts."""
    return RecordingStore
