from __future__ import annotations

from typing import Any

from pydantic import BaseModel


class DraftRecord(BaseModel):
    """A persisted draft for one storage key."""

    key: str
    content: Any  # JSON-serialisable snapshot supplied by the editing host
    timestamp: int  # Wall-clock milliseconds, non-decreasing per key
