"""Protocol interfaces for swappable components.

DraftCacheManager and ApiClient reference these protocols, not the concrete
implementations. This allows:
- Tests to use lightweight in-memory implementations
- Other draft backends (e.g. a remote key-value store) to be swapped in
  without touching the manager
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Literal, Protocol

if TYPE_CHECKING:
    from draftkeeper.models.draft import DraftRecord

NotificationColor = Literal["success", "error", "info"]


class DraftStoreProtocol(Protocol):
    """Interface for the persistent draft store.

    Implementations must be usable without an explicit open step and must
    share a single underlying connection across concurrent first calls.
    """

    async def get(self, key: str) -> DraftRecord | None: ...

    async def set(self, key: str, content: Any) -> None: ...

    async def delete(self, key: str) -> None: ...


class NotifierProtocol(Protocol):
    """Interface for user-facing request notifications (toasts)."""

    def add(self, title: str, color: NotificationColor) -> None: ...
