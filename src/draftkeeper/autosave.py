"""Debounced local draft auto-save.

DraftCacheManager keeps an in-memory mirror of the latest draft for one
editing host and synchronises it with an asynchronous DraftStoreProtocol.
Reads (``has_draft``, ``get_draft``) are synchronous and served from the
mirror; writes to the store happen in background tasks.

Lifecycle, driven by whoever owns the editing host:

    manager = DraftCacheManager(store, "post-42", get_value, set_value,
                                is_empty=lambda doc: not doc)
    manager.start()          # mount: schedule the one-time draft load
    manager.notify_change()  # after every edit (or pass poll_interval_ms)
    await manager.stop()     # unmount: halt the debounce timer, final save

Store failures never reach the caller. Each one is logged with the
operation and key, and the in-memory mirror stays authoritative for the
rest of the session. A failed debounced save is superseded by the next one;
a failed final save is not retried.
"""

from __future__ import annotations

import asyncio
import copy
import time
from contextlib import suppress
from typing import TYPE_CHECKING, Any, Generic, TypeVar

import structlog

if TYPE_CHECKING:
    from collections.abc import Callable, Coroutine

    from draftkeeper.config import DraftSettings
    from draftkeeper.protocols import DraftStoreProtocol

log = structlog.get_logger()

T = TypeVar("T")

DEFAULT_DELAY_MS = 1000
GUARD_MARGIN_MS = 300


class _Disabled:
    def __repr__(self) -> str:
        return "DISABLED"


# Observed in place of the host value while auto-save is disabled.
DISABLED = _Disabled()
_UNOBSERVED = object()


class DraftCacheManager(Generic[T]):
    """Auto-save manager for a single editing host and storage key."""

    def __init__(
        self,
        store: DraftStoreProtocol,
        storage_key: str,
        get_value: Callable[[], T],
        set_value: Callable[[T], None],
        *,
        delay_ms: int = DEFAULT_DELAY_MS,
        enabled: bool | Callable[[], bool] = True,
        is_empty: Callable[[T], bool] | None = None,
        guard_margin_ms: int = GUARD_MARGIN_MS,
        poll_interval_ms: int | None = None,
    ) -> None:
        self.storage_key = storage_key
        self._store = store
        self._get_value = get_value
        self._set_value = set_value
        self._enabled = enabled
        self._is_empty = is_empty
        self._delay = delay_ms / 1000
        self._poll_interval = poll_interval_ms / 1000 if poll_interval_ms else None

        self._cached_value: T | None = None
        self._store_ready = False
        self._ready = asyncio.Event()
        # Measured from construction, not from load completion.
        self._guard_deadline = time.monotonic() + (delay_ms + guard_margin_ms) / 1000

        self._started = False
        self._stopped = False
        self._last_observed: Any = _UNOBSERVED
        self._pending: Any = _UNOBSERVED
        self._timer: asyncio.TimerHandle | None = None
        self._poller: asyncio.Task[None] | None = None
        self._tasks: set[asyncio.Task[None]] = set()
        self._log = log.bind(key=storage_key)

    @classmethod
    def from_settings(
        cls,
        settings: DraftSettings,
        store: DraftStoreProtocol,
        storage_key: str,
        get_value: Callable[[], T],
        set_value: Callable[[T], None],
        *,
        enabled: bool | Callable[[], bool] = True,
        is_empty: Callable[[T], bool] | None = None,
    ) -> DraftCacheManager[T]:
        """Build a manager using the configured delay, guard margin and poll tick."""
        return cls(
            store,
            storage_key,
            get_value,
            set_value,
            delay_ms=settings.delay_ms,
            enabled=enabled,
            is_empty=is_empty,
            guard_margin_ms=settings.guard_margin_ms,
            poll_interval_ms=settings.poll_interval_ms,
        )

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def enabled(self) -> bool:
        if callable(self._enabled):
            return bool(self._enabled())
        return self._enabled

    @property
    def is_ready(self) -> bool:
        """True once the initial load has finished, successfully or not."""
        return self._store_ready

    @property
    def initialized_guard(self) -> bool:
        """True once empty values are allowed to delete the stored draft."""
        return time.monotonic() >= self._guard_deadline

    async def wait_ready(self) -> None:
        await self._ready.wait()

    async def wait_idle(self) -> None:
        """Wait for every in-flight store operation to settle.

        Does not wait for a debounce timer that has not fired yet.
        """
        while self._tasks:
            await asyncio.gather(*self._tasks)

    # ------------------------------------------------------------------
    # Draft API
    # ------------------------------------------------------------------

    def has_draft(self) -> bool:
        if not self.enabled or not self._store_ready:
            return False
        return self._cached_value is not None

    def get_draft(self) -> T | None:
        if not self.enabled:
            return None
        return self._cached_value

    def restore_draft(self) -> bool:
        """Push the cached draft into the editing host. Returns False if none."""
        draft = self.get_draft()
        if draft is None:
            return False
        self._set_value(draft)
        return True

    async def clear_draft(self) -> None:
        """Discard the draft; visible to readers before the store delete settles."""
        self._cached_value = None
        await self._delete()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Mount: schedule the one-time load and begin change tracking."""
        if self._started:
            return
        self._started = True
        self._spawn(self._load())
        self._last_observed = self._observe()
        if self._poll_interval is not None:
            self._poller = asyncio.create_task(self._poll(self._poll_interval))

    async def stop(self) -> None:
        """Unmount: stop change tracking, then save the host value one last time."""
        if self._stopped:
            return
        self._stopped = True
        if not self._started:
            return

        # No debounced emission may fire once teardown has begun.
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._pending = _UNOBSERVED
        if self._poller is not None:
            self._poller.cancel()
            with suppress(asyncio.CancelledError):
                await self._poller
            self._poller = None

        if not self.enabled:
            return
        value = self._get_value()
        if self._is_empty is not None and self._is_empty(value):
            return
        await self._save(copy.deepcopy(value), final=True)

    async def __aenter__(self) -> DraftCacheManager[T]:
        self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.stop()

    # ------------------------------------------------------------------
    # Change tracking
    # ------------------------------------------------------------------

    def notify_change(self) -> None:
        """Tell the manager the host value may have changed.

        The value is deep-copied and compared by equality with the previous
        observation; only a real change (re)starts the debounce timer.
        """
        if not self._started or self._stopped:
            return
        observed = self._observe()
        if observed == self._last_observed:
            return
        self._last_observed = observed
        self._pending = observed
        if self._timer is not None:
            self._timer.cancel()
        self._timer = asyncio.get_running_loop().call_later(self._delay, self._emit)

    def _observe(self) -> Any:
        if not self.enabled:
            return DISABLED
        return copy.deepcopy(self._get_value())

    async def _poll(self, interval: float) -> None:
        while True:
            await asyncio.sleep(interval)
            try:
                self.notify_change()
            except Exception:
                # A failing host read skips this tick; the next one retries.
                self._log.warning("draft_poll_error", exc_info=True)

    def _emit(self) -> None:
        self._timer = None
        value, self._pending = self._pending, _UNOBSERVED
        if value is DISABLED or value is _UNOBSERVED or not self.enabled:
            return

        if self._is_empty is not None and self._is_empty(value):
            # Before the guard elapses an empty reading is most likely the host
            # still starting up; keep whatever draft was loaded.
            if self.initialized_guard:
                self._cached_value = None
                self._spawn(self._delete())
            else:
                self._log.debug("draft_empty_ignored", reason="guard_active")
            return

        self._cached_value = value
        self._spawn(self._save(value))

    # ------------------------------------------------------------------
    # Store I/O
    # ------------------------------------------------------------------

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> None:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _load(self) -> None:
        try:
            record = await self._store.get(self.storage_key)
            if record is not None:
                if self._is_empty is not None and self._is_empty(record.content):
                    self._cached_value = None
                else:
                    self._cached_value = record.content
            self._log.debug("draft_loaded", found=self._cached_value is not None)
        except Exception:
            self._log.warning("draft_store_error", operation="get", exc_info=True)
        finally:
            self._store_ready = True
            self._ready.set()

    async def _save(self, value: T, *, final: bool = False) -> None:
        try:
            await self._store.set(self.storage_key, value)
            self._log.debug("draft_saved", final=final)
        except Exception:
            self._log.warning("draft_store_error", operation="set", final=final, exc_info=True)

    async def _delete(self) -> None:
        try:
            await self._store.delete(self.storage_key)
            self._log.debug("draft_deleted")
        except Exception:
            self._log.warning("draft_store_error", operation="delete", exc_info=True)
