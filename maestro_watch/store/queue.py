"""A FIFO of distinct dirty keys.

Producers mark keys dirty from any thread or task. A single consumer pops
keys in the order they were first marked. Marking a key that is already
pending only replaces its declared change kind, so a burst of updates to the
same key results in a single entry.
"""

import asyncio
import logging
import threading
from enum import StrEnum

from maestro_watch.exceptions import QueueClosedError

_LOGGER = logging.getLogger(__name__)


class ChangeKind(StrEnum):
    """The reason a producer declared a key dirty."""

    ADDED = "ADDED"
    MODIFIED = "MODIFIED"
    DELETED = "DELETED"


class DirtyKeyQueue:
    """Queue of pending keys with at most one entry per key."""

    def __init__(self) -> None:
        """Initialize DirtyKeyQueue."""
        self._lock = threading.Lock()
        # Dict assignment keeps the position of an existing key, which gives
        # the coalescing behavior.
        self._items: dict[str, ChangeKind] = {}
        self._closed = False
        self._waiter: asyncio.Future[None] | None = None
        self._loop: asyncio.AbstractEventLoop | None = None

    def mark_dirty(self, key: str, kind: ChangeKind) -> None:
        """Record that `key` has a pending change of the specified kind."""
        with self._lock:
            if self._closed:
                _LOGGER.debug("Queue closed, dropping %s for %s", kind, key)
                return
            if key in self._items:
                _LOGGER.debug(
                    "Coalescing %s for %s (was %s)", kind, key, self._items[key]
                )
            self._items[key] = kind
            self._wakeup()

    async def pop(self) -> tuple[str, ChangeKind]:
        """Remove and return the oldest pending key.

        Waits until a key is available. Raises QueueClosedError once the
        queue has been closed and all pending keys have been returned.
        """
        while True:
            with self._lock:
                if self._items:
                    key = next(iter(self._items))
                    return key, self._items.pop(key)
                if self._closed:
                    raise QueueClosedError("Queue is closed")
                if self._waiter is not None:
                    raise RuntimeError("DirtyKeyQueue supports a single consumer")
                self._loop = asyncio.get_running_loop()
                waiter = self._loop.create_future()
                self._waiter = waiter
            try:
                await waiter
            finally:
                with self._lock:
                    if self._waiter is waiter:
                        self._waiter = None

    def close(self) -> None:
        """Close the queue, waking a blocked consumer."""
        with self._lock:
            if self._closed:
                return
            _LOGGER.debug("Closing queue with %d pending keys", len(self._items))
            self._closed = True
            self._wakeup()

    @property
    def closed(self) -> bool:
        """Return True if the queue has been closed."""
        return self._closed

    def pending(self) -> list[tuple[str, ChangeKind]]:
        """Return a snapshot of the pending entries in pop order."""
        with self._lock:
            return list(self._items.items())

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._items

    def _wakeup(self) -> None:
        """Wake the consumer, must be called with the lock held."""
        if self._waiter is None or self._loop is None:
            return
        if self._loop.is_closed():
            return
        self._loop.call_soon_threadsafe(_resolve_waiter, self._waiter)


def _resolve_waiter(waiter: asyncio.Future[None]) -> None:
    if not waiter.done():
        waiter.set_result(None)
