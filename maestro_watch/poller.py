"""A producer that detects changes by periodically listing works.

The poller remembers the version of every work it has seen. Each poll marks
new works added, works with a new version modified and works that are no
longer listed deleted. The first poll reports every existing work as added.
"""

import asyncio
import logging

from .exceptions import ResolverError
from .store import ListFilter, LifecycleState, WatchStore

__all__ = ["ListPoller"]

_LOGGER = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 5.0


class ListPoller:
    """Feeds a WatchStore with changes found by listing."""

    def __init__(
        self,
        store: WatchStore,
        list_filter: ListFilter | None = None,
        interval: float = DEFAULT_POLL_INTERVAL,
    ) -> None:
        """Initialize ListPoller."""
        self._store = store
        self._list_filter = list_filter or ListFilter()
        self._interval = interval
        self._versions: dict[str, int] = {}

    async def poll_once(self) -> None:
        """List works once and mark every change since the previous poll."""
        works = await self._store.list(self._list_filter)
        versions = {self._store.key_of(work): work.resource_version for work in works}
        for key, version in versions.items():
            if (previous := self._versions.get(key)) is None:
                self._store.mark_added(key)
            elif previous != version:
                self._store.mark_modified(key)
        for key in self._versions.keys() - versions.keys():
            self._store.mark_deleted(key)
        self._versions = versions

    async def run(self) -> None:
        """Poll until the store is stopped."""
        while self._store.state == LifecycleState.RUNNING:
            try:
                await self.poll_once()
            except ResolverError as err:
                _LOGGER.warning("Failed to list works, will retry: %s", err)
            await asyncio.sleep(self._interval)
        _LOGGER.debug("Store stopped, exiting poller")
