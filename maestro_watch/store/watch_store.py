"""A watch over a backend that only supports get and list.

Producers mark keys as added, modified or deleted. A single background loop
pops dirty keys, reads the current state of the resource from the resolver
and sends an event to the consumer. Repeated marks of a key that has not
been processed yet are coalesced, and the event carries the state of the
resource at the time it is delivered rather than at the time it was marked.

Sending blocks until the consumer has received the event, so the loop never
resolves a key before the previous event has been observed.
"""

import asyncio
import contextlib
from enum import StrEnum
from functools import partial
import logging
from types import TracebackType
from typing import Self

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    stop_any,
    wait_exponential,
)

from maestro_watch.config import WatchStoreConfig
from maestro_watch.exceptions import (
    ChannelClosedError,
    InputException,
    ObjectNotFoundError,
    QueueClosedError,
    ResolverError,
    WatchTerminatedError,
)
from maestro_watch.manifest import ManifestWork
from maestro_watch.task import TaskService, current_task_service

from .channel import Channel, EventStream
from .event import EventType, WatchEvent
from .lifecycle import Lifecycle, LifecycleState
from .queue import ChangeKind, DirtyKeyQueue
from .resolver import ListFilter, ResourceResolver

__all__ = [
    "ResourceAction",
    "WatchStore",
]

_LOGGER = logging.getLogger(__name__)


class ResourceAction(StrEnum):
    """Actions received for a work from a message broker."""

    CREATE_REQUEST = "create_request"
    UPDATE_REQUEST = "update_request"
    DELETE_REQUEST = "delete_request"
    STATUS_MODIFIED = "status_update"


class WatchStore:
    """Emulates a watch for works read through a ResourceResolver.

    The store must be created from a running event loop. Mark methods and
    `stop` may be called from any thread.
    """

    def __init__(
        self,
        resolver: ResourceResolver,
        config: WatchStoreConfig | None = None,
        task_service: TaskService | None = None,
    ) -> None:
        """Initialize WatchStore and start its processing loop."""
        self._resolver = resolver
        self._config = config or WatchStoreConfig()
        self._loop = asyncio.get_running_loop()
        self._queue = DirtyKeyQueue()
        self._channel: Channel[WatchEvent] = Channel()
        self._stream = EventStream(self._channel)
        self._error: Exception | None = None
        self._stopped = asyncio.Event()
        self._lifecycle = Lifecycle(self._shutdown)
        task_service = task_service or current_task_service()
        self._task = task_service.create_background_task(
            self._process_loop(), name="watch-store"
        )

    def mark_added(self, key: str) -> None:
        """Record that the resource with the key was added."""
        self._queue.mark_dirty(key, ChangeKind.ADDED)

    def mark_modified(self, key: str) -> None:
        """Record that the resource with the key was modified."""
        self._queue.mark_dirty(key, ChangeKind.MODIFIED)

    def mark_deleted(self, key: str) -> None:
        """Record that the resource with the key was deleted."""
        self._queue.mark_dirty(key, ChangeKind.DELETED)

    def handle_received(self, action: ResourceAction, work: ManifestWork) -> None:
        """Handle a work received from a message broker.

        Only status updates are accepted.
        """
        if action != ResourceAction.STATUS_MODIFIED:
            raise InputException(f"unsupported resource action {action}")
        self.mark_modified(self.key_of(work))

    async def get(self, key: str) -> ManifestWork:
        """Read the current resource for the key directly from the resolver.

        Raises:
            ObjectNotFoundError: If the resource does not exist.
            ResolverError: If the backend could not be read.
        """
        if (work := await self._resolver.fetch(key)) is None:
            raise ObjectNotFoundError(key)
        return work

    async def get_by_name(self, namespace: str, name: str) -> ManifestWork:
        """Read the current resource with the specified namespace and name."""
        return await self.get(self._resolver.key_for(namespace, name))

    def key_of(self, work: ManifestWork) -> str:
        """Return the key used by this store for a resource."""
        return self._resolver.key_of(work)

    async def list(self, list_filter: ListFilter | None = None) -> list[ManifestWork]:
        """List resources directly from the resolver."""
        return await self._resolver.fetch_list(list_filter or ListFilter())

    def stream(self) -> EventStream[WatchEvent]:
        """Return the stream of events for the single consumer."""
        return self._stream

    def stop(self) -> None:
        """Stop the watch, closing the event stream.

        Safe to call more than once and from multiple threads.
        """
        self._lifecycle.stop()

    @property
    def state(self) -> LifecycleState:
        """Return the lifecycle state of the watch."""
        return self._lifecycle.state

    @property
    def error(self) -> Exception | None:
        """Return the error that ended the watch, if any."""
        return self._error

    async def wait_stopped(self) -> None:
        """Wait for the processing loop to exit."""
        await asyncio.wait([self._task])

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.stop()
        await self.wait_stopped()

    def _shutdown(self) -> None:
        """Close the queue and the channel, run exactly once by the lifecycle."""
        _LOGGER.debug("Stopping watch store")
        self._queue.close()
        try:
            running_loop: asyncio.AbstractEventLoop | None = asyncio.get_running_loop()
        except RuntimeError:
            running_loop = None
        if running_loop is self._loop:
            self._on_stopped()
        else:
            self._loop.call_soon_threadsafe(self._on_stopped)

    def _on_stopped(self) -> None:
        self._stopped.set()
        error: WatchTerminatedError | None = None
        if self._error is not None:
            error = WatchTerminatedError(f"Watch terminated: {self._error}")
            error.__cause__ = self._error
        self._channel.close(error)

    def _terminate(self, error: Exception | None) -> None:
        if error is not None and self._lifecycle.running:
            self._error = error
        self._lifecycle.stop()

    async def _process_loop(self) -> None:
        """Drain the queue and send events to the consumer."""
        error: Exception | None = None
        try:
            while True:
                try:
                    key, kind = await self._queue.pop()
                except QueueClosedError:
                    _LOGGER.debug("Queue closed, exiting processing loop")
                    return
                if not self._lifecycle.running:
                    return

                try:
                    work = await self._resolve(key)
                except ResolverError as err:
                    if self._lifecycle.running:
                        _LOGGER.error("Failed to get work %s, ending watch: %s", key, err)
                        error = err
                    return

                if (event := self._build_event(key, kind, work)) is None:
                    continue

                _LOGGER.debug("Sending event %s", event)
                try:
                    await self._channel.send(event)
                except ChannelClosedError:
                    _LOGGER.debug("Stream closed before %s was received", event)
                    return

                if work is None and kind == ChangeKind.DELETED:
                    if self._config.stop_on_delete:
                        _LOGGER.info("Work %s was deleted, ending watch", key)
                        return
        except Exception as err:
            error = err
            raise
        finally:
            self._terminate(error)

    async def _resolve(self, key: str) -> ManifestWork | None:
        """Fetch the resource, retrying failures according to the retry policy.

        No attempt is made once the store is stopping, and a stop ends any
        backoff in progress.
        """
        policy = self._config.retry
        retrying = AsyncRetrying(
            retry=retry_if_exception_type(ResolverError),
            stop=stop_any(stop_after_attempt(policy.max_attempts), self._stopping),
            wait=wait_exponential(
                multiplier=policy.initial_backoff,
                exp_base=policy.multiplier,
                max=policy.max_backoff,
            ),
            sleep=self._backoff,
            before_sleep=partial(self._log_retry, key, policy.max_attempts),
            reraise=True,
        )
        return await retrying(self._fetch, key)

    async def _fetch(self, key: str) -> ManifestWork | None:
        if not self._lifecycle.running:
            raise ResolverError(f"Watch stopped before {key} was fetched")
        return await self._resolver.fetch(key)

    def _stopping(self, retry_state: RetryCallState) -> bool:
        return not self._lifecycle.running

    async def _backoff(self, delay: float) -> None:
        """Sleep between attempts, returning early when the store stops."""
        with contextlib.suppress(TimeoutError):
            await asyncio.wait_for(self._stopped.wait(), delay)

    @staticmethod
    def _log_retry(key: str, attempts: int, retry_state: RetryCallState) -> None:
        err = retry_state.outcome.exception() if retry_state.outcome else None
        delay = retry_state.next_action.sleep if retry_state.next_action else 0.0
        _LOGGER.warning(
            "Failed to get work %s (attempt %d/%d), retrying in %.1fs: %s",
            key,
            retry_state.attempt_number,
            attempts,
            delay,
            err,
        )

    def _build_event(
        self, key: str, kind: ChangeKind, work: ManifestWork | None
    ) -> WatchEvent | None:
        """Return the event to send for a resolved key, or None to drop it."""
        if work is None:
            if kind == ChangeKind.DELETED:
                return WatchEvent(EventType.DELETED, self._resolver.tombstone(key))
            if self._config.emit_deleted_on_missing:
                _LOGGER.debug("Work %s (%s) no longer exists, sending deletion", key, kind)
                return WatchEvent(EventType.DELETED, self._resolver.tombstone(key))
            _LOGGER.warning("Work %s (%s) no longer exists, dropping event", key, kind)
            return None
        if kind == ChangeKind.DELETED:
            # Deletion is still in progress on the server.
            return WatchEvent(EventType.DELETED, work.identity())
        return WatchEvent(EventType.from_change(kind), work)
