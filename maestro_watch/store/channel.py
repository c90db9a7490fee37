"""An unbuffered channel for handing events from a producer to a consumer.

A `send` does not complete until a consumer has received the item, which
limits the producer to the pace of the consumer. The channel must only be
used from the thread running its event loop.
"""

import asyncio
from collections import deque
from collections.abc import AsyncIterator
import logging
from typing import Generic, TypeVar

from maestro_watch.exceptions import ChannelClosedError

_LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


class Channel(Generic[T]):
    """Rendezvous channel between senders and a receiver."""

    def __init__(self) -> None:
        """Initialize Channel."""
        self._senders: deque[tuple[T, asyncio.Future[None]]] = deque()
        self._receivers: deque[asyncio.Future[T]] = deque()
        self._closed = False
        self._error: BaseException | None = None

    async def send(self, item: T) -> None:
        """Send an item, waiting until it has been received.

        Raises ChannelClosedError if the channel is closed before the item
        is received.
        """
        if self._closed:
            raise ChannelClosedError("Send on closed channel")
        while self._receivers:
            receiver = self._receivers.popleft()
            if not receiver.done():
                receiver.set_result(item)
                return
        delivered = asyncio.get_running_loop().create_future()
        entry = (item, delivered)
        self._senders.append(entry)
        try:
            await delivered
        except asyncio.CancelledError:
            if entry in self._senders:
                self._senders.remove(entry)
            raise

    async def receive(self) -> T:
        """Receive the next item, waiting for a sender.

        Raises ChannelClosedError once the channel is closed.
        """
        while self._senders:
            item, delivered = self._senders.popleft()
            if not delivered.done():
                delivered.set_result(None)
                return item
        if self._closed:
            raise ChannelClosedError("Receive on closed channel")
        receiver = asyncio.get_running_loop().create_future()
        self._receivers.append(receiver)
        try:
            return await receiver
        except asyncio.CancelledError:
            if receiver in self._receivers:
                self._receivers.remove(receiver)
            raise

    def close(self, error: BaseException | None = None) -> None:
        """Close the channel, failing any blocked senders and receivers.

        The optional error is raised to consumers iterating the channel
        instead of a normal end of iteration. Closing a closed channel
        raises ChannelClosedError.
        """
        if self._closed:
            raise ChannelClosedError("Close of closed channel")
        _LOGGER.debug("Closing channel (error=%s)", error)
        self._closed = True
        self._error = error
        while self._senders:
            _, delivered = self._senders.popleft()
            if not delivered.done():
                delivered.set_exception(ChannelClosedError("Channel closed"))
        while self._receivers:
            receiver = self._receivers.popleft()
            if not receiver.done():
                receiver.set_exception(ChannelClosedError("Channel closed"))

    @property
    def closed(self) -> bool:
        """Return True if the channel has been closed."""
        return self._closed

    @property
    def error(self) -> BaseException | None:
        """Return the error the channel was closed with, if any."""
        return self._error


class EventStream(Generic[T]):
    """Read only view of a channel for a consumer."""

    def __init__(self, channel: Channel[T]) -> None:
        """Initialize EventStream."""
        self._channel = channel

    async def receive(self) -> T:
        """Receive the next item, see `Channel.receive`."""
        return await self._channel.receive()

    @property
    def closed(self) -> bool:
        """Return True if no further items will be delivered."""
        return self._channel.closed

    def __aiter__(self) -> AsyncIterator[T]:
        return self

    async def __anext__(self) -> T:
        try:
            return await self._channel.receive()
        except ChannelClosedError:
            if (error := self._channel.error) is not None:
                raise error
            raise StopAsyncIteration
