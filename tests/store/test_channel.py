"""Tests for the unbuffered event channel."""

import asyncio

import pytest

from maestro_watch.exceptions import ChannelClosedError, WatchTerminatedError
from maestro_watch.store.channel import Channel, EventStream


@pytest.fixture
def channel() -> Channel[int]:
    return Channel()


async def test_send_waits_for_receiver(channel: Channel[int]) -> None:
    """Test send does not complete until the item is received."""
    send = asyncio.create_task(channel.send(1))
    await asyncio.sleep(0.01)
    assert not send.done()

    assert await channel.receive() == 1
    async with asyncio.timeout(1):
        await send


async def test_receiver_waiting_first(channel: Channel[int]) -> None:
    """Test a waiting receiver is handed the item directly."""
    receive = asyncio.create_task(channel.receive())
    await asyncio.sleep(0)

    async with asyncio.timeout(1):
        await channel.send(2)
        assert await receive == 2


async def test_items_in_order(channel: Channel[int]) -> None:
    """Test multiple senders are received in the order they sent."""
    senders = [asyncio.create_task(channel.send(i)) for i in range(3)]
    await asyncio.sleep(0)

    assert [await channel.receive() for _ in range(3)] == [0, 1, 2]
    await asyncio.gather(*senders)


async def test_close_fails_blocked_sender(channel: Channel[int]) -> None:
    """Test closing the channel fails a sender that was not received."""
    send = asyncio.create_task(channel.send(1))
    await asyncio.sleep(0)

    channel.close()
    with pytest.raises(ChannelClosedError):
        await send
    with pytest.raises(ChannelClosedError):
        await channel.send(2)


async def test_close_fails_blocked_receiver(channel: Channel[int]) -> None:
    """Test closing the channel fails a waiting receiver."""
    receive = asyncio.create_task(channel.receive())
    await asyncio.sleep(0)

    channel.close()
    with pytest.raises(ChannelClosedError):
        await receive
    with pytest.raises(ChannelClosedError):
        await channel.receive()


async def test_double_close(channel: Channel[int]) -> None:
    """Test closing a closed channel is an error."""
    channel.close()
    assert channel.closed
    with pytest.raises(ChannelClosedError, match="Close of closed channel"):
        channel.close()


async def test_cancelled_receiver_skipped(channel: Channel[int]) -> None:
    """Test a cancelled receiver does not swallow an item."""
    receive = asyncio.create_task(channel.receive())
    await asyncio.sleep(0)
    receive.cancel()
    with pytest.raises(asyncio.CancelledError):
        await receive

    send = asyncio.create_task(channel.send(3))
    await asyncio.sleep(0)
    assert not send.done()
    assert await channel.receive() == 3
    await send


async def test_stream_iteration(channel: Channel[int]) -> None:
    """Test iterating a stream ends when the channel is closed."""
    stream = EventStream(channel)

    async def produce() -> None:
        for i in range(3):
            await channel.send(i)
        channel.close()

    producer = asyncio.create_task(produce())
    async with asyncio.timeout(1):
        assert [item async for item in stream] == [0, 1, 2]
    await producer
    assert stream.closed


async def test_stream_raises_close_error(channel: Channel[int]) -> None:
    """Test a stream raises the error the channel was closed with."""
    stream = EventStream(channel)
    channel.close(WatchTerminatedError("boom"))

    assert isinstance(channel.error, WatchTerminatedError)
    with pytest.raises(WatchTerminatedError, match="boom"):
        async for _ in stream:
            pass
