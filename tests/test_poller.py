"""Tests for the ListPoller."""

import asyncio
from collections.abc import AsyncGenerator

import pytest

from maestro_watch.exceptions import ResolverError
from maestro_watch.manifest import ManifestWork
from maestro_watch.poller import ListPoller
from maestro_watch.store import (
    ChangeKind,
    EventType,
    InMemoryResolver,
    ListFilter,
    WatchStore,
)
from maestro_watch.task.service import TaskServiceImpl


def work(name: str, version: int = 1, namespace: str = "cluster1") -> ManifestWork:
    return ManifestWork(name=name, namespace=namespace, resource_version=version)


@pytest.fixture
def resolver() -> InMemoryResolver:
    return InMemoryResolver([work("a"), work("b"), work("c", namespace="cluster2")])


@pytest.fixture
async def store(resolver: InMemoryResolver) -> AsyncGenerator[WatchStore, None]:
    async with WatchStore(resolver, task_service=TaskServiceImpl()) as store:
        yield store


async def test_poll_changes(store: WatchStore, resolver: InMemoryResolver) -> None:
    """Test each poll marks the changes since the previous poll."""
    poller = ListPoller(store, ListFilter(namespace="cluster1"))

    await poller.poll_once()
    assert store._queue.pending() == [
        ("cluster1/a", ChangeKind.ADDED),
        ("cluster1/b", ChangeKind.ADDED),
    ]
    assert [(await store.stream().receive()).object.name for _ in range(2)] == [
        "a",
        "b",
    ]

    resolver.put(work("a", version=2))
    resolver.put(work("d"))
    await poller.poll_once()
    assert store._queue.pending() == [
        ("cluster1/a", ChangeKind.MODIFIED),
        ("cluster1/d", ChangeKind.ADDED),
    ]


async def test_poll_unchanged(store: WatchStore) -> None:
    """Test a poll without changes marks nothing."""
    poller = ListPoller(store)
    await poller.poll_once()
    while store._queue.pending():
        await store.stream().receive()

    await poller.poll_once()
    assert store._queue.pending() == []


async def test_poll_deleted(store: WatchStore, resolver: InMemoryResolver) -> None:
    """Test a work missing from the list is delivered as deleted."""
    poller = ListPoller(store, ListFilter(namespace="cluster2"))
    await poller.poll_once()
    assert (await store.stream().receive()).object.name == "c"

    resolver.remove("cluster2/c")
    await poller.poll_once()
    event = await store.stream().receive()
    assert event.type == EventType.DELETED
    assert event.object == ManifestWork(name="c", namespace="cluster2")


async def test_run_until_stopped(store: WatchStore) -> None:
    """Test the poller exits once the store is stopped."""
    poller = ListPoller(store, ListFilter(namespace="cluster2"), interval=0.01)
    task = asyncio.create_task(poller.run())

    async with asyncio.timeout(1):
        assert (await store.stream().receive()).object.name == "c"
        store.stop()
        await task


async def test_run_survives_list_failure(
    store: WatchStore, resolver: InMemoryResolver
) -> None:
    """Test a failed list is retried on the next interval."""
    fetch_list = resolver.fetch_list
    calls = 0

    async def flaky_fetch_list(list_filter: ListFilter) -> list[ManifestWork]:
        nonlocal calls
        calls += 1
        if calls == 1:
            raise ResolverError("boom")
        return await fetch_list(list_filter)

    resolver.fetch_list = flaky_fetch_list  # type: ignore[method-assign]
    poller = ListPoller(store, ListFilter(namespace="cluster2"), interval=0.01)
    task = asyncio.create_task(poller.run())

    async with asyncio.timeout(1):
        assert (await store.stream().receive()).object.name == "c"
        store.stop()
        await task
    assert calls >= 2
