"""Tests for the TaskServiceImpl."""

import asyncio
from typing import Any

import pytest

from maestro_watch.task import background_tasks, current_task_service
from maestro_watch.task.service import TaskServiceImpl


@pytest.fixture
def task_service() -> TaskServiceImpl:
    """Fixture for creating a TaskServiceImpl instance."""
    return TaskServiceImpl()


async def test_background_task_completes(task_service: TaskServiceImpl) -> None:
    """Test a completed background task is no longer tracked."""

    async def loop() -> Any:
        await asyncio.sleep(0.01)
        return "done"

    task = task_service.create_background_task(loop(), name="loop")
    assert task.get_name() == "loop"
    assert task_service.get_num_background_tasks() == 1

    assert await task == "done"
    await asyncio.sleep(0)
    assert task_service.get_num_background_tasks() == 0


async def test_background_task_failure(task_service: TaskServiceImpl) -> None:
    """Test a failed background task is no longer tracked."""

    async def failing_loop() -> Any:
        raise ValueError("Test error")

    task = task_service.create_background_task(failing_loop())
    with pytest.raises(ValueError, match="Test error"):
        await task
    await asyncio.sleep(0)
    assert task_service.get_num_background_tasks() == 0


async def test_cancel_background_tasks(task_service: TaskServiceImpl) -> None:
    """Test cancelling all running background tasks."""

    async def forever() -> Any:
        await asyncio.Future()

    tasks = [task_service.create_background_task(forever()) for _ in range(3)]
    await asyncio.sleep(0)

    await task_service.cancel_background_tasks()

    assert all(task.cancelled() for task in tasks)
    assert task_service.get_num_background_tasks() == 0


async def test_cancel_without_tasks(task_service: TaskServiceImpl) -> None:
    """Test cancelling when nothing is running."""
    await task_service.cancel_background_tasks()
    assert task_service.get_num_background_tasks() == 0


async def test_background_tasks_scope() -> None:
    """Test loops started in the scope are cancelled when it exits."""

    async def forever() -> Any:
        await asyncio.Future()

    outside = current_task_service()

    async with background_tasks() as service:
        assert current_task_service() is service
        task = service.create_background_task(forever(), name="forever")
        await asyncio.sleep(0)

    assert task.cancelled()
    assert service.get_num_background_tasks() == 0
    assert current_task_service() is not service
    assert current_task_service() is not outside


async def test_background_tasks_with_service(task_service: TaskServiceImpl) -> None:
    """Test installing an existing service."""
    async with background_tasks(task_service) as service:
        assert service is task_service
