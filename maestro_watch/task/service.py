"""Task tracking service for long running loops."""

import asyncio
from functools import partial
import logging
from typing import Any, Coroutine, Set
from abc import ABC, abstractmethod

_LOGGER = logging.getLogger(__name__)

__all__: list[str] = []


class TaskService(ABC):
    """Service for tracking background loops such as watch processing."""

    @abstractmethod
    def create_background_task(
        self, coro: Coroutine[None, None, Any], name: str | None = None
    ) -> asyncio.Task[Any]:
        """Create and track a new long running background task.

        Args:
            coro: The coroutine to run as a task
            name: Optional name of the task, used in logs

        Returns:
            The created task
        """

    @abstractmethod
    async def cancel_background_tasks(self) -> None:
        """Cancel all tracked background tasks and wait for them to finish."""

    @abstractmethod
    def get_num_background_tasks(self) -> int:
        """Get the number of running background tasks."""


class TaskServiceImpl(TaskService):
    """Default TaskService tracking tasks on the running event loop."""

    def __init__(self) -> None:
        """Initialize the task service."""
        self._background_tasks: Set[asyncio.Task[Any]] = set()

    def create_background_task(
        self, coro: Coroutine[None, None, Any], name: str | None = None
    ) -> asyncio.Task[Any]:
        """Create and track a new background task."""
        task = asyncio.create_task(coro, name=name)
        self._background_tasks.add(task)
        task.add_done_callback(partial(self._task_done, self._background_tasks))
        return task

    def _task_done(
        self, task_set: Set[asyncio.Task[Any]], task: asyncio.Task[Any]
    ) -> None:
        """Callback when a task is done."""
        try:
            task.result()
        except asyncio.CancelledError:
            pass
        except Exception as e:
            _LOGGER.error("Task %s failed: %s", task.get_name(), e)
        finally:
            task_set.discard(task)

    async def cancel_background_tasks(self) -> None:
        """Cancel all tracked background tasks and wait for them to finish."""
        tasks = list(self._background_tasks)
        if not tasks:
            return
        _LOGGER.debug("Cancelling %d background tasks", len(tasks))
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    def get_num_background_tasks(self) -> int:
        """Get the number of running background tasks."""
        return len(self._background_tasks)
