"""Scoping of the TaskService used by watch stores and pollers."""

import contextlib
import contextvars
import logging
from collections.abc import AsyncGenerator

from .service import TaskService, TaskServiceImpl

__all__: list[str] = []

_LOGGER = logging.getLogger(__name__)

_current: contextvars.ContextVar[TaskService | None] = contextvars.ContextVar(
    "maestro_watch_task_service", default=None
)


def current_task_service() -> TaskService:
    """Return the TaskService installed by `background_tasks`.

    Outside of `background_tasks` a new unscoped TaskService is returned, and
    the caller owns the tasks it creates.
    """
    if (service := _current.get()) is not None:
        return service
    return TaskServiceImpl()


@contextlib.asynccontextmanager
async def background_tasks(
    service: TaskService | None = None,
) -> AsyncGenerator[TaskService, None]:
    """Run a block whose background loops are cancelled when it exits.

    Watch stores and pollers created inside the block track their loops in
    the yielded TaskService.
    """
    service = service or TaskServiceImpl()
    token = _current.set(service)
    try:
        yield service
    finally:
        _current.reset(token)
        if count := service.get_num_background_tasks():
            _LOGGER.debug("Cancelling %d background loops", count)
        await service.cancel_background_tasks()
