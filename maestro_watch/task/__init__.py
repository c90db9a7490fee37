"""Background task tracking for maestro-watch.

Watch stores and pollers run long lived loops. This module tracks those
loops so they can be awaited or cancelled together on shutdown.
"""

from .context import background_tasks, current_task_service
from .service import TaskService

__all__ = ["background_tasks", "current_task_service", "TaskService"]
