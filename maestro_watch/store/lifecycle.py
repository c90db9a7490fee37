"""Lifecycle state for a watch session."""

from collections.abc import Callable
from enum import StrEnum
import logging
import threading

_LOGGER = logging.getLogger(__name__)


class LifecycleState(StrEnum):
    """States of a watch session."""

    RUNNING = "Running"
    STOPPING = "Stopping"
    STOPPED = "Stopped"


class Lifecycle:
    """Runs shutdown exactly once no matter how many callers request it.

    The RUNNING to STOPPING transition is decided under a single lock, so
    only one caller ever runs the shutdown callback. Every other call is a
    no-op.
    """

    def __init__(self, on_stop: Callable[[], None]) -> None:
        """Initialize Lifecycle with the callback that performs shutdown."""
        self._lock = threading.Lock()
        self._state = LifecycleState.RUNNING
        self._on_stop = on_stop

    @property
    def state(self) -> LifecycleState:
        """Return the current state."""
        with self._lock:
            return self._state

    @property
    def running(self) -> bool:
        """Return True if stop has not been requested."""
        return self.state == LifecycleState.RUNNING

    def stop(self) -> bool:
        """Request shutdown.

        Returns True for the call that performed shutdown and False for
        every other call.
        """
        with self._lock:
            if self._state != LifecycleState.RUNNING:
                _LOGGER.debug("Stop requested while %s, ignoring", self._state)
                return False
            self._state = LifecycleState.STOPPING
        try:
            self._on_stop()
        finally:
            with self._lock:
                self._state = LifecycleState.STOPPED
        return True
