"""Exceptions related to maestro-watch."""

__all__ = [
    "WatchException",
    "InputException",
    "ObjectNotFoundError",
    "ResolverError",
    "QueueClosedError",
    "ChannelClosedError",
    "WatchTerminatedError",
]


class WatchException(Exception):
    """Generic base exception used for this library."""


class InputException(WatchException):
    """Raised when the input documents or values are not formatted as expected."""


class ObjectNotFoundError(WatchException):
    """Raised when a resource does not exist in the backend."""

    def __init__(self, key: str) -> None:
        super().__init__(f"Resource {key} not found")
        self.key = key


class ResolverError(WatchException):
    """Raised when the backend could not be read for a reason other than not-found."""


class QueueClosedError(WatchException):
    """Raised when popping from a queue that is closed and drained."""


class ChannelClosedError(WatchException):
    """Raised when using an event channel that has been closed."""


class WatchTerminatedError(WatchException):
    """Raised to a consumer when a watch session ended because of a failure."""
