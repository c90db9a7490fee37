"""
maestro-watch emulates a watch over a REST API that only supports reads.

Producers notify a `WatchStore` that a work changed. The store coalesces
repeated notifications, reads the current state of each work when it is
delivered and streams typed events to a single consumer.
"""

__all__ = [
    "config",
    "exceptions",
    "manifest",
    "poller",
    "rest",
    "store",
    "task",
]
