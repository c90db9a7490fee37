"""
The store module emulates a watch over a backend that only supports reads.

- Producers mark keys dirty; repeated marks of a pending key coalesce.
- A single processing loop resolves each key against a ResourceResolver at
  delivery time and sends a WatchEvent to the consumer.
- Events are handed off through an unbuffered channel so the consumer has
  observed an event before the next key is resolved.
"""

from .channel import Channel, EventStream
from .event import EventType, WatchEvent
from .lifecycle import Lifecycle, LifecycleState
from .queue import ChangeKind, DirtyKeyQueue
from .resolver import InMemoryResolver, ListFilter, ResourceResolver
from .watch_store import ResourceAction, WatchStore

__all__ = [
    "Channel",
    "ChangeKind",
    "DirtyKeyQueue",
    "EventStream",
    "EventType",
    "InMemoryResolver",
    "Lifecycle",
    "LifecycleState",
    "ListFilter",
    "ResourceAction",
    "ResourceResolver",
    "WatchEvent",
    "WatchStore",
]
