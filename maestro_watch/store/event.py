"""Events delivered to a watch consumer."""

from dataclasses import dataclass
from enum import StrEnum

from maestro_watch.manifest import ManifestWork

from .queue import ChangeKind


class EventType(StrEnum):
    """The type of change delivered to a consumer."""

    ADDED = "ADDED"
    MODIFIED = "MODIFIED"
    DELETED = "DELETED"

    @classmethod
    def from_change(cls, kind: ChangeKind) -> "EventType":
        """Return the event type for a declared change kind."""
        return cls(kind.value)


@dataclass(frozen=True)
class WatchEvent:
    """A change to a single resource.

    For DELETED events the object only carries identity fields.
    """

    type: EventType
    object: ManifestWork

    def __str__(self) -> str:
        return f"{self.type} {self.object.namespaced_name or self.object.uid}"
