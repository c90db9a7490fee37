"""Resolvers read the authoritative state of a resource from a backend."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
import logging

from maestro_watch.exceptions import InputException
from maestro_watch.manifest import ManifestWork, namespaced_key, split_key

__all__ = [
    "ListFilter",
    "ResourceResolver",
    "InMemoryResolver",
]

_LOGGER = logging.getLogger(__name__)

NAMESPACE_FIELD = "metadata.namespace"


@dataclass
class ListFilter:
    """Scopes a list call."""

    namespace: str | None = None
    """Only return works for this consumer cluster."""

    @classmethod
    def parse_field_selector(cls, selector: str | None) -> "ListFilter":
        """Build a ListFilter from a kubernetes field selector.

        Only `metadata.namespace` equality is used for scoping, other fields
        are ignored.
        """
        result = cls()
        if not selector:
            return result
        for term in selector.split(","):
            term = term.strip()
            if not term:
                continue
            if "!=" in term:
                field, _, value = term.partition("!=")
                if field.strip() == NAMESPACE_FIELD:
                    raise InputException(
                        f"Unsupported field selector '{term}': only equality is supported for {NAMESPACE_FIELD}"
                    )
                continue
            if "==" in term:
                field, _, value = term.partition("==")
            elif "=" in term:
                field, _, value = term.partition("=")
            else:
                raise InputException(f"Invalid field selector '{term}'")
            field = field.strip()
            if not field:
                raise InputException(f"Invalid field selector '{term}'")
            if field == NAMESPACE_FIELD:
                result.namespace = value.strip() or None
            else:
                _LOGGER.debug("Ignoring field selector %s", term)
        return result

    def matches(self, work: ManifestWork) -> bool:
        """Return True if the work is in scope."""
        return self.namespace is None or work.namespace == self.namespace


class ResourceResolver(ABC):
    """Read path from a resource key to the current state of the resource."""

    @abstractmethod
    async def fetch(self, key: str) -> ManifestWork | None:
        """Return the current resource for the key or None if it does not exist.

        Raises:
            ResolverError: If the backend could not be read.
        """

    @abstractmethod
    async def fetch_list(self, list_filter: ListFilter) -> list[ManifestWork]:
        """Return all resources in scope of the filter.

        Raises:
            ResolverError: If the backend could not be read.
        """

    def key_for(self, namespace: str, name: str) -> str:
        """Return the key of the resource with the specified namespace and name."""
        return namespaced_key(namespace, name)

    def key_of(self, work: ManifestWork) -> str:
        """Return the key of a resource returned by this resolver."""
        return namespaced_key(work.namespace, work.name)

    def tombstone(self, key: str) -> ManifestWork:
        """Return an identity only resource for a key that no longer exists."""
        try:
            namespace, name = split_key(key)
        except InputException:
            return ManifestWork(name=key)
        return ManifestWork(name=name, namespace=namespace)


class InMemoryResolver(ResourceResolver):
    """Resolver backed by a dictionary of works keyed by `namespace/name`."""

    def __init__(self, works: list[ManifestWork] | None = None) -> None:
        """Initialize InMemoryResolver."""
        self._works: dict[str, ManifestWork] = {}
        self._removed: dict[str, ManifestWork] = {}
        for work in works or ():
            self.put(work)

    def put(self, work: ManifestWork) -> str:
        """Add or replace a work, returning its key."""
        key = namespaced_key(work.namespace, work.name)
        self._works[key] = work
        self._removed.pop(key, None)
        return key

    def remove(self, key: str) -> None:
        """Remove the work with the specified key."""
        if (work := self._works.pop(key, None)) is not None:
            self._removed[key] = work.identity()

    async def fetch(self, key: str) -> ManifestWork | None:
        """Return the work for the key or None if it does not exist."""
        return self._works.get(key)

    async def fetch_list(self, list_filter: ListFilter) -> list[ManifestWork]:
        """Return all works in scope of the filter."""
        return [work for work in self._works.values() if list_filter.matches(work)]

    def tombstone(self, key: str) -> ManifestWork:
        """Return the identity of a removed work."""
        if (removed := self._removed.get(key)) is not None:
            return removed
        return super().tombstone(key)
