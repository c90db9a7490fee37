"""Representation of the resources served by a work server.

A `ManifestWork` is a named set of kubernetes manifests targeted at a single
consumer cluster. The REST server stores works as resource bundles; this
module converts bundle documents into `ManifestWork` objects and provides
the key encodings used to identify works while they are being watched.
"""

from dataclasses import dataclass, field
import logging
from typing import Any
import uuid

from mashumaro import DataClassDictMixin, field_options
from mashumaro.config import BaseConfig
from mashumaro.exceptions import InvalidFieldValue, MissingField

from .exceptions import InputException

__all__ = [
    "BaseManifest",
    "Condition",
    "WorkStatus",
    "ManifestWork",
    "namespaced_key",
    "split_key",
    "work_uid",
]

_LOGGER = logging.getLogger(__name__)


MANIFEST_WORK_GROUP_RESOURCE = "manifestworks.work.open-cluster-management.io"


def namespaced_key(namespace: str | None, name: str) -> str:
    """Return the `namespace/name` key for a resource."""
    if namespace:
        return f"{namespace}/{name}"
    return name


def split_key(key: str) -> tuple[str | None, str]:
    """Split a `namespace/name` key into its parts."""
    if not key:
        raise InputException("Invalid empty resource key")
    namespace, sep, name = key.rpartition("/")
    if not sep:
        return None, key
    if not namespace or not name:
        raise InputException(f"Invalid resource key '{key}'")
    return namespace, name


def work_uid(source_id: str, namespace: str, name: str) -> str:
    """Return the stable uid that a source assigns to a work.

    The same source, namespace and name always produce the same uid.
    """
    value = f"{MANIFEST_WORK_GROUP_RESOURCE}-{source_id}-{namespace}-{name}"
    return str(uuid.uuid5(uuid.NAMESPACE_OID, value))


@dataclass
class BaseManifest(DataClassDictMixin):
    """Base class for all manifest objects."""

    def compact_dict(self) -> dict[str, Any]:
        """Return a compact dictionary representation of the object."""
        return self.to_dict()

    class Config(BaseConfig):
        omit_none = True


@dataclass
class Condition(BaseManifest):
    """A status condition reported for a work."""

    type: str
    """The type of the condition e.g. Applied, Available."""

    status: str
    """One of True, False or Unknown."""

    reason: str | None = None

    message: str | None = None

    last_transition_time: str | None = field(
        default=None, metadata=field_options(alias="lastTransitionTime")
    )

    observed_generation: int | None = field(
        default=None, metadata=field_options(alias="observedGeneration")
    )


@dataclass
class WorkStatus(BaseManifest):
    """Status reported by the agent that applied a work."""

    conditions: list[Condition] = field(default_factory=list)
    """Conditions of the work as a whole."""

    resource_status: list[dict[str, Any]] = field(default_factory=list)
    """Per manifest status entries."""

    @classmethod
    def parse_doc(cls, doc: dict[str, Any]) -> "WorkStatus":
        """Parse a WorkStatus from a bundle status document."""
        if not isinstance(doc, dict):
            raise InputException(f"Invalid work status: {doc}")
        conditions = []
        for cond in doc.get("conditions") or []:
            try:
                conditions.append(Condition.from_dict(cond))
            except (MissingField, InvalidFieldValue, TypeError) as err:
                raise InputException(f"Invalid work condition {cond}: {err}") from err
        resource_status = doc.get("resourceStatus") or []
        if not isinstance(resource_status, list):
            raise InputException(f"Invalid work resourceStatus: {doc}")
        return cls(conditions=conditions, resource_status=resource_status)


@dataclass
class ManifestWork(BaseManifest):
    """A set of manifests delivered to a consumer cluster."""

    name: str
    """The name of the work."""

    namespace: str | None = None
    """The namespace of the work, which is the consumer cluster name."""

    uid: str | None = None
    """The uid assigned to the work by the server."""

    resource_version: int = 0
    """Monotonic version of the work, increased on every server side change."""

    manifests: list[dict[str, Any]] = field(default_factory=list)
    """Raw kubernetes objects included in the work."""

    status: WorkStatus | None = None
    """The status reported for the work, if any."""

    @property
    def namespaced_name(self) -> str:
        return namespaced_key(self.namespace, self.name)

    def identity(self) -> "ManifestWork":
        """Return a copy of this work that carries only its identity fields."""
        return ManifestWork(name=self.name, namespace=self.namespace, uid=self.uid)

    @classmethod
    def parse_bundle(cls, doc: dict[str, Any]) -> "ManifestWork":
        """Parse a ManifestWork from a resource bundle document."""
        if not isinstance(doc, dict):
            raise InputException(f"Invalid resource bundle: {doc}")
        if not (uid := doc.get("id")):
            raise InputException(f"Invalid resource bundle missing id: {doc}")
        if not (name := doc.get("name")):
            raise InputException(f"Invalid resource bundle missing name: {doc}")
        if not (namespace := doc.get("consumer_name")):
            raise InputException(
                f"Invalid resource bundle missing consumer_name: {doc}"
            )
        manifests = doc.get("manifests") or []
        for manifest in manifests:
            if not isinstance(manifest, dict):
                raise InputException(
                    f"Invalid resource bundle {name} manifest: {manifest}"
                )
        try:
            version = int(doc.get("version") or 0)
        except (TypeError, ValueError) as err:
            raise InputException(
                f"Invalid resource bundle {name} version: {doc.get('version')}"
            ) from err
        status = None
        if (status_doc := doc.get("status")) is not None:
            status = WorkStatus.parse_doc(status_doc)
        return cls(
            name=name,
            namespace=namespace,
            uid=uid,
            resource_version=version,
            manifests=manifests,
            status=status,
        )
