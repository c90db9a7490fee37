"""ResourceResolver reading resource bundles over http."""

import logging
from typing import Any

import httpx

from maestro_watch.exceptions import InputException, ResolverError
from maestro_watch.manifest import ManifestWork, work_uid
from maestro_watch.store.resolver import ListFilter, ResourceResolver

__all__ = ["RestResolver"]

_LOGGER = logging.getLogger(__name__)

RESOURCE_BUNDLES_PATH = "/api/maestro/v1/resource-bundles"
DEFAULT_PAGE_SIZE = 100


class RestResolver(ResourceResolver):
    """Resolves works by their uid using the resource bundle API.

    The resolver remembers the name and namespace of each work it reads
    until the deletion of that work has been reported with its identity.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        source_id: str,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> None:
        """Initialize RestResolver."""
        self._client = client
        self._source_id = source_id
        self._page_size = page_size
        self._identities: dict[str, ManifestWork] = {}

    async def fetch(self, key: str) -> ManifestWork | None:
        """Return the work with the uid or None if it does not exist."""
        response = await self._request(f"{RESOURCE_BUNDLES_PATH}/{key}")
        if response.status_code == httpx.codes.NOT_FOUND:
            _LOGGER.debug("Resource bundle %s not found", key)
            return None
        return self._parse(self._decode(response))

    async def fetch_list(self, list_filter: ListFilter) -> list[ManifestWork]:
        """Return all works in scope of the filter, following pagination."""
        params: dict[str, Any] = {"size": self._page_size}
        if list_filter.namespace:
            namespace = list_filter.namespace.replace("'", "''")
            params["search"] = f"consumer_name = '{namespace}'"
        works: list[ManifestWork] = []
        page = 1
        while True:
            params["page"] = page
            response = await self._request(RESOURCE_BUNDLES_PATH, params=params)
            doc = self._decode(response)
            items = doc.get("items") or []
            if not isinstance(items, list):
                raise ResolverError(f"Invalid resource bundle list: {doc}")
            works.extend(self._parse(item) for item in items)
            total = doc.get("total")
            if not items or not isinstance(total, int) or len(works) >= total:
                break
            page += 1
        _LOGGER.debug("Listed %d resource bundles (%s)", len(works), list_filter)
        return works

    def key_for(self, namespace: str, name: str) -> str:
        """Return the uid this resolver's source assigns to the work."""
        return work_uid(self._source_id, namespace, name)

    def key_of(self, work: ManifestWork) -> str:
        """Return the uid of the work."""
        if not work.uid:
            raise InputException(f"Work {work.namespaced_name} has no uid")
        return work.uid

    def tombstone(self, key: str) -> ManifestWork:
        """Return the last known identity of the work with the uid.

        The identity is forgotten once its tombstone has been produced.
        """
        if (identity := self._identities.pop(key, None)) is not None:
            return identity
        return ManifestWork(name="", uid=key)

    async def _request(
        self, path: str, params: dict[str, Any] | None = None
    ) -> httpx.Response:
        try:
            response = await self._client.get(path, params=params)
        except httpx.HTTPError as err:
            raise ResolverError(f"Request to {path} failed: {err}") from err
        if response.status_code != httpx.codes.NOT_FOUND and not response.is_success:
            raise ResolverError(
                f"Request to {path} failed with status {response.status_code}: {response.text}"
            )
        return response

    def _decode(self, response: httpx.Response) -> dict[str, Any]:
        if response.status_code == httpx.codes.NOT_FOUND:
            raise ResolverError(f"Request to {response.request.url} not found")
        try:
            doc = response.json()
        except ValueError as err:
            raise ResolverError(
                f"Invalid response from {response.request.url}: {err}"
            ) from err
        if not isinstance(doc, dict):
            raise ResolverError(f"Invalid response from {response.request.url}: {doc}")
        return doc

    def _parse(self, doc: dict[str, Any]) -> ManifestWork:
        try:
            work = ManifestWork.parse_bundle(doc)
        except InputException as err:
            raise ResolverError(f"Failed to decode resource bundle: {err}") from err
        if work.uid:
            self._identities[work.uid] = work.identity()
        return work
