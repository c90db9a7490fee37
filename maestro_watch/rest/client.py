"""Construction of the http client used to talk to the REST server."""

import logging

import httpx

from maestro_watch.config import ClientConfig

_LOGGER = logging.getLogger(__name__)


def create_client(config: ClientConfig) -> httpx.AsyncClient:
    """Return an http client for the server in the config.

    The caller owns the client and is responsible for closing it.
    """
    if config.insecure_skip_verify:
        _LOGGER.warning("TLS verification disabled for %s", config.server)
    return httpx.AsyncClient(
        base_url=config.server,
        timeout=config.timeout,
        verify=not config.insecure_skip_verify,
        headers={
            "Accept": "application/json",
            "User-Agent": config.user_agent,
        },
    )
