"""Shared flags and setup for commands that talk to the REST server."""

from argparse import ArgumentParser
from collections.abc import AsyncGenerator
import contextlib
from typing import Any

from maestro_watch.config import ClientConfig, DEFAULT_SERVER, DEFAULT_SOURCE_ID
from maestro_watch.rest import RestResolver, create_client


def add_client_flags(parser: ArgumentParser) -> None:
    """Add flags for connecting to the server."""
    parser.add_argument(
        "--server",
        default=DEFAULT_SERVER,
        help="URL of the REST server",
    )
    parser.add_argument(
        "--source-id",
        default=DEFAULT_SOURCE_ID,
        help="Source id used to compute work uids from namespace and name",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=10.0,
        help="Timeout in seconds for each request",
    )
    parser.add_argument(
        "--insecure",
        action="store_true",
        default=False,
        help="Skip TLS certificate verification",
    )


def client_config(
    server: str,
    source_id: str,
    timeout: float,
    insecure: bool,
    **kwargs: Any,  # pylint: disable=unused-argument
) -> ClientConfig:
    """Build the ClientConfig from parsed flags."""
    return ClientConfig(
        server=server,
        source_id=source_id,
        timeout=timeout,
        insecure_skip_verify=insecure,
    )


@contextlib.asynccontextmanager
async def rest_resolver(config: ClientConfig) -> AsyncGenerator[RestResolver, None]:
    """Yield a RestResolver, closing its client on exit."""
    async with create_client(config) as client:
        yield RestResolver(client, config.source_id, page_size=config.page_size)
