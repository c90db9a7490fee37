"""maestro-watch get action."""

import logging
from argparse import (
    ArgumentParser,
    _SubParsersAction as SubParsersAction,
)
from typing import cast, Any

from maestro_watch.store import WatchStore

from . import common
from .format import new_formatter

_LOGGER = logging.getLogger(__name__)


class GetAction:
    """Get a single work by namespace and name."""

    @classmethod
    def register(
        cls, subparsers: SubParsersAction  # type: ignore[type-arg]
    ) -> ArgumentParser:
        """Register the subparser commands."""
        args = cast(
            ArgumentParser,
            subparsers.add_parser(
                "get",
                help="Print a work",
                description="Print the current state of a work read from the server",
            ),
        )
        args.add_argument("namespace", help="Consumer cluster name of the work")
        args.add_argument("name", help="Name of the work")
        args.add_argument(
            "--output",
            "-o",
            choices=["yaml", "json"],
            default="yaml",
            help="Output format of the command",
        )
        args.set_defaults(cls=cls)
        return args

    async def run(  # type: ignore[no-untyped-def]
        self,
        namespace: str,
        name: str,
        output: str,
        **kwargs: Any,
    ) -> None:
        """Async Action implementation."""
        config = common.client_config(**kwargs)
        async with common.rest_resolver(config) as resolver:
            async with WatchStore(resolver) as store:
                work = await store.get_by_name(namespace, name)
        new_formatter(output).print([work.compact_dict()])
