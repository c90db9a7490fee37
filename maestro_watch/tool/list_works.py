"""maestro-watch list action."""

import logging
from argparse import (
    ArgumentParser,
    _SubParsersAction as SubParsersAction,
)
from typing import cast, Any

from maestro_watch.store import ListFilter, WatchStore

from . import common
from .format import WORK_COLUMNS, new_formatter, work_row

_LOGGER = logging.getLogger(__name__)


class ListAction:
    """List works, optionally scoped to a consumer cluster."""

    @classmethod
    def register(
        cls, subparsers: SubParsersAction  # type: ignore[type-arg]
    ) -> ArgumentParser:
        """Register the subparser commands."""
        args = cast(
            ArgumentParser,
            subparsers.add_parser(
                "list",
                aliases=["ls"],
                help="List works",
                description="Print the works read from the server",
            ),
        )
        scope = args.add_mutually_exclusive_group()
        scope.add_argument(
            "--namespace",
            "-n",
            help="Only list works for this consumer cluster",
        )
        scope.add_argument(
            "--field-selector",
            help="Kubernetes field selector, e.g. metadata.namespace=cluster1",
        )
        args.add_argument(
            "--output",
            "-o",
            choices=["table", "yaml", "json"],
            default="table",
            help="Output format of the command",
        )
        args.set_defaults(cls=cls)
        return args

    async def run(  # type: ignore[no-untyped-def]
        self,
        namespace: str | None,
        field_selector: str | None,
        output: str,
        **kwargs: Any,
    ) -> None:
        """Async Action implementation."""
        if namespace:
            list_filter = ListFilter(namespace=namespace)
        else:
            list_filter = ListFilter.parse_field_selector(field_selector)
        config = common.client_config(**kwargs)
        async with common.rest_resolver(config) as resolver:
            async with WatchStore(resolver) as store:
                works = await store.list(list_filter)

        if not works:
            print("No works found")
            return
        if output == "table":
            new_formatter(output, WORK_COLUMNS).print([work_row(w) for w in works])
            return
        new_formatter(output).print([work.compact_dict() for work in works])
