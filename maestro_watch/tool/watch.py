"""maestro-watch watch action."""

import logging
from argparse import (
    ArgumentParser,
    _SubParsersAction as SubParsersAction,
)
from typing import cast, Any

from maestro_watch.config import WatchStoreConfig
from maestro_watch.poller import DEFAULT_POLL_INTERVAL, ListPoller
from maestro_watch.store import ListFilter, WatchEvent, WatchStore
from maestro_watch.task import background_tasks

from . import common
from .format import new_formatter

_LOGGER = logging.getLogger(__name__)

EVENT_LINE = "{:<12}{:<24}{:<32}{}"


def event_line(event: WatchEvent) -> str:
    """Return the table line for an event."""
    work = event.object
    return EVENT_LINE.format(
        str(event.type),
        work.namespace or "",
        work.name or work.uid or "",
        work.resource_version,
    ).rstrip()


def event_doc(event: WatchEvent) -> dict[str, Any]:
    """Return the structured representation of an event."""
    return {"type": str(event.type), "object": event.object.compact_dict()}


class WatchAction:
    """Watch works for changes."""

    @classmethod
    def register(
        cls, subparsers: SubParsersAction  # type: ignore[type-arg]
    ) -> ArgumentParser:
        """Register the subparser commands."""
        args = cast(
            ArgumentParser,
            subparsers.add_parser(
                "watch",
                help="Watch works for changes",
                description=(
                    "Poll the server for changed works and print an event for "
                    "each change until a watched work is deleted"
                ),
            ),
        )
        args.add_argument(
            "--namespace",
            "-n",
            help="Only watch works for this consumer cluster",
        )
        args.add_argument(
            "--poll-interval",
            type=float,
            default=DEFAULT_POLL_INTERVAL,
            help="Seconds between list calls",
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
        poll_interval: float,
        output: str,
        **kwargs: Any,
    ) -> None:
        """Async Action implementation."""
        config = common.client_config(**kwargs)
        async with (
            common.rest_resolver(config) as resolver,
            background_tasks() as task_service,
            WatchStore(resolver, WatchStoreConfig()) as store,
        ):
            poller = ListPoller(store, ListFilter(namespace=namespace), poll_interval)
            task_service.create_background_task(poller.run(), name="list-poller")
            if output == "table":
                print(EVENT_LINE.format("EVENT", "NAMESPACE", "NAME", "VERSION"))
            async for event in store.stream():
                _LOGGER.debug("Received event %s", event)
                if output == "table":
                    print(event_line(event))
                else:
                    new_formatter(output).print([event_doc(event)])
