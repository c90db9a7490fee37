"""Command line tool for reading and watching works on a REST server."""

import argparse
import asyncio
import logging
import sys
import traceback

from maestro_watch.exceptions import WatchException
from . import common, get, list_works, watch

_LOGGER = logging.getLogger(__name__)


def _make_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Command line utility for reading and watching works.",
    )
    parser.add_argument(
        "--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    )
    common.add_client_flags(parser)

    subparsers = parser.add_subparsers(dest="command", help="Command", required=True)

    get.GetAction.register(subparsers)
    list_works.ListAction.register(subparsers)
    watch.WatchAction.register(subparsers)
    return parser


def main() -> None:
    """maestro-watch command line tool main entry point."""
    parser = _make_parser()
    args = parser.parse_args()

    if args.log_level:
        logging.basicConfig(level=args.log_level)

    action = args.cls()
    try:
        asyncio.run(action.run(**vars(args)))
    except KeyboardInterrupt:
        _LOGGER.debug("Interrupted, exiting")
    except WatchException as err:
        if args.log_level == "DEBUG":
            traceback.print_exc(file=sys.stderr)
        print("maestro-watch error: ", err, file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
