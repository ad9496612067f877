"""Command line tool for resolving releases in a delivery pipeline."""

import argparse
import asyncio
import logging
import sys
import traceback

from dotenv import load_dotenv

from release_resolver.exceptions import ReleaseException
from . import run, show

_LOGGER = logging.getLogger(__name__)


def _make_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Resolve chart releases for a delivery pipeline.",
    )
    parser.add_argument(
        "--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    )

    subparsers = parser.add_subparsers(dest="command", help="Command", required=True)

    run.RunAction.register(subparsers)
    show.ShowAction.register(subparsers)
    return parser


def main() -> None:
    """Release-resolver command line tool main entry point."""
    load_dotenv(override=False)

    parser = _make_parser()
    args = parser.parse_args()

    if args.log_level:
        logging.basicConfig(level=args.log_level)

    action = args.cls()
    try:
        asyncio.run(action.run(**vars(args)))
    except ReleaseException as err:
        if args.log_level == "DEBUG":
            traceback.print_exc(file=sys.stderr)
        print("release-resolver error: ", err, file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
