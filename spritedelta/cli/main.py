"""Main CLI entry point for spritedelta."""

from __future__ import annotations

import argparse
import logging
import sys

from .. import __version__
from .export_cli import build_export_parser
from .inspect_cli import build_inspect_parsers


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="spritedelta",
        description="Delta-compressed sprite-sheet export",
    )
    parser.add_argument("--version", action="version",
                        version=f"spritedelta {__version__}")
    parser.add_argument(
        "-v", "--verbose", action="count", default=0,
        help="Log pipeline details (-vv for per-frame debug output)",
    )
    subparsers = parser.add_subparsers(dest="command")
    build_export_parser(subparsers)
    build_inspect_parsers(subparsers)
    args = parser.parse_args(argv)

    level = logging.WARNING
    if args.verbose == 1:
        level = logging.INFO
    elif args.verbose >= 2:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    if args.command is None:
        parser.print_help()
        return 0
    return args.func(args)


def cli_entry() -> None:
    sys.exit(main())
