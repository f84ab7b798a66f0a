"""CLI entry and startup wiring."""

from __future__ import annotations

import argparse
import logging

from .archive_service import compress
from .constants import DEFAULT_COMPRESS_LEVEL
from .errors import TargzError
from .extract_service import extract
from .presenters import render_compress_result, render_error, render_extract_result

_LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format=_LOG_FORMAT,
    )

    try:
        if args.command == "compress":
            lines = render_compress_result(
                compress(args.source, args.archive, compress_level=args.level)
            )
        else:
            lines = render_extract_result(extract(args.archive, args.dest))
    except TargzError as exc:
        print(render_error(str(exc)))
        return 1

    for line in lines:
        print(line)
    return 0


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="targz",
        description="Create and extract tar.gz archives of directory trees.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log progress at INFO level.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    compress_parser = subparsers.add_parser(
        "compress",
        help="Archive a directory; only its last path element is kept in entry names.",
    )
    compress_parser.add_argument(
        "source",
        help="Directory to archive. The last path element may be a wildcard pattern.",
    )
    compress_parser.add_argument("archive", help="Path of the tar.gz file to create.")
    compress_parser.add_argument(
        "--level",
        type=int,
        choices=range(0, 10),
        default=DEFAULT_COMPRESS_LEVEL,
        metavar="0-9",
        help=f"gzip compression level (default: {DEFAULT_COMPRESS_LEVEL}).",
    )

    extract_parser = subparsers.add_parser(
        "extract",
        help="Extract a tar.gz archive into a directory.",
    )
    extract_parser.add_argument("archive", help="Path of the tar.gz file to read.")
    extract_parser.add_argument(
        "dest",
        help="Directory to extract into; created when missing.",
    )
    return parser
