"""Command line entry point for building and querying the search index."""

import argparse
import logging
import os
import sys
from pathlib import Path

from blog_search.indexer import SiteIndexer
from blog_search.parser import MarkdocParser
from blog_search.search import QueryEngine, open_engine

logger = logging.getLogger(__name__)


def non_negative_int(value: str) -> int:
    """Parse a result limit, rejecting negative numbers."""
    try:
        number = int(value)
    except ValueError:
        msg = f"invalid int value: {value!r}"
        raise argparse.ArgumentTypeError(msg) from None
    if number < 0:
        msg = f"must be zero or greater, got {number}"
        raise argparse.ArgumentTypeError(msg)
    return number


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser with the build and query subcommands.

    Returns:
        Configured ArgumentParser instance.
    """
    parser = argparse.ArgumentParser(prog="blog-search", description="Build and query the blog search index.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    build = subparsers.add_parser("build", help="Index every page and write the JSON index")
    build.add_argument("pages", type=Path, help="Pages directory")
    build.add_argument("output", type=Path, help="Index file to write")
    build.add_argument(
        "--base-path",
        default=os.environ.get("NEXT_PUBLIC_BASE_PATH", ""),
        help="URL prefix for every page (default: $NEXT_PUBLIC_BASE_PATH)",
    )
    build.add_argument("--section-level", type=int, default=2, help="Deepest heading level that starts a section")

    query = subparsers.add_parser("query", help="Search an index file")
    query.add_argument("index", type=Path, help="Index file to load")
    query.add_argument("query", help="Search text")
    query.add_argument("--limit", type=non_negative_int, default=QueryEngine.DEFAULT_LIMIT, help="Maximum number of results")
    query.add_argument("--prefix", action="store_true", help="Match the last word as a prefix")
    return parser


def run_build(args: argparse.Namespace) -> int:
    """Index the pages directory and write the index file.

    Args:
        args: Parsed arguments of the build command.

    Returns:
        Exit status, 1 when the pages directory does not exist.
    """
    indexer = SiteIndexer(MarkdocParser(base_path=args.base_path, section_level=args.section_level))
    try:
        count = indexer.write_index(args.pages, args.output)
    except ValueError as exc:
        logger.error("%s", exc)
        return 1
    print(f"Indexed {count} documents into {args.output}")
    return 0


def run_query(args: argparse.Namespace) -> int:
    """Print the results of a query, one "url<TAB>label" line each.

    Args:
        args: Parsed arguments of the query command.

    Returns:
        Exit status, 1 when the index cannot be loaded.
    """
    engine = open_engine(args.index)
    if engine is None:
        print("Search unavailable")
        return 1

    results = engine.search(args.query, limit=args.limit, prefix=args.prefix)
    if not results:
        print("No results")
        return 0
    for result in results:
        label = result.title if result.heading == result.title else f"{result.title} > {result.heading}"
        print(f"{result.url}\t{label}")
    return 0


def main(argv: list[str] | None = None) -> int:
    """Run the command line interface.

    Args:
        argv: Arguments to parse, defaulting to sys.argv.

    Returns:
        Process exit status.
    """
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    if args.command == "build":
        return run_build(args)
    return run_query(args)


if __name__ == "__main__":
    sys.exit(main())
