import argparse
import asyncio
import json
import logging
import sys
from typing import List, Optional

from core.container import Container
from log import setup_logging
from scraper.errors import TrackLookupError
from settings import Settings


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="music-scout",
        description="Find videos for a song and look up track details.",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    search = commands.add_parser("search", help="Scrape search results for a query.")
    search.add_argument("query", nargs="+", help="The search terms.")
    search.add_argument(
        "-n",
        "--max-results",
        default=None,
        help=f"Number of results (1-{Settings.MAX_RESULTS_LIMIT}, default {Settings.DEFAULT_MAX_RESULTS}).",
    )

    cached = commands.add_parser("cached", help="Show the memoized first result of a query.")
    cached.add_argument("query", nargs="+", help="The search terms.")

    track = commands.add_parser("track", help="Look up details for a catalogue track.")
    track.add_argument("track_id", help="The catalogue identifier of the track.")

    return parser


async def run(args: argparse.Namespace, container: Container) -> int:
    """Executes one CLI command and returns the process exit code."""
    if args.command == "search":
        response = await container.get("search_service").search(
            " ".join(args.query), args.max_results
        )
        print(json.dumps(response.body, indent=2, ensure_ascii=False))
        return 0 if response.ok else 1

    if args.command == "cached":
        entry = await container.get("search_service").cached(" ".join(args.query))
        if entry is None:
            print(json.dumps({"message": "No cached result for this query"}))
            return 1
        print(json.dumps(entry.to_dict(), indent=2, ensure_ascii=False))
        return 0

    try:
        track = await container.get("track_detail_service").get_track(args.track_id)
    except TrackLookupError as e:
        print(json.dumps({"message": e.message}))
        return 1
    print(json.dumps(track, indent=2, ensure_ascii=False))
    return 0


def run_app(argv: Optional[List[str]] = None):
    """Sets up logging and runs one command."""
    args = _build_parser().parse_args(argv)
    setup_logging()
    log = logging.getLogger("MusicScout")

    try:
        Settings.validate_settings()
        exit_code = asyncio.run(run(args, Container(Settings)))
    except Exception:
        log.critical("Critical unhandled error during command execution.", exc_info=True)
        exit_code = 2
    sys.exit(exit_code)


if __name__ == "__main__":
    run_app()
