import logging
import math
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from scraper.cache import QueryCache
from scraper.models import QueryCacheEntry
from scraper.orchestrator import ScrapingOrchestrator
from settings import Settings

log = logging.getLogger("MusicScout")

_LEADING_INT = re.compile(r"\s*([+-]?\d+)", re.ASCII)


def parse_max_results(
    value: Any,
    default: int = Settings.DEFAULT_MAX_RESULTS,
    limit: int = Settings.MAX_RESULTS_LIMIT,
) -> int:
    """
    Turns a caller-supplied result count into an effective limit.

    Strings are read like a leading integer ("7", " 12abc"). Missing,
    unreadable and non-positive values fall back to the default; anything
    larger than the limit is clamped to it.
    """
    parsed: Optional[int] = None
    if isinstance(value, bool):
        parsed = None
    elif isinstance(value, int):
        parsed = value
    elif isinstance(value, float):
        parsed = int(value) if math.isfinite(value) else None
    elif isinstance(value, str):
        match = _LEADING_INT.match(value)
        parsed = int(match.group(1)) if match else None

    if parsed is None or parsed <= 0:
        return default
    return min(parsed, limit)


@dataclass
class SearchResponse:
    """A transport-neutral response: an HTTP-like status and a JSON body."""

    status: int
    body: Dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


class SearchService:
    """
    Validates search input, runs the scrape and memoizes the first result.
    Every search scrapes; the query cache is written, never consulted here.
    """

    def __init__(self, orchestrator: ScrapingOrchestrator, query_cache: QueryCache):
        self.orchestrator = orchestrator
        self.query_cache = query_cache

    async def search(self, query: Any, max_results: Any = None) -> SearchResponse:
        """
        Searches the platform for videos matching a query.

        Args:
            query: The search terms. Must be a non-empty string.
            max_results: The requested number of results, as a number or a
                string. See parse_max_results.

        Returns:
            200 with the results, 400 for a missing query, 404 when nothing
            matched and 500 when the platform could not be reached.
        """
        if not isinstance(query, str) or not query.strip():
            return SearchResponse(400, {"message": "Query parameter 'q' is required"})

        limit = parse_max_results(max_results)
        log.info("Searching.", extra={"query": query, "max_results": limit})

        try:
            result = await self.orchestrator.search(query, limit)
        except Exception:
            log.error(
                "Unexpected error during search.", extra={"query": query}, exc_info=True
            )
            return SearchResponse(500, {"message": "Error searching for videos"})

        if result.fetch_failed:
            return SearchResponse(500, {"message": "Error searching for videos"})

        if result.is_empty:
            log.info("No videos found.", extra={"query": query})
            return SearchResponse(
                404,
                {
                    "message": "No videos found for this search",
                    "query": query,
                    "data": [],
                },
            )

        try:
            await self.query_cache.write(query, result.records[0])
        except Exception as e:
            log.warning(
                "Query cache write failed (non-critical).",
                extra={"query": query, "error": str(e)},
            )

        return SearchResponse(
            200,
            {
                "query": query,
                "total": len(result.records),
                "data": [record.to_dict() for record in result.records],
                "source": "scraper",
            },
        )

    async def find_video_id(self, query: str) -> Optional[str]:
        """Returns the id of the best match for a query, or None."""
        result = await self.orchestrator.search(query, 1)
        if result.is_empty:
            return None
        return result.records[0].video_id

    async def cached(self, query: str) -> Optional[QueryCacheEntry]:
        """Returns the memoized first result of a query, if one was stored."""
        return await self.query_cache.read(query)
