import asyncio
import hashlib
import json
import logging
import os
from collections import defaultdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from scraper.models import QueryCacheEntry, VideoRecord
from settings import Settings

log = logging.getLogger("MusicScout")


def normalize_query(query: str) -> str:
    """Lowercases and trims a query so equivalent searches share a cache key."""
    return query.strip().lower()


class QueryCache:
    """
    Manages a filesystem-based cache that memoizes the first result of each
    search query. One JSON file per normalized query; a later write for the
    same query replaces the earlier one.
    """

    def __init__(self, cache_dir: str = Settings.QUERY_CACHE_DIR):
        self.cache_dir = Path(cache_dir)
        self.cache_locks = defaultdict(asyncio.Lock)
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        log.info("QueryCache initialized.", extra={"cache_dir": str(self.cache_dir)})

    def _get_cache_path(self, normalized_query: str) -> Path:
        """Generates a cache file path from a normalized query using an MD5 hash."""
        query_hash = hashlib.md5(normalized_query.encode("utf-8")).hexdigest()
        return self.cache_dir / f"{query_hash}.json"

    async def write(self, query: str, record: VideoRecord) -> Optional[QueryCacheEntry]:
        """
        Stores a record as the memoized result of a query.

        Failures are logged and swallowed; the cache is never required for a
        search to succeed.

        Args:
            query: The query as the caller typed it.
            record: The first record of a successful search.

        Returns:
            The stored entry, or None if it could not be written.
        """
        normalized = normalize_query(query)
        entry = QueryCacheEntry(
            query=normalized,
            youtube_id=record.video_id,
            title=record.title,
            thumbnail=record.thumbnail,
            channel_title=record.channel_title,
            duration=record.duration,
            created_at=datetime.now(timezone.utc).isoformat(),
        )
        cache_path = self._get_cache_path(normalized)
        temp_path = cache_path.with_suffix(".tmp")

        async with self.cache_locks[cache_path]:
            try:
                with open(temp_path, "w", encoding="utf-8") as f:
                    json.dump(entry.to_dict(), f, indent=2)
                os.replace(temp_path, cache_path)
            except (OSError, TypeError, ValueError) as e:
                log.warning(
                    "Failed to write query cache entry.",
                    extra={"query": normalized, "error": str(e)},
                )
                if temp_path.exists():
                    try:
                        temp_path.unlink()
                    except OSError as remove_error:
                        log.error(
                            "Error removing temporary cache file.",
                            extra={"path": str(temp_path), "error": str(remove_error)},
                        )
                return None

        log.info(
            "Cached first result for query.",
            extra={"query": normalized, "video_id": record.video_id},
        )
        return entry

    async def read(self, query: str) -> Optional[QueryCacheEntry]:
        """
        Looks up the memoized result of a query.

        Args:
            query: The query as the caller typed it.

        Returns:
            The cached entry, or None if absent or unreadable.
        """
        normalized = normalize_query(query)
        cache_path = self._get_cache_path(normalized)

        async with self.cache_locks[cache_path]:
            if not cache_path.exists():
                log.debug("Query cache miss.", extra={"query": normalized})
                return None

            try:
                with open(cache_path, "r", encoding="utf-8") as f:
                    entry = QueryCacheEntry.from_dict(json.load(f))
            except (json.JSONDecodeError, TypeError, KeyError) as e:
                log.warning(
                    "Failed to decode query cache entry. Deleting.",
                    extra={"query": normalized, "error": str(e)},
                )
                cache_path.unlink(missing_ok=True)
                return None
            except OSError as e:
                log.warning(
                    "Failed to read query cache entry.",
                    extra={"query": normalized, "error": str(e)},
                )
                return None

        log.debug("Query cache hit.", extra={"query": normalized})
        return entry
