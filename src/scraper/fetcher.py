import asyncio
import logging
from typing import Optional

import aiohttp

from scraper.errors import FetchError
from settings import Settings

log = logging.getLogger("MusicScout")


class Fetcher:
    """
    Retrieves the platform's search results page for a query. Sends
    browser-like headers, as the platform serves degraded pages otherwise.
    Exactly one attempt is made per call.
    """

    def __init__(
        self,
        search_url: str = Settings.SEARCH_URL,
        timeout_seconds: float = Settings.REQUEST_TIMEOUT_SECONDS,
        user_agent: str = Settings.USER_AGENT,
        accept_language: str = Settings.ACCEPT_LANGUAGE,
    ):
        self.search_url = search_url
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self.headers = {
            "User-Agent": user_agent,
            "Accept": Settings.ACCEPT,
            "Accept-Language": accept_language,
        }

    async def fetch(self, query: str, max_results: Optional[int] = None) -> str:
        """
        Fetches the raw search results document.

        Args:
            query: The search terms, sent URL-encoded.
            max_results: The number of results the caller wants. The page
                size is fixed by the platform, so this is only logged.

        Returns:
            The document body.

        Raises:
            FetchError: On timeout, connection failure or non-2xx status.
        """
        log.debug(
            "Fetching search page.",
            extra={"query": query, "max_results": max_results},
        )
        try:
            async with aiohttp.ClientSession(
                headers=self.headers, timeout=self.timeout
            ) as session:
                async with session.get(
                    self.search_url, params={"search_query": query}
                ) as resp:
                    if not 200 <= resp.status < 300:
                        log.warning(
                            "Search page returned a non-success status.",
                            extra={"query": query, "status_code": resp.status},
                        )
                        raise FetchError(query, "unexpected status", status=resp.status)
                    body = await resp.text(errors="replace")
        except asyncio.TimeoutError as e:
            log.warning("Search request timed out.", extra={"query": query})
            raise FetchError(query, "timed out") from e
        except aiohttp.ClientError as e:
            log.warning(
                "Search request failed.",
                extra={"query": query, "error": str(e)},
            )
            raise FetchError(query, str(e) or type(e).__name__) from e

        log.debug(
            "Fetched search page.",
            extra={"query": query, "size": len(body)},
        )
        return body
