import logging

from scraper.errors import FetchError
from scraper.extractor import Extractor
from scraper.fetcher import Fetcher
from scraper.models import ScrapeResult

log = logging.getLogger("MusicScout")


class ScrapingOrchestrator:
    """
    Orchestrates one search scrape by coordinating the fetcher and the
    extractor. Holds no per-search state, so concurrent searches are
    independent; identical concurrent queries each fetch on their own.
    """

    def __init__(self, fetcher: Fetcher, extractor: Extractor):
        self.fetcher = fetcher
        self.extractor = extractor

    async def search(self, query: str, max_results: int) -> ScrapeResult:
        """
        Scrapes the search results for a query.

        The end-to-end flow is:
        1. Fetch the results page once.
        2. On a transport failure, return an empty result marked as failed.
        3. Otherwise extract at most max_results records and return them as is.
        """
        try:
            html = await self.fetcher.fetch(query, max_results)
        except FetchError as e:
            log.error(
                "Search page unavailable.",
                extra={"query": query, "error": str(e), "status": e.status},
            )
            return ScrapeResult(fetch_failed=True)

        records = self.extractor.extract(html, max_results)
        log.info(
            "Scrape finished.",
            extra={"query": query, "max_results": max_results, "count": len(records)},
        )
        return ScrapeResult(records=records)
