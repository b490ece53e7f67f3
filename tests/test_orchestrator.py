import unittest
from typing import List, Optional

from scraper.errors import FetchError
from scraper.extractor import Extractor
from scraper.orchestrator import ScrapingOrchestrator
from tests.base import initial_data_page, numbered_items


class StubFetcher:
    def __init__(self, html: str = "", error: Optional[FetchError] = None):
        self.html = html
        self.error = error
        self.calls: List[tuple] = []

    async def fetch(self, query: str, max_results: Optional[int] = None) -> str:
        self.calls.append((query, max_results))
        if self.error:
            raise self.error
        return self.html


class ScrapingOrchestratorTest(unittest.IsolatedAsyncioTestCase):
    async def test_returns_extracted_records(self):
        fetcher = StubFetcher(initial_data_page(numbered_items(5)))
        orchestrator = ScrapingOrchestrator(fetcher, Extractor())

        result = await orchestrator.search("lofi beats", 3)

        self.assertFalse(result.fetch_failed)
        self.assertEqual(len(result.records), 3)
        self.assertEqual(fetcher.calls, [("lofi beats", 3)])

    async def test_fetch_failure_yields_failed_empty_result(self):
        fetcher = StubFetcher(error=FetchError("lofi", "timed out"))
        orchestrator = ScrapingOrchestrator(fetcher, Extractor())

        result = await orchestrator.search("lofi", 5)

        self.assertTrue(result.fetch_failed)
        self.assertTrue(result.is_empty)

    async def test_no_matches_is_not_a_failure(self):
        fetcher = StubFetcher("<html><body>nothing here</body></html>")
        orchestrator = ScrapingOrchestrator(fetcher, Extractor())

        result = await orchestrator.search("zzzz", 5)

        self.assertFalse(result.fetch_failed)
        self.assertTrue(result.is_empty)

    async def test_each_search_fetches_once(self):
        fetcher = StubFetcher(initial_data_page(numbered_items(2)))
        orchestrator = ScrapingOrchestrator(fetcher, Extractor())

        await orchestrator.search("same", 5)
        await orchestrator.search("same", 5)

        self.assertEqual(len(fetcher.calls), 2)
