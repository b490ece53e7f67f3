import logging
from typing import Any, Callable, Dict, Type

from scraper.cache import QueryCache
from scraper.extractor import Extractor, InitialDataStrategy, RegexFallbackStrategy
from scraper.fetcher import Fetcher
from scraper.orchestrator import ScrapingOrchestrator
from search.service import SearchService
from settings import Settings
from tracks.cache import DetailCache
from tracks.details import TrackDetailService

log = logging.getLogger("MusicScout")


class Container:
    """
    A simple dependency injection container for managing application services.
    Each service is created on first use and shared for the container's
    lifetime, which makes the caches process-wide without a global registry.
    """

    def __init__(self, settings: Type[Settings] = Settings):
        """
        Initializes the Container with the application configuration.

        Args:
            settings: The Settings class (or a subclass overriding values).
        """
        self.settings = settings
        self.services: Dict[str, Any] = {}
        log.debug("Container initialized.")

        self._service_factories: Dict[str, Callable[[], Any]] = {
            "fetcher": self._create_fetcher,
            "extractor": self._create_extractor,
            "scraping_orchestrator": self._create_scraping_orchestrator,
            "query_cache": self._create_query_cache,
            "detail_cache": self._create_detail_cache,
            "track_detail_service": self._create_track_detail_service,
            "search_service": self._create_search_service,
        }

    def get(self, service_name: str) -> Any:
        """
        Retrieves a service instance by name. If the service has not been created yet,
        its factory function is called to create and store it.

        Args:
            service_name: The name of the service to retrieve.

        Returns:
            The instance of the requested service.

        Raises:
            ValueError: If an unknown service name is requested.
        """
        if service_name not in self.services:
            if service_name not in self._service_factories:
                log.error(f"Attempted to access unknown service: {service_name}")
                raise ValueError(f"Unknown service: {service_name}")
            log.debug(f"Creating service: {service_name}")
            self.services[service_name] = self._service_factories[service_name]()
        return self.services[service_name]

    def _create_fetcher(self) -> Fetcher:
        return Fetcher(
            search_url=self.settings.SEARCH_URL,
            timeout_seconds=self.settings.REQUEST_TIMEOUT_SECONDS,
            user_agent=self.settings.USER_AGENT,
            accept_language=self.settings.ACCEPT_LANGUAGE,
        )

    def _create_extractor(self) -> Extractor:
        template = self.settings.THUMBNAIL_TEMPLATE
        return Extractor(
            strategies=[
                InitialDataStrategy(thumbnail_template=template),
                RegexFallbackStrategy(thumbnail_template=template),
            ]
        )

    def _create_scraping_orchestrator(self) -> ScrapingOrchestrator:
        return ScrapingOrchestrator(
            fetcher=self.get("fetcher"),
            extractor=self.get("extractor"),
        )

    def _create_query_cache(self) -> QueryCache:
        return QueryCache(cache_dir=self.settings.QUERY_CACHE_DIR)

    def _create_detail_cache(self) -> DetailCache:
        return DetailCache(
            ttl_seconds=self.settings.DETAIL_CACHE_TTL_SECONDS,
            sweep_interval_seconds=self.settings.DETAIL_CACHE_SWEEP_SECONDS,
        )

    def _create_track_detail_service(self) -> TrackDetailService:
        return TrackDetailService(
            detail_cache=self.get("detail_cache"),
            api_url=self.settings.DEEZER_API_URL,
            timeout_seconds=self.settings.REQUEST_TIMEOUT_SECONDS,
            lookup_retries=self.settings.DETAIL_LOOKUP_RETRIES,
        )

    def _create_search_service(self) -> SearchService:
        return SearchService(
            orchestrator=self.get("scraping_orchestrator"),
            query_cache=self.get("query_cache"),
        )
