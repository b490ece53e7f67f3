import logging
import os

from dotenv import find_dotenv, load_dotenv

log = logging.getLogger("MusicScout")


load_dotenv(find_dotenv())


def _env_int(name: str, default: int) -> int:
    """Reads an integer from the environment, falling back on missing or bad values."""
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        log.warning(
            "Ignoring non-integer environment value.",
            extra={"variable": name, "value": raw},
        )
        return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


class Settings:
    """
    Manages all application-wide configuration settings and environment variables.
    Loads settings from env file and provides access to various constants.
    """

    # --- Scraper Settings ---
    # The public search page of the video platform.
    SEARCH_URL = os.getenv("SCOUT_SEARCH_URL", "https://www.youtube.com/results")
    # Browser user agent sent with every search request. The platform degrades
    # responses for clients that do not look like a browser.
    USER_AGENT = os.getenv(
        "SCOUT_USER_AGENT",
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    )
    # The Accept header sent with every search request.
    ACCEPT = "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8"
    # The Accept-Language header sent with every search request.
    ACCEPT_LANGUAGE = os.getenv(
        "SCOUT_ACCEPT_LANGUAGE", "pt-BR,pt;q=0.9,en-US;q=0.8,en;q=0.7"
    )
    # Total timeout in seconds for one search request.
    REQUEST_TIMEOUT_SECONDS = _env_int("SCOUT_REQUEST_TIMEOUT_SECONDS", 10)
    # Number of results returned when the caller gives no usable limit.
    DEFAULT_MAX_RESULTS = 15
    # Upper bound for the number of results of one search.
    MAX_RESULTS_LIMIT = 20
    # Thumbnail used when a result carries none of its own.
    THUMBNAIL_TEMPLATE = "https://img.youtube.com/vi/{video_id}/mqdefault.jpg"

    # --- Cache Settings ---
    # The directory where the per-query result cache is persisted.
    QUERY_CACHE_DIR = os.getenv("SCOUT_QUERY_CACHE_DIR", "data/cache/queries/")
    # Lifetime in seconds of a track detail cache entry.
    DETAIL_CACHE_TTL_SECONDS = 900
    # Minimum interval in seconds between sweeps of expired detail entries.
    DETAIL_CACHE_SWEEP_SECONDS = 120

    # --- Track Detail Settings ---
    # Base URL of the public music catalogue used for track details.
    DEEZER_API_URL = os.getenv("SCOUT_DEEZER_API_URL", "https://api.deezer.com")
    # Attempts made for a track detail request on connection errors.
    DETAIL_LOOKUP_RETRIES = _env_int("SCOUT_DETAIL_LOOKUP_RETRIES", 2)

    # --- Logging Configuration ---
    # The directory where log files are saved.
    LOG_DIR = os.getenv("SCOUT_LOG_DIR", "data/logs/")
    # Enable or disable logging to the console.
    LOG_CONSOLE_ENABLED = True
    # The minimum level for console logs (DEBUG, INFO, WARNING, ERROR, CRITICAL).
    LOG_CONSOLE_LEVEL = os.getenv("SCOUT_LOG_CONSOLE_LEVEL", "INFO")
    # Enable or disable logging to a file.
    LOG_FILE_ENABLED = _env_bool("SCOUT_LOG_FILE_ENABLED", True)
    # The minimum level for file logs (DEBUG, INFO, WARNING, ERROR, CRITICAL).
    LOG_FILE_LEVEL = "DEBUG"
    # Log files older than this many days are pruned at startup. 0 disables the check.
    LOG_FILE_MAX_AGE_DAYS = 7
    # The number of newest log files kept at startup. 0 disables the check.
    LOG_FILE_MAX_COUNT = 10

    @classmethod
    def validate_settings(cls):
        """
        Validates that the loaded values are usable.
        """
        if cls.REQUEST_TIMEOUT_SECONDS <= 0:
            raise ValueError("SCOUT_REQUEST_TIMEOUT_SECONDS must be positive.")
        if not 1 <= cls.DEFAULT_MAX_RESULTS <= cls.MAX_RESULTS_LIMIT:
            raise ValueError("DEFAULT_MAX_RESULTS must lie within [1, MAX_RESULTS_LIMIT].")
        if cls.DETAIL_CACHE_TTL_SECONDS <= 0:
            raise ValueError("DETAIL_CACHE_TTL_SECONDS must be positive.")
        if cls.DETAIL_LOOKUP_RETRIES < 1:
            raise ValueError("SCOUT_DETAIL_LOOKUP_RETRIES must be at least 1.")
