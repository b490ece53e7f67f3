import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from settings import Settings

log = logging.getLogger("MusicScout")


@dataclass
class DetailCacheEntry:
    """The object stored in the detail cache."""

    value: Any
    expires: float


class DetailCache:
    """
    An in-memory key/value cache whose entries live for a fixed TTL from the
    moment they are set. Expired entries are dropped when read and by a
    periodic sweep on writes. There is no manual eviction.
    """

    def __init__(
        self,
        ttl_seconds: float = Settings.DETAIL_CACHE_TTL_SECONDS,
        sweep_interval_seconds: float = Settings.DETAIL_CACHE_SWEEP_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self.sweep_interval_seconds = sweep_interval_seconds
        self._clock = clock
        self._entries: Dict[str, DetailCacheEntry] = {}
        self._lock = threading.Lock()
        self._last_sweep = clock()

    def get(self, key: str) -> Optional[Any]:
        """Returns the cached value for key, or None if absent or expired."""
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                log.debug("Detail cache miss.", extra={"key": key})
                return None
            if entry.expires <= now:
                del self._entries[key]
                log.debug("Detail cache entry expired.", extra={"key": key})
                return None
        log.debug("Detail cache hit.", extra={"key": key})
        return entry.value

    def set(self, key: str, value: Any):
        """Stores value under key, expiring ttl_seconds from now."""
        now = self._clock()
        with self._lock:
            self._entries[key] = DetailCacheEntry(value=value, expires=now + self.ttl_seconds)
            if now - self._last_sweep >= self.sweep_interval_seconds:
                self._sweep(now)
        log.debug("Detail cache set.", extra={"key": key, "ttl": self.ttl_seconds})

    def _sweep(self, now: float):
        expired = [key for key, entry in self._entries.items() if entry.expires <= now]
        for key in expired:
            del self._entries[key]
        self._last_sweep = now
        if expired:
            log.debug("Swept expired detail entries.", extra={"count": len(expired)})

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
