import asyncio
import logging
from typing import Any, Dict

import aiohttp

from retry import async_retry
from scraper.errors import TrackLookupError
from settings import Settings
from tracks.cache import DetailCache

log = logging.getLogger("MusicScout")


class TrackDetailService:
    """
    Read-through lookup of track details from the public music catalogue,
    backed by the short-lived detail cache.
    """

    def __init__(
        self,
        detail_cache: DetailCache,
        api_url: str = Settings.DEEZER_API_URL,
        timeout_seconds: float = Settings.REQUEST_TIMEOUT_SECONDS,
        lookup_retries: int = Settings.DETAIL_LOOKUP_RETRIES,
    ):
        self.detail_cache = detail_cache
        self.api_url = api_url.rstrip("/")
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self.lookup_retries = lookup_retries
        self._fetch_track = async_retry(
            retries=lookup_retries,
            retry_on=(aiohttp.ClientConnectionError, asyncio.TimeoutError),
        )(self._request_track)

    async def get_track(self, track_id: str) -> Dict[str, Any]:
        """
        Returns the details of a track, from cache when possible.

        Args:
            track_id: The catalogue identifier of the track.

        Returns:
            A dictionary with id, title, artist, album, duration, preview
            and cover URLs.

        Raises:
            TrackLookupError: If the catalogue cannot be reached or does not
                know the track.
        """
        cache_key = f"track:{track_id}"
        cached = self.detail_cache.get(cache_key)
        if cached is not None:
            return cached

        try:
            payload = await self._fetch_track(track_id)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            log.error(
                "Track catalogue request failed.",
                extra={"track_id": track_id, "error": str(e) or type(e).__name__},
            )
            raise TrackLookupError(track_id, "Error fetching track details") from e

        if "error" in payload:
            error = payload["error"]
            message = (
                error.get("message") if isinstance(error, dict) else None
            ) or "Error fetching track details"
            log.warning(
                "Track catalogue returned an error.",
                extra={"track_id": track_id, "error_message": message},
            )
            raise TrackLookupError(track_id, message, status=404)

        try:
            track = {
                "id": payload["id"],
                "title": payload["title"],
                "artist": payload["artist"]["name"],
                "album": payload["album"]["title"],
                "duration": payload.get("duration"),
                "preview": payload.get("preview"),
                "cover": payload["album"].get("cover_medium"),
                "coverSmall": payload["album"].get("cover_small"),
                "coverBig": payload["album"].get("cover_big"),
            }
        except (KeyError, TypeError, AttributeError) as e:
            log.error(
                "Unexpected track payload.",
                extra={"track_id": track_id, "error": str(e)},
            )
            raise TrackLookupError(track_id, "Error fetching track details") from e

        self.detail_cache.set(cache_key, track)
        log.info("Fetched track details.", extra={"track_id": track_id})
        return track

    async def _request_track(self, track_id: str) -> Dict[str, Any]:
        url = f"{self.api_url}/track/{track_id}"
        async with aiohttp.ClientSession(timeout=self.timeout) as session:
            async with session.get(url) as resp:
                try:
                    payload = await resp.json(content_type=None)
                except ValueError:
                    payload = None
                status = resp.status

        if status >= 400:
            error = payload.get("error") if isinstance(payload, dict) else None
            message = error.get("message") if isinstance(error, dict) else None
            raise TrackLookupError(
                track_id, message or "Error fetching track details", status=status
            )
        if not isinstance(payload, dict):
            raise TrackLookupError(track_id, "Error fetching track details")
        return payload
