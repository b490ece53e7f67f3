import aiohttp
from aiohttp import web

from scraper.errors import TrackLookupError
from tests.base import ScoutTestCase
from tracks.cache import DetailCache
from tracks.details import TrackDetailService


class FlakyTrackDetailService(TrackDetailService):
    """Fails every request with the given client error."""

    def __init__(self, error: Exception, **kwargs):
        self.error = error
        self.attempts = 0
        super().__init__(DetailCache(), api_url="http://catalogue.invalid", **kwargs)

    async def _request_track(self, track_id):
        self.attempts += 1
        raise self.error


DEEZER_TRACK = {
    "id": 3135556,
    "title": "Harder, Better, Faster, Stronger",
    "duration": 224,
    "preview": "https://cdns-preview.example/preview.mp3",
    "artist": {"id": 27, "name": "Daft Punk"},
    "album": {
        "id": 302127,
        "title": "Discovery",
        "cover_small": "https://cdn.example/small.jpg",
        "cover_medium": "https://cdn.example/medium.jpg",
        "cover_big": "https://cdn.example/big.jpg",
    },
}


class TrackDetailServiceTest(ScoutTestCase):
    async def asyncSetUp(self):
        self.hits = 0

        async def track(request: web.Request) -> web.Response:
            self.hits += 1
            track_id = request.match_info["track_id"]
            if track_id == "3135556":
                return web.json_response(DEEZER_TRACK)
            if track_id == "broken":
                return web.json_response({"error": {"message": "Upstream failure"}}, status=500)
            return web.json_response(
                {"error": {"type": "DataException", "message": "no data", "code": 800}}
            )

        server = await self.start_server({"/track/{track_id}": track})
        self.cache = DetailCache()
        self.service = TrackDetailService(self.cache, api_url=str(server.make_url("/")))

    async def test_transforms_the_catalogue_payload(self):
        details = await self.service.get_track("3135556")

        self.assertEqual(
            details,
            {
                "id": 3135556,
                "title": "Harder, Better, Faster, Stronger",
                "artist": "Daft Punk",
                "album": "Discovery",
                "duration": 224,
                "preview": "https://cdns-preview.example/preview.mp3",
                "cover": "https://cdn.example/medium.jpg",
                "coverSmall": "https://cdn.example/small.jpg",
                "coverBig": "https://cdn.example/big.jpg",
            },
        )

    async def test_second_lookup_is_served_from_cache(self):
        first = await self.service.get_track("3135556")
        second = await self.service.get_track("3135556")

        self.assertEqual(first, second)
        self.assertEqual(self.hits, 1)
        self.assertEqual(self.cache.get("track:3135556"), first)

    async def test_unknown_track(self):
        with self.assertRaises(TrackLookupError) as ctx:
            await self.service.get_track("999")

        self.assertEqual(ctx.exception.status, 404)
        self.assertEqual(ctx.exception.message, "no data")
        self.assertIsNone(self.cache.get("track:999"))

    async def test_upstream_status_is_kept(self):
        with self.assertRaises(TrackLookupError) as ctx:
            await self.service.get_track("broken")

        self.assertEqual(ctx.exception.status, 500)
        self.assertEqual(ctx.exception.message, "Upstream failure")
        self.assertEqual(self.hits, 1)

    async def test_unreachable_catalogue(self):
        server = await self.start_server({})
        url = str(server.make_url("/"))
        await server.close()
        service = TrackDetailService(DetailCache(), api_url=url)

        with self.assertRaises(TrackLookupError) as ctx:
            await service.get_track("3135556")

        self.assertIsNone(ctx.exception.status)

    async def test_payload_errors_are_wrapped(self):
        service = FlakyTrackDetailService(aiohttp.ClientPayloadError("truncated body"))

        with self.assertRaises(TrackLookupError) as ctx:
            await service.get_track("3135556")

        self.assertIsNone(ctx.exception.status)
        self.assertEqual(service.attempts, 1)

    async def test_connection_errors_use_the_configured_attempts(self):
        single = FlakyTrackDetailService(aiohttp.ClientConnectionError(), lookup_retries=1)
        double = FlakyTrackDetailService(aiohttp.ClientConnectionError(), lookup_retries=2)

        for service in (single, double):
            with self.assertRaises(TrackLookupError):
                await service.get_track("3135556")

        self.assertEqual(single.attempts, 1)
        self.assertEqual(double.attempts, 2)
