import json
import tempfile
import unittest
from typing import Any, Awaitable, Callable, Dict, List, Optional

from aiohttp import web
from aiohttp.test_utils import TestServer


def video_item(
    video_id: str,
    title: Optional[str] = None,
    channel: Optional[str] = None,
    duration: Optional[str] = "3:30",
    thumbnail: Optional[str] = None,
) -> Dict[str, Any]:
    """Builds one search result item the way the results page embeds it."""
    renderer: Dict[str, Any] = {"videoId": video_id}
    if title is not None:
        renderer["title"] = {"runs": [{"text": title}]}
    if channel is not None:
        renderer["ownerText"] = {"runs": [{"text": channel}]}
    if duration is not None:
        renderer["lengthText"] = {"simpleText": duration}
    if thumbnail is not None:
        renderer["thumbnail"] = {"thumbnails": [{"url": thumbnail}]}
    return {"videoRenderer": renderer}


def numbered_items(count: int) -> List[Dict[str, Any]]:
    return [
        video_item(
            f"vid{i:08d}",
            title=f"Song {i}",
            channel=f"Channel {i}",
            duration=f"{i}:00",
            thumbnail=f"https://i.ytimg.com/vi/vid{i:08d}/hq.jpg",
        )
        for i in range(1, count + 1)
    ]


def initial_data(*sections: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Wraps item lists in the nested containers of the results page state."""
    return {
        "responseContext": {"visitorData": "abc"},
        "contents": {
            "twoColumnSearchResultsRenderer": {
                "primaryContents": {
                    "sectionListRenderer": {
                        "contents": [
                            {"itemSectionRenderer": {"contents": items}}
                            for items in sections
                        ]
                    }
                }
            }
        },
    }


def results_page(*scripts: str) -> str:
    """Builds a results page from raw script block bodies."""
    blocks = "".join(f"<script nonce=\"x\">{body}</script>" for body in scripts)
    return (
        "<!DOCTYPE html><html><head><title>results - YouTube</title>"
        "<script>var ytcfg = {\"LANG\": \"en\"};</script></head>"
        f"<body><div id=\"content\"></div>{blocks}</body></html>"
    )


def initial_data_page(*sections: List[Dict[str, Any]]) -> str:
    state = json.dumps(initial_data(*sections))
    return results_page(f"var ytInitialData = {state};")


def fallback_fragment(video_id: str, title: str, channel: Optional[str] = None) -> str:
    """A JSON-shaped snippet as it appears outside the initial state block."""
    fragment = f'{{"videoId":"{video_id}","title":{{"runs":[{{"text":"{title}"}}]}}'
    if channel is not None:
        fragment += f',"ownerText":{{"runs":[{{"text":"{channel}"}}]}}'
    return fragment + "}"


Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]


class ScoutTestCase(unittest.IsolatedAsyncioTestCase):
    """
    Base class for all test cases. Provides a scratch directory and a local
    HTTP server standing in for the remote platforms.
    """

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp_dir = self._tmp.name
        self.addCleanup(self._tmp.cleanup)

    async def start_server(self, routes: Dict[str, Handler]) -> TestServer:
        """
        Starts a local server answering GET requests on the given paths.
        The server is closed when the test finishes.
        """
        app = web.Application()
        for path, handler in routes.items():
            app.router.add_get(path, handler)
        server = TestServer(app)
        await server.start_server()
        self.addAsyncCleanup(server.close)
        return server

    async def serve_html(self, html: str, status: int = 200) -> TestServer:
        """Starts a server whose /results page returns the given document."""
        self.requests: List[web.Request] = []

        async def results(request: web.Request) -> web.Response:
            self.requests.append(request)
            return web.Response(text=html, status=status, content_type="text/html")

        return await self.start_server({"/results": results})
