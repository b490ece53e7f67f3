import json
import logging
import re
from typing import Any, Iterator, List, Optional, Sequence

from bs4 import BeautifulSoup

from scraper.errors import ExtractionParseError
from scraper.models import UNKNOWN_CHANNEL, UNKNOWN_TITLE, VideoRecord
from settings import Settings

log = logging.getLogger("MusicScout")

# Matches the assignment prefix of the page's initial client state. The JSON
# body itself is decoded with decode_json_object().
# Handles: var ytInitialData = {...};
#          window["ytInitialData"] = {...};
#          ytInitialData = {...};
INITIAL_DATA_MARKER = re.compile(r'(?:var\s+|window\["|)ytInitialData(?:"\])?\s*=\s*')

# A non-empty JSON string body, escapes included.
_JSON_STRING = r'((?:[^"\\]|\\.)+)'
VIDEO_ID_PATTERN = re.compile(r'"videoId":"([^"]+)"')
TITLE_PATTERN = re.compile(r'"title":\{"runs":\[\{"text":"' + _JSON_STRING + '"')
OWNER_PATTERN = re.compile(r'"ownerText":\{"runs":\[\{"text":"' + _JSON_STRING + '"')

# Path from the decoded state to the list of result sections.
SECTION_LIST_PATH = (
    "contents",
    "twoColumnSearchResultsRenderer",
    "primaryContents",
    "sectionListRenderer",
    "contents",
)

_DECODER = json.JSONDecoder()


def decode_json_object(text: str, start: int) -> dict:
    """
    Decodes the JSON object that begins at the given position and ignores
    whatever follows it, so braces or terminators inside titles and the
    trailing script never end the object early.

    Args:
        text: The text containing the object.
        start: Position of the opening brace.

    Returns:
        The decoded object.

    Raises:
        ExtractionParseError: If no object starts at start, or it is
            truncated, malformed or nested too deeply to decode.
    """
    if not text.startswith("{", start):
        raise ExtractionParseError(f"no JSON object at offset {start}")
    try:
        value, _ = _DECODER.raw_decode(text, start)
    except (json.JSONDecodeError, RecursionError) as e:
        raise ExtractionParseError(f"invalid JSON: {e}") from e
    return value


def _dig(node: Any, *path: Any) -> Any:
    """Walks nested dicts and lists, returning None as soon as a step is missing."""
    for step in path:
        if isinstance(step, int):
            if not isinstance(node, list) or not -len(node) <= step < len(node):
                return None
        elif not isinstance(node, dict):
            return None
        node = node[step] if isinstance(step, int) else node.get(step)
        if node is None:
            return None
    return node


def _text(value: Any) -> Optional[str]:
    return value if isinstance(value, str) and value else None


def _unescape(raw: str) -> str:
    """Decodes JSON string escapes captured from the raw document."""
    try:
        return json.loads(f'"{raw}"')
    except ValueError:
        return raw


class ExtractionStrategy:
    """
    One way of recovering video records from a search results document.
    Strategies never raise on malformed input; they return fewer records.
    """

    name = "base"

    def __init__(self, thumbnail_template: str = Settings.THUMBNAIL_TEMPLATE):
        self.thumbnail_template = thumbnail_template

    def default_thumbnail(self, video_id: str) -> str:
        return self.thumbnail_template.format(video_id=video_id)

    def extract(self, html: str, max_results: int) -> List[VideoRecord]:
        raise NotImplementedError


class InitialDataStrategy(ExtractionStrategy):
    """
    Reads the JSON state the page embeds in a script block and walks the
    search result sections in document order.
    """

    name = "initial_data"

    def extract(self, html: str, max_results: int) -> List[VideoRecord]:
        soup = BeautifulSoup(html, "html.parser")
        records: List[VideoRecord] = []
        seen = set()

        for index, script in enumerate(soup.find_all("script")):
            content = script.string
            if not content or "ytInitialData" not in content:
                continue

            try:
                items = list(self._iter_items(content))
            except ExtractionParseError as e:
                log.warning(
                    "Skipping unreadable state block.",
                    extra={"script_index": index, "error": str(e)},
                )
                continue

            for item in items:
                record = self._record_from_item(item)
                if record is None or record.video_id in seen:
                    continue
                seen.add(record.video_id)
                records.append(record)
                if len(records) >= max_results:
                    return records

        return records

    def _iter_items(self, content: str) -> Iterator[dict]:
        # Comparisons such as "ytInitialData == null" also match the marker.
        for match in INITIAL_DATA_MARKER.finditer(content):
            if content.startswith("{", match.end()):
                break
        else:
            raise ExtractionParseError("assignment marker not found")

        data = decode_json_object(content, match.end())

        sections = _dig(data, *SECTION_LIST_PATH)
        if not isinstance(sections, list):
            raise ExtractionParseError("search result sections not found")

        for section in sections:
            items = _dig(section, "itemSectionRenderer", "contents")
            if not isinstance(items, list):
                continue
            for item in items:
                if isinstance(item, dict):
                    yield item

    def _record_from_item(self, item: dict) -> Optional[VideoRecord]:
        renderer = item.get("videoRenderer")
        video_id = _text(_dig(renderer, "videoId"))
        if not video_id:
            return None

        title = (
            _text(_dig(renderer, "title", "runs", 0, "text"))
            or _text(_dig(renderer, "title", "simpleText"))
            or UNKNOWN_TITLE
        )
        thumbnail = _text(
            _dig(renderer, "thumbnail", "thumbnails", 0, "url")
        ) or self.default_thumbnail(video_id)
        channel_title = (
            _text(_dig(renderer, "ownerText", "runs", 0, "text"))
            or _text(_dig(renderer, "shortBylineText", "runs", 0, "text"))
            or UNKNOWN_CHANNEL
        )
        duration = _text(_dig(renderer, "lengthText", "simpleText"))

        return VideoRecord(
            video_id=video_id,
            title=title,
            thumbnail=thumbnail,
            channel_title=channel_title,
            duration=duration,
        )


class RegexFallbackStrategy(ExtractionStrategy):
    """
    Degraded mode for pages whose embedded state cannot be walked. Collects
    ids, titles and channel names independently and pairs them by position,
    which assumes the three streams appear in the same relative order.
    """

    name = "regex_fallback"

    def extract(self, html: str, max_results: int) -> List[VideoRecord]:
        video_ids = VIDEO_ID_PATTERN.findall(html)
        titles = [_unescape(t) for t in TITLE_PATTERN.findall(html)]
        channels = [_unescape(c) for c in OWNER_PATTERN.findall(html)]

        count = min(len(video_ids), len(titles), max_results)
        log.debug(
            "Fallback pattern matches.",
            extra={
                "video_ids": len(video_ids),
                "titles": len(titles),
                "channels": len(channels),
            },
        )

        records = []
        for i in range(count):
            channel_title = channels[i] if i < len(channels) else ""
            records.append(
                VideoRecord(
                    video_id=video_ids[i],
                    title=titles[i],
                    thumbnail=self.default_thumbnail(video_ids[i]),
                    channel_title=channel_title or UNKNOWN_CHANNEL,
                )
            )
        return records


class Extractor:
    """
    Turns one search results document into an ordered list of video records.
    Strategies are tried in order and the first non-empty result wins.
    """

    def __init__(self, strategies: Optional[Sequence[ExtractionStrategy]] = None):
        if strategies is None:
            strategies = (InitialDataStrategy(), RegexFallbackStrategy())
        self.strategies = list(strategies)

    def extract(self, html: str, max_results: int) -> List[VideoRecord]:
        """
        Extracts at most max_results records from the document.

        Args:
            html: The raw search results document.
            max_results: The maximum number of records to return.

        Returns:
            The records in document order. Empty when no strategy finds any.
        """
        if max_results <= 0:
            return []

        for strategy in self.strategies:
            records = strategy.extract(html, max_results)
            if records:
                log.debug(
                    "Extracted records.",
                    extra={"strategy": strategy.name, "count": len(records)},
                )
                return records[:max_results]
            log.debug("Strategy found no records.", extra={"strategy": strategy.name})

        log.info("No records found in document.", extra={"size": len(html)})
        return []
