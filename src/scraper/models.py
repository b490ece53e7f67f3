from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

UNKNOWN_TITLE = "Unknown Title"
UNKNOWN_CHANNEL = "Unknown Channel"


@dataclass(frozen=True)
class VideoRecord:
    """A single search result discovered on the platform's results page."""

    video_id: str
    title: str
    thumbnail: str
    channel_title: str
    duration: Optional[str] = None

    def __post_init__(self):
        if not self.video_id:
            raise ValueError("video_id must not be empty.")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "videoId": self.video_id,
            "title": self.title,
            "thumbnail": self.thumbnail,
            "channelTitle": self.channel_title,
            "duration": self.duration,
        }


@dataclass
class ScrapeResult:
    """
    The outcome of one search scrape. An empty result is either a genuine
    absence of matches or, when fetch_failed is set, a transport failure.
    """

    records: List[VideoRecord] = field(default_factory=list)
    fetch_failed: bool = False

    @property
    def is_empty(self) -> bool:
        return not self.records


@dataclass
class QueryCacheEntry:
    """The memoized first result of a normalized search query."""

    query: str
    youtube_id: str
    title: Optional[str]
    thumbnail: Optional[str]
    channel_title: Optional[str]
    duration: Optional[str]
    created_at: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "query": self.query,
            "youtubeId": self.youtube_id,
            "title": self.title,
            "thumbnail": self.thumbnail,
            "channelTitle": self.channel_title,
            "duration": self.duration,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "QueryCacheEntry":
        return cls(
            query=data["query"],
            youtube_id=data["youtubeId"],
            title=data.get("title"),
            thumbnail=data.get("thumbnail"),
            channel_title=data.get("channelTitle"),
            duration=data.get("duration"),
            created_at=data["createdAt"],
        )

