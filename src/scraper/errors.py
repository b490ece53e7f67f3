from typing import Optional


class ScoutError(Exception):
    """Base class for all errors raised by the search pipeline."""


class FetchError(ScoutError):
    """
    Raised when the search page could not be retrieved: a timeout, a
    connection failure or a non-success status from the platform.
    """

    def __init__(self, query: str, reason: str, status: Optional[int] = None):
        self.query = query
        self.reason = reason
        self.status = status
        detail = f" (status {status})" if status is not None else ""
        super().__init__(f"Failed to fetch results for {query!r}: {reason}{detail}")


class ExtractionParseError(ScoutError):
    """Raised when one embedded state block cannot be decoded or navigated."""


class TrackLookupError(ScoutError):
    """Raised when the track catalogue does not return usable details."""

    def __init__(self, track_id: str, message: str, status: Optional[int] = None):
        self.track_id = track_id
        self.message = message
        self.status = status
        super().__init__(f"Track {track_id}: {message}")
