"""Data structures flowing through a playlist crawl."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional
from urllib.parse import urlsplit, urlunsplit


class RequestTag(str, Enum):
    """Which page handler processes a queued request."""

    SEARCH = "SEARCH"
    PLAYLIST = "PLAYLIST"


def normalize_url(url: str) -> str:
    """Identity used for request de-duplication.

    Scheme and host are lower-cased and the fragment is dropped; path and
    query are kept verbatim because both are significant on the target site.
    """
    parts = urlsplit(url.strip())
    return urlunsplit(
        (parts.scheme.lower(), parts.netloc.lower(), parts.path, parts.query, "")
    )


@dataclass(frozen=True, slots=True)
class CrawlRequest:
    """A unit of work in the request queue."""

    url: str
    tag: RequestTag
    title: Optional[str] = None  # carried from the search results listing

    @property
    def unique_key(self) -> str:
        return normalize_url(self.url)


@dataclass(slots=True)
class PlaylistSnapshot:
    """Fields scraped from one rendered playlist page."""

    title: str = ""
    description: str = ""
    owner: str = ""
    image_url: str = ""
    followers_text: str = ""
    track_count: int = 0

    @classmethod
    def from_payload(cls, payload: Optional[Mapping[str, Any]]) -> "PlaylistSnapshot":
        """Build a snapshot from the page-evaluate payload.

        Missing or null values become empty strings (and ``0`` for the track
        count) so downstream code never has to deal with ``None``.
        """
        data = dict(payload or {})

        def _text(key: str) -> str:
            value = data.get(key)
            return str(value).strip() if value is not None else ""

        try:
            track_count = int(data.get("trackCount") or 0)
        except (TypeError, ValueError):
            track_count = 0

        return cls(
            title=_text("title"),
            description=_text("description"),
            owner=_text("owner"),
            image_url=_text("imageUrl"),
            followers_text=_text("followersText"),
            track_count=track_count,
        )


@dataclass(frozen=True, slots=True)
class ResultRecord:
    """One emitted playlist row."""

    url: str
    playlist_id: Optional[str]
    title: str
    description: str
    owner: str
    image_url: str
    followers_text: str
    track_count: int
    scraped_at: datetime
    emails: List[str] = field(default_factory=list)
    follower_count: Optional[int] = None

    @property
    def has_email(self) -> bool:
        return len(self.emails) > 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the JSON-serializable dataset row shape."""
        row: Dict[str, Any] = {
            "url": self.url,
            "playlistId": self.playlist_id,
            "title": self.title,
            "description": self.description,
            "owner": self.owner,
            "imageUrl": self.image_url,
            "followersText": self.followers_text,
            "trackCount": self.track_count,
            "emails": list(self.emails),
            "hasEmail": self.has_email,
            "scrapedAt": self.scraped_at.isoformat(),
        }
        if self.follower_count is not None:
            row["followerCount"] = self.follower_count
        return row
