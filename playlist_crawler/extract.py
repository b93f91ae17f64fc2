"""Pure text extraction helpers for playlist pages.

Nothing in this module touches the network or the browser, so every
function here is deterministic for a given input.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import List, Optional, Pattern

from .record import PlaylistSnapshot, ResultRecord

DEFAULT_EMAIL_REGEX = r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}"
DEFAULT_EMAIL_PATTERN: Pattern[str] = re.compile(DEFAULT_EMAIL_REGEX)

_FOLLOWER_RE = re.compile(r"(\d[\d,]*)\s*likes?", re.IGNORECASE)
_PLAYLIST_MARKER = "/playlist/"


def extract_emails(text: Optional[str], pattern: Pattern[str] = DEFAULT_EMAIL_PATTERN) -> List[str]:
    """Return every match of *pattern* in *text*, first occurrence order, no duplicates.

    Matching is case-sensitive, so ``A@b.com`` and ``a@b.com`` are both kept.
    """
    if not text:
        return []
    seen: dict = {}
    for match in pattern.finditer(text):
        seen.setdefault(match.group(0), None)
    return list(seen)


def parse_follower_count(text: Optional[str]) -> Optional[int]:
    """Parse ``"1,234 likes"`` style text into an integer, or None."""
    if not text:
        return None
    match = _FOLLOWER_RE.search(text)
    if match is None:
        return None
    digits = match.group(1).replace(",", "")
    try:
        return int(digits)
    except ValueError:
        return None


def derive_playlist_id(url: str) -> Optional[str]:
    """Return the id between ``/playlist/`` and the next ``?`` (or the end)."""
    if not url or _PLAYLIST_MARKER not in url:
        return None
    tail = url.split(_PLAYLIST_MARKER, 1)[1]
    return tail.split("?", 1)[0]


def build_result_record(
    url: str,
    snapshot: PlaylistSnapshot,
    pattern: Pattern[str] = DEFAULT_EMAIL_PATTERN,
    *,
    scraped_at: Optional[datetime] = None,
) -> ResultRecord:
    """Combine a page snapshot with the extracted emails and follower count."""
    emails = extract_emails(snapshot.description, pattern)
    return ResultRecord(
        url=url,
        playlist_id=derive_playlist_id(url),
        title=snapshot.title,
        description=snapshot.description,
        owner=snapshot.owner,
        image_url=snapshot.image_url,
        followers_text=snapshot.followers_text,
        track_count=snapshot.track_count,
        scraped_at=scraped_at or datetime.now(timezone.utc),
        emails=emails,
        follower_count=parse_follower_count(snapshot.followers_text),
    )


def should_emit(record: ResultRecord, debug_mode: bool) -> bool:
    """Playlists without an email are only kept when debugging."""
    return record.has_email or debug_mode
