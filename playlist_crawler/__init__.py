"""Playlist email crawler.

Searches the streaming site for playlists matching a query, opens every
playlist page it finds, and collects the contact emails playlist curators put
in their descriptions. It supports:

- Search result pagination bounded by a playlist cap
- Per-request retries and time budgets
- Debug mode that keeps playlists without emails
- Proxy and browser options passed straight to Playwright

Example usage:

    from playlist_crawler import ScraperInput, scrape_playlists

    summary = scrape_playlists(ScraperInput(search_query="lofi", max_playlists=20))
    for record in summary.records:
        print(record.title, record.emails)

    # Async
    summary = await scrape_playlists_async(
        {"searchQuery": "indie submissions", "debugMode": True}
    )
"""

from __future__ import annotations

import asyncio
from typing import Any, Mapping, Optional, Union

from .config import InvalidInputError, ScraperInput, build_search_url, load_input_file
from .dataset import Dataset
from .extract import (
    DEFAULT_EMAIL_PATTERN,
    build_result_record,
    derive_playlist_id,
    extract_emails,
    parse_follower_count,
    should_emit,
)
from .orchestrator import CrawlSummary, PlaylistEmailCrawler
from .record import CrawlRequest, PlaylistSnapshot, RequestTag, ResultRecord
from .runtime import CrawlRuntime, RuntimeLimits
from .waits import PageLoadTimeout

__all__ = [
    # Data types
    "CrawlRequest",
    "PlaylistSnapshot",
    "RequestTag",
    "ResultRecord",
    "CrawlSummary",
    # Input
    "ScraperInput",
    "InvalidInputError",
    "build_search_url",
    "load_input_file",
    # Extraction
    "DEFAULT_EMAIL_PATTERN",
    "extract_emails",
    "parse_follower_count",
    "derive_playlist_id",
    "build_result_record",
    "should_emit",
    # Crawling
    "PlaylistEmailCrawler",
    "CrawlRuntime",
    "RuntimeLimits",
    "Dataset",
    "PageLoadTimeout",
    "scrape_playlists",
    "scrape_playlists_async",
]

InputLike = Union[ScraperInput, Mapping[str, Any]]


def _coerce_input(scraper_input: InputLike) -> ScraperInput:
    if isinstance(scraper_input, ScraperInput):
        return scraper_input
    return ScraperInput.from_dict(scraper_input)


async def scrape_playlists_async(
    scraper_input: InputLike,
    *,
    dataset_path: Optional[str] = None,
) -> CrawlSummary:
    """
    Run one playlist email crawl.

    Args:
        scraper_input: A ScraperInput, or a dict with actor-style keys
            (``searchQuery``, ``maxPlaylists``, ``debugMode``, ...).
        dataset_path: Optional JSON Lines file receiving records as they
            are emitted.

    Returns:
        CrawlSummary with the emitted records and run counters.

    Raises:
        InvalidInputError: If the input is missing a search query or is
            otherwise unusable. Raised before the browser starts.
    """
    crawler = PlaylistEmailCrawler(_coerce_input(scraper_input), dataset_path=dataset_path)
    return await crawler.run()


def scrape_playlists(
    scraper_input: InputLike,
    *,
    dataset_path: Optional[str] = None,
) -> CrawlSummary:
    """Synchronous wrapper for scrape_playlists_async."""
    return asyncio.run(scrape_playlists_async(scraper_input, dataset_path=dataset_path))
