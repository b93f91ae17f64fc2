"""Playlist page handler: scrape metadata and emit records with contact emails."""

from __future__ import annotations

import logging
from typing import Any, Optional, Pattern

from .config import PLAYLIST_FIELD_SELECTORS, PLAYLIST_PAGE_SELECTOR, SELECTOR_TIMEOUT_MS
from .extract import DEFAULT_EMAIL_PATTERN, build_result_record, should_emit
from .record import PlaylistSnapshot, ResultRecord
from .runtime import CrawlContext
from .waits import wait_for_container

LOGGER = logging.getLogger(__name__)

# Runs in the browser. Each field reads its DOM node first and falls back to
# the social preview <meta> tags when the node is missing or empty.
_SNAPSHOT_JS = """
(sel) => {
    const text = (selector) => {
        const element = document.querySelector(selector);
        return element ? (element.textContent || '').trim() : '';
    };
    const meta = (property) => {
        const element = document.querySelector(`meta[property="${property}"]`);
        return element ? (element.getAttribute('content') || '') : '';
    };
    const image = () => {
        const element = document.querySelector(sel.image);
        if (!element) return '';
        const img = element.tagName === 'IMG' ? element : element.querySelector('img');
        return img ? (img.getAttribute('src') || '') : '';
    };
    return {
        title: text(sel.title) || meta('og:title'),
        description: text(sel.description) || meta('og:description'),
        owner: text(sel.owner),
        imageUrl: image() || meta('og:image'),
        followersText: text(sel.subtitle),
        trackCount: document.querySelectorAll(sel.trackRow).length,
    };
}
"""


async def read_playlist_snapshot(page: Any) -> PlaylistSnapshot:
    """Scrape one rendered playlist page in a single evaluate round trip."""
    payload = await page.evaluate(_SNAPSHOT_JS, PLAYLIST_FIELD_SELECTORS)
    return PlaylistSnapshot.from_payload(payload)


async def handle_playlist_page(
    context: CrawlContext,
    *,
    email_pattern: Pattern[str] = DEFAULT_EMAIL_PATTERN,
    debug_mode: bool = False,
    selector_timeout_ms: int = SELECTOR_TIMEOUT_MS,
) -> Optional[ResultRecord]:
    """Scrape a playlist page and push a record when it passes the emission rule.

    Failures are logged and the request is not retried. Returns the pushed
    record, if any.
    """
    request = context.request
    LOGGER.info("Processing playlist page %s (%s)", request.url, request.title or "untitled")

    try:
        await wait_for_container(context.page, PLAYLIST_PAGE_SELECTOR, selector_timeout_ms)
        snapshot = await read_playlist_snapshot(context.page)
        if not snapshot.title and request.title:
            snapshot.title = request.title
        record = build_result_record(request.url, snapshot, email_pattern)
    except Exception as exc:
        LOGGER.error("Error processing playlist %s: %s", request.url, exc)
        return None

    if not should_emit(record, debug_mode):
        LOGGER.debug("No email in playlist %s", request.url)
        return None

    context.push_data(record)
    LOGGER.info(
        "Found playlist with %d email(s): %s %s",
        len(record.emails),
        record.title,
        record.emails,
    )
    return record
