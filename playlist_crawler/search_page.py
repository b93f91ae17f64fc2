"""Search results page handler: enqueue playlists and the next results page."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, List

from .config import (
    NAVIGATION_SETTLE_TIMEOUT_MS,
    NEXT_PAGE_SELECTOR,
    PLAYLIST_LINK_SELECTOR,
    PLAYLIST_LINK_TITLE_SELECTOR,
    SEARCH_RESULTS_SELECTOR,
    SELECTOR_TIMEOUT_MS,
)
from .record import CrawlRequest, RequestTag
from .runtime import CrawlContext
from .waits import wait_for_container, wait_for_navigation_settled

LOGGER = logging.getLogger(__name__)

# Runs in the browser: anchors in DOM order with their listing title.
_EXTRACT_LINKS_JS = """
(links, titleSelector) => links.map((link) => {
    const titleNode = link.querySelector(titleSelector);
    return {
        url: link.href,
        title: titleNode ? (titleNode.textContent || '') : '',
    };
})
"""


@dataclass(frozen=True, slots=True)
class PlaylistLink:
    """A playlist anchor found on a search results page."""

    url: str
    title: str = ""


async def extract_playlist_links(page: Any) -> List[PlaylistLink]:
    """Return every playlist anchor on the page, in ranking order."""
    raw = await page.eval_on_selector_all(
        PLAYLIST_LINK_SELECTOR, _EXTRACT_LINKS_JS, PLAYLIST_LINK_TITLE_SELECTOR
    )
    links: List[PlaylistLink] = []
    for item in raw or []:
        url = str((item or {}).get("url") or "").strip()
        if not url:
            continue
        links.append(PlaylistLink(url=url, title=str(item.get("title") or "").strip()))
    return links


async def handle_search_page(
    context: CrawlContext,
    *,
    max_playlists: int,
    selector_timeout_ms: int = SELECTOR_TIMEOUT_MS,
    settle_timeout_ms: int = NAVIGATION_SETTLE_TIMEOUT_MS,
) -> None:
    """Enqueue the page's playlists and, if the page was short, the next page.

    Raises:
        PageLoadTimeout: If the results container never appears. The runtime
            retries the request.
    """
    page = context.page
    LOGGER.info("Processing search results page %s", context.request.url)

    await wait_for_container(page, SEARCH_RESULTS_SELECTOR, selector_timeout_ms)
    links = await extract_playlist_links(page)
    LOGGER.info("Found %d playlists on this page", len(links))

    accepted = 0
    for link in links[:max_playlists]:
        if context.enqueue(CrawlRequest(link.url, RequestTag.PLAYLIST, title=link.title)):
            accepted += 1
    LOGGER.debug(
        "Enqueued %d new playlist(s); %d playlist request(s) this run",
        accepted,
        context.queue.accepted(RequestTag.PLAYLIST),
    )

    if len(links) >= max_playlists:
        return

    next_button = await page.query_selector(NEXT_PAGE_SELECTOR)
    if next_button is None:
        LOGGER.debug("No next page control on %s", context.request.url)
        return

    previous_url = str(page.url)
    await page.click(NEXT_PAGE_SELECTOR)
    next_url = await wait_for_navigation_settled(page, previous_url, settle_timeout_ms)
    if context.enqueue(CrawlRequest(next_url, RequestTag.SEARCH)):
        LOGGER.info("Enqueued next results page %s", next_url)
