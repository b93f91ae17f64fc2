"""Crawl orchestration: seed the search, route requests, summarize the run."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional

from .config import ScraperInput, build_search_url
from .dataset import Dataset
from .playlist_page import handle_playlist_page
from .record import CrawlRequest, RequestTag, ResultRecord
from .runtime import CrawlContext, CrawlRuntime, RuntimeLimits
from .search_page import handle_search_page

LOGGER = logging.getLogger(__name__)


@dataclass
class CrawlSummary:
    """Outcome of one crawl run."""

    records: List[ResultRecord] = field(default_factory=list)
    playlists_visited: int = 0
    failed_requests: List[Dict[str, str]] = field(default_factory=list)
    requests_enqueued: int = 0
    requests_handled: int = 0

    @property
    def total_playlists(self) -> int:
        return len(self.records)

    @property
    def playlists_with_emails(self) -> int:
        return sum(1 for record in self.records if record.has_email)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalPlaylists": self.total_playlists,
            "playlistsWithEmails": self.playlists_with_emails,
            "playlistsVisited": self.playlists_visited,
            "requestsEnqueued": self.requests_enqueued,
            "requestsHandled": self.requests_handled,
            "failedRequests": list(self.failed_requests),
        }


class PlaylistEmailCrawler:
    """Runs one search-to-playlists crawl for a validated ScraperInput.

    Example usage:

        crawler = PlaylistEmailCrawler(ScraperInput(search_query="lofi"))
        summary = await crawler.run()
        for record in summary.records:
            print(record.title, record.emails)
    """

    def __init__(
        self,
        scraper_input: ScraperInput,
        *,
        runtime: Optional[CrawlRuntime] = None,
        dataset_path: Optional[str] = None,
    ) -> None:
        scraper_input.validate()
        self.input = scraper_input
        self.email_pattern = scraper_input.email_pattern()
        self.runtime = runtime or CrawlRuntime(
            RuntimeLimits(
                max_requests=scraper_input.max_requests,
                max_concurrency=scraper_input.max_concurrency,
            ),
            launch_options=scraper_input.browser_launch_options(),
            dataset=Dataset(dataset_path),
        )
        self._routes: Dict[RequestTag, Callable[[CrawlContext], Awaitable[None]]] = {
            RequestTag.SEARCH: self._handle_search,
            RequestTag.PLAYLIST: self._handle_playlist,
        }
        missing = set(RequestTag) - set(self._routes)
        if missing:
            raise RuntimeError(f"No handler routed for request tag(s): {sorted(missing)}")

        self._playlists_visited = 0
        self._failed: List[Dict[str, str]] = []

    @property
    def search_url(self) -> str:
        return build_search_url(self.input.search_query.strip())

    async def run(self) -> CrawlSummary:
        """Crawl until the queue drains; always returns the records gathered."""
        LOGGER.info(
            "Starting playlist email crawl for '%s' (max_playlists=%d)",
            self.input.search_query,
            self.input.max_playlists,
        )
        self.runtime.add_requests([CrawlRequest(self.search_url, RequestTag.SEARCH)])
        stats = await self.runtime.run(self.route, self.failed_request_handler)

        summary = CrawlSummary(
            records=self.runtime.dataset.records,
            playlists_visited=self._playlists_visited,
            failed_requests=list(self._failed),
            requests_enqueued=self.runtime.queue.total_accepted,
            requests_handled=stats.requests_handled,
        )
        LOGGER.info(
            "Scraping completed: %d playlist(s) saved, %d with emails, "
            "%d visited, %d failed request(s)",
            summary.total_playlists,
            summary.playlists_with_emails,
            summary.playlists_visited,
            len(summary.failed_requests),
        )
        return summary

    async def route(self, context: CrawlContext) -> None:
        """Dispatch a request to the handler for its tag."""
        handler = self._routes.get(context.request.tag)
        if handler is None:
            raise ValueError(f"Unknown request tag: {context.request.tag!r}")
        await handler(context)

    async def _handle_search(self, context: CrawlContext) -> None:
        await handle_search_page(context, max_playlists=self.input.max_playlists)

    async def _handle_playlist(self, context: CrawlContext) -> None:
        self._playlists_visited += 1
        await handle_playlist_page(
            context,
            email_pattern=self.email_pattern,
            debug_mode=self.input.debug_mode,
        )

    def failed_request_handler(self, request: CrawlRequest, error: BaseException) -> None:
        LOGGER.error(
            "Request %s failed too many times: %s (tag=%s, title=%s)",
            request.url,
            error,
            request.tag.value,
            request.title,
        )
        self._failed.append(
            {"url": request.url, "tag": request.tag.value, "error": str(error)}
        )
