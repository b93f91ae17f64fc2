"""Managed crawl runtime: queue draining, rendering, retries and time budgets.

The runtime knows nothing about playlists. It pops requests from a
:class:`~playlist_crawler.request_queue.RequestQueue`, opens each one in its
own Playwright browser context, and hands a :class:`CrawlContext` to the
request handler. Failed attempts are retried with exponential backoff; a
request that runs out of attempts goes to the failed-request handler and the
run carries on.

Example usage:

    runtime = CrawlRuntime(RuntimeLimits(max_requests=20))
    runtime.add_requests([CrawlRequest(url, RequestTag.SEARCH)])
    stats = await runtime.run(handler, failed_request_handler)
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from contextlib import AsyncExitStack, asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, Iterable, Optional, Set

from playwright.async_api import async_playwright

from .config import (
    DEFAULT_MAX_CONCURRENCY,
    MAX_REQUEST_ATTEMPTS,
    REQUEST_HANDLER_TIMEOUT_SECS,
    RETRY_BACKOFF_SECS,
)
from .dataset import Dataset
from .record import CrawlRequest, ResultRecord
from .request_queue import RequestQueue

LOGGER = logging.getLogger(__name__)

_DEFAULT_VIEWPORT = {"width": 1280, "height": 900}


class RequestHandlerTimeout(TimeoutError):
    """Raised when one request attempt exceeds its time budget."""


@dataclass
class RuntimeLimits:
    """Bounds applied to a crawl run."""

    max_requests: Optional[int] = None
    max_request_attempts: int = MAX_REQUEST_ATTEMPTS
    request_handler_timeout: float = REQUEST_HANDLER_TIMEOUT_SECS
    retry_backoff: float = RETRY_BACKOFF_SECS
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY


@dataclass
class RuntimeStats:
    """Counters collected while draining the queue."""

    requests_succeeded: int = 0
    requests_failed: int = 0
    retries: int = 0
    errors: Dict[str, str] = field(default_factory=dict)

    @property
    def requests_handled(self) -> int:
        return self.requests_succeeded + self.requests_failed


@dataclass
class CrawlContext:
    """What a request handler gets to work with."""

    request: CrawlRequest
    page: Any
    queue: RequestQueue
    dataset: Dataset
    attempt: int = 1

    def enqueue(self, request: CrawlRequest) -> bool:
        return self.queue.add(request)

    def push_data(self, record: ResultRecord) -> None:
        self.dataset.push(record)


RequestHandler = Callable[[CrawlContext], Awaitable[None]]
FailedRequestHandler = Callable[[CrawlRequest, BaseException], Any]


class PlaywrightPageProvider:
    """Launches one Chromium browser and hands out a fresh context per page."""

    def __init__(self, launch_options: Optional[Dict[str, Any]] = None) -> None:
        self.launch_options = dict(launch_options or {"headless": True})
        self._stack: Optional[AsyncExitStack] = None
        self._browser: Any = None

    async def __aenter__(self) -> "PlaywrightPageProvider":
        self._stack = AsyncExitStack()
        try:
            playwright = await self._stack.enter_async_context(async_playwright())
            self._browser = await playwright.chromium.launch(**self.launch_options)
            self._stack.push_async_callback(self._browser.close)
        except BaseException:
            await self._stack.aclose()
            raise
        LOGGER.debug(
            "Launched Chromium (headless=%s, proxy=%s)",
            self.launch_options.get("headless", True),
            "on" if self.launch_options.get("proxy") else "off",
        )
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        if self._stack is not None:
            await self._stack.aclose()
            self._stack = None
        self._browser = None

    @asynccontextmanager
    async def page(self) -> AsyncIterator[Any]:
        """Yield a page in its own browser context, closed afterwards."""
        if self._browser is None:
            raise RuntimeError("PlaywrightPageProvider used outside 'async with'")
        context = await self._browser.new_context(viewport=_DEFAULT_VIEWPORT)
        try:
            yield await context.new_page()
        finally:
            await context.close()


class CrawlRuntime:
    """Drains a request queue through a request handler."""

    def __init__(
        self,
        limits: Optional[RuntimeLimits] = None,
        *,
        page_provider: Any = None,
        launch_options: Optional[Dict[str, Any]] = None,
        dataset: Optional[Dataset] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self.limits = limits or RuntimeLimits()
        self.queue = RequestQueue(self.limits.max_requests)
        self.dataset = dataset if dataset is not None else Dataset()
        self.stats = RuntimeStats()
        self._page_provider = page_provider
        self._launch_options = launch_options
        self._sleep = sleep

    def add_requests(self, requests: Iterable[CrawlRequest]) -> int:
        return self.queue.add_many(requests)

    async def run(
        self,
        handler: RequestHandler,
        failed_request_handler: Optional[FailedRequestHandler] = None,
    ) -> RuntimeStats:
        """Process requests until the queue is drained and nothing is in flight."""
        provider = self._page_provider
        if provider is None:
            provider = PlaywrightPageProvider(self._launch_options)
        concurrency = max(1, self.limits.max_concurrency)
        in_flight: Set[asyncio.Task] = set()

        async with provider:
            try:
                while True:
                    while len(in_flight) < concurrency:
                        request = self.queue.pop()
                        if request is None:
                            break
                        in_flight.add(
                            asyncio.create_task(
                                self._process(provider, request, handler, failed_request_handler)
                            )
                        )
                    if not in_flight:
                        break
                    done, in_flight = await asyncio.wait(
                        in_flight, return_when=asyncio.FIRST_COMPLETED
                    )
                    for task in done:
                        task.result()
            finally:
                for task in in_flight:
                    task.cancel()
                if in_flight:
                    await asyncio.gather(*in_flight, return_exceptions=True)

        LOGGER.info(
            "Crawl finished: %d request(s) succeeded, %d failed, %d retr%s",
            self.stats.requests_succeeded,
            self.stats.requests_failed,
            self.stats.retries,
            "y" if self.stats.retries == 1 else "ies",
        )
        return self.stats

    async def _process(
        self,
        provider: Any,
        request: CrawlRequest,
        handler: RequestHandler,
        failed_request_handler: Optional[FailedRequestHandler],
    ) -> None:
        max_attempts = max(1, self.limits.max_request_attempts)
        last_error: Optional[BaseException] = None

        for attempt in range(1, max_attempts + 1):
            try:
                await asyncio.wait_for(
                    self._attempt(provider, request, handler, attempt),
                    timeout=self.limits.request_handler_timeout,
                )
            except Exception as exc:
                # wait_for raises the bare TimeoutError class; subclasses come from the handler
                if type(exc) is asyncio.TimeoutError:
                    last_error = RequestHandlerTimeout(
                        f"Request handler timed out after "
                        f"{self.limits.request_handler_timeout:g}s"
                    )
                else:
                    last_error = exc
            else:
                self.stats.requests_succeeded += 1
                return

            if attempt < max_attempts:
                delay = self.limits.retry_backoff * (2 ** (attempt - 1))
                LOGGER.warning(
                    "Attempt %d/%d failed for %s: %s (retrying in %.1fs)",
                    attempt,
                    max_attempts,
                    request.url,
                    last_error,
                    delay,
                )
                self.stats.retries += 1
                await self._sleep(delay)

        self.stats.requests_failed += 1
        self.stats.errors[request.url] = str(last_error)
        if failed_request_handler is not None and last_error is not None:
            outcome = failed_request_handler(request, last_error)
            if inspect.isawaitable(outcome):
                await outcome

    async def _attempt(
        self,
        provider: Any,
        request: CrawlRequest,
        handler: RequestHandler,
        attempt: int,
    ) -> None:
        async with provider.page() as page:
            await page.goto(request.url, wait_until="domcontentloaded")
            await handler(
                CrawlContext(
                    request=request,
                    page=page,
                    queue=self.queue,
                    dataset=self.dataset,
                    attempt=attempt,
                )
            )
