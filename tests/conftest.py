"""Shared fixtures: an in-memory site of fake Playwright pages."""

from __future__ import annotations

from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import pytest
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

_ENV_VARS = (
    "PLAYLIST_CRAWLER_BASE_URL",
    "PLAYLIST_CRAWLER_PROXY_URL",
    "PLAYLIST_CRAWLER_PROXY_USERNAME",
    "PLAYLIST_CRAWLER_PROXY_PASSWORD",
    "PLAYLIST_CRAWLER_HEADLESS",
    "PLAYLIST_CRAWLER_CONCURRENCY",
    "PLAYLIST_CRAWLER_ENV_FILE",
)


@dataclass
class FakePageContent:
    """How one fake URL renders."""

    links: List[Dict[str, str]] = field(default_factory=list)
    snapshot: Any = None
    next_url: Optional[str] = None
    missing: Sequence[str] = ()
    goto_error: Optional[BaseException] = None


class FakePage:
    """Implements the slice of the Playwright Page API the handlers use."""

    def __init__(self, site: "FakeSite") -> None:
        self.site = site
        self.url = "about:blank"
        self.content = FakePageContent()
        self.clicked: List[str] = []

    async def goto(self, url: str, **kwargs: Any) -> None:
        self.site.visits.append(url)
        content = self.site.pages.get(url)
        if content is None:
            raise RuntimeError(f"net::ERR_NAME_NOT_RESOLVED at {url}")
        if content.goto_error is not None:
            raise content.goto_error
        self.url = url
        self.content = content

    async def wait_for_selector(self, selector: str, timeout: Optional[float] = None) -> object:
        if selector in self.content.missing:
            raise PlaywrightTimeoutError(f"Timeout {timeout}ms exceeded.")
        return object()

    async def eval_on_selector_all(self, selector: str, expression: str, arg: Any = None):
        return [dict(link) for link in self.content.links]

    async def evaluate(self, expression: str, arg: Any = None):
        if isinstance(self.content.snapshot, BaseException):
            raise self.content.snapshot
        return dict(self.content.snapshot or {})

    async def query_selector(self, selector: str):
        return object() if self.content.next_url else None

    async def click(self, selector: str, **kwargs: Any) -> None:
        self.clicked.append(selector)
        if self.content.next_url:
            self.url = self.content.next_url

    async def wait_for_url(self, predicate, timeout: Optional[float] = None) -> None:
        if not predicate(self.url):
            raise PlaywrightTimeoutError(f"Timeout {timeout}ms exceeded.")

    async def wait_for_load_state(self, state: str = "load", timeout: Optional[float] = None) -> None:
        return None


class FakeSite:
    """URL -> FakePageContent registry that also acts as the runtime's page provider."""

    def __init__(self) -> None:
        self.pages: Dict[str, FakePageContent] = {}
        self.visits: List[str] = []
        self.pages_opened = 0
        self.entered = False
        self.exited = False

    def add(self, url: str, **content: Any) -> str:
        self.pages[url] = FakePageContent(**content)
        return url

    async def open(self, url: str) -> FakePage:
        page = FakePage(self)
        await page.goto(url)
        return page

    async def __aenter__(self) -> "FakeSite":
        self.entered = True
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        self.exited = True

    @asynccontextmanager
    async def page(self):
        self.pages_opened += 1
        yield FakePage(self)


@pytest.fixture
def site() -> FakeSite:
    return FakeSite()


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def no_sleep():
    """Stand-in for asyncio.sleep that records requested delays."""
    delays: List[float] = []

    async def _sleep(delay: float) -> None:
        delays.append(delay)

    _sleep.delays = delays
    return _sleep
