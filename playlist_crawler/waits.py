"""Bounded waits on rendered pages."""

from __future__ import annotations

import logging
from typing import Any

from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from .config import NAVIGATION_SETTLE_TIMEOUT_MS, SELECTOR_TIMEOUT_MS

LOGGER = logging.getLogger(__name__)


class PageLoadTimeout(TimeoutError):
    """Raised when a page's main container never shows up."""

    def __init__(self, message: str, url: str = "", selector: str = ""):
        self.url = url
        self.selector = selector
        super().__init__(message)


async def wait_for_container(
    page: Any, selector: str, timeout_ms: int = SELECTOR_TIMEOUT_MS
) -> None:
    """Wait until *selector* is attached to the page or raise PageLoadTimeout."""
    try:
        await page.wait_for_selector(selector, timeout=timeout_ms)
    except PlaywrightTimeoutError as exc:
        url = str(page.url)
        raise PageLoadTimeout(
            f"'{selector}' did not appear within {timeout_ms / 1000:g}s on {url}",
            url=url,
            selector=selector,
        ) from exc


async def wait_for_navigation_settled(
    page: Any, previous_url: str, timeout_ms: int = NAVIGATION_SETTLE_TIMEOUT_MS
) -> str:
    """Wait for the page URL to move away from *previous_url*, then return it.

    Client-side routers change the URL without a full load, so the URL change
    is the signal; the DOM-ready state is awaited afterwards. When the URL
    stays put within the bound the current URL is returned unchanged.
    """
    try:
        await page.wait_for_url(lambda url: url != previous_url, timeout=timeout_ms)
    except PlaywrightTimeoutError:
        LOGGER.debug("URL did not change within %dms after %s", timeout_ms, previous_url)
        return str(page.url)

    try:
        await page.wait_for_load_state("domcontentloaded", timeout=timeout_ms)
    except PlaywrightTimeoutError:
        LOGGER.debug("Load state not reached within %dms on %s", timeout_ms, page.url)
    return str(page.url)
