"""Playwright host for the page context."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, List

from playwright.async_api import Page, Playwright

from .config import BrowserConfig
from .document import PageSnapshot, Size

logger = logging.getLogger("pinfix")

_IMAGE_SIZES_SCRIPT = """
() => Array.from(document.images).map((img) => ({
  src: img.getAttribute("src") || "",
  width: img.width || img.naturalWidth || 0,
  height: img.height || img.naturalHeight || 0,
}))
"""


@asynccontextmanager
async def open_page(
    playwright: Playwright,
    url: str,
    config: BrowserConfig,
) -> AsyncIterator[Page]:
    """Navigate to a URL in headless Chromium and keep the page open."""
    browser = await playwright.chromium.launch(headless=True)
    try:
        page = await browser.new_page()
        page.set_default_navigation_timeout(config.navigation_timeout * 1000)
        logger.info("Loading %s", url)
        await page.goto(url, wait_until="networkidle")
        if config.wait_after_load:
            await page.wait_for_timeout(int(config.wait_after_load * 1000))
        yield page
    finally:
        await browser.close()


class PlaywrightDocument:
    """Document source reading from a live Playwright page."""

    def __init__(self, page: Page) -> None:
        self.page = page

    async def location(self) -> str:
        return self.page.url

    async def snapshot(self) -> PageSnapshot:
        html = await self.page.content()
        entries: List[Dict] = await self.page.evaluate(_IMAGE_SIZES_SCRIPT)
        sizes: Dict[str, Size] = {}
        for entry in entries:
            src = entry.get("src")
            # The first rendering of a repeated src wins.
            if src and src not in sizes:
                sizes[src] = (int(entry.get("width") or 0), int(entry.get("height") or 0))
        return PageSnapshot.from_html(html, self.page.url, sizes)
