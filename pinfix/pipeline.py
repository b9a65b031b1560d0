"""High-level orchestration wiring the page context to the saver."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

from playwright.async_api import (
    Playwright,
    TimeoutError as PlaywrightTimeoutError,
    async_playwright,
)

from .browser import PlaywrightDocument, open_page
from .config import BrowserConfig, ResolverConfig, SaveConfig
from .document import StaticDocument
from .downloads import DownloadService, RequestsDownloadService
from .messaging import ContextMenu, MessageBus
from .models import PageMetadata, ResolvedMetadataMessage
from .page import PageContext
from .resolver import MetadataResolver
from .saver import MENU_ID, Saver, build_download_intent

logger = logging.getLogger("pinfix")

SITE_HOST_PATTERN = re.compile(r"(^|\.)pinterest\.[a-z.]+$", re.IGNORECASE)
PAGE_TAB_ID = 1


def is_site_url(url: Optional[str]) -> bool:
    if not url:
        return False
    try:
        host = urlparse(url).hostname or ""
    except ValueError:
        return False
    return bool(SITE_HOST_PATTERN.search(host))


@dataclass
class SaveResult:
    """Outcome of a single page save."""

    url: str
    metadata: Optional[PageMetadata]
    saved_path: Optional[Path]


@dataclass
class Session:
    """A bus with the privileged saver already listening on it."""

    bus: MessageBus
    menus: ContextMenu
    saver: Saver

    @classmethod
    def create(cls, config: SaveConfig, service: Optional[DownloadService] = None) -> "Session":
        bus = MessageBus()
        menus = ContextMenu()
        service = service or RequestsDownloadService(config.output_root, timeout=config.request_timeout)
        saver = Saver(service, bus, config)
        saver.install(menus)
        return cls(bus=bus, menus=menus, saver=saver)

    def close(self) -> None:
        close = getattr(self.saver.service, "close", None)
        if close:
            close()


async def save_pages(
    urls: List[str],
    save_config: SaveConfig,
    browser_config: BrowserConfig,
    resolver_config: Optional[ResolverConfig] = None,
    service: Optional[DownloadService] = None,
) -> List[SaveResult]:
    """Render each pin page, resolve it and push the download to the saver."""
    session = Session.create(save_config, service)
    results: List[SaveResult] = []
    try:
        async with async_playwright() as playwright:
            for url in urls:
                results.append(
                    await _save_page(playwright, url, session, browser_config, resolver_config)
                )
    finally:
        session.close()
    return results


async def _save_page(
    playwright: Playwright,
    url: str,
    session: Session,
    browser_config: BrowserConfig,
    resolver_config: Optional[ResolverConfig],
) -> SaveResult:
    before = len(session.saver.saved)
    try:
        async with open_page(playwright, url, browser_config) as page:
            context = PageContext(PlaywrightDocument(page), session.bus, PAGE_TAB_ID, resolver_config)
            context.install()
            try:
                metadata = await context.resolver.resolve()
                await context.request_download()
                await session.bus.drain()
            finally:
                context.uninstall()
    except PlaywrightTimeoutError as exc:
        logger.error("Timeout while loading %s: %s", url, exc)
        return SaveResult(url=url, metadata=None, saved_path=None)
    except Exception:  # pylint: disable=broad-except
        logger.exception("Unexpected error loading %s", url)
        return SaveResult(url=url, metadata=None, saved_path=None)

    saved = session.saver.saved[before:]
    return SaveResult(url=url, metadata=metadata, saved_path=saved[-1] if saved else None)


async def save_image(
    src_url: str,
    page_url: Optional[str],
    save_config: SaveConfig,
    browser_config: BrowserConfig,
    resolver_config: Optional[ResolverConfig] = None,
    service: Optional[DownloadService] = None,
) -> Optional[Path]:
    """Context-menu path: pull metadata from the page if it is a pin page."""
    session = Session.create(save_config, service)
    try:
        if not is_site_url(page_url):
            # No page context to ask; the saver falls back to the image alone.
            await session.menus.click(MENU_ID, src_url=src_url, tab_id=PAGE_TAB_ID)
        else:
            async with async_playwright() as playwright:
                async with open_page(playwright, page_url, browser_config) as page:
                    context = PageContext(
                        PlaywrightDocument(page), session.bus, PAGE_TAB_ID, resolver_config
                    )
                    context.install()
                    try:
                        await session.menus.click(MENU_ID, src_url=src_url, tab_id=PAGE_TAB_ID)
                    finally:
                        context.uninstall()
    finally:
        session.close()
    return session.saver.saved[-1] if session.saver.saved else None


async def resolve_html(
    html: str,
    url: str,
    save_config: Optional[SaveConfig] = None,
    resolver_config: Optional[ResolverConfig] = None,
) -> Dict[str, Any]:
    """Resolve a saved page offline and report the filename it would get."""
    resolver = MetadataResolver(StaticDocument(url, html), resolver_config)
    metadata = await resolver.resolve()
    return describe(metadata, save_config)


def describe(metadata: PageMetadata, save_config: Optional[SaveConfig] = None) -> Dict[str, Any]:
    intent = build_download_intent(ResolvedMetadataMessage.from_metadata(metadata), save_config)
    return {
        "url": metadata.page_key,
        "title": metadata.title,
        "pinId": metadata.pin_id,
        "imageUrl": metadata.image_url,
        "imageAlt": metadata.image_alt,
        "imageId": metadata.image_id,
        "imageSource": metadata.image_source,
        "lowConfidence": metadata.low_confidence,
        "filename": intent.filename if metadata.image_url else None,
    }
