"""Privileged saver: turns resolved metadata into a named download."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Set, Tuple

import requests

from .config import SaveConfig
from .downloads import UNIQUIFY, DownloadError, DownloadService
from .messaging import ContextMenu, MenuClick, MessageBus
from .models import (
    DOWNLOAD_IMAGE,
    GET_PIN_META,
    DownloadIntent,
    PinMetaReply,
    ResolvedMetadataMessage,
)
from .naming import extension_from_url, image_id_from_url, is_generic_title, sanitize_base_name

logger = logging.getLogger("pinfix")

MENU_ID = "pinterest-download-with-filename"
MENU_TITLE = "Download Pinterest image with proper filename"


def build_download_intent(
    message: ResolvedMetadataMessage,
    config: Optional[SaveConfig] = None,
) -> DownloadIntent:
    """Pick the base name by priority and the extension from the URL."""
    config = config or SaveConfig()
    title = "" if is_generic_title(message.title) else message.title
    raw_names = (
        title,
        message.image_alt,
        message.pin_id,
        message.image_id or image_id_from_url(message.image_url),
    )
    names = [sanitize_base_name(name, config.max_base_length) for name in raw_names]
    candidates = tuple(name for name in names if name) + (config.fallback_name,)
    return DownloadIntent(
        source_url=message.image_url,
        candidate_names=candidates,
        extension=extension_from_url(message.image_url, config.default_extension),
        subfolder=config.subfolder,
    )


class Saver:
    """Handles DOWNLOAD_IMAGE pushes and the image context-menu pull path."""

    def __init__(
        self,
        service: DownloadService,
        bus: MessageBus,
        config: Optional[SaveConfig] = None,
    ) -> None:
        self.service = service
        self.bus = bus
        self.config = config or SaveConfig()
        self.saved: List[Path] = []
        self._in_flight: Set[Tuple[str, str]] = set()

    def install(self, menus: Optional[ContextMenu] = None) -> None:
        self.bus.add_runtime_listener(self.handle_message)
        if menus is not None:
            menus.create(MENU_ID, MENU_TITLE, ["image"])
            menus.on_clicked(self.on_menu_click)

    async def handle_message(self, message: Dict[str, Any]) -> None:
        if message.get("type") != DOWNLOAD_IMAGE:
            return
        await self.download_with_filename(ResolvedMetadataMessage.from_payload(message))

    async def on_menu_click(self, info: MenuClick) -> None:
        if info.menu_item_id != MENU_ID:
            return
        if not info.src_url or info.tab_id is None:
            return

        reply = await self.fetch_pin_meta(info.tab_id)
        message = ResolvedMetadataMessage(
            image_url=info.src_url,
            title=reply.title,
            pin_id=reply.pin_id,
        )
        await self.download_with_filename(message)

    async def fetch_pin_meta(self, tab_id: int) -> PinMetaReply:
        """Pull metadata from the page; any failure means "no extra metadata"."""
        try:
            payload = await self.bus.send_to_tab(
                tab_id, {"type": GET_PIN_META}, timeout=self.config.message_timeout
            )
        except Exception as exc:  # pylint: disable=broad-except
            logger.debug("Page metadata unavailable for tab %s: %s", tab_id, exc)
            return PinMetaReply()
        return PinMetaReply.from_payload(payload)

    async def download_with_filename(self, message: ResolvedMetadataMessage) -> Optional[Path]:
        if not message.image_url:
            logger.debug("Download request without an image URL; ignoring")
            return None

        intent = build_download_intent(message, self.config)
        key = (intent.source_url, intent.filename)
        if key in self._in_flight:
            logger.debug("Duplicate download request for %s; ignoring", intent.filename)
            return None

        self._in_flight.add(key)
        try:
            path = await asyncio.to_thread(
                self.service.download, intent.source_url, intent.filename, UNIQUIFY
            )
        except (DownloadError, requests.RequestException, OSError) as exc:
            logger.error("Failed to download %s: %s", intent.source_url, exc)
            return None
        finally:
            self._in_flight.discard(key)
        self.saved.append(path)
        return path
