"""Page-side component: click interception, resolution and the push/pull replies."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional

from .config import InterceptConfig, ResolverConfig
from .document import DocumentSource
from .interceptor import ClickEvent, ClickInterceptor
from .messaging import MessageBus
from .models import GET_PIN_META, PinMetaReply, ResolvedMetadataMessage
from .resolver import MetadataResolver

logger = logging.getLogger("pinfix")


class PageContext:
    """Everything that runs inside one rendered page."""

    def __init__(
        self,
        document: DocumentSource,
        bus: MessageBus,
        tab_id: int,
        resolver_config: Optional[ResolverConfig] = None,
        intercept_config: Optional[InterceptConfig] = None,
        resolver: Optional[MetadataResolver] = None,
        interceptor: Optional[ClickInterceptor] = None,
    ) -> None:
        self.bus = bus
        self.tab_id = tab_id
        self.resolver = resolver or MetadataResolver(document, resolver_config)
        self.interceptor = interceptor or ClickInterceptor(intercept_config)

    def install(self) -> None:
        self.bus.add_tab_listener(self.tab_id, self.handle_message)
        logger.debug("Page context installed in tab %s", self.tab_id)

    def uninstall(self) -> None:
        self.bus.remove_tab_listener(self.tab_id)

    async def on_click(self, event: ClickEvent) -> Optional[asyncio.Task]:
        """Capture-phase click handler.

        Suppression happens before resolution, so a failed resolution still
        keeps the site's own unnamed download from running.
        """
        if not self.interceptor.intercept(event):
            return None
        try:
            return await self.request_download()
        except Exception:  # pylint: disable=broad-except
            logger.exception("Metadata resolution failed; skipping save")
            return None

    async def request_download(self) -> Optional[asyncio.Task]:
        """Resolve the current view and push it to the saver."""
        metadata = await self.resolver.resolve()
        if not metadata.image_url:
            logger.debug("No image found on %s", metadata.page_key)
            return None

        message = ResolvedMetadataMessage.from_metadata(metadata)
        logger.info(
            "[Pinterest Fix] Downloading: %s as: %s",
            message.image_url,
            message.title or message.image_alt or message.pin_id or message.image_id,
        )
        return self.bus.send_message(message.to_payload())

    async def handle_message(self, message: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        if message.get("type") != GET_PIN_META:
            return None
        metadata = await self.resolver.resolve()
        return PinMetaReply(title=metadata.title, pin_id=metadata.pin_id).to_payload()
