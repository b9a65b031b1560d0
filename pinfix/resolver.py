"""Page-side metadata resolution with a short-lived cache."""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional, Sequence

from .config import ResolverConfig
from .document import DocumentSource, PageSnapshot
from .extractors import (
    DEFAULT_TITLE_EXTRACTORS,
    ImageExtractor,
    TitleExtractor,
    default_image_extractors,
    pin_id_from_url,
)
from .models import ImageCandidate, PageMetadata

logger = logging.getLogger("pinfix")


class MetadataResolver:
    """Resolve title, pin id and best image for the current view.

    Results are cached per location and reused until the location changes or
    the entry is older than ``config.ttl_seconds``; the page may swap content
    in place without navigating, so the key alone is not enough.
    """

    def __init__(
        self,
        document: DocumentSource,
        config: Optional[ResolverConfig] = None,
        clock: Callable[[], float] = time.monotonic,
        title_extractors: Optional[Sequence[TitleExtractor]] = None,
        image_extractors: Optional[Sequence[ImageExtractor]] = None,
    ) -> None:
        self.document = document
        self.config = config or ResolverConfig()
        self._clock = clock
        self._title_extractors = tuple(title_extractors or DEFAULT_TITLE_EXTRACTORS)
        self._image_extractors = tuple(
            image_extractors
            or default_image_extractors(self.config.scan_limit, self.config.min_image_side)
        )
        self._cache: Optional[PageMetadata] = None

    def _is_fresh(self, page_key: str) -> bool:
        cached = self._cache
        if cached is None or cached.page_key != page_key:
            return False
        return self._clock() - cached.resolved_at <= self.config.ttl_seconds

    async def resolve(self) -> PageMetadata:
        page_key = await self.document.location()
        if self._is_fresh(page_key):
            return self._cache  # type: ignore[return-value]

        # The page may navigate while the snapshot is taken; key by what was read.
        snapshot = await self.document.snapshot()
        metadata = self._build(snapshot.url, snapshot)
        self._cache = metadata
        return metadata

    def _build(self, page_key: str, snapshot: PageSnapshot) -> PageMetadata:
        title = self._resolve_title(snapshot)
        image = self._resolve_image(snapshot)
        if image is None:
            logger.debug("No image found on %s", page_key)
        elif image.source != "closeup":
            logger.info(
                "Low-confidence image resolution via %s on %s: %s",
                image.source,
                page_key,
                image.url,
            )
        if not title:
            logger.debug("No title found on %s", page_key)
        return PageMetadata(
            page_key=page_key,
            title=title,
            pin_id=pin_id_from_url(page_key),
            image_url=image.url if image else "",
            image_alt=image.alt if image else "",
            image_source=image.source if image else "",
            resolved_at=self._clock(),
        )

    def _resolve_title(self, snapshot: PageSnapshot) -> str:
        for extractor in self._title_extractors:
            title = extractor(snapshot)
            if title:
                return title
        return ""

    def _resolve_image(self, snapshot: PageSnapshot) -> Optional[ImageCandidate]:
        for extractor in self._image_extractors:
            candidate = extractor(snapshot)
            if candidate is not None:
                return candidate
        return None
