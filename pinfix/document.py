"""Document snapshots the resolver reads from."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional, Protocol, Tuple

from bs4 import BeautifulSoup, Tag

Size = Tuple[int, int]


def _int_attr(tag: Tag, name: str) -> int:
    value = tag.get(name)
    if not value:
        return 0
    try:
        return int(float(str(value).strip().rstrip("px")))
    except ValueError:
        return 0


@dataclass
class PageSnapshot:
    """Parsed HTML of the page plus the rendered size of its images."""

    url: str
    soup: BeautifulSoup
    image_sizes: Dict[str, Size] = field(default_factory=dict)

    @classmethod
    def from_html(
        cls,
        html: str,
        url: str,
        image_sizes: Optional[Dict[str, Size]] = None,
    ) -> "PageSnapshot":
        return cls(url=url, soup=BeautifulSoup(html, "html.parser"), image_sizes=dict(image_sizes or {}))

    def image_size(self, img: Tag) -> Size:
        """Rendered size if it was captured, else the width/height attributes."""
        src = img.get("src") or ""
        if src in self.image_sizes:
            return self.image_sizes[src]
        return _int_attr(img, "width"), _int_attr(img, "height")


class DocumentSource(Protocol):
    """Something the resolver can ask for the current location and a snapshot."""

    async def location(self) -> str:
        ...

    async def snapshot(self) -> PageSnapshot:
        ...


class StaticDocument:
    """In-memory document; ``replace`` swaps content without navigating."""

    def __init__(
        self,
        url: str,
        html: str,
        image_sizes: Optional[Dict[str, Size]] = None,
    ) -> None:
        self.url = url
        self.html = html
        self.image_sizes: Dict[str, Size] = dict(image_sizes or {})
        self.snapshot_count = 0

    def navigate(self, url: str, html: str, image_sizes: Optional[Dict[str, Size]] = None) -> None:
        self.url = url
        self.replace(html, image_sizes)

    def replace(self, html: str, image_sizes: Optional[Dict[str, Size]] = None) -> None:
        self.html = html
        self.image_sizes = dict(image_sizes or {})

    async def location(self) -> str:
        return self.url

    async def snapshot(self) -> PageSnapshot:
        self.snapshot_count += 1
        return PageSnapshot.from_html(self.html, self.url, self.image_sizes)
