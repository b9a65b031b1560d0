"""Ordered candidate extractors used by the metadata resolver.

Each extractor is a pure function of a :class:`PageSnapshot` returning a
candidate or ``None``. The resolver runs them in priority order and keeps the
first hit, so every heuristic can be exercised on its own.
"""

from __future__ import annotations

import re
from typing import Callable, Iterable, Optional, Tuple
from urllib.parse import urljoin, urlparse

from bs4 import Tag

from .config import MIN_IMAGE_SIDE, SCAN_LIMIT
from .document import PageSnapshot
from .models import ImageCandidate
from .naming import WHITESPACE_PATTERN, is_generic_title

TITLE_MIN_LENGTH = 2
TITLE_MAX_LENGTH = 300

TITLE_SELECTORS = (
    '[data-test-id="closeup-title"] h1',
    '[data-test-id="pinTitle"] h1',
    '[data-test-id="pin-title"]',
    '[data-test-id="closeup-body"] h1',
    '[data-test-id="closeup-body"] h2',
    "main h1",
    '[role="main"] h1',
)
HEADING_SELECTOR = "h1, h2, h3, h4, h5, h6"

CLOSEUP_IMAGE_SELECTORS = (
    '[data-test-id="pin-closeup-image"] img',
    '[data-test-id="closeup-image"] img',
    '[data-test-id="visual-content-container"] img',
    '[data-test-id="closeup-body"] img',
)

PIN_PATH_PATTERN = re.compile(r"/pin/(\d+)")
ASSET_HOST_PATTERN = re.compile(r"(^|\.)pinimg\.com$", re.IGNORECASE)
# Avatars and board covers live on the same CDN as pin content.
NON_PIN_IMAGE_PATTERN = re.compile(
    r"/\d+x\d+_RS/|/users?/|/avatars?/|/boards?/|board_thumbnail|/profile",
    re.IGNORECASE,
)

TitleExtractor = Callable[[PageSnapshot], Optional[str]]
ImageExtractor = Callable[[PageSnapshot], Optional[ImageCandidate]]


def _clean_text(value: str) -> str:
    return WHITESPACE_PATTERN.sub(" ", value).strip()


def is_acceptable_title(text: str) -> bool:
    return (
        TITLE_MIN_LENGTH <= len(text) <= TITLE_MAX_LENGTH
        and not is_generic_title(text)
    )


def is_asset_url(url: str) -> bool:
    """True when the URL is served by the site's image CDN."""
    try:
        host = urlparse(url).hostname or ""
    except ValueError:
        return False
    return bool(ASSET_HOST_PATTERN.search(host))


def _first_title(tags: Iterable[Tag]) -> Optional[str]:
    for tag in tags:
        text = _clean_text(tag.get_text(" ", strip=True))
        if text and is_acceptable_title(text):
            return text
    return None


def title_from_closeup(snapshot: PageSnapshot) -> Optional[str]:
    """Try the structural selectors of the close-up view, most specific first."""
    for selector in TITLE_SELECTORS:
        title = _first_title(snapshot.soup.select(selector))
        if title:
            return title
    return None


def title_from_headings(snapshot: PageSnapshot) -> Optional[str]:
    return _first_title(snapshot.soup.select(HEADING_SELECTOR))


def pin_id_from_url(url: str) -> str:
    try:
        path = urlparse(url).path
    except ValueError:
        return ""
    match = PIN_PATH_PATTERN.search(path)
    return match.group(1) if match else ""


def _img_src(snapshot: PageSnapshot, img: Tag) -> str:
    src = (img.get("src") or "").strip()
    if not src or src.startswith("data:"):
        return ""
    return urljoin(snapshot.url, src)


def _candidate(snapshot: PageSnapshot, img: Tag, url: str, source: str) -> ImageCandidate:
    width, height = snapshot.image_size(img)
    return ImageCandidate(
        url=url,
        alt=(img.get("alt") or "").strip(),
        width=width,
        height=height,
        source=source,
    )


def image_from_closeup(snapshot: PageSnapshot) -> Optional[ImageCandidate]:
    """First CDN image inside the enlarged/detail view."""
    for selector in CLOSEUP_IMAGE_SELECTORS:
        for img in snapshot.soup.select(selector):
            url = _img_src(snapshot, img)
            if url and is_asset_url(url):
                return _candidate(snapshot, img, url, "closeup")
    return None


def make_image_scanner(
    scan_limit: int = SCAN_LIMIT,
    min_side: int = MIN_IMAGE_SIDE,
) -> ImageExtractor:
    """Build the page-wide scan that keeps the largest plausible pin image."""

    def image_from_scan(snapshot: PageSnapshot) -> Optional[ImageCandidate]:
        best: Optional[ImageCandidate] = None
        checked = 0
        for img in snapshot.soup.find_all("img"):
            url = _img_src(snapshot, img)
            if not url or not is_asset_url(url):
                continue
            checked += 1
            if checked > scan_limit:
                break
            candidate = _candidate(snapshot, img, url, "scan")
            if candidate.width < min_side or candidate.height < min_side:
                continue
            if NON_PIN_IMAGE_PATTERN.search(urlparse(url).path):
                continue
            # Strictly greater keeps the first seen on ties.
            if best is None or candidate.area > best.area:
                best = candidate
        return best

    return image_from_scan


def image_from_preview(snapshot: PageSnapshot) -> Optional[ImageCandidate]:
    """Fall back to the og:image declaration when it points at the CDN."""
    meta = snapshot.soup.find("meta", attrs={"property": "og:image"})
    if not meta or not meta.get("content"):
        return None
    url = urljoin(snapshot.url, meta["content"].strip())
    if not is_asset_url(url):
        return None
    alt_meta = snapshot.soup.find("meta", attrs={"property": "og:image:alt"})
    alt = alt_meta["content"].strip() if alt_meta and alt_meta.get("content") else ""
    return ImageCandidate(url=url, alt=alt, source="preview")


DEFAULT_TITLE_EXTRACTORS: Tuple[TitleExtractor, ...] = (
    title_from_closeup,
    title_from_headings,
)


def default_image_extractors(
    scan_limit: int = SCAN_LIMIT,
    min_side: int = MIN_IMAGE_SIDE,
) -> Tuple[ImageExtractor, ...]:
    return (
        image_from_closeup,
        make_image_scanner(scan_limit, min_side),
        image_from_preview,
    )
