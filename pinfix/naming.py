"""Helpers for turning page metadata into safe filenames."""

from __future__ import annotations

import re
from urllib.parse import urlparse

from .config import DEFAULT_EXTENSION, MAX_BASE_LENGTH, SITE_NAME

ILLEGAL_CHARS_PATTERN = re.compile(r'[\\/:*?"<>|]+')
WHITESPACE_PATTERN = re.compile(r"\s+")
EXTENSION_PATTERN = re.compile(r"\.([a-zA-Z0-9]{2,5})$")
IMAGE_ID_PATTERN = re.compile(r"/([0-9a-fA-F]{6,})\.[a-zA-Z0-9]{2,5}$")

_HOME_WORDS = (
    "home",
    "início",
    "inicio",
    "accueil",
    "startseite",
    "página inicial",
    "pagina iniziale",
)
_HOME = "|".join(re.escape(word) for word in _HOME_WORDS)
_SITE = re.escape(SITE_NAME)
_JOIN = r"\s*[-|:·–—]?\s*"
GENERIC_TITLE_PATTERN = re.compile(
    rf"^\s*(?:{_SITE}(?:{_JOIN}(?:{_HOME}))?|(?:{_HOME}){_JOIN}{_SITE})\s*$",
    re.IGNORECASE,
)


def is_generic_title(value: str | None) -> bool:
    """Return True for the brand name alone or brand plus a localized "home"."""
    if not value:
        return False
    return bool(GENERIC_TITLE_PATTERN.match(value))


def sanitize_base_name(value: str | None, max_length: int = MAX_BASE_LENGTH) -> str:
    """Strip characters that are illegal on Windows/macOS/Linux filesystems."""
    cleaned = ILLEGAL_CHARS_PATTERN.sub(" ", value or "")
    cleaned = WHITESPACE_PATTERN.sub(" ", cleaned).strip()
    return cleaned[:max_length].strip()


def extension_from_url(url: str | None, default: str = DEFAULT_EXTENSION) -> str:
    """Return the lower-cased extension of the URL path, or the default."""
    try:
        path = urlparse(url or "").path
    except ValueError:
        return default
    match = EXTENSION_PATTERN.search(path)
    if match:
        return "." + match.group(1).lower()
    # The asset host often omits the extension.
    return default


def image_id_from_url(url: str | None) -> str:
    """Extract the hex asset hash that precedes the file extension."""
    try:
        path = urlparse(url or "").path
    except ValueError:
        return ""
    match = IMAGE_ID_PATTERN.search(path)
    return match.group(1) if match else ""
