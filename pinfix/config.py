"""Configuration objects and constants for the Pinterest filename fixer."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger("pinfix")

SITE_NAME = "Pinterest"
DEFAULT_SUBFOLDER = "Pinterest"
DEFAULT_FALLBACK_NAME = "pinterest-image"
DEFAULT_EXTENSION = ".jpg"
MAX_BASE_LENGTH = 120

CACHE_TTL_SECONDS = 1.0
DEBOUNCE_SECONDS = 0.5
MAX_ANCESTOR_DEPTH = 5
SCAN_LIMIT = 40
MIN_IMAGE_SIDE = 200

MESSAGE_TIMEOUT_SECONDS = 5.0
REQUEST_TIMEOUT_SECONDS = 15.0

OUTPUT_DIR_ENV = "PINFIX_OUTPUT_DIR"


def default_output_root() -> Path:
    """Return the download root, honouring the PINFIX_OUTPUT_DIR override."""
    override = os.getenv(OUTPUT_DIR_ENV)
    if override:
        override_path = Path(override).expanduser()
        if not override_path.is_file():
            return override_path.resolve()
        logger.warning(
            "%s is set to %s but it is a file; falling back to ./downloads",
            OUTPUT_DIR_ENV,
            override_path,
        )
    return Path("downloads").resolve()


@dataclass
class ResolverConfig:
    """Tunables for the page-side metadata resolver."""

    ttl_seconds: float = CACHE_TTL_SECONDS
    scan_limit: int = SCAN_LIMIT
    min_image_side: int = MIN_IMAGE_SIDE


@dataclass
class InterceptConfig:
    """Tunables for click interception."""

    debounce_seconds: float = DEBOUNCE_SECONDS
    max_depth: int = MAX_ANCESTOR_DEPTH


@dataclass
class SaveConfig:
    """Settings that control filename derivation and the privileged save."""

    output_root: Path = field(default_factory=default_output_root)
    subfolder: str = DEFAULT_SUBFOLDER
    fallback_name: str = DEFAULT_FALLBACK_NAME
    max_base_length: int = MAX_BASE_LENGTH
    default_extension: str = DEFAULT_EXTENSION
    message_timeout: float = MESSAGE_TIMEOUT_SECONDS
    request_timeout: float = REQUEST_TIMEOUT_SECONDS


@dataclass
class BrowserConfig:
    """Playwright rendering settings."""

    wait_after_load: float = 1.0
    navigation_timeout: float = 30.0
