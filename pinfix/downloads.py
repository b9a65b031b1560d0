"""Privileged save primitive: fetch an image and write it under the download root."""

from __future__ import annotations

import logging
from pathlib import Path, PurePosixPath
from typing import Optional, Protocol

import requests
from filetype import guess

from .config import REQUEST_TIMEOUT_SECONDS

logger = logging.getLogger("pinfix")

UNIQUIFY = "uniquify"
MAX_UNIQUIFY_ATTEMPTS = 1000


class DownloadError(RuntimeError):
    """Raised when the host cannot complete a save."""


class DownloadService(Protocol):
    def download(self, url: str, filename: str, conflict_action: str = UNIQUIFY) -> Path:
        ...


def is_image_payload(data: bytes) -> bool:
    """Check the file signature with filetype."""
    kind = guess(data)
    return bool(kind and kind.mime.startswith("image/"))


def write_unique(path: Path, data: bytes) -> Path:
    """Create ``path`` or the first free ``name (n).ext`` sibling and write to it.

    Files are opened with ``xb`` so a name taken by a concurrent save is skipped
    instead of overwritten.
    """
    for counter in range(MAX_UNIQUIFY_ATTEMPTS + 1):
        candidate = path if counter == 0 else path.with_name(f"{path.stem} ({counter}){path.suffix}")
        try:
            with open(candidate, "xb") as handle:
                handle.write(data)
        except FileExistsError:
            continue
        return candidate
    raise DownloadError(f"Could not find a free name for {path}")


def resolve_destination(root: Path, filename: str) -> Path:
    """Join a relative ``a/b.jpg`` filename onto the root, refusing traversal."""
    relative = PurePosixPath(filename.replace("\\", "/"))
    if relative.is_absolute() or ".." in relative.parts or not relative.parts:
        raise DownloadError(f"Invalid download path: {filename!r}")
    return root.joinpath(*relative.parts)


class RequestsDownloadService:
    """Download service backed by a ``requests.Session``."""

    def __init__(
        self,
        output_root: Path,
        session: Optional[requests.Session] = None,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
    ) -> None:
        self.output_root = Path(output_root)
        self.session = session or requests.Session()
        self.timeout = timeout

    def close(self) -> None:
        self.session.close()

    def download(self, url: str, filename: str, conflict_action: str = UNIQUIFY) -> Path:
        if conflict_action != UNIQUIFY:
            raise ValueError(f"Unsupported conflict action: {conflict_action}")
        destination = resolve_destination(self.output_root, filename)

        resp = self.session.get(url, timeout=self.timeout)
        resp.raise_for_status()
        data = resp.content
        if not is_image_payload(data):
            raise DownloadError(
                f"{url} did not return an image "
                f"(Content-Type={resp.headers.get('Content-Type', '')})"
            )

        destination.parent.mkdir(parents=True, exist_ok=True)
        destination = write_unique(destination, data)
        logger.info("Saved %s to %s", url, destination)
        return destination
