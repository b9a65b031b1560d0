"""Data models shared by the page context and the privileged saver."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Tuple

from .naming import image_id_from_url

DOWNLOAD_IMAGE = "DOWNLOAD_IMAGE"
GET_PIN_META = "GET_PIN_META"

LOW_CONFIDENCE_SOURCES = frozenset({"scan", "preview"})


def _text(payload: Mapping[str, Any], key: str) -> str:
    value = payload.get(key)
    return value.strip() if isinstance(value, str) else ""


@dataclass(frozen=True)
class ImageCandidate:
    """An image element considered by the resolver."""

    url: str
    alt: str = ""
    width: int = 0
    height: int = 0
    source: str = ""

    @property
    def area(self) -> int:
        return self.width * self.height


@dataclass(frozen=True)
class PageMetadata:
    """Metadata resolved for a single navigation of the page."""

    page_key: str
    title: str = ""
    pin_id: str = ""
    image_url: str = ""
    image_alt: str = ""
    image_source: str = ""
    resolved_at: float = 0.0

    @property
    def image_id(self) -> str:
        return image_id_from_url(self.image_url)

    @property
    def low_confidence(self) -> bool:
        return self.image_source in LOW_CONFIDENCE_SOURCES


@dataclass(frozen=True)
class ResolvedMetadataMessage:
    """Push payload sent from the page context to the saver."""

    image_url: str = ""
    title: str = ""
    image_alt: str = ""
    pin_id: str = ""
    image_id: str = ""

    @classmethod
    def from_metadata(cls, metadata: PageMetadata) -> "ResolvedMetadataMessage":
        return cls(
            image_url=metadata.image_url,
            title=metadata.title,
            image_alt=metadata.image_alt,
            pin_id=metadata.pin_id,
            image_id=metadata.image_id,
        )

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "ResolvedMetadataMessage":
        """Decode a wire payload; any missing or malformed field becomes empty."""
        return cls(
            image_url=_text(payload, "imageUrl"),
            title=_text(payload, "title"),
            image_alt=_text(payload, "imageAlt"),
            pin_id=_text(payload, "pinId"),
            image_id=_text(payload, "imageId"),
        )

    def to_payload(self) -> Dict[str, str]:
        return {
            "type": DOWNLOAD_IMAGE,
            "imageUrl": self.image_url,
            "title": self.title,
            "imageAlt": self.image_alt,
            "pinId": self.pin_id,
            "imageId": self.image_id,
        }


@dataclass(frozen=True)
class PinMetaReply:
    """Answer to a GET_PIN_META pull."""

    title: str = ""
    pin_id: str = ""

    @classmethod
    def from_payload(cls, payload: Any) -> "PinMetaReply":
        if not isinstance(payload, Mapping):
            return cls()
        return cls(title=_text(payload, "title"), pin_id=_text(payload, "pinId"))

    def to_payload(self) -> Dict[str, str]:
        return {"title": self.title, "pinId": self.pin_id}


@dataclass(frozen=True)
class DownloadIntent:
    """A save request assembled by the saver, discarded after the write."""

    source_url: str
    candidate_names: Tuple[str, ...]
    extension: str
    subfolder: str

    @property
    def base_name(self) -> str:
        return self.candidate_names[0]

    @property
    def filename(self) -> str:
        return f"{self.subfolder}/{self.base_name}{self.extension}"
