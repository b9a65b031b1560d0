"""Detect clicks on the site's download affordance and suppress them."""

from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass
from typing import Callable, Optional

from .config import InterceptConfig, MAX_ANCESTOR_DEPTH

logger = logging.getLogger("pinfix")

DOWNLOAD_WORDS = (
    "download",
    "baixar",
    "descargar",
    "télécharger",
    "herunterladen",
    "scaricare",
    "downloaden",
)
DOWNLOAD_PATTERN = re.compile(
    r"\b(?:" + "|".join(re.escape(word) for word in DOWNLOAD_WORDS) + r")\b",
    re.IGNORECASE,
)


@dataclass
class ElementInfo:
    """The parts of a DOM element the interceptor looks at."""

    text: str = ""
    aria_label: Optional[str] = None
    parent: Optional["ElementInfo"] = None


@dataclass
class ClickEvent:
    """A capture-phase click and the suppression calls made on it."""

    target: Optional[ElementInfo]
    default_prevented: bool = False
    propagation_stopped: bool = False
    immediate_propagation_stopped: bool = False

    def prevent_default(self) -> None:
        self.default_prevented = True

    def stop_propagation(self) -> None:
        self.propagation_stopped = True

    def stop_immediate_propagation(self) -> None:
        self.immediate_propagation_stopped = True
        self.propagation_stopped = True

    @property
    def suppressed(self) -> bool:
        return self.default_prevented and self.immediate_propagation_stopped


def is_download_button(element: Optional[ElementInfo], max_depth: int = MAX_ANCESTOR_DEPTH) -> bool:
    """Check the element and its ancestors for a localized "download" label."""
    depth = 0
    while element is not None and depth < max_depth:
        if element.text and DOWNLOAD_PATTERN.search(element.text):
            return True
        if element.aria_label and DOWNLOAD_PATTERN.search(element.aria_label):
            return True
        element = element.parent
        depth += 1
    return False


class ClickInterceptor:
    """Suppresses download clicks, ignoring repeats inside the debounce window."""

    def __init__(
        self,
        config: Optional[InterceptConfig] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.config = config or InterceptConfig()
        self._clock = clock
        self._busy_until: Optional[float] = None

    @property
    def is_debounced(self) -> bool:
        if self._busy_until is None:
            return False
        if self._clock() >= self._busy_until:
            self._busy_until = None
            return False
        return True

    def intercept(self, event: ClickEvent) -> bool:
        """Suppress the event if it targets a download affordance.

        Returns True when the click was taken over; False leaves the event
        untouched so the page's own handler runs.
        """
        if self.is_debounced:
            return False
        if not is_download_button(event.target, self.config.max_depth):
            return False

        event.prevent_default()
        event.stop_propagation()
        event.stop_immediate_propagation()

        self._busy_until = self._clock() + self.config.debounce_seconds
        logger.debug("Intercepted download click")
        return True
