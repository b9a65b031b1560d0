"""Message passing between the page context and the privileged context."""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Set

logger = logging.getLogger("pinfix")

RuntimeHandler = Callable[[Dict[str, Any]], Awaitable[None]]
TabHandler = Callable[[Dict[str, Any]], Awaitable[Optional[Dict[str, Any]]]]
MenuHandler = Callable[["MenuClick"], Awaitable[None]]


class NoReceiverError(RuntimeError):
    """Raised when a message has nobody to answer it in the target context."""


def _clone(payload: Any) -> Any:
    # Only JSON-serializable data crosses the boundary.
    return json.loads(json.dumps(payload))


class MessageBus:
    """Delivers one JSON payload per call between contexts."""

    def __init__(self) -> None:
        self._runtime_listeners: List[RuntimeHandler] = []
        self._tab_listeners: Dict[int, TabHandler] = {}
        self._pending: Set[asyncio.Task] = set()

    def add_runtime_listener(self, handler: RuntimeHandler) -> None:
        self._runtime_listeners.append(handler)

    def add_tab_listener(self, tab_id: int, handler: TabHandler) -> None:
        self._tab_listeners[tab_id] = handler

    def remove_tab_listener(self, tab_id: int) -> None:
        self._tab_listeners.pop(tab_id, None)

    def send_message(self, payload: Dict[str, Any]) -> asyncio.Task:
        """Push to the privileged context without waiting for the outcome."""
        message = _clone(payload)
        task = asyncio.ensure_future(self._deliver(message))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _deliver(self, message: Dict[str, Any]) -> None:
        if not self._runtime_listeners:
            logger.debug("No runtime listener for %s", message.get("type"))
            return
        for handler in list(self._runtime_listeners):
            try:
                await handler(_clone(message))
            except Exception:  # pylint: disable=broad-except
                logger.exception("Runtime listener failed for %s", message.get("type"))

    async def drain(self) -> None:
        """Wait until every pushed message has been handled."""
        while self._pending:
            await asyncio.gather(*list(self._pending))

    async def send_to_tab(
        self,
        tab_id: int,
        payload: Dict[str, Any],
        timeout: Optional[float] = None,
    ) -> Dict[str, Any]:
        """Ask the page context in ``tab_id`` for an answer."""
        handler = self._tab_listeners.get(tab_id)
        if handler is None:
            raise NoReceiverError(f"No listener in tab {tab_id}")
        reply = await asyncio.wait_for(handler(_clone(payload)), timeout)
        if reply is None:
            raise NoReceiverError(
                f"Tab {tab_id} did not answer {payload.get('type')}"
            )
        return _clone(reply)


@dataclass(frozen=True)
class MenuClick:
    """What the host reports when a context-menu entry is chosen."""

    menu_item_id: str
    src_url: Optional[str] = None
    tab_id: Optional[int] = None


class ContextMenu:
    """Registry of context-menu entries and their click listeners."""

    def __init__(self) -> None:
        self.items: Dict[str, Dict[str, Any]] = {}
        self._listeners: List[MenuHandler] = []

    def create(self, menu_id: str, title: str, contexts: List[str]) -> None:
        self.items[menu_id] = {"title": title, "contexts": list(contexts)}

    def on_clicked(self, handler: MenuHandler) -> None:
        self._listeners.append(handler)

    async def click(
        self,
        menu_id: str,
        src_url: Optional[str] = None,
        tab_id: Optional[int] = None,
    ) -> None:
        if menu_id not in self.items:
            raise KeyError(f"Unknown menu item {menu_id}")
        info = MenuClick(menu_item_id=menu_id, src_url=src_url, tab_id=tab_id)
        for handler in list(self._listeners):
            await handler(info)
