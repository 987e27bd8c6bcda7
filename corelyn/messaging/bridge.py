"""Client-side capabilities that tool commands and trigger actions act through.

The processor never touches a browser or terminal directly.  Each surface
supplies a :class:`ClientBridge`: the WebSocket handler uses
:class:`EventQueueBridge`, which queues events until the handler drains them,
and the CLI has its own console implementation.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

logger = logging.getLogger(__name__)


class ClientBridge(Protocol):
    def download(self, filename: str, content: str) -> None: ...

    def open_url(self, url: str) -> None: ...

    def alert(self, text: str) -> None: ...

    def toast(self, text: str, kind: str = "info") -> None: ...

    def title_changed(self, chat_id: str, title: str) -> None: ...


class EventQueueBridge:
    """Records every capability call as a JSON-ready event for later delivery."""

    def __init__(self) -> None:
        self._events: list[dict[str, Any]] = []

    def download(self, filename: str, content: str) -> None:
        self._push({"type": "download", "filename": filename, "content": content})

    def open_url(self, url: str) -> None:
        self._push({"type": "open_url", "url": url})

    def alert(self, text: str) -> None:
        self._push({"type": "alert", "content": text})

    def toast(self, text: str, kind: str = "info") -> None:
        self._push({"type": "toast", "content": text, "kind": kind})

    def title_changed(self, chat_id: str, title: str) -> None:
        self._push({"type": "title", "chat_id": chat_id, "title": title})

    def drain(self) -> list[dict[str, Any]]:
        events = list(self._events)
        self._events.clear()
        return events

    def _push(self, event: dict[str, Any]) -> None:
        logger.debug("[bridge.push] %s", event["type"])
        self._events.append(event)
