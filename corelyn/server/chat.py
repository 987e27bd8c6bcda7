"""WebSocket chat handler -- /api/chat/ws."""

from __future__ import annotations

import json
import logging
from typing import Any

import aiohttp
from aiohttp import web

from ..messaging.bridge import EventQueueBridge
from ..messaging.code_runner import extract_code_blocks, run_python
from ..messaging.formatting import escape_html, markdown_to_html
from ..messaging.processor import MessageProcessor
from ..messaging.streaming import Frame
from ..state.chat_store import ROLE_USER, ChatStore

logger = logging.getLogger(__name__)


def render_entry(role: str, content: str) -> str:
    """User text is shown verbatim; everything else goes through Markdown."""
    if role == ROLE_USER:
        return escape_html(content)
    return markdown_to_html(content)


class ChatHandler:
    """WebSocket handler for the chat interface."""

    def __init__(self, processor: MessageProcessor, chat_store: ChatStore) -> None:
        self._processor = processor
        self._chats = chat_store

    def register(self, router: web.UrlDispatcher) -> None:
        router.add_get("/api/chat/ws", self.handle)

    async def handle(self, req: web.Request) -> web.WebSocketResponse:
        ws = web.WebSocketResponse()
        await ws.prepare(req)
        logger.info("[chat.handle] WebSocket connected from %s", req.remote)
        bridge = EventQueueBridge()

        async for msg in ws:
            if msg.type == aiohttp.WSMsgType.TEXT:
                logger.debug("[chat.handle] received: %s", msg.data[:200])
                try:
                    data = json.loads(msg.data)
                    await self._dispatch(ws, bridge, data)
                except json.JSONDecodeError:
                    logger.warning("[chat.handle] invalid JSON: %s", msg.data[:100])
                    await ws.send_json({"type": "error", "content": "Invalid JSON"})
                except Exception:
                    logger.exception("[chat.handle] unhandled error in dispatch")
                    await ws.send_json({"type": "error", "content": "Internal error"})
            elif msg.type == aiohttp.WSMsgType.ERROR:
                logger.error("[chat.handle] WebSocket error: %s", ws.exception())

        logger.info("[chat.handle] WebSocket disconnected")
        return ws

    async def _dispatch(
        self, ws: web.WebSocketResponse, bridge: EventQueueBridge, data: Any
    ) -> None:
        if not isinstance(data, dict):
            await ws.send_json({"type": "error", "content": "Expected a JSON object"})
            return
        action = data.get("action", "")
        logger.info("[chat.dispatch] action=%s keys=%s", action, list(data.keys()))
        if action == "new_chat":
            chat_id = self._chats.create_chat()
            await ws.send_json({"type": "chat_created", "chat_id": chat_id})
        elif action == "load_chat":
            await self._load_chat(ws, data.get("chat_id", ""))
        elif action == "send":
            await self._send(ws, bridge, data)
        elif action == "run_code":
            await self._run_code(ws, data)
        else:
            logger.warning("[chat.dispatch] unknown action: %s", action)
            await ws.send_json({"type": "error", "content": f"Unknown action: {action}"})

    async def _load_chat(self, ws: web.WebSocketResponse, chat_id: str) -> None:
        chat = self._chats.get_chat(chat_id)
        if not chat:
            await ws.send_json({"type": "error", "content": f"Chat {chat_id} not found"})
            return
        await ws.send_json({
            "type": "history",
            "chat_id": chat["id"],
            "title": chat["title"],
            "messages": [
                {**m, "html": render_entry(m["role"], m["content"])}
                for m in chat["messages"]
            ],
        })

    async def _send(
        self, ws: web.WebSocketResponse, bridge: EventQueueBridge, data: dict
    ) -> None:
        text = data.get("text") or data.get("message") or ""
        if not text.strip():
            logger.debug("[chat.send] empty text, ignoring")
            return
        if self._processor.streaming:
            await ws.send_json({"type": "error", "content": "A response is still streaming"})
            return

        async def flush_events() -> None:
            for event in bridge.drain():
                event_type = event.pop("type", "")
                await ws.send_json({"type": "event", "event": event_type, **event})

        async def on_frame(frame: Frame) -> None:
            await flush_events()
            await ws.send_json({"type": "frame", "html": frame.html, "final": frame.final})

        result = await self._processor.send(data.get("chat_id") or None, text, bridge, on_frame)
        if result is None:
            return
        await flush_events()
        for entry in result.feedback:
            await ws.send_json({"type": "feedback", "content": entry.content, "html": entry.html})
        if result.error:
            await ws.send_json({"type": "error", "content": result.error})
        await ws.send_json({"type": "done", "chat_id": result.chat_id})

    async def _run_code(self, ws: web.WebSocketResponse, data: dict) -> None:
        messages = self._chats.messages(data.get("chat_id", ""))
        try:
            content = messages[int(data.get("message_index", -1))].content
            code = extract_code_blocks(content)[int(data.get("block", 0))]
        except (IndexError, TypeError, ValueError):
            await ws.send_json({"type": "error", "content": "No such code block"})
            return
        result = run_python(code)
        await ws.send_json({"type": "code_result", "ok": result.success, "output": result.message})
