"""Chat history API routes -- /api/chats/*."""

from __future__ import annotations

from aiohttp import web

from ...state.chat_store import DEFAULT_TITLE, ChatStore


class ChatRoutes:
    """REST handler for persisted chats."""

    def __init__(self, chat_store: ChatStore) -> None:
        self._store = chat_store

    def register(self, router: web.UrlDispatcher) -> None:
        router.add_get("/api/chats", self._list)
        router.add_post("/api/chats", self._create)
        router.add_get("/api/chats/{chat_id}", self._get)
        router.add_delete("/api/chats/{chat_id}", self._delete)
        router.add_post("/api/chats/{chat_id}/clear", self._clear)

    async def _list(self, _req: web.Request) -> web.Response:
        return web.json_response(self._store.list_chats())

    async def _create(self, req: web.Request) -> web.Response:
        body = await req.json() if req.can_read_body else {}
        if not isinstance(body, dict):
            body = {}
        title = (body.get("title") or "").strip() or DEFAULT_TITLE
        chat_id = self._store.create_chat(title)
        return web.json_response({"status": "ok", "chat": self._store.get_chat(chat_id)})

    async def _get(self, req: web.Request) -> web.Response:
        data = self._store.get_chat(req.match_info["chat_id"])
        if not data:
            return _not_found()
        return web.json_response(data)

    async def _delete(self, req: web.Request) -> web.Response:
        if not self._store.delete_chat(req.match_info["chat_id"]):
            return _not_found()
        return web.json_response({"status": "ok"})

    async def _clear(self, req: web.Request) -> web.Response:
        chat_id = req.match_info["chat_id"]
        if not self._store.exists(chat_id):
            return _not_found()
        self._store.clear_messages(chat_id)
        return web.json_response({"status": "ok"})


def _not_found() -> web.Response:
    return web.json_response({"status": "error", "message": "Chat not found"}, status=404)
