"""Trigger configuration API routes -- /api/triggers/*."""

from __future__ import annotations

import logging
from typing import Any

from aiohttp import web
from pydantic import TypeAdapter, ValidationError

from ...state.trigger_store import TriggerStore
from ...triggers.models import TriggerRule

logger = logging.getLogger(__name__)

_RULE_LIST = TypeAdapter(list[TriggerRule])


class TriggerRoutes:
    """REST handler for the ordered trigger rule list."""

    def __init__(self, trigger_store: TriggerStore) -> None:
        self._store = trigger_store

    def register(self, router: web.UrlDispatcher) -> None:
        router.add_get("/api/triggers", self._list)
        router.add_put("/api/triggers", self._replace)
        router.add_post("/api/triggers", self._add)
        router.add_put("/api/triggers/{index}", self._update)
        router.add_delete("/api/triggers/{index}", self._delete)

    async def _list(self, _req: web.Request) -> web.Response:
        return web.json_response(self._store.to_list())

    async def _replace(self, req: web.Request) -> web.Response:
        body = await req.json()
        try:
            rules = _RULE_LIST.validate_python(body)
        except ValidationError as exc:
            return _invalid(exc)
        self._store.replace_all(rules)
        logger.info("[triggers.replace] %d rule(s)", len(rules))
        return web.json_response({"status": "ok", "triggers": self._store.to_list()})

    async def _add(self, req: web.Request) -> web.Response:
        try:
            rule = TriggerRule.model_validate(await req.json())
        except ValidationError as exc:
            return _invalid(exc)
        index = self._store.add(rule)
        return web.json_response({"status": "ok", "index": index, "trigger": rule.to_dict()})

    async def _update(self, req: web.Request) -> web.Response:
        index = _parse_index(req)
        if index is None:
            return _not_found(req.match_info["index"])
        try:
            rule = TriggerRule.model_validate(await req.json())
        except ValidationError as exc:
            return _invalid(exc)
        try:
            self._store.update(index, rule)
        except IndexError:
            return _not_found(index)
        return web.json_response({"status": "ok", "trigger": rule.to_dict()})

    async def _delete(self, req: web.Request) -> web.Response:
        index = _parse_index(req)
        if index is None:
            return _not_found(req.match_info["index"])
        try:
            removed = self._store.remove(index)
        except IndexError:
            return _not_found(index)
        return web.json_response({"status": "ok", "trigger": removed.to_dict()})


def _parse_index(req: web.Request) -> int | None:
    try:
        return int(req.match_info["index"])
    except ValueError:
        return None


def _invalid(exc: ValidationError) -> web.Response:
    first: dict[str, Any] = exc.errors()[0]
    where = ".".join(str(p) for p in first.get("loc", ()))
    message = f"{where}: {first['msg']}" if where else first["msg"]
    return web.json_response({"status": "error", "message": message}, status=400)


def _not_found(index: object) -> web.Response:
    return web.json_response(
        {"status": "error", "message": f"No trigger at index {index}"}, status=404
    )
