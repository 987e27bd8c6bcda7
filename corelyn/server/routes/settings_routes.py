"""Settings API routes -- /api/settings."""

from __future__ import annotations

import logging
from collections.abc import Callable

from aiohttp import web

from ...agent.provider import PROVIDERS
from ...config.settings import TRIGGER_ISOLATION_MODES, Settings

logger = logging.getLogger(__name__)

# client field -> .env key
_EDITABLE: dict[str, str] = {
    "api_key": "API_KEY",
    "provider": "PROVIDER",
    "model": "MODEL",
    "system_prompt": "SYSTEM_PROMPT",
    "temperature": "TEMPERATURE",
    "max_tokens": "MAX_TOKENS",
    "trigger_isolation": "TRIGGER_ISOLATION",
}


class SettingsRoutes:
    """Masked read and validated write of the ``.env`` backed settings."""

    def __init__(
        self,
        settings: Settings,
        on_change: Callable[[], None] | None = None,
    ) -> None:
        self._settings = settings
        self._on_change = on_change

    def register(self, router: web.UrlDispatcher) -> None:
        router.add_get("/api/settings", self._get)
        router.add_put("/api/settings", self._save)

    async def _get(self, _req: web.Request) -> web.Response:
        return web.json_response(
            {**self._settings.masked(), "providers": sorted(PROVIDERS)}
        )

    async def _save(self, req: web.Request) -> web.Response:
        body = await req.json()
        if not isinstance(body, dict):
            return _error("Expected a JSON object")

        unknown = sorted(set(body) - set(_EDITABLE))
        if unknown:
            return _error(f"Unknown setting(s): {', '.join(unknown)}")

        updates: dict[str, str] = {}
        for field, value in body.items():
            value = "" if value is None else str(value).strip()
            if field == "api_key" and value == self._settings.masked()["api_key"]:
                continue
            updates[_EDITABLE[field]] = value

        error = _validate(updates)
        if error:
            return _error(error)

        self._settings.write_env(**updates)
        logger.info("[settings.save] updated %s", sorted(updates))
        if self._on_change is not None:
            self._on_change()
        return web.json_response({"status": "ok", "settings": self._settings.masked()})


def _validate(updates: dict[str, str]) -> str | None:
    provider = updates.get("PROVIDER")
    if provider and provider.lower() not in PROVIDERS:
        return f"Invalid provider: {provider}"
    isolation = updates.get("TRIGGER_ISOLATION")
    if isolation and isolation.lower() not in TRIGGER_ISOLATION_MODES:
        return f"Invalid trigger isolation: {isolation}"
    for key, cast in (("TEMPERATURE", float), ("MAX_TOKENS", int)):
        raw = updates.get(key)
        if raw:
            try:
                cast(raw)
            except ValueError:
                return f"Invalid {key.lower()}: {raw}"
    return None


def _error(message: str, status: int = 400) -> web.Response:
    return web.json_response({"status": "error", "message": message}, status=status)
