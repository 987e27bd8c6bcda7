"""Chat server -- app factory and entry point."""

from __future__ import annotations

import logging

from aiohttp import web
from aiohttp.abc import AbstractAccessLogger

from .. import __version__
from ..agent.provider import create_provider
from ..config.settings import Settings, cfg
from ..messaging.processor import MessageProcessor
from ..messaging.streaming import StreamRenderer
from ..state.chat_store import ChatStore
from ..state.trigger_store import TriggerStore
from ..triggers.actions import create_runner
from ..triggers.engine import TriggerEngine
from .chat import ChatHandler
from .routes.chat_routes import ChatRoutes
from .routes.settings_routes import SettingsRoutes
from .routes.trigger_routes import TriggerRoutes

logger = logging.getLogger(__name__)

_QUIET_PATHS = frozenset({"/health"})


class QuietAccessLogger(AbstractAccessLogger):
    """Demotes polling-endpoint log entries to DEBUG."""

    def log(self, request: web.BaseRequest, response: web.StreamResponse, time: float) -> None:
        level = logging.DEBUG if request.path in _QUIET_PATHS else logging.INFO
        self.logger.log(
            level,
            "%s %s %s %s %.3fs",
            request.remote,
            request.method,
            request.path,
            response.status,
            time,
        )


def build_processor(settings: Settings, chats: ChatStore, triggers: TriggerStore) -> MessageProcessor:
    return MessageProcessor(
        chats,
        triggers,
        create_provider(settings),
        system_prompt=settings.system_prompt,
        engine=TriggerEngine(create_runner(settings.trigger_isolation, settings.trigger_timeout)),
        renderer=StreamRenderer(settings.stream_chunk_size, settings.stream_delay),
    )


class AppFactory:
    """Builds the aiohttp application with all dependencies wired."""

    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings or cfg

    async def build(self) -> web.Application:
        settings = self._settings
        settings.ensure_dirs()
        self._chats = ChatStore(settings.chats_dir)
        self._triggers = TriggerStore(settings.triggers_path)
        self._processor = build_processor(settings, self._chats, self._triggers)
        logger.info(
            "[app.build] provider=%s model=%s triggers=%d isolation=%s",
            settings.provider, settings.model,
            len(self._triggers.rules), settings.trigger_isolation,
        )

        app = web.Application()
        app["processor"] = self._processor
        self._register_routes(app)
        return app

    def _refresh_processor(self) -> None:
        """Rebuild provider-dependent collaborators after a settings write."""
        fresh = build_processor(self._settings, self._chats, self._triggers)
        self._processor.provider = fresh.provider
        self._processor.system_prompt = fresh.system_prompt
        self._processor.engine = fresh.engine
        self._processor.renderer = fresh.renderer
        logger.info("[app.refresh] provider=%s model=%s", self._settings.provider, self._settings.model)

    def _register_routes(self, app: web.Application) -> None:
        router = app.router
        router.add_get("/health", _health)
        ChatHandler(self._processor, self._chats).register(router)
        ChatRoutes(self._chats).register(router)
        TriggerRoutes(self._triggers).register(router)
        SettingsRoutes(self._settings, on_change=self._refresh_processor).register(router)


async def create_app(settings: Settings | None = None) -> web.Application:
    factory = AppFactory(settings)
    return await factory.build()


async def _health(_req: web.Request) -> web.Response:
    return web.json_response({"status": "ok", "version": __version__})


def main() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s  %(name)s  %(levelname)s  %(message)s",
    )
    port = cfg.admin_port
    logger.info("Starting chat server on port %d ...", port)
    web.run_app(create_app(), host="0.0.0.0", port=port, access_log_class=QuietAccessLogger)


if __name__ == "__main__":
    main()
