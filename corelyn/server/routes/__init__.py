"""Server route handlers."""

from __future__ import annotations

from .chat_routes import ChatRoutes
from .settings_routes import SettingsRoutes
from .trigger_routes import TriggerRoutes

__all__ = [
    "ChatRoutes",
    "SettingsRoutes",
    "TriggerRoutes",
]
