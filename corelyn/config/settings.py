"""Application settings -- reads from environment and ``.env`` file.

All configuration is consolidated here.  Values are re-read on
:meth:`Settings.reload`; paths are derived lazily from the data directory so
tests can redirect them through ``CORELYN_DATA_DIR``.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import ClassVar

from ..agent.prompt import build_system_prompt
from ..util.env_file import EnvFile
from ..util.singletons import register_singleton

SECRET_ENV_KEYS: frozenset[str] = frozenset({"API_KEY"})

TRIGGER_ISOLATION_MODES: tuple[str, ...] = ("inprocess", "subprocess")


class Settings:
    """Runtime configuration sourced from environment variables and ``.env``."""

    _DATA_DIR_ENV: ClassVar[str] = "CORELYN_DATA_DIR"

    def __init__(self) -> None:
        # Resolve .env path: explicit DOTENV_PATH > data_dir/.env > CWD/.env
        dotenv = os.getenv("DOTENV_PATH")
        if not dotenv:
            data_dir = os.getenv(self._DATA_DIR_ENV)
            dotenv = str(Path(data_dir) / ".env") if data_dir else ".env"
        self.env = EnvFile(dotenv)
        self.reload()

    def reload(self) -> None:
        """Re-read the ``.env`` file and environment variables."""
        e = self._read

        self.api_key: str = e("API_KEY")
        self.provider: str = (e("PROVIDER") or "anthropic").lower()
        self.model: str = e("MODEL") or "claude-sonnet-4-6"
        self.system_prompt: str | None = build_system_prompt(e("SYSTEM_PROMPT"))
        self.temperature: float = float(e("TEMPERATURE") or "0.7")
        self.max_tokens: int = int(e("MAX_TOKENS") or "4096")
        self.provider_timeout: float = float(e("PROVIDER_TIMEOUT") or "120")

        self.admin_port: int = int(e("ADMIN_PORT") or "8000")

        self.stream_chunk_size: int = int(e("STREAM_CHUNK_SIZE") or "6")
        self.stream_delay: float = int(e("STREAM_DELAY_MS") or "8") / 1000

        isolation = (e("TRIGGER_ISOLATION") or "inprocess").lower()
        self.trigger_isolation: str = isolation if isolation in TRIGGER_ISOLATION_MODES else "inprocess"
        self.trigger_timeout: float = float(e("TRIGGER_TIMEOUT") or "5")

    # -- derived paths -----------------------------------------------------

    @property
    def data_dir(self) -> Path:
        return Path(os.getenv(self._DATA_DIR_ENV, str(Path.home() / ".corelyn")))

    @property
    def chats_dir(self) -> Path:
        return self.data_dir / "chats"

    @property
    def downloads_dir(self) -> Path:
        return self.data_dir / "downloads"

    @property
    def triggers_path(self) -> Path:
        return self.data_dir / "triggers.json"

    @property
    def history_path(self) -> Path:
        return self.data_dir / ".cli_history"

    # -- helpers -----------------------------------------------------------

    def _read(self, key: str) -> str:
        return self.env.read(key) or os.getenv(key, "")

    def ensure_dirs(self) -> None:
        for d in (self.data_dir, self.chats_dir, self.downloads_dir):
            d.mkdir(parents=True, exist_ok=True)

    def write_env(self, **kwargs: str) -> None:
        self.env.write(**kwargs)
        self.reload()

    def masked(self) -> dict[str, object]:
        """Settings view safe to hand to a client."""
        key = self.api_key
        return {
            "api_key": (key[:4] + "..." + key[-4:] if len(key) > 12 else "***") if key else "",
            "provider": self.provider,
            "model": self.model,
            "system_prompt": self.system_prompt or "",
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
            "trigger_isolation": self.trigger_isolation,
        }


# Module-level singleton
cfg = Settings()


def _reset_cfg() -> None:
    global cfg
    cfg = Settings()


register_singleton("cfg", _reset_cfg)
