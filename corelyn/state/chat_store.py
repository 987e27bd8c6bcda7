"""Chat log store -- one JSON file per chat, messages append-only."""

from __future__ import annotations

import json
import logging
import time
import uuid
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

from ..config.settings import cfg

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "New Chat"
TITLE_FROM_MESSAGE_LEN = 40

ROLE_USER = "user"
ROLE_ASSISTANT = "assistant"
ROLE_FEEDBACK = "tool-feedback"
ROLES: frozenset[str] = frozenset({ROLE_USER, ROLE_ASSISTANT, ROLE_FEEDBACK})


@dataclass(frozen=True)
class ChatMessage:
    role: str
    content: str
    timestamp: float = 0.0


@dataclass
class Chat:
    id: str = ""
    title: str = DEFAULT_TITLE
    messages: list[ChatMessage] = field(default_factory=list)
    created_at: float = 0.0
    updated_at: float = 0.0


class ChatStore:
    """Directory-backed chat store with one JSON file per chat."""

    def __init__(self, directory: Path | None = None) -> None:
        self._dir = directory or cfg.chats_dir
        self._dir.mkdir(parents=True, exist_ok=True)

    def _path(self, chat_id: str) -> Path:
        return self._dir / f"{chat_id}.json"

    def _load(self, chat_id: str) -> Chat | None:
        path = self._path(chat_id)
        if not path.exists():
            return None
        try:
            data = json.loads(path.read_text())
            return Chat(
                id=data.get("id", chat_id),
                title=data.get("title", DEFAULT_TITLE),
                messages=[
                    ChatMessage(
                        role=m.get("role", ""),
                        content=m.get("content", ""),
                        timestamp=m.get("timestamp", 0),
                    )
                    for m in data.get("messages", [])
                ],
                created_at=data.get("created_at", 0),
                updated_at=data.get("updated_at", 0),
            )
        except (json.JSONDecodeError, OSError, AttributeError):
            logger.warning("[chat_store.load] unreadable chat file %s", path)
            return None

    def _save(self, chat: Chat) -> None:
        chat.updated_at = time.time()
        self._path(chat.id).write_text(json.dumps(asdict(chat), indent=2) + "\n")

    def _require(self, chat_id: str) -> Chat:
        chat = self._load(chat_id)
        if chat is None:
            raise KeyError(f"Chat {chat_id} not found")
        return chat

    def exists(self, chat_id: str) -> bool:
        return self._path(chat_id).exists()

    def create_chat(self, title: str = DEFAULT_TITLE) -> str:
        now = time.time()
        chat = Chat(id=uuid.uuid4().hex[:12], title=title, created_at=now)
        self._save(chat)
        logger.info("[chat_store.create] id=%s", chat.id)
        return chat.id

    def append(self, chat_id: str, role: str, content: str) -> ChatMessage:
        if role not in ROLES:
            raise ValueError(f"Invalid role: {role}")
        chat = self._require(chat_id)
        message = ChatMessage(role=role, content=content, timestamp=time.time())
        chat.messages.append(message)
        if role == ROLE_USER and chat.title == DEFAULT_TITLE and content.strip():
            chat.title = content[:TITLE_FROM_MESSAGE_LEN]
        self._save(chat)
        return message

    def messages(self, chat_id: str) -> list[ChatMessage]:
        chat = self._load(chat_id)
        return list(chat.messages) if chat else []

    def title(self, chat_id: str) -> str:
        return self._require(chat_id).title

    def set_title(self, chat_id: str, title: str) -> None:
        chat = self._require(chat_id)
        chat.title = title
        self._save(chat)

    def clear_messages(self, chat_id: str) -> None:
        chat = self._require(chat_id)
        chat.messages = []
        chat.title = DEFAULT_TITLE
        self._save(chat)

    def get_chat(self, chat_id: str) -> dict[str, Any] | None:
        chat = self._load(chat_id)
        return asdict(chat) if chat else None

    def list_chats(self) -> list[dict[str, Any]]:
        result: list[dict[str, Any]] = []
        for path in self._dir.glob("*.json"):
            chat = self._load(path.stem)
            if not chat:
                continue
            result.append({
                "id": chat.id,
                "title": chat.title,
                "message_count": len(chat.messages),
                "created_at": chat.created_at,
                "updated_at": chat.updated_at,
            })
        result.sort(key=lambda c: c["updated_at"] or c["created_at"], reverse=True)
        return result

    def delete_chat(self, chat_id: str) -> bool:
        path = self._path(chat_id)
        if path.exists():
            path.unlink()
            return True
        return False
