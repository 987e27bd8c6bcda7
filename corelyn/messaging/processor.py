"""Message processor -- drives one user/assistant exchange end to end.

Order of effects within :meth:`MessageProcessor.send`:

1. user entry persisted
2. provider call
3. embedded commands dispatched (side effects land before any text shows)
4. canonical text persisted and streamed
5. triggers evaluated against the complete canonical text
6. feedback entries persisted
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from ..agent.provider import Provider
from ..errors import ConfigurationError, ProviderError
from ..state.chat_store import ROLE_ASSISTANT, ROLE_FEEDBACK, ROLE_USER, ChatStore
from ..state.trigger_store import TriggerStore
from ..triggers.engine import TriggerEngine
from ..triggers.models import TriggerOutcome
from .bridge import ClientBridge
from .commands import CommandDispatcher, CommandResult, ToolContext, process_commands
from .feedback import compose_feedback
from .formatting import markdown_to_html
from .streaming import FrameFn, StreamRenderer

logger = logging.getLogger(__name__)

_PROVIDER_ROLES = frozenset({ROLE_USER, ROLE_ASSISTANT})


@dataclass(frozen=True)
class FeedbackEntry:
    content: str
    html: str


@dataclass
class ExchangeResult:
    chat_id: str
    assistant_text: str = ""
    assistant_html: str = ""
    command_results: list[CommandResult] = field(default_factory=list)
    trigger_outcomes: list[TriggerOutcome] = field(default_factory=list)
    feedback: list[FeedbackEntry] = field(default_factory=list)
    error: str | None = None


class MessageProcessor:
    """Owns the single-stream guard and wires the pipeline stages together."""

    def __init__(
        self,
        chats: ChatStore,
        triggers: TriggerStore,
        provider: Provider,
        *,
        system_prompt: str | None = None,
        dispatcher: CommandDispatcher | None = None,
        engine: TriggerEngine | None = None,
        renderer: StreamRenderer | None = None,
    ) -> None:
        self.chats = chats
        self.triggers = triggers
        self.provider = provider
        self.system_prompt = system_prompt
        self.dispatcher = dispatcher or CommandDispatcher()
        self.engine = engine or TriggerEngine()
        self.renderer = renderer or StreamRenderer()
        self._streaming = False

    @property
    def streaming(self) -> bool:
        return self._streaming

    async def send(
        self,
        chat_id: str | None,
        content: str,
        bridge: ClientBridge,
        on_frame: FrameFn | None = None,
    ) -> ExchangeResult | None:
        """Run one exchange; ``None`` when the send is ignored."""
        if not content.strip() or self._streaming:
            return None

        self._streaming = True
        try:
            if not chat_id or not self.chats.exists(chat_id):
                chat_id = self.chats.create_chat()
            result = ExchangeResult(chat_id=chat_id)
            try:
                await self._exchange(result, content, bridge, on_frame)
            except (ProviderError, ConfigurationError) as exc:
                logger.error("[processor.send] chat=%s failed: %s", chat_id, exc)
                result.error = str(exc)
            return result
        finally:
            self._streaming = False

    async def _exchange(
        self,
        result: ExchangeResult,
        content: str,
        bridge: ClientBridge,
        on_frame: FrameFn | None,
    ) -> None:
        chat_id = result.chat_id
        before = self.chats.title(chat_id)
        self.chats.append(chat_id, ROLE_USER, content)
        after = self.chats.title(chat_id)
        if after != before:
            bridge.title_changed(chat_id, after)

        history = [
            {"role": m.role, "content": m.content}
            for m in self.chats.messages(chat_id)
            if m.role in _PROVIDER_ROLES
        ]
        logger.info("[processor.send] chat=%s history=%d", chat_id, len(history))
        raw = await self.provider.send(history, self.system_prompt)

        ctx = ToolContext(bridge=bridge, chat_id=chat_id, store=self.chats)
        processed = process_commands(raw, self.dispatcher, ctx)
        result.command_results = processed.results
        result.assistant_text = processed.canonical_text

        if result.assistant_text:
            self.chats.append(chat_id, ROLE_ASSISTANT, result.assistant_text)
            result.assistant_html = await self.renderer.render(result.assistant_text, on_frame)

        result.trigger_outcomes = self.engine.evaluate(
            result.assistant_text, self.triggers.rules, bridge,
        )

        for entry in compose_feedback(result.command_results, result.trigger_outcomes):
            self.chats.append(chat_id, ROLE_FEEDBACK, entry)
            result.feedback.append(FeedbackEntry(content=entry, html=markdown_to_html(entry)))
