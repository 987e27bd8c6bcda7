"""Tests for the MessageProcessor exchange flow."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from corelyn.errors import ApiKeyNotConfiguredError, ProviderError
from corelyn.messaging.bridge import EventQueueBridge
from corelyn.messaging.processor import MessageProcessor
from corelyn.messaging.streaming import Frame, StreamRenderer
from corelyn.state.chat_store import ChatStore
from corelyn.state.trigger_store import TriggerStore
from corelyn.triggers.models import TriggerRule


@pytest.fixture()
def chats(tmp_path: Path) -> ChatStore:
    return ChatStore(tmp_path / "chats")


@pytest.fixture()
def triggers(tmp_path: Path) -> TriggerStore:
    return TriggerStore(tmp_path / "triggers.json")


@pytest.fixture()
def processor(chats: ChatStore, triggers: TriggerStore, mock_provider: AsyncMock) -> MessageProcessor:
    return MessageProcessor(
        chats, triggers, mock_provider,
        system_prompt="sys", renderer=StreamRenderer(delay=0),
    )


@pytest.fixture()
def bridge() -> EventQueueBridge:
    return EventQueueBridge()


def _roles(chats: ChatStore, chat_id: str) -> list[str]:
    return [m.role for m in chats.messages(chat_id)]


class TestPlainExchange:
    @pytest.mark.asyncio
    async def test_creates_chat_and_persists(
        self, processor: MessageProcessor, chats: ChatStore, mock_provider: AsyncMock,
        bridge: EventQueueBridge,
    ) -> None:
        result = await processor.send(None, "hello", bridge)
        assert result is not None
        assert result.error is None
        assert result.assistant_text == "mock response"
        assert result.assistant_html == "<p>mock response</p>"
        assert _roles(chats, result.chat_id) == ["user", "assistant"]
        mock_provider.send.assert_awaited_once_with([{"role": "user", "content": "hello"}], "sys")

    @pytest.mark.asyncio
    async def test_first_message_titles_chat(
        self, processor: MessageProcessor, chats: ChatStore, bridge: EventQueueBridge,
    ) -> None:
        result = await processor.send(None, "Plan a trip to Lisbon", bridge)
        assert chats.title(result.chat_id) == "Plan a trip to Lisbon"
        assert bridge.drain()[0] == {
            "type": "title", "chat_id": result.chat_id, "title": "Plan a trip to Lisbon",
        }

    @pytest.mark.asyncio
    async def test_unknown_chat_id_starts_new_chat(
        self, processor: MessageProcessor, bridge: EventQueueBridge,
    ) -> None:
        result = await processor.send("does-not-exist", "hi", bridge)
        assert result.chat_id != "does-not-exist"

    @pytest.mark.asyncio
    async def test_empty_content_ignored(
        self, processor: MessageProcessor, mock_provider: AsyncMock, bridge: EventQueueBridge,
    ) -> None:
        assert await processor.send(None, "   ", bridge) is None
        mock_provider.send.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_frames_end_with_final_render(
        self, processor: MessageProcessor, bridge: EventQueueBridge,
    ) -> None:
        frames: list[Frame] = []
        result = await processor.send(None, "hi", bridge, frames.append)
        assert frames[-1].final
        assert frames[-1].html == result.assistant_html


class TestStreamingGuard:
    @pytest.mark.asyncio
    async def test_send_while_streaming_is_noop(
        self, processor: MessageProcessor, mock_provider: AsyncMock, bridge: EventQueueBridge,
    ) -> None:
        inner: list[object] = []

        async def reentrant(messages, system_prompt):
            assert processor.streaming
            inner.append(await processor.send(None, "again", bridge))
            return "ok"

        mock_provider.send.side_effect = reentrant
        await processor.send(None, "first", bridge)
        assert inner == [None]
        assert mock_provider.send.await_count == 1
        assert not processor.streaming


class TestCommandsAndTriggers:
    @pytest.mark.asyncio
    async def test_command_stripped_and_reported(
        self, processor: MessageProcessor, chats: ChatStore, mock_provider: AsyncMock,
        bridge: EventQueueBridge,
    ) -> None:
        mock_provider.send.return_value = (
            "Here is a file: <tool:create_file notes.txt>Hello World</tool> done."
        )
        result = await processor.send(None, "make a file", bridge)
        assert result.assistant_text == "Here is a file:  done."
        assert _roles(chats, result.chat_id) == ["user", "assistant", "tool-feedback"]
        assert len(result.feedback) == 1
        assert result.feedback[0].content.startswith("🔧 **Tool results:**")
        assert "<strong><code>create_file</code></strong>" in result.feedback[0].html
        kinds = [e["type"] for e in bridge.drain()]
        assert "download" in kinds

    @pytest.mark.asyncio
    async def test_download_happens_before_first_frame(
        self, processor: MessageProcessor, mock_provider: AsyncMock, bridge: EventQueueBridge,
    ) -> None:
        mock_provider.send.return_value = "<tool:create_file a.txt>x</tool>Done"
        seen_at_first_frame: list[list[str]] = []

        def on_frame(frame: Frame) -> None:
            if not seen_at_first_frame:
                seen_at_first_frame.append([e["type"] for e in bridge.drain()])

        await processor.send(None, "go", bridge, on_frame)
        assert "download" in seen_at_first_frame[0]

    @pytest.mark.asyncio
    async def test_command_only_reply_has_no_assistant_entry(
        self, processor: MessageProcessor, chats: ChatStore, mock_provider: AsyncMock,
        bridge: EventQueueBridge,
    ) -> None:
        mock_provider.send.return_value = "@@alert Build finished"
        frames: list[Frame] = []
        result = await processor.send(None, "notify me", bridge, frames.append)
        assert result.assistant_text == ""
        assert result.assistant_html == ""
        assert frames == []
        assert _roles(chats, result.chat_id) == ["user", "tool-feedback"]

    @pytest.mark.asyncio
    async def test_trigger_feedback_precedes_tool_feedback(
        self, processor: MessageProcessor, triggers: TriggerStore, chats: ChatStore,
        mock_provider: AsyncMock, bridge: EventQueueBridge,
    ) -> None:
        text = "An error occurred"
        triggers.add(TriggerRule(match="error", type="contains", action="return len(response)"))
        mock_provider.send.return_value = f"{text}\n@@alert oops something"
        result = await processor.send(None, "status?", bridge)
        assert result.trigger_outcomes[0].action_return_preview == str(len(text))
        contents = [m.content for m in chats.messages(result.chat_id) if m.role == "tool-feedback"]
        assert contents[0].startswith("⚡ **Trigger fired**")
        assert f"→ `{len(text)}`" in contents[0]
        assert contents[1].startswith("🔧")

    @pytest.mark.asyncio
    async def test_bad_trigger_pattern_keeps_tool_feedback(
        self, processor: MessageProcessor, triggers: TriggerStore, chats: ChatStore,
        mock_provider: AsyncMock, bridge: EventQueueBridge,
    ) -> None:
        triggers.add(TriggerRule(match="a{99999999999}", type="regex", action="return 1"))
        mock_provider.send.return_value = "<tool:alert x></tool>ok"
        result = await processor.send(None, "hi", bridge)
        assert result.error is None
        assert result.trigger_outcomes[0].pattern_error
        assert _roles(chats, result.chat_id) == ["user", "assistant", "tool-feedback"]

    @pytest.mark.asyncio
    async def test_feedback_not_sent_to_provider(
        self, processor: MessageProcessor, mock_provider: AsyncMock, bridge: EventQueueBridge,
    ) -> None:
        mock_provider.send.return_value = "<tool:alert hi></tool>reply"
        first = await processor.send(None, "one", bridge)
        await processor.send(first.chat_id, "two", bridge)
        history = mock_provider.send.await_args.args[0]
        assert [m["role"] for m in history] == ["user", "assistant", "user"]


class TestFailures:
    @pytest.mark.asyncio
    async def test_provider_error_persists_nothing_more(
        self, processor: MessageProcessor, chats: ChatStore, mock_provider: AsyncMock,
        bridge: EventQueueBridge,
    ) -> None:
        mock_provider.send.side_effect = ProviderError("Provider error: 500")
        result = await processor.send(None, "hello", bridge)
        assert result.error == "Provider error: 500"
        assert _roles(chats, result.chat_id) == ["user"]
        assert not processor.streaming

    @pytest.mark.asyncio
    async def test_missing_api_key(
        self, processor: MessageProcessor, mock_provider: AsyncMock, bridge: EventQueueBridge,
    ) -> None:
        mock_provider.send.side_effect = ApiKeyNotConfiguredError("No API key configured.")
        result = await processor.send(None, "hello", bridge)
        assert result.error == "No API key configured."

    @pytest.mark.asyncio
    async def test_unexpected_error_still_clears_flag(
        self, processor: MessageProcessor, mock_provider: AsyncMock, bridge: EventQueueBridge,
    ) -> None:
        mock_provider.send.side_effect = RuntimeError("bug")
        with pytest.raises(RuntimeError):
            await processor.send(None, "hello", bridge)
        assert not processor.streaming
