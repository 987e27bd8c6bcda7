"""Incremental reveal of canonical text through the Markdown pipeline.

Every frame re-renders the whole accumulated prefix: a fence is only
resolvable once its closing delimiter has arrived, so patching earlier output
would leave artifacts.  A last full-text pass makes the final frame identical
to a one-shot :func:`markdown_to_html` call.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass

from .formatting import markdown_to_html

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 6
DEFAULT_DELAY = 0.008


@dataclass(frozen=True)
class Frame:
    text: str
    html: str
    final: bool = False


FrameFn = Callable[[Frame], Awaitable[None] | None]


class StreamRenderer:
    """Reveals text in fixed-size slices with a cooperative pause between them."""

    def __init__(
        self,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        delay: float = DEFAULT_DELAY,
        render: Callable[[str], str] = markdown_to_html,
    ) -> None:
        if chunk_size < 1:
            raise ValueError("chunk_size must be at least 1")
        self.chunk_size = chunk_size
        self.delay = max(delay, 0.0)
        self._render = render

    async def frames(self, text: str) -> AsyncIterator[Frame]:
        for end in range(self.chunk_size, len(text) + self.chunk_size, self.chunk_size):
            prefix = text[:end]
            yield Frame(text=prefix, html=self._render(prefix))
            await asyncio.sleep(self.delay)
        yield Frame(text=text, html=self._render(text), final=True)

    async def render(self, text: str, on_frame: FrameFn | None = None) -> str:
        """Stream *text* to *on_frame* and return the final markup."""
        final = ""
        count = 0
        async for frame in self.frames(text):
            count += 1
            final = frame.html
            if on_frame is not None:
                maybe = on_frame(frame)
                if inspect.isawaitable(maybe):
                    await maybe
        logger.debug("[streaming.render] %d chars in %d frame(s)", len(text), count)
        return final
