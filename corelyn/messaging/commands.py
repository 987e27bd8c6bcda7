"""Embedded tool commands -- parsing, dispatch and the built-in registry.

Assistant text may carry two command syntaxes::

    <tool:create_file notes.txt>file content</tool>
    @@create_file notes.txt file content

Tagged commands are consumed first, left to right, each dispatched before the
scan continues; shorthand lines are then consumed from what is left.  Every
invocation yields exactly one :class:`CommandResult`, whatever happens.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field

from ..errors import CommandExecutionError, UnknownCommandError
from ..state.chat_store import ChatStore
from ..util.result import Result
from .bridge import ClientBridge

logger = logging.getLogger(__name__)

TAGGED_RE = re.compile(r"<tool:(\w+)([^>]*)>(.*?)</tool>", re.IGNORECASE | re.DOTALL)
SHORTHAND_RE = re.compile(r"^@@(\w+)[ \t]+(.*)$", re.MULTILINE)


@dataclass(frozen=True)
class CommandInvocation:
    name: str
    args: tuple[str, ...] = ()
    body: str | None = None


@dataclass(frozen=True)
class CommandResult:
    name: str
    ok: bool
    message: str


@dataclass
class ToolContext:
    """Everything a tool may act on during one exchange."""

    bridge: ClientBridge
    chat_id: str = ""
    store: ChatStore | None = None


ToolFn = Callable[[ToolContext, list[str], str | None], Result]


# -- built-in tools --------------------------------------------------------


def _create_file(ctx: ToolContext, args: list[str], body: str | None) -> Result:
    filename = args[0] if args else ""
    if not filename:
        return Result.fail("No filename provided.")
    content = body or " ".join(args[1:])
    ctx.bridge.download(filename, content)
    size = len(content.encode("utf-8"))
    return Result.ok(f"File **{filename}** created and downloaded ({size} bytes).")


def _open_url(ctx: ToolContext, args: list[str], body: str | None) -> Result:
    url = args[0] if args else ""
    if not url:
        return Result.fail("No URL provided.")
    ctx.bridge.open_url(url)
    return Result.ok(f"Opened URL: {url}")


def _alert(ctx: ToolContext, args: list[str], body: str | None) -> Result:
    text = body or " ".join(args)
    ctx.bridge.alert(text)
    return Result.ok(f'Alert shown: "{text}".')


def _set_title(ctx: ToolContext, args: list[str], body: str | None) -> Result:
    title = body or " ".join(args)
    if ctx.store is not None and ctx.chat_id:
        ctx.store.set_title(ctx.chat_id, title)
        ctx.bridge.title_changed(ctx.chat_id, title)
    return Result.ok(f"Chat title set to **{title}**.")


TOOLS: dict[str, ToolFn] = {
    "create_file": _create_file,
    "open_url": _open_url,
    "alert": _alert,
    "set_title": _set_title,
}


# -- dispatch --------------------------------------------------------------


class CommandDispatcher:
    """Runs invocations against a fixed, case-insensitive tool registry."""

    def __init__(self, tools: Mapping[str, ToolFn] | None = None) -> None:
        self._tools = {name.lower(): fn for name, fn in (tools or TOOLS).items()}

    @property
    def names(self) -> list[str]:
        return sorted(self._tools)

    def _lookup(self, name: str) -> ToolFn:
        fn = self._tools.get(name.lower())
        if fn is None:
            raise UnknownCommandError(name)
        return fn

    def dispatch(self, invocation: CommandInvocation, ctx: ToolContext) -> CommandResult:
        name = invocation.name
        try:
            fn = self._lookup(name)
            try:
                result = fn(ctx, list(invocation.args), invocation.body)
            except Exception as exc:
                raise CommandExecutionError(name, exc) from exc
        except (UnknownCommandError, CommandExecutionError) as exc:
            logger.warning("[commands.dispatch] %s", exc)
            return CommandResult(name=name, ok=False, message=str(exc))

        log = logger.info if result else logger.warning
        log("[commands.dispatch] name=%s ok=%s message=%r", name, result.success, result.message[:80])
        return CommandResult(name=name, ok=result.success, message=result.message)


# -- parsing ---------------------------------------------------------------


def _tagged(m: re.Match[str]) -> CommandInvocation:
    body = m.group(3).strip()
    return CommandInvocation(name=m.group(1), args=tuple(m.group(2).split()), body=body or None)


def _shorthand(m: re.Match[str]) -> CommandInvocation:
    parts = m.group(2).strip().split(None, 1)
    return CommandInvocation(
        name=m.group(1),
        args=tuple(parts[:1]),
        body=parts[1] if len(parts) > 1 else "",
    )


def strip_commands(text: str, handle: Callable[[CommandInvocation], None]) -> str:
    """Remove every well-formed command from *text*, calling *handle* for each.

    *handle* runs synchronously at the point each command is found, so its
    side effects happen in textual order: all tagged commands, then all
    shorthand lines that survive the first pass.
    """

    def consume(invocation: CommandInvocation) -> str:
        handle(invocation)
        return ""

    text = TAGGED_RE.sub(lambda m: consume(_tagged(m)), text)
    text = SHORTHAND_RE.sub(lambda m: consume(_shorthand(m)), text)
    return text.strip()


def parse_commands(text: str) -> tuple[str, list[CommandInvocation]]:
    """Extract invocations without running them."""
    found: list[CommandInvocation] = []
    return strip_commands(text, found.append), found


@dataclass
class ProcessedResponse:
    canonical_text: str
    results: list[CommandResult] = field(default_factory=list)


def process_commands(text: str, dispatcher: CommandDispatcher, ctx: ToolContext) -> ProcessedResponse:
    """Strip and dispatch every embedded command; the remainder is canonical text."""
    results: list[CommandResult] = []
    canonical = strip_commands(text, lambda inv: results.append(dispatcher.dispatch(inv, ctx)))
    if results:
        ok = sum(1 for r in results if r.ok)
        logger.info("[commands.process] %d command(s), %d ok", len(results), ok)
    return ProcessedResponse(canonical_text=canonical, results=results)
