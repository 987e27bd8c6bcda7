"""Interactive CLI -- alternative to the web chat interface."""

from __future__ import annotations

import asyncio
import logging
import webbrowser
from pathlib import Path

from prompt_toolkit import PromptSession
from prompt_toolkit.formatted_text import HTML
from prompt_toolkit.history import FileHistory
from rich.console import Console
from rich.live import Live
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table

from .config.settings import cfg
from .errors import ConfigurationError
from .messaging.code_runner import extract_code_blocks, run_python
from .messaging.processor import MessageProcessor
from .messaging.streaming import Frame
from .server.app import build_processor
from .state.chat_store import ROLE_ASSISTANT, ChatStore
from .state.trigger_store import TriggerStore

console = Console()

_TOAST_STYLE = {"info": "cyan", "error": "red"}

_HELP = (
    "Type [bold]/quit[/bold] to exit, [bold]/new[/bold] for a new chat, "
    "[bold]/chats[/bold] to list or switch chats, [bold]/triggers[/bold] to list "
    "trigger rules, [bold]/run [n][/bold] to run a Python block from the last reply.\n"
)


class ConsoleBridge:
    """Client capabilities for a terminal session."""

    def __init__(self, downloads_dir: Path) -> None:
        self._downloads = downloads_dir

    def download(self, filename: str, content: str) -> None:
        self._downloads.mkdir(parents=True, exist_ok=True)
        target = self._downloads / Path(filename).name
        target.write_text(content, encoding="utf-8")
        console.print(f"[green]saved[/green] {target}")

    def open_url(self, url: str) -> None:
        console.print(f"[blue]opening[/blue] {url}")
        webbrowser.open_new_tab(url)

    def alert(self, text: str) -> None:
        console.print(Panel(text, title="alert", border_style="yellow"))

    def toast(self, text: str, kind: str = "info") -> None:
        console.print(f"[{_TOAST_STYLE.get(kind, 'cyan')}]• {text}[/]")

    def title_changed(self, chat_id: str, title: str) -> None:
        console.print(f"[dim]-- {title} --[/dim]")


def _print_chats(chats: ChatStore, active: str | None) -> None:
    table = Table("id", "title", "messages", box=None)
    for chat in chats.list_chats():
        marker = "*" if chat["id"] == active else ""
        table.add_row(f"{marker}{chat['id']}", chat["title"], str(chat["message_count"]))
    console.print(table)


def _print_triggers(triggers: TriggerStore) -> None:
    rules = triggers.rules
    if not rules:
        console.print("[dim]no triggers configured[/dim]")
        return
    table = Table("#", "type", "match", "action", box=None)
    for idx, rule in enumerate(rules, start=1):
        table.add_row(str(idx), rule.match_kind, rule.match_pattern, (rule.action_source.splitlines() or [""])[0])
    console.print(table)


def _run_block(chats: ChatStore, chat_id: str | None, arg: str) -> None:
    replies = [m for m in chats.messages(chat_id or "") if m.role == ROLE_ASSISTANT]
    blocks = extract_code_blocks(replies[-1].content) if replies else []
    try:
        n = int(arg or "1")
        if n < 1:
            raise IndexError(n)
        code = blocks[n - 1]
    except (IndexError, ValueError):
        console.print(f"[red]no Python block {arg or 1} in the last reply[/red]")
        return
    result = run_python(code)
    console.print(Panel(result.message, title="output", border_style="green" if result else "red"))


async def _exchange(
    processor: MessageProcessor, chat_id: str | None, text: str, bridge: ConsoleBridge
) -> str | None:
    with Live(Markdown("..."), console=console, refresh_per_second=8) as live:

        def on_frame(frame: Frame) -> None:
            live.update(Markdown(frame.text))

        result = await processor.send(chat_id, text, bridge, on_frame)

    if result is None:
        return chat_id
    for entry in result.feedback:
        console.print(Panel(Markdown(entry.content), border_style="dim"))
    if result.error:
        console.print(f"[red]{result.error}[/red]")
    return result.chat_id


async def _main() -> None:
    cfg.ensure_dirs()
    console.print(f"[bold green]corelyn[/bold green] {cfg.provider}/{cfg.model}\n{_HELP}")

    chats = ChatStore(cfg.chats_dir)
    triggers = TriggerStore(cfg.triggers_path)
    try:
        processor = build_processor(cfg, chats, triggers)
    except ConfigurationError as exc:
        console.print(f"[red]{exc}[/red]")
        return
    bridge = ConsoleBridge(cfg.downloads_dir)
    chat_id: str | None = None

    prompt_session: PromptSession[str] = PromptSession(history=FileHistory(str(cfg.history_path)))

    while True:
        try:
            user_input = await asyncio.to_thread(prompt_session.prompt, HTML("<b>you &gt;</b> "))
        except (EOFError, KeyboardInterrupt):
            break

        text = user_input.strip()
        if not text:
            continue
        command, _, arg = text.partition(" ")
        command = command.lower()
        if command in ("/quit", "/exit"):
            break
        if command == "/new":
            chat_id = chats.create_chat()
            console.print("[dim]-- new chat --[/dim]")
            continue
        if command == "/chats":
            if arg and chats.exists(arg.strip()):
                chat_id = arg.strip()
                console.print(f"[dim]-- {chats.title(chat_id)} --[/dim]")
            else:
                _print_chats(chats, chat_id)
            continue
        if command == "/triggers":
            _print_triggers(triggers)
            continue
        if command == "/run":
            _run_block(chats, chat_id, arg.strip())
            continue

        console.print()
        chat_id = await _exchange(processor, chat_id, text, bridge)
        console.print()

    console.print("[dim]Goodbye.[/dim]")


def main() -> None:
    logging.basicConfig(
        level=logging.WARNING,
        format="%(asctime)s  %(name)s  %(levelname)s  %(message)s",
    )
    try:
        asyncio.run(_main())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
