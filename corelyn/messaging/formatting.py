"""Markdown to HTML renderer that keeps literal code out of the formatter's reach.

Rendering runs in three passes:

1. :func:`protect` lifts fenced blocks and inline code spans into a
   :class:`PlaceholderTable`, leaving opaque tokens behind, and escapes every
   markup-significant character in the remaining text.
2. :func:`render` scans the protected text line by line (heading > blockquote >
   rule > list > paragraph), then applies inline emphasis to line content.
3. :func:`restore` swaps each token for its pre-rendered ``<pre>``/``<code>``
   fragment in a single substitution pass.

Tokens are delimited by ``\\x00``, which :func:`protect` removes from the input,
so they can never collide with user text.
"""

from __future__ import annotations

import html
import re
from dataclasses import dataclass

_SENTINEL = "\x00"

_FENCE_RE = re.compile(r"```(\w*)\n?(.*?)```", re.DOTALL)
_DOUBLE_INLINE_RE = re.compile(r"``(?!`)([^\n]+?)(?<!`)``(?!`)")
_INLINE_RE = re.compile(r"`([^`\n]+)`")
_TOKEN_RE = re.compile(r"\x00[BI]\d+\x00")
_BLOCK_TOKEN_RE = re.compile(r"^\x00B\d+\x00$")

_PARAGRAPH_BREAK_RE = re.compile(r"\n(?:[ \t]*\n)+")
_HEADING_RE = re.compile(r"^(#{1,3}) (.+)$")
_QUOTE_RE = re.compile(r"^&gt; (.+)$")
_ORDERED_RE = re.compile(r"^\d+\. (.+)$")
_BULLET_RE = re.compile(r"^[-*] (.+)$")

_INLINE_RULES: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"\*\*(.+?)\*\*"), r"<strong>\1</strong>"),
    (re.compile(r"(?<!\w)__(.+?)__(?!\w)"), r"<strong>\1</strong>"),
    (re.compile(r"\*([^*\n]+?)\*"), r"<em>\1</em>"),
    (re.compile(r"(?<!\w)_([^_\n]+?)_(?!\w)"), r"<em>\1</em>"),
)


def escape_html(text: str) -> str:
    """Escape ``& < > " '`` in a plain text span."""
    return html.escape(text, quote=True)


# -- fence extraction ------------------------------------------------------


@dataclass(frozen=True, slots=True)
class CodeSpan:
    """A protected code fragment; *content* is kept raw, escaping happens on output."""

    kind: str  # "block" | "inline"
    content: str
    language: str = ""

    @property
    def html(self) -> str:
        code = escape_html(self.content)
        if self.kind == "inline":
            return f"<code>{code}</code>"
        if self.language:
            return f'<pre><code class="language-{self.language}">{code}</code></pre>'
        return f"<pre><code>{code}</code></pre>"


class PlaceholderTable:
    """Token -> :class:`CodeSpan` mapping scoped to one render call."""

    def __init__(self) -> None:
        self._spans: dict[str, CodeSpan] = {}

    def stash(self, span: CodeSpan) -> str:
        prefix = "B" if span.kind == "block" else "I"
        token = f"{_SENTINEL}{prefix}{len(self._spans)}{_SENTINEL}"
        self._spans[token] = span
        return token

    def spans(self) -> list[CodeSpan]:
        return list(self._spans.values())

    def fragment(self, token: str) -> str:
        return self._spans[token].html

    def __len__(self) -> int:
        return len(self._spans)


def _block_content(code: str) -> str:
    return code.lstrip("\n").rstrip()


def _inline_content(code: str) -> str:
    # one space of padding lets a ``double`` span start or end with a backtick
    if len(code) > 2 and code[0] == code[-1] == " " and code.strip():
        return code[1:-1]
    return code


def protect(text: str) -> tuple[str, PlaceholderTable]:
    """Replace code spans with placeholder tokens and escape everything else."""
    table = PlaceholderTable()
    text = text.replace(_SENTINEL, "\ufffd")
    text = _FENCE_RE.sub(
        lambda m: table.stash(CodeSpan("block", _block_content(m.group(2)), m.group(1))),
        text,
    )
    text = _DOUBLE_INLINE_RE.sub(
        lambda m: table.stash(CodeSpan("inline", _inline_content(m.group(1)))),
        text,
    )
    text = _INLINE_RE.sub(lambda m: table.stash(CodeSpan("inline", m.group(1))), text)
    return escape_html(text), table


def restore(markup: str, table: PlaceholderTable) -> str:
    """Substitute every placeholder token with its rendered code fragment."""
    if not len(table):
        return markup
    return _TOKEN_RE.sub(lambda m: table.fragment(m.group(0)), markup)


# -- structural transform --------------------------------------------------


def render_inline(text: str) -> str:
    for pattern, replacement in _INLINE_RULES:
        text = pattern.sub(replacement, text)
    return text


def _scan_line(line: str) -> tuple[str, str]:
    """Classify one line as ``block``, ``ol``, ``ul`` or ``text`` and render it."""
    stripped = line.strip()
    if _BLOCK_TOKEN_RE.match(stripped):
        return "block", stripped
    if m := _HEADING_RE.match(line):
        level = len(m.group(1))
        return "block", f"<h{level}>{render_inline(m.group(2))}</h{level}>"
    if m := _QUOTE_RE.match(line):
        return "block", f"<blockquote>{render_inline(m.group(1))}</blockquote>"
    if line.rstrip() == "---":
        return "block", "<hr>"
    if m := _ORDERED_RE.match(line):
        return "ol", f"<li>{render_inline(m.group(1))}</li>"
    if m := _BULLET_RE.match(line):
        return "ul", f"<li>{render_inline(m.group(1))}</li>"
    return "text", render_inline(line)


def _render_chunk(chunk: str) -> list[str]:
    out: list[str] = []
    paragraph: list[str] = []
    items: list[str] = []
    list_tag = ""

    def flush() -> None:
        nonlocal list_tag
        if paragraph:
            out.append("<p>" + "\n".join(paragraph) + "</p>")
            paragraph.clear()
        if items:
            out.append(f"<{list_tag}>" + "".join(items) + f"</{list_tag}>")
            items.clear()
            list_tag = ""

    for line in chunk.split("\n"):
        if not line.strip():
            continue
        kind, markup = _scan_line(line)
        if kind == "text":
            if items:
                flush()
            paragraph.append(markup)
        elif kind in ("ol", "ul"):
            if paragraph or (items and kind != list_tag):
                flush()
            list_tag = kind
            items.append(markup)
        else:
            flush()
            out.append(markup)
    flush()
    return out


def render(text: str) -> str:
    """Render protected text to HTML; never rejects input."""
    blocks: list[str] = []
    for chunk in _PARAGRAPH_BREAK_RE.split(text.strip("\n")):
        if chunk.strip():
            blocks.extend(_render_chunk(chunk))
    return "\n".join(blocks)


def markdown_to_html(text: str) -> str:
    """Full pipeline: protect, transform, restore."""
    if not text:
        return ""
    stripped, table = protect(text)
    return restore(render(stripped), table)
