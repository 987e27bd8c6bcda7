"""Feedback chat entries summarising command and trigger outcomes."""

from __future__ import annotations

from collections.abc import Sequence

from ..triggers.models import TriggerOutcome
from .commands import CommandResult

SUCCESS_MARK = "✅"
FAILURE_MARK = "❌"
TOOL_FEEDBACK_HEADER = "🔧 **Tool results:**"


def code_span(value: object) -> str:
    """Inline code for *value* that survives backticks and empty text."""
    text = " ".join(str(value).splitlines())
    if not text.strip():
        return "*(empty)*"
    if "`" not in text:
        return f"`{text}`"
    # a double fence cannot hold a run of two backticks
    while "``" in text:
        text = text.replace("``", "` `")
    return f"`` {text} ``"


def compose_tool_feedback(results: Sequence[CommandResult]) -> str | None:
    """One entry for all command results of an exchange; ``None`` when there are none."""
    if not results:
        return None
    lines = [
        f"{SUCCESS_MARK if r.ok else FAILURE_MARK} **`{r.name}`** — {r.message}"
        for r in results
    ]
    return f"{TOOL_FEEDBACK_HEADER}\n\n" + "\n".join(lines)


def compose_trigger_feedback(outcome: TriggerOutcome) -> str | None:
    """Entry for a rule whose predicate matched; pattern errors produce none."""
    if not outcome.matched:
        return None
    rule = outcome.rule
    lines = [f"⚡ **Trigger fired** — matched {code_span(rule.match_pattern)}"]
    if rule.match_kind == "regex" and outcome.capture_groups:
        lines.append(f"↳ Regex capture: {code_span(outcome.capture_groups[0])}")
    if outcome.action_error is not None:
        lines.append(f"{FAILURE_MARK} Action error: {outcome.action_error}")
    elif outcome.action_return_preview is not None:
        lines.append(f"{SUCCESS_MARK} Action ran successfully → {code_span(outcome.action_return_preview)}")
    else:
        lines.append(f"{SUCCESS_MARK} Action ran successfully")
    return "\n\n".join(lines)


def compose_feedback(
    results: Sequence[CommandResult],
    outcomes: Sequence[TriggerOutcome],
) -> list[str]:
    """All feedback entries for an exchange: trigger matches first, then tool results."""
    entries = [text for o in outcomes if (text := compose_trigger_feedback(o))]
    tool_entry = compose_tool_feedback(results)
    if tool_entry:
        entries.append(tool_entry)
    return entries
