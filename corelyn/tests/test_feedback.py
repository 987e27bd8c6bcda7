"""Tests for feedback entry composition."""

from __future__ import annotations

from corelyn.messaging.commands import CommandResult
from corelyn.messaging.feedback import (
    code_span,
    compose_feedback,
    compose_tool_feedback,
    compose_trigger_feedback,
)
from corelyn.messaging.formatting import markdown_to_html
from corelyn.triggers.models import TriggerOutcome, TriggerRule


def _outcome(match: str, kind: str = "contains", **kwargs) -> TriggerOutcome:
    rule = TriggerRule(match=match, type=kind, action="return 1")
    return TriggerOutcome(rule_index=0, rule=rule, **kwargs)


class TestToolFeedback:
    def test_none_without_results(self) -> None:
        assert compose_tool_feedback([]) is None

    def test_one_line_per_result(self) -> None:
        text = compose_tool_feedback([
            CommandResult("create_file", True, "File **a.txt** created and downloaded (1 bytes)."),
            CommandResult("nope", False, "Unknown tool: nope"),
        ])
        assert text == (
            "🔧 **Tool results:**\n\n"
            "✅ **`create_file`** — File **a.txt** created and downloaded (1 bytes).\n"
            "❌ **`nope`** — Unknown tool: nope"
        )


class TestTriggerFeedback:
    def test_unmatched_has_no_entry(self) -> None:
        assert compose_trigger_feedback(_outcome("x", pattern_error="bad")) is None

    def test_contains_with_preview(self) -> None:
        outcome = _outcome("error", matched=True, capture_groups=["error"], action_return_preview="17")
        assert compose_trigger_feedback(outcome) == (
            "⚡ **Trigger fired** — matched `error`\n\n"
            "✅ Action ran successfully → `17`"
        )

    def test_regex_reports_full_match(self) -> None:
        outcome = _outcome(r"(\d+)%", "regex", matched=True, capture_groups=["42%", "42"])
        assert compose_trigger_feedback(outcome) == (
            "⚡ **Trigger fired** — matched `(\\d+)%`\n\n"
            "↳ Regex capture: `42%`\n\n"
            "✅ Action ran successfully"
        )

    def test_action_error(self) -> None:
        outcome = _outcome("x", matched=True, capture_groups=["x"], action_error="boom")
        assert compose_trigger_feedback(outcome).endswith("❌ Action error: boom")

    def test_backtick_pattern_renders_as_one_span(self) -> None:
        outcome = _outcome("a`b", matched=True, capture_groups=["a`b"])
        text = compose_trigger_feedback(outcome)
        assert "matched `` a`b ``" in text
        assert "<code>a`b</code>" in markdown_to_html(text)

    def test_empty_regex_match(self) -> None:
        outcome = _outcome("x*", "regex", matched=True, capture_groups=[""])
        assert "↳ Regex capture: *(empty)*" in compose_trigger_feedback(outcome)


class TestCodeSpan:
    def test_plain(self) -> None:
        assert code_span("abc") == "`abc`"

    def test_backtick_runs_split(self) -> None:
        assert code_span("a```b") == "`` a` ` `b ``"


class TestComposeFeedback:
    def test_triggers_before_tools(self) -> None:
        entries = compose_feedback(
            [CommandResult("alert", True, "ok")],
            [_outcome("a", matched=True, capture_groups=["a"]), _outcome("b", pattern_error="bad")],
        )
        assert len(entries) == 2
        assert entries[0].startswith("⚡")
        assert entries[1].startswith("🔧")

    def test_empty(self) -> None:
        assert compose_feedback([], []) == []
