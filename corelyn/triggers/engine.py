"""Trigger engine -- evaluates configured rules against final assistant text.

Rules run in configuration order.  Each rule is isolated: a bad pattern or a
failing action is reported on that rule's :class:`TriggerOutcome` and the next
rule is evaluated as usual.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence

from ..errors import ActionExecutionError, PatternCompileError
from ..messaging.bridge import ClientBridge
from .actions import ActionRunner, InProcessActionRunner
from .models import TriggerOutcome, TriggerRule

logger = logging.getLogger(__name__)

PREVIEW_LIMIT = 80


def _compile_pattern(pattern: str) -> re.Pattern[str]:
    try:
        return re.compile(pattern, re.IGNORECASE)
    except (re.error, OverflowError, RecursionError) as exc:
        raise PatternCompileError(str(exc)) from exc


def match_rule(rule: TriggerRule, text: str) -> list[str | None] | None:
    """Return the capture group list when *rule* matches *text*, else ``None``.

    Raises :class:`PatternCompileError` for an invalid ``regex`` pattern.
    """
    if rule.match_kind == "regex":
        m = _compile_pattern(rule.match_pattern).search(text)
        return [m.group(0), *m.groups()] if m else None
    if rule.match_pattern.lower() in text.lower():
        return [rule.match_pattern]
    return None


class TriggerEngine:
    """Runs every rule against a text and reports one outcome per attempted rule."""

    def __init__(self, runner: ActionRunner | None = None) -> None:
        self._runner = runner or InProcessActionRunner()

    def evaluate(
        self,
        text: str,
        rules: Sequence[TriggerRule],
        bridge: ClientBridge,
    ) -> list[TriggerOutcome]:
        outcomes: list[TriggerOutcome] = []
        for idx, rule in enumerate(rules):
            if not rule.is_complete:
                continue
            outcome = self._evaluate_rule(idx, rule, text, bridge)
            if outcome is not None:
                outcomes.append(outcome)
        if outcomes:
            logger.info(
                "[triggers.evaluate] %d rule(s), %d matched",
                len(rules), sum(1 for o in outcomes if o.matched),
            )
        return outcomes

    def _evaluate_rule(
        self,
        idx: int,
        rule: TriggerRule,
        text: str,
        bridge: ClientBridge,
    ) -> TriggerOutcome | None:
        outcome = TriggerOutcome(rule_index=idx, rule=rule)
        try:
            groups = match_rule(rule, text)
        except PatternCompileError as exc:
            logger.warning("[triggers.match] rule #%d bad pattern %r: %s", outcome.number, rule.match_pattern, exc)
            outcome.pattern_error = str(exc)
            bridge.toast(f"Trigger #{outcome.number} match error: {exc}", "error")
            return outcome
        if groups is None:
            return None

        outcome.matched = True
        outcome.capture_groups = groups
        outcome.matched_text = groups[0] or ""
        try:
            value = self._runner.run(rule.action_source, text, groups, bridge)
        except ActionExecutionError as exc:
            logger.warning("[triggers.action] rule #%d action failed: %s", outcome.number, exc)
            outcome.action_error = str(exc)
            bridge.toast(f"Trigger #{outcome.number} action error: {exc}", "error")
        else:
            if value is not None:
                outcome.action_return_preview = str(value)[:PREVIEW_LIMIT]
        bridge.toast(f'Trigger fired: "{rule.match_pattern}"', "info")
        return outcome
