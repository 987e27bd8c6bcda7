"""Trigger configuration store -- an ordered rule list persisted to ``triggers.json``."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from ..config.settings import cfg
from ..triggers.models import TriggerRule

logger = logging.getLogger(__name__)


class TriggerStore:
    """Persists trigger rules in the order they were configured."""

    def __init__(self, path: Path | None = None) -> None:
        self._path = path or cfg.triggers_path
        self._rules: list[TriggerRule] = []
        self._load()

    @property
    def rules(self) -> list[TriggerRule]:
        return list(self._rules)

    def add(self, rule: TriggerRule) -> int:
        self._rules.append(rule)
        self._save()
        return len(self._rules) - 1

    def update(self, index: int, rule: TriggerRule) -> None:
        self._check_index(index)
        self._rules[index] = rule
        self._save()

    def remove(self, index: int) -> TriggerRule:
        self._check_index(index)
        rule = self._rules.pop(index)
        self._save()
        return rule

    def replace_all(self, rules: list[TriggerRule]) -> None:
        self._rules = list(rules)
        self._save()

    def to_list(self) -> list[dict[str, str]]:
        return [r.to_dict() for r in self._rules]

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self._rules):
            raise IndexError(f"No trigger at index {index}")

    def _load(self) -> None:
        if not self._path.exists():
            return
        try:
            raw: Any = json.loads(self._path.read_text())
        except (json.JSONDecodeError, OSError) as exc:
            logger.warning("[trigger_store.load] unreadable %s: %s", self._path, exc)
            return
        if not isinstance(raw, list):
            logger.warning("[trigger_store.load] ignoring %s: expected a list", self._path)
            return
        for idx, entry in enumerate(raw):
            try:
                self._rules.append(TriggerRule.model_validate(entry))
            except ValidationError as exc:
                logger.warning("[trigger_store.load] skipping trigger #%d: %s", idx + 1, exc.errors()[0]["msg"])

    def _save(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(self.to_list(), indent=2) + "\n")
