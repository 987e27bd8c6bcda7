"""Tests for the trigger configuration store."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from corelyn.state.trigger_store import TriggerStore
from corelyn.triggers.models import TriggerRule


def _rule(match: str) -> TriggerRule:
    return TriggerRule(match=match, type="contains", action="return 1")


class TestTriggerStore:
    def test_empty_when_missing(self, tmp_path: Path) -> None:
        assert TriggerStore(tmp_path / "triggers.json").rules == []

    def test_add_persists_with_short_keys(self, tmp_path: Path) -> None:
        path = tmp_path / "triggers.json"
        store = TriggerStore(path)
        assert store.add(_rule("a")) == 0
        assert json.loads(path.read_text()) == [{"match": "a", "type": "contains", "action": "return 1"}]

    def test_order_preserved_across_reload(self, tmp_path: Path) -> None:
        path = tmp_path / "triggers.json"
        store = TriggerStore(path)
        for m in ("a", "b", "c"):
            store.add(_rule(m))
        assert [r.match_pattern for r in TriggerStore(path).rules] == ["a", "b", "c"]

    def test_update_and_remove(self, tmp_path: Path) -> None:
        store = TriggerStore(tmp_path / "triggers.json")
        store.add(_rule("a"))
        store.add(_rule("b"))
        store.update(0, _rule("z"))
        removed = store.remove(1)
        assert removed.match_pattern == "b"
        assert [r.match_pattern for r in store.rules] == ["z"]

    def test_bad_index(self, tmp_path: Path) -> None:
        store = TriggerStore(tmp_path / "triggers.json")
        with pytest.raises(IndexError):
            store.remove(0)
        with pytest.raises(IndexError):
            store.update(-1, _rule("a"))

    def test_replace_all(self, tmp_path: Path) -> None:
        store = TriggerStore(tmp_path / "triggers.json")
        store.add(_rule("a"))
        store.replace_all([_rule("x"), _rule("y")])
        assert store.to_list()[1]["match"] == "y"

    def test_invalid_entries_skipped(self, tmp_path: Path) -> None:
        path = tmp_path / "triggers.json"
        path.write_text(json.dumps([
            {"match": "ok", "type": "regex", "action": "return 1"},
            {"match": "bad", "type": "glob", "action": "return 1"},
        ]))
        rules = TriggerStore(path).rules
        assert len(rules) == 1
        assert rules[0].match_kind == "regex"

    def test_corrupt_file(self, tmp_path: Path) -> None:
        path = tmp_path / "triggers.json"
        path.write_text("[oops")
        assert TriggerStore(path).rules == []

    def test_defaults_to_data_dir(self, data_dir: Path) -> None:
        from corelyn.config import settings

        store = TriggerStore(settings.cfg.triggers_path)
        store.add(_rule("a"))
        assert (data_dir / "triggers.json").exists()
