"""Trigger rule configuration and per-rule evaluation outcome."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

MatchKind = Literal["contains", "regex"]


class TriggerRule(BaseModel):
    """A user-configured pattern/action pair.

    Persisted with the short keys ``match``/``type``/``action``; Python code
    uses the descriptive attribute names.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    match_pattern: str = Field(default="", alias="match")
    match_kind: MatchKind = Field(default="contains", alias="type")
    action_source: str = Field(default="", alias="action")

    @property
    def is_complete(self) -> bool:
        return bool(self.match_pattern and self.action_source)

    def to_dict(self) -> dict[str, str]:
        return self.model_dump(by_alias=True)


@dataclass
class TriggerOutcome:
    rule_index: int
    rule: TriggerRule
    matched: bool = False
    matched_text: str = ""
    capture_groups: list[str | None] | None = None
    pattern_error: str | None = None
    action_error: str | None = None
    action_return_preview: str | None = None

    @property
    def number(self) -> int:
        """One-based rule number used in user-facing text."""
        return self.rule_index + 1
