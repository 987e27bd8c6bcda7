"""Outcome value returned by tool commands and the code runner."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True)
class Result:
    """Represents the outcome of a side-effecting operation.

    Truthy on success, unpacks to ``(success, message)`` and can carry an
    optional payload via *value*::

        r = Result.ok("Opened URL: https://example.com")
        ok, msg = Result.fail("No URL provided.")
    """

    success: bool
    message: str = ""
    value: Any = field(default=None, repr=False)

    @classmethod
    def ok(cls, message: str = "", *, value: Any = None) -> Result:
        return cls(success=True, message=message, value=value)

    @classmethod
    def fail(cls, message: str = "") -> Result:
        return cls(success=False, message=message)

    def __bool__(self) -> bool:
        return self.success

    def __iter__(self):
        yield self.success
        yield self.message
