"""Tests for the Result type."""

from __future__ import annotations

from corelyn.util.result import Result


class TestResult:
    def test_ok_truthy(self) -> None:
        r = Result.ok("done")
        assert r
        assert r.success is True
        assert r.message == "done"

    def test_fail_falsy(self) -> None:
        r = Result.fail("boom")
        assert not r
        assert r.value is None

    def test_value_payload(self) -> None:
        assert Result.ok("x", value=3).value == 3

    def test_unpacking(self) -> None:
        ok, msg = Result.fail("nope")
        assert ok is False
        assert msg == "nope"
