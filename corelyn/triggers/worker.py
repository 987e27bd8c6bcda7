"""Isolated trigger action worker.

Reads one JSON request ``{"source", "response", "match"}`` on stdin and writes
one JSON reply line ``{"result" | "error", "calls"}`` on stdout.  Anything the
action prints goes to stderr so the reply line stays parseable.
"""

from __future__ import annotations

import contextlib
import json
import sys
from typing import Any

from .actions import BINDING_NAMES, compile_action


def _recorder(calls: list[list[str]], name: str):
    def record(*args: Any) -> None:
        calls.append([name, *(str(a) for a in args)])

    return record


def handle(request: dict[str, Any]) -> dict[str, Any]:
    calls: list[list[str]] = []
    bindings = {name: _recorder(calls, name) for name in BINDING_NAMES}
    with contextlib.redirect_stdout(sys.stderr):
        try:
            fn = compile_action(request.get("source", ""), bindings)
            value = fn(request.get("response", ""), request.get("match") or [])
            reply: dict[str, Any] = {"result": None if value is None else str(value)}
        except (Exception, SystemExit) as exc:
            reply = {"error": str(exc) or type(exc).__name__}
    reply["calls"] = calls
    return reply


def main() -> int:
    try:
        request = json.loads(sys.stdin.read() or "{}")
    except json.JSONDecodeError as exc:
        sys.stdout.write(json.dumps({"error": f"Bad request: {exc}", "calls": []}) + "\n")
        return 1
    sys.stdout.write(json.dumps(handle(request)) + "\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
