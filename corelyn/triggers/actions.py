"""Trigger action execution.

An action's source is the body of a Python function called as
``action(response, match)``.  Two runners share that calling convention:

* :class:`InProcessActionRunner` executes in the host interpreter with full
  privilege and no time limit.
* :class:`SubprocessActionRunner` executes in a fresh interpreter
  (``python -m corelyn.triggers.worker``), talks JSON over stdin/stdout only,
  and kills the worker after a timeout.  Capability calls made by the action
  are recorded by the worker and replayed on the host bridge.
"""

from __future__ import annotations

import ast
import builtins
import json
import logging
import subprocess
import sys
import textwrap
from collections.abc import Callable, Mapping
from typing import Any, Protocol

from ..errors import ActionExecutionError
from ..messaging.bridge import ClientBridge

logger = logging.getLogger(__name__)

WORKER_MODULE = "corelyn.triggers.worker"
BINDING_NAMES: tuple[str, ...] = ("alert", "toast", "open_url")

_ACTION_FN = "__trigger_action__"

ActionFn = Callable[[str, list[str | None]], Any]


def compile_action(source: str, bindings: Mapping[str, Any]) -> ActionFn:
    """Compile *source* into a two-argument function with *bindings* as globals.

    The body is parsed on its own and grafted into a parsed ``def`` so string
    literals spanning several lines keep their exact contents.
    """
    body = ast.parse(textwrap.dedent(source), filename="<trigger-action>").body
    module = ast.parse(f"def {_ACTION_FN}(response, match):\n    pass\n")
    module.body[0].body = body or [ast.Pass()]
    ast.fix_missing_locations(module)
    namespace: dict[str, Any] = {"__builtins__": builtins, **bindings}
    exec(compile(module, "<trigger-action>", "exec"), namespace)  # noqa: S102
    return namespace[_ACTION_FN]


def bridge_bindings(bridge: ClientBridge) -> dict[str, Callable[..., None]]:
    return {
        "alert": bridge.alert,
        "toast": bridge.toast,
        "open_url": bridge.open_url,
    }


def _describe(exc: BaseException) -> str:
    return str(exc) or type(exc).__name__


class ActionRunner(Protocol):
    def run(
        self,
        source: str,
        response: str,
        match: list[str | None],
        bridge: ClientBridge,
    ) -> Any: ...


class InProcessActionRunner:
    """Runs action code directly in the host interpreter."""

    def run(
        self,
        source: str,
        response: str,
        match: list[str | None],
        bridge: ClientBridge,
    ) -> Any:
        try:
            fn = compile_action(source, bridge_bindings(bridge))
            return fn(response, list(match))
        except (Exception, SystemExit) as exc:
            raise ActionExecutionError(_describe(exc)) from exc


class SubprocessActionRunner:
    """Runs action code in a separate interpreter bounded by *timeout* seconds."""

    def __init__(self, timeout: float = 5.0, python: str | None = None) -> None:
        self._timeout = timeout
        self._python = python or sys.executable

    def run(
        self,
        source: str,
        response: str,
        match: list[str | None],
        bridge: ClientBridge,
    ) -> Any:
        payload = json.dumps({"source": source, "response": response, "match": list(match)})
        try:
            proc = subprocess.run(  # noqa: S603
                [self._python, "-m", WORKER_MODULE],
                input=payload,
                capture_output=True,
                text=True,
                timeout=self._timeout,
            )
        except subprocess.TimeoutExpired as exc:
            raise ActionExecutionError(f"Action timed out after {self._timeout:g}s") from exc
        except OSError as exc:
            raise ActionExecutionError(f"Could not start action worker: {exc}") from exc

        reply = self._decode(proc)
        replay = bridge_bindings(bridge)
        for call in reply.get("calls", []):
            name, *args = call
            if name in replay:
                replay[name](*args)
        if reply.get("error"):
            raise ActionExecutionError(reply["error"])
        return reply.get("result")

    @staticmethod
    def _decode(proc: subprocess.CompletedProcess[str]) -> dict[str, Any]:
        lines = proc.stdout.strip().splitlines()
        if not lines:
            detail = proc.stderr.strip().splitlines()[-1:] or [f"exit code {proc.returncode}"]
            logger.warning("[actions.subprocess] worker produced no reply: %s", detail[0])
            raise ActionExecutionError(f"Action worker failed: {detail[0]}")
        try:
            reply = json.loads(lines[-1])
        except json.JSONDecodeError as exc:
            raise ActionExecutionError("Action worker sent a malformed reply") from exc
        if not isinstance(reply, dict):
            raise ActionExecutionError("Action worker sent a malformed reply")
        return reply


def create_runner(mode: str = "inprocess", timeout: float = 5.0) -> ActionRunner:
    if mode == "subprocess":
        return SubprocessActionRunner(timeout=timeout)
    return InProcessActionRunner()
