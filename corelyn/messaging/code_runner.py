"""Run fenced Python snippets from a chat entry on demand."""

from __future__ import annotations

import builtins
import contextlib
import io
import logging

from ..util.result import Result
from .formatting import protect

logger = logging.getLogger(__name__)

PYTHON_LANGUAGES = frozenset({"py", "python", "python3"})
NO_OUTPUT = "(no output)"


def extract_code_blocks(text: str) -> list[str]:
    """Return the content of every Python fence in *text*, in order."""
    _, table = protect(text)
    return [
        span.content
        for span in table.spans()
        if span.kind == "block" and span.language.lower() in PYTHON_LANGUAGES
    ]


def run_python(code: str) -> Result:
    """Execute *code* with stdout and stderr captured into the result message."""
    buf = io.StringIO()
    namespace = {"__name__": "__snippet__", "__builtins__": builtins}
    try:
        with contextlib.redirect_stdout(buf), contextlib.redirect_stderr(buf):
            exec(compile(code, "<snippet>", "exec"), namespace)  # noqa: S102
    except Exception as exc:
        logger.info("[code_runner.run] snippet raised %s", type(exc).__name__)
        return Result.fail(f"Error: {str(exc) or type(exc).__name__}")
    output = buf.getvalue().rstrip("\n")
    return Result.ok(output or NO_OUTPUT, value=output)
