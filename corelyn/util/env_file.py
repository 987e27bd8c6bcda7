"""Minimal ``.env`` reader/writer used by the settings layer."""

from __future__ import annotations

import re
from pathlib import Path

_ESCAPE_RE = re.compile(r"\\(.)")


class EnvFile:
    """Reads and rewrites ``KEY=value`` lines, preserving unrelated entries."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def read(self, key: str) -> str:
        return self.read_all().get(key, "")

    def read_all(self) -> dict[str, str]:
        if not self.path.is_file():
            return {}
        values: dict[str, str] = {}
        for raw in self.path.read_text().splitlines():
            line = raw.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue
            key, _, value = line.partition("=")
            values[key.strip()] = _unquote(value.strip())
        return values

    def write(self, **kwargs: str) -> None:
        values = self.read_all()
        for key, value in kwargs.items():
            if value:
                values[key] = value
            else:
                values.pop(key, None)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        lines = [f"{key}={_quote(value)}" for key, value in values.items()]
        self.path.write_text("\n".join(lines) + ("\n" if lines else ""))


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] == "'":
        return value[1:-1]
    if len(value) >= 2 and value[0] == value[-1] == '"':
        return _ESCAPE_RE.sub(lambda m: "\n" if m.group(1) == "n" else m.group(1), value[1:-1])
    return value


def _quote(value: str) -> str:
    if any(ch in value for ch in (" ", "#", "\n", '"', "'", "\\")):
        escaped = value.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")
        return f'"{escaped}"'
    return value
