"""Load API keys and overrides from a per-user ``.env`` file.

MCP hosts often launch the server with a bare environment, so the Gemini key
can live in ``~/.config/marketing-studio-mcp/.env`` instead. Values already
present in the process environment always win.
"""

from __future__ import annotations

import os
from pathlib import Path

DEFAULT_ENV_PATH = Path.home() / ".config" / "marketing-studio-mcp" / ".env"

_QUOTES = ('"', "'")


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in _QUOTES:
        return value[1:-1]
    return value


def _needs_value(key: str, current: str | None) -> bool:
    """True when *current* is missing, blank, or an unexpanded ``${KEY}`` echo."""
    if current is None:
        return True
    current = _unquote(current.strip()).strip()
    if not current:
        return True
    return current in (f"${key}", f"${{{key}}}") or (
        current.startswith(f"${{{key}:-") and current.endswith("}")
    )


def parse_dotenv(path: Path) -> dict[str, str]:
    """Read ``KEY=VALUE`` lines from *path*.

    Blank lines, ``#`` comments and an ``export`` prefix are accepted; values
    may be single- or double-quoted. Nothing is expanded.
    """
    values: dict[str, str] = {}
    if not path.is_file():
        return values

    for raw in path.read_text().splitlines():
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        line = line.removeprefix("export ").strip()
        key, sep, value = line.partition("=")
        key = key.strip()
        if sep and key:
            values[key] = _unquote(value.strip())
    return values


def load_dotenv(path: Path | None = None) -> dict[str, str]:
    """Copy values from *path* into ``os.environ`` where the env has none.

    Returns:
        The variables that were injected.
    """
    injected: dict[str, str] = {}
    for key, value in parse_dotenv(path or DEFAULT_ENV_PATH).items():
        if _needs_value(key, os.environ.get(key)):
            os.environ[key] = value
            injected[key] = value
    return injected
