"""Load API keys from a per-user config file.

Keys can live in ``~/.config/comment-insight-mcp/.env`` so MCP hosts
don't need them in their own launch configuration. Values already set
in the process environment are never overridden.
"""

from __future__ import annotations

import os
from pathlib import Path

DEFAULT_ENV_PATH = Path.home() / ".config" / "comment-insight-mcp" / ".env"

_QUOTES = ('"', "'")


def _strip_quotes(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in _QUOTES:
        return value[1:-1]
    return value


def _needs_value(key: str, current: str | None) -> bool:
    """True when *current* is missing, blank, or the host passed ``${KEY}`` through verbatim."""
    if current is None:
        return True
    current = _strip_quotes(current.strip()).strip()
    return not current or current in {f"${key}", f"${{{key}}}"}


def parse_dotenv(path: Path) -> dict[str, str]:
    """Read ``KEY=VALUE`` pairs from *path*.

    Blank lines, ``#`` comments and an optional ``export`` prefix are
    accepted; surrounding quotes are removed. A missing file yields ``{}``.
    """
    if not path.is_file():
        return {}

    pairs: dict[str, str] = {}
    for raw in path.read_text().splitlines():
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        line = line.removeprefix("export ").lstrip()
        key, sep, value = line.partition("=")
        key = key.strip()
        if sep and key:
            pairs[key] = _strip_quotes(value.strip())
    return pairs


def load_dotenv(path: Path | None = None) -> dict[str, str]:
    """Copy unset keys from *path* into ``os.environ``; return what was copied."""
    injected: dict[str, str] = {}
    for key, value in parse_dotenv(path or DEFAULT_ENV_PATH).items():
        if _needs_value(key, os.environ.get(key)):
            os.environ[key] = value
            injected[key] = value
    return injected
