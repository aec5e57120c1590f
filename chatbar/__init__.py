"""chatbar: chat sessions as a collapsible tree in a docked curses sidebar."""

from __future__ import annotations

import tomllib
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

_PYPROJECT = Path(__file__).resolve().parent.parent / "pyproject.toml"


def _resolve_version() -> str:
    """Installed metadata first; a source checkout falls back to pyproject.toml."""
    try:
        return version("chatbar")
    except PackageNotFoundError:
        pass
    try:
        project = tomllib.loads(_PYPROJECT.read_text(encoding="utf-8")).get("project") or {}
    except (OSError, tomllib.TOMLDecodeError):
        return "0.0.0"
    return str(project.get("version") or "0.0.0")


__version__ = _resolve_version()

__all__ = ["__version__"]
