from __future__ import annotations

from pathlib import Path

CHATBAR_HOME = (Path("~/.chatbar")).expanduser()
DEFAULT_CONFIG_PATH = CHATBAR_HOME / "chatbar.yml"
LOG_DIR = CHATBAR_HOME / "logs"
LOG_PATH = LOG_DIR / "chatbar.log"
