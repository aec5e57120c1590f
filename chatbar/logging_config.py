"""chatbar logging configuration.

The curses UI owns the terminal, so logs go to a rotating file
(default: `~/.chatbar/logs/chatbar.log`), never to stderr. Level comes from
`CHATBAR_LOG_LEVEL` (default INFO).
"""

from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from chatbar.paths import LOG_PATH

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def setup_logging(level: Optional[str] = None, log_path: Optional[Path] = None) -> None:
    """Configure chatbar logging.

    Args:
        level: Optional override for `CHATBAR_LOG_LEVEL`.
        log_path: Optional override for the log file location.
    """
    if level:
        os.environ["CHATBAR_LOG_LEVEL"] = level

    resolved_level = os.environ.get("CHATBAR_LOG_LEVEL", "INFO").upper()
    path = log_path or LOG_PATH
    path.parent.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger("chatbar")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    handler = RotatingFileHandler(path, maxBytes=2_000_000, backupCount=3, encoding="utf-8")
    handler.setFormatter(logging.Formatter(_LOG_FORMAT))
    logger.addHandler(handler)
    logger.setLevel(resolved_level)
    logger.propagate = False
