"""Configuration loading.

`.env` in the working directory (or at CHATBAR_ENV_PATH) is loaded on import so
CHATBAR_CONFIG and CHATBAR_LOG_LEVEL can be set there.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

from chatbar.config.loader import load_chatbar_config, load_config
from chatbar.config.schema import ChatbarConfig, SidebarConfig, TreeConfig, UiConfig

_env_path = os.getenv("CHATBAR_ENV_PATH")
load_dotenv(Path(_env_path).expanduser() if _env_path else None)

__all__ = [
    "ChatbarConfig",
    "SidebarConfig",
    "TreeConfig",
    "UiConfig",
    "load_chatbar_config",
    "load_config",
]
