import logging
import os
import re
from pathlib import Path
from typing import Optional, Type, TypeVar

import yaml
from pydantic import BaseModel

from chatbar.config.schema import ChatbarConfig
from chatbar.paths import DEFAULT_CONFIG_PATH

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)


def expand_env_vars(config: object) -> object:
    """Recursively replace ${VAR} patterns with environment variable values."""
    if isinstance(config, dict):
        return {k: expand_env_vars(v) for k, v in config.items()}
    if isinstance(config, list):
        return [expand_env_vars(item) for item in config]
    if isinstance(config, str):

        def replace_env_var(match: re.Match[str]) -> str:
            env_var = match.group(1)
            return os.getenv(env_var, match.group(0))

        return re.sub(r"\$\{([^}]+)\}", replace_env_var, config)
    return config


def _warn_unknown_keys(model: BaseModel, path: str, config_path: Path) -> None:
    """Recursively warn about unknown keys in a model and its nested models."""
    if hasattr(model, "model_extra") and model.model_extra:
        logger.warning("Unknown keys in %s at %s: %s", path, config_path, list(model.model_extra.keys()))

    for field_name, field_value in model.__dict__.items():
        if isinstance(field_value, BaseModel):
            _warn_unknown_keys(field_value, f"{path}.{field_name}", config_path)


def load_config(path: Path, model_class: Type[T]) -> T:
    """Load and validate configuration from a YAML file.

    Args:
        path: Path to the chatbar.yml file.
        model_class: The Pydantic model class to use for validation.

    Returns:
        The validated configuration model.
    """
    if not path.exists():
        return model_class()

    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.warning("Failed to read config file %s: %s", path, e)
        return model_class()

    expanded = expand_env_vars(raw)
    model = model_class.model_validate(expanded)
    _warn_unknown_keys(model, "root", path)
    return model


def load_chatbar_config(path: Optional[Path] = None) -> ChatbarConfig:
    """Load chatbar configuration (CHATBAR_CONFIG overrides the default path)."""
    if path is None:
        env_path = os.getenv("CHATBAR_CONFIG")
        path = Path(env_path).expanduser() if env_path else DEFAULT_CONFIG_PATH
    return load_config(path, ChatbarConfig)
