"""Configuration loading.

Reads ``edgeport.yaml`` from the config directory, applies environment
overrides (a ``.env`` file is honoured via python-dotenv) and validates
the result into ``EdgeportSettings``. Results are cached until
``reload_configs()`` is called.
"""

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict

import yaml
from dotenv import load_dotenv
from pydantic import ValidationError

from .settings import ConfigError, EdgeportSettings

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = "edgeport.yaml"
CONFIG_DIR_ENV = "EDGEPORT_CONFIG_DIR"
LOG_LEVEL_ENV = "EDGEPORT_LOG_LEVEL"


def get_config_path() -> Path:
    """Return the directory holding ``edgeport.yaml``.

    ``EDGEPORT_CONFIG_DIR`` wins; otherwise the ``config/`` directory at
    the repository root.
    """
    override = os.environ.get(CONFIG_DIR_ENV)
    if override:
        return Path(override)
    return Path(__file__).parent.parent.parent.parent / "config"


@lru_cache(maxsize=1)
def load_unified_config() -> Dict[str, Any]:
    """Load the raw YAML config as a dict (empty if the file is absent)."""
    config_file = get_config_path() / CONFIG_FILE_NAME
    if not config_file.exists():
        logger.debug(f"{config_file} not found, using defaults")
        return {}

    try:
        with open(config_file, "r") as f:
            config = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Cannot read {config_file}: {e}") from e

    if not isinstance(config, dict):
        raise ConfigError(f"{config_file} must contain a mapping at the top level")
    return config


@lru_cache(maxsize=1)
def get_settings() -> EdgeportSettings:
    """Return validated settings with environment overrides applied.

    Raises:
        ConfigError: If the config file is invalid
    """
    load_dotenv()
    raw = dict(load_unified_config())

    level = os.environ.get(LOG_LEVEL_ENV)
    if level:
        raw["log_level"] = level

    try:
        return EdgeportSettings.model_validate(raw)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e


def reload_configs() -> None:
    """Clear cached config so the next read picks up changes."""
    load_unified_config.cache_clear()
    get_settings.cache_clear()
