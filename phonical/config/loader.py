"""Configuration loading for Phonical."""

import copy
import logging
import os
import sys
import tomllib
from pathlib import Path
from typing import Any

from phonical.config.types import DEFAULT_CONFIG, Config

logger = logging.getLogger(__name__)


def _get_user_config_path() -> Path:
    r"""Get path to the per-user config file.

    Returns:
        %APPDATA%\Phonical\config.toml on Windows,
        $XDG_CONFIG_HOME/phonical/config.toml (or ~/.config/...) elsewhere.
    """
    if sys.platform == "win32":
        appdata = os.environ.get("APPDATA")
        if not appdata:
            appdata = Path.home() / "AppData" / "Roaming"
        return Path(appdata) / "Phonical" / "config.toml"

    xdg = os.environ.get("XDG_CONFIG_HOME")
    base = Path(xdg) if xdg else Path.home() / ".config"
    return base / "phonical" / "config.toml"


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dictionaries."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_config(config_path: Path | None = None) -> Config:
    """Load configuration.

    Priority (highest to lowest):
    1. The file at config_path, or the per-user config file if None
    2. Hardcoded DEFAULT_CONFIG

    A missing file is not an error. A file that cannot be parsed is logged
    and ignored so a typo never keeps the app from starting.

    Args:
        config_path: Optional explicit path (--config or tests).

    Returns:
        Configuration dictionary with defaults applied.
    """
    config = copy.deepcopy(DEFAULT_CONFIG)

    path = config_path if config_path is not None else _get_user_config_path()
    logger.debug("load_config: path=%s, exists=%s", path, path.exists())
    if not path.exists():
        return config

    try:
        with open(path, "rb") as f:
            user_config = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        logger.warning("load_config: failed to load %s (using defaults): %s", path, e)
        return config

    config = _deep_merge(config, user_config)
    logger.info("load_config: loaded overrides from %s", path)
    return config
