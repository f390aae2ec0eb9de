"""Thread-safe configuration cache for Phonical."""

import logging
import threading
from pathlib import Path

from phonical.config.types import Config

logger = logging.getLogger(__name__)

# Thread-safe config cache
_cached_config: Config | None = None
_config_lock = threading.Lock()


def get_config(config_path: Path | None = None) -> Config:
    """Get cached config (thread-safe, loads on first call).

    The config is loaded once and cached for subsequent calls. config_path
    only matters for the first call; use clear_config_cache() to switch.

    Args:
        config_path: Optional explicit config file for the first load.

    Returns:
        Configuration dictionary with defaults applied.
    """
    global _cached_config
    with _config_lock:
        if _cached_config is None:
            from phonical.config.loader import load_config

            logger.debug("Loading config for first time")
            _cached_config = load_config(config_path)
        return _cached_config


def clear_config_cache() -> None:
    """Clear cached config (for testing).

    Resets the cache so next get_config() call will reload from disk.
    """
    global _cached_config
    with _config_lock:
        _cached_config = None
