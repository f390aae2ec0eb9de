"""Configuration loading and caching for Phonical."""

from phonical.config.types import (
    AudioConfig,
    Config,
    DEFAULT_CONFIG,
    LoggingConfig,
    QueueConfig,
    SoundsConfig,
)
from phonical.config.loader import (
    _deep_merge,
    _get_user_config_path,
    load_config,
)
from phonical.config.cache import clear_config_cache, get_config

__all__ = [
    # Types
    "AudioConfig",
    "Config",
    "DEFAULT_CONFIG",
    "LoggingConfig",
    "QueueConfig",
    "SoundsConfig",
    # Loading
    "load_config",
    "_deep_merge",
    "_get_user_config_path",
    # Cache
    "get_config",
    "clear_config_cache",
]
