"""Configuration and settings management."""

from aplus_studio.config.constants import Defaults, Models, StorageKeys
from aplus_studio.config.logging import get_logger, setup_logging
from aplus_studio.config.settings import Settings, clear_settings_cache, get_settings

__all__ = [
    "Settings",
    "get_settings",
    "clear_settings_cache",
    "setup_logging",
    "get_logger",
    "Defaults",
    "Models",
    "StorageKeys",
]
