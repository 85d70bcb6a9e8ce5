"""
Configuration management for ghost-backup.

This module handles loading, validating, and saving the YAML configuration
file that carries the Ghost instance URL, backup locations and the stored
refresh token.
"""

from ghost_backup.config.settings import (
    DEFAULT_CONFIG_DIR,
    DEFAULT_CONFIG_FILE,
    DEFAULT_SETTINGS,
    RECOGNIZED_KEYS,
    ConfigurationError,
    LoadedConfig,
    Settings,
    get_config_path,
    load_config,
    normalize_base_url,
    save_config,
)

__all__ = [
    "Settings",
    "LoadedConfig",
    "DEFAULT_SETTINGS",
    "RECOGNIZED_KEYS",
    "DEFAULT_CONFIG_DIR",
    "DEFAULT_CONFIG_FILE",
    "load_config",
    "save_config",
    "get_config_path",
    "normalize_base_url",
    "ConfigurationError",
]
