"""
Configuration settings management for ghost-backup.

This module handles loading, validating, and saving configuration settings
from a YAML file. The file holds exactly five keys:

    username            Ghost admin login, reused as the default at the prompt
    backup_dir          Destination template, formatted with the current time
    source_content_dir  Local Ghost content directory to copy
    refresh_token       Long-lived OAuth refresh token (secret)
    base_url            Ghost instance URL

Configuration is loaded from ~/.ghost-backup/config.yaml by default, with the
path overridable via the GHOST_BACKUP_CONFIG environment variable or the
--config command-line option.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any

import yaml

# Default configuration directory
DEFAULT_CONFIG_DIR = Path.home() / ".ghost-backup"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.yaml"

CONFIG_PATH_ENV = "GHOST_BACKUP_CONFIG"

REDACTED = "********"


class ConfigurationError(Exception):
    """Raised when configuration is invalid or cannot be loaded."""

    pass


def normalize_base_url(url: str) -> str:
    """
    Normalize a Ghost instance URL.

    Strips whitespace and trailing slashes and prepends https:// when the
    URL carries no scheme.

    Args:
        url: URL as written by the user (e.g. "example.com").

    Returns:
        URL with scheme (e.g. "https://example.com").
    """
    url = url.strip().rstrip("/")
    if "://" not in url:
        url = f"https://{url}"
    return url


@dataclass(frozen=True)
class Settings:
    """
    Complete ghost-backup configuration.

    Instances are immutable: credential changes produce a new Settings via
    with_credentials() or without_refresh_token(), so the caller can compare
    snapshots to decide whether the file must be rewritten.

    Attributes:
        username: Last username used to log in, or None.
        backup_dir: strftime-style template for the backup destination.
        source_content_dir: Path of the Ghost content directory.
        refresh_token: OAuth refresh token, or None before the first login.
        base_url: Ghost instance URL, always with a scheme.
    """

    username: str | None = None
    backup_dir: str = "~/ghost-backups/%Y-%m-%d-%H%M%S"
    source_content_dir: str = "/var/www/ghost/content"
    refresh_token: str | None = None
    base_url: str = "http://localhost:2368"

    def with_credentials(self, username: str | None, refresh_token: str | None) -> Settings:
        """Return a copy holding a new username and refresh token."""
        return replace(self, username=username, refresh_token=refresh_token)

    def without_refresh_token(self) -> Settings:
        """Return a copy with the refresh token discarded."""
        return replace(self, refresh_token=None)

    def to_dict(self) -> dict[str, Any]:
        """Convert to the five-key mapping written to the config file."""
        return {key: getattr(self, key) for key in RECOGNIZED_KEYS}

    def redacted(self) -> dict[str, Any]:
        """Like to_dict(), with the refresh token masked for display."""
        data = self.to_dict()
        if data["refresh_token"]:
            data["refresh_token"] = REDACTED
        return data


# Allow-list of keys read from and written to the config file
RECOGNIZED_KEYS: tuple[str, ...] = tuple(f.name for f in fields(Settings))

DEFAULT_SETTINGS = Settings()

_OPTIONAL_KEYS = {"username", "refresh_token"}


@dataclass(frozen=True)
class LoadedConfig:
    """
    Result of loading the configuration file.

    Attributes:
        settings: Settings read from the file, merged over DEFAULT_SETTINGS.
        path: Path the settings were read from (and will be saved to).
        exists: False when the file was missing and defaults were used.
    """

    settings: Settings
    path: Path
    exists: bool

    @property
    def needs_write(self) -> bool:
        """True when the file must be written even without changes."""
        return not self.exists


def get_config_path() -> Path:
    """
    Get the configuration file path.

    Returns the path from GHOST_BACKUP_CONFIG environment variable if set,
    otherwise returns the default path (~/.ghost-backup/config.yaml).

    Returns:
        Path to the configuration file.
    """
    env_path = os.environ.get(CONFIG_PATH_ENV)
    if env_path:
        return Path(env_path)
    return DEFAULT_CONFIG_FILE


def load_config(config_path: Path | None = None) -> LoadedConfig:
    """
    Load configuration from YAML file.

    A missing file is not an error: the defaults are returned and the
    result is flagged so the caller writes them out.

    Args:
        config_path: Optional path to configuration file. If not provided,
                    uses GHOST_BACKUP_CONFIG environment variable or default path.

    Returns:
        LoadedConfig holding the validated settings.

    Raises:
        ConfigurationError: If the file cannot be read, is not valid YAML,
                          is not a mapping, or contains invalid values.
    """
    if config_path is None:
        config_path = get_config_path()
    config_path = Path(config_path)

    if not config_path.exists():
        return LoadedConfig(settings=DEFAULT_SETTINGS, path=config_path, exists=False)

    try:
        with open(config_path) as f:
            config_data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in config file: {e}") from e
    except OSError as e:
        raise ConfigurationError(f"Cannot read config file: {e}") from e

    if config_data is None:
        config_data = {}
    if not isinstance(config_data, dict):
        raise ConfigurationError(
            f"Config file {config_path} must contain a mapping of keys to values, "
            f"not {type(config_data).__name__}"
        )

    settings = _apply_config_data(DEFAULT_SETTINGS, config_data)
    _validate_config(settings)

    return LoadedConfig(settings=settings, path=config_path, exists=True)


def save_config(settings: Settings, loaded: LoadedConfig, force: bool = False) -> bool:
    """
    Save configuration to YAML file.

    Nothing is written when the file already exists and the settings equal
    what was loaded from it, so hand edits survive runs that change nothing.

    Args:
        settings: Settings instance to save.
        loaded: The LoadedConfig the settings originate from.
        force: Write even if nothing changed.

    Returns:
        True if the file was written.

    Raises:
        ConfigurationError: If the configuration cannot be written.
    """
    if not force and not loaded.needs_write and settings == loaded.settings:
        return False

    config_path = loaded.path
    data = yaml.safe_dump(settings.to_dict(), default_flow_style=False, sort_keys=False)

    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        _write_secure_file(config_path, data)
    except OSError as e:
        raise ConfigurationError(f"Cannot write config file: {e}") from e

    return True


def _apply_config_data(settings: Settings, data: dict[str, Any]) -> Settings:
    """Merge recognized keys from parsed YAML over settings."""
    overrides: dict[str, Any] = {}

    for key in RECOGNIZED_KEYS:
        if key not in data:
            continue
        value = data[key]
        if value is None:
            if key not in _OPTIONAL_KEYS:
                raise ConfigurationError(f"{key} must not be empty")
            overrides[key] = None
        else:
            overrides[key] = str(value)

    if overrides.get("base_url"):
        overrides["base_url"] = normalize_base_url(overrides["base_url"])

    return replace(settings, **overrides)


def _validate_config(settings: Settings) -> None:
    """
    Validate configuration settings.

    Raises:
        ConfigurationError: If configuration is invalid.
    """
    for key in ("backup_dir", "source_content_dir", "base_url"):
        if not str(getattr(settings, key)).strip():
            raise ConfigurationError(f"{key} must not be empty")

    if settings.base_url == "https://":
        raise ConfigurationError("base_url must name a host")


def _write_secure_file(path: Path, data: str) -> None:
    """
    Write text to file with restrictive permissions.

    Uses atomic write (write to temp, then rename) so an interrupted write
    cannot leave a truncated config holding half a refresh token.
    """
    temp_path = path.with_suffix(path.suffix + ".tmp")

    try:
        temp_path.write_text(data)

        # Owner read/write only: the file holds the refresh token
        try:
            os.chmod(temp_path, 0o600)
        except OSError:
            # Windows or permission error - continue anyway
            pass

        temp_path.replace(path)

    except Exception:
        if temp_path.exists():
            temp_path.unlink()
        raise
