"""
ghost-backup - backups for self-hosted Ghost blogs

Logs in to a Ghost instance, downloads the JSON database export and copies
the local content directory into a timestamped backup directory.

Key Features:
    - OAuth login with the refresh token kept between runs
    - Password asked for only when the refresh token is missing or rejected
    - Database export saved exactly as served
    - Content assets copied alongside the export
"""

__version__ = "0.1.0"

from ghost_backup.config.settings import Settings, load_config

__all__ = [
    "__version__",
    "Settings",
    "load_config",
]
