"""
Credential lifecycle for ghost-backup.

Usage:
    from ghost_backup.auth import CredentialManager

    manager = CredentialManager(settings, client)
    session = manager.ensure_access_token()
"""

from ghost_backup.auth.credentials import (
    STATE_ACTIVE,
    STATE_HAS_REFRESH_TOKEN,
    STATE_NO_CREDENTIAL,
    CredentialManager,
    CredentialPrompt,
    InteractivePrompt,
    Session,
)

__all__ = [
    "CredentialManager",
    "CredentialPrompt",
    "InteractivePrompt",
    "Session",
    "STATE_ACTIVE",
    "STATE_HAS_REFRESH_TOKEN",
    "STATE_NO_CREDENTIAL",
]
