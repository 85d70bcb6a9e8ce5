"""
Ghost Admin API access for ghost-backup.

Usage:
    from ghost_backup.api import GhostClient

    client = GhostClient("blog.example.com")
    tokens = client.password_grant("owner@example.com", password)
    export = client.export_database(tokens.access_token)
"""

from ghost_backup.api.client import (
    API_PATH,
    CLIENT_ID,
    ApiConnectionError,
    AuthenticationError,
    AuthenticationExpiredError,
    GhostApiError,
    GhostClient,
    TokenPair,
    TransferError,
    build_api_root,
)

__all__ = [
    "GhostClient",
    "TokenPair",
    "build_api_root",
    "API_PATH",
    "CLIENT_ID",
    "GhostApiError",
    "AuthenticationError",
    "AuthenticationExpiredError",
    "TransferError",
    "ApiConnectionError",
]
