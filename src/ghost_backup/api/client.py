"""
Ghost Admin API client for ghost-backup.

Wraps the three requests the backup needs against the v0.1 API:

    POST /authentication/token   grant_type=password       -> access + refresh token
    POST /authentication/token   grant_type=refresh_token  -> access token
    GET  /db/?access_token=...                             -> JSON database export

Authentication:
    Ghost's admin client is a public OAuth client identified by the
    client_id "ghost-admin". Access tokens are short-lived and never stored;
    refresh tokens are handed back to the caller for persistence.

Error handling:
    Every failure is raised as a GhostApiError subclass so callers can tell
    a rejected refresh token (recoverable) from a rejected password or a
    failed export (fatal). Secrets are never included in log messages or
    exception text.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any

import requests

from ghost_backup.config.settings import normalize_base_url

logger = logging.getLogger(__name__)

API_PATH = "/ghost/api/v0.1"
CLIENT_ID = "ghost-admin"

TOKEN_ENDPOINT = "/authentication/token"
DB_EXPORT_ENDPOINT = "/db/"

# Status codes the token endpoint uses to reject an expired or revoked token
REFRESH_REJECTED_STATUSES = frozenset({400, 401, 403})


# -----------------------------------------------------------------------------
# Error Classes
# -----------------------------------------------------------------------------


class GhostApiError(Exception):
    """Base exception for Ghost API errors."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(f"{message} (HTTP {status_code})" if status_code else message)


class AuthenticationExpiredError(GhostApiError):
    """
    Raised when the server rejects a refresh token.

    The token has expired or was revoked; logging in with a password again
    obtains a new one.
    """

    pass


class AuthenticationError(GhostApiError):
    """Raised when the server rejects a username/password login."""

    pass


class TransferError(GhostApiError):
    """Raised when the database export request does not succeed."""

    pass


class ApiConnectionError(GhostApiError):
    """
    Raised when the Ghost instance cannot be reached.

    This includes network errors, DNS failures, and timeout errors.
    """

    pass


# -----------------------------------------------------------------------------
# Data Classes
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class TokenPair:
    """
    Tokens returned by the authentication endpoint.

    Attributes:
        access_token: Short-lived token for API calls.
        refresh_token: Long-lived token, or None when the server did not
            issue a new one (refresh grants).
    """

    access_token: str
    refresh_token: str | None = None

    def __repr__(self) -> str:
        return "TokenPair(access_token=<hidden>, refresh_token=<hidden>)"


def build_api_root(base_url: str) -> str:
    """
    Build the versioned API root for a Ghost instance.

    Args:
        base_url: Instance URL, with or without scheme.

    Returns:
        API root, e.g. "https://example.com/ghost/api/v0.1".
    """
    return normalize_base_url(base_url) + API_PATH


# -----------------------------------------------------------------------------
# Client
# -----------------------------------------------------------------------------


class GhostClient:
    """
    Minimal client for the Ghost v0.1 Admin API.

    Attributes:
        api_root: Versioned API root all endpoints are relative to.
    """

    def __init__(self, base_url: str, session: requests.Session | None = None) -> None:
        """
        Initialize the client.

        Args:
            base_url: Ghost instance URL (scheme optional).
            session: Optional requests session to reuse.
        """
        self.api_root = build_api_root(base_url)
        self._session = session

    def _get_session(self) -> requests.Session:
        """
        Get or create a requests session.

        Returns:
            Configured requests.Session.
        """
        if self._session is None:
            self._session = requests.Session()
            self._session.headers.update({"Accept": "application/json"})
        return self._session

    def _request(
        self,
        method: str,
        endpoint: str,
        params: dict[str, Any] | None = None,
        data: dict[str, Any] | None = None,
    ) -> requests.Response:
        """
        Send a request and log it for the audit trail.

        Args:
            method: HTTP method.
            endpoint: API endpoint path relative to api_root.
            params: Query parameters.
            data: Form-encoded body.

        Returns:
            The response, whatever its status code.

        Raises:
            ApiConnectionError: If the instance cannot be reached.
        """
        session = self._get_session()
        url = self.api_root + endpoint

        start_time = time.time()
        try:
            response = session.request(method, url, params=params, data=data)
        except requests.exceptions.Timeout as e:
            raise ApiConnectionError(f"Request to {self.api_root} timed out: {e}") from e
        except requests.exceptions.RequestException as e:
            raise ApiConnectionError(f"Failed to connect to {self.api_root}: {e}") from e

        duration_ms = (time.time() - start_time) * 1000
        logger.info(f"API call: {method} {endpoint} -> {response.status_code} ({duration_ms:.0f}ms)")
        return response

    def password_grant(self, username: str, password: str) -> TokenPair:
        """
        Exchange a username and password for a token pair.

        Args:
            username: Ghost admin login (email address).
            password: Account password. Sent once, never logged.

        Returns:
            TokenPair holding both access and refresh token.

        Raises:
            AuthenticationError: If the server rejects the login or returns
                no tokens.
            ApiConnectionError: If the instance cannot be reached.
        """
        response = self._request(
            "POST",
            TOKEN_ENDPOINT,
            data={
                "grant_type": "password",
                "username": username,
                "password": password,
                "client_id": CLIENT_ID,
            },
        )

        if not response.ok:
            raise AuthenticationError(
                f"Login rejected for {username}: {_error_detail(response)}",
                status_code=response.status_code,
            )

        body = _json_body(response, AuthenticationError)
        access_token = body.get("access_token")
        refresh_token = body.get("refresh_token")
        if not access_token or not refresh_token:
            raise AuthenticationError(
                "Login response did not contain access and refresh tokens",
                status_code=response.status_code,
            )

        logger.debug(f"Password grant succeeded for {username}")
        return TokenPair(access_token=access_token, refresh_token=refresh_token)

    def refresh_grant(self, refresh_token: str) -> TokenPair:
        """
        Exchange a stored refresh token for a new access token.

        Args:
            refresh_token: Refresh token from an earlier password grant.

        Returns:
            TokenPair whose refresh_token is set only if the server rotated it.

        Raises:
            AuthenticationExpiredError: If the server rejects the token.
            GhostApiError: For any other non-success response.
            ApiConnectionError: If the instance cannot be reached.
        """
        response = self._request(
            "POST",
            TOKEN_ENDPOINT,
            data={
                "grant_type": "refresh_token",
                "refresh_token": refresh_token,
                "client_id": CLIENT_ID,
            },
        )

        if response.status_code in REFRESH_REJECTED_STATUSES:
            raise AuthenticationExpiredError(
                f"Refresh token rejected: {_error_detail(response)}",
                status_code=response.status_code,
            )

        if not response.ok:
            raise GhostApiError(
                f"Token refresh failed: {_error_detail(response)}",
                status_code=response.status_code,
            )

        body = _json_body(response, GhostApiError)
        access_token = body.get("access_token")
        if not access_token:
            raise GhostApiError(
                "Refresh response did not contain an access token",
                status_code=response.status_code,
            )

        return TokenPair(access_token=access_token, refresh_token=body.get("refresh_token"))

    def export_database(self, access_token: str) -> bytes:
        """
        Download the JSON database export.

        Args:
            access_token: Valid access token, passed as a query parameter.

        Returns:
            Raw response body, to be saved verbatim.

        Raises:
            TransferError: If the server does not answer with success.
            ApiConnectionError: If the instance cannot be reached.
        """
        response = self._request(
            "GET",
            DB_EXPORT_ENDPOINT,
            params={"access_token": access_token},
        )

        if not response.ok:
            raise TransferError(
                f"Database export failed: {_error_detail(response)}",
                status_code=response.status_code,
            )

        return response.content


def _json_body(response: requests.Response, error_class: type[GhostApiError]) -> dict[str, Any]:
    """Decode a JSON object body or raise error_class."""
    try:
        body = response.json()
    except ValueError as e:
        raise error_class(
            "Response was not valid JSON",
            status_code=response.status_code,
        ) from e
    if not isinstance(body, dict):
        raise error_class("Response was not a JSON object", status_code=response.status_code)
    return body


def _error_detail(response: requests.Response) -> str:
    """
    Extract a human-readable error message from a Ghost error response.

    Ghost answers {"errors": [{"message": ..., "errorType": ...}]}; OAuth
    errors use {"error": ..., "error_description": ...}.
    """
    try:
        body = response.json()
    except ValueError:
        return response.reason or "unknown error"

    if isinstance(body, dict):
        errors = body.get("errors")
        if isinstance(errors, list) and errors and isinstance(errors[0], dict):
            message = errors[0].get("message")
            if message:
                return str(message)
        if body.get("error_description"):
            return str(body["error_description"])
        if body.get("error"):
            return str(body["error"])

    return response.reason or "unknown error"
