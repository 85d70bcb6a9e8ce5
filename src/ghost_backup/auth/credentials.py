"""
Credential lifecycle for ghost-backup.

The refresh token is the only credential that outlives a run. Each run
turns it into a fresh access token; when the server rejects it, the user is
asked for a password once and a new token pair replaces the old one.

States:
    no_credential      no refresh token stored; password login required
    has_refresh_token  refresh token stored; one refresh attempt pending
    active             access token held for the rest of the process

Security Design:
    - Passwords are read interactively, passed straight to the token
      endpoint and never stored, logged, or written to disk
    - Access tokens live only in memory for the current process
    - At most one refresh attempt and one password attempt per call
"""

from __future__ import annotations

import getpass
import logging
from collections.abc import Callable
from dataclasses import dataclass

from ghost_backup.api.client import (
    AuthenticationError,
    AuthenticationExpiredError,
    GhostClient,
)
from ghost_backup.config.settings import Settings

logger = logging.getLogger(__name__)

STATE_NO_CREDENTIAL = "no_credential"
STATE_HAS_REFRESH_TOKEN = "has_refresh_token"
STATE_ACTIVE = "active"

# Takes the default username, returns (username, password)
CredentialPrompt = Callable[[str | None], tuple[str, str]]


@dataclass(frozen=True)
class Session:
    """
    An acquired access token.

    Attributes:
        access_token: Token for API calls during this process.
        credentials_changed: True when the stored username or refresh token
            changed and the configuration should be saved.
        method: "refresh" or "password", whichever grant produced the token.
    """

    access_token: str
    credentials_changed: bool = False
    method: str = "refresh"

    def __repr__(self) -> str:
        return (
            f"Session(access_token=<hidden>, credentials_changed={self.credentials_changed}, "
            f"method={self.method!r})"
        )


class InteractivePrompt:
    """Ask for a username and password on the terminal."""

    def __call__(self, default_username: str | None) -> tuple[str, str]:
        try:
            return self._ask(default_username)
        except EOFError as e:
            raise AuthenticationError(
                "Password login needed but no terminal is available; run 'ghost-backup login'"
            ) from e

    def _ask(self, default_username: str | None) -> tuple[str, str]:
        if default_username:
            username = input(f"Ghost username [{default_username}]: ").strip()
            username = username or default_username
        else:
            username = ""
            while not username:
                username = input("Ghost username: ").strip()

        password = getpass.getpass(f"Password for {username}: ")
        return username, password


class CredentialManager:
    """
    Owns the access/refresh token pair and decides how to obtain a token.

    Usage:
        manager = CredentialManager(settings, client, InteractivePrompt())
        session = manager.ensure_access_token()

        if session.credentials_changed:
            save_config(manager.settings, loaded)

    Attributes:
        settings: Current configuration snapshot; replaced when credentials
            are rotated or discarded.
        client: API client used for token exchanges.
        prompt: Source of username and password for the password grant.
    """

    def __init__(
        self,
        settings: Settings,
        client: GhostClient,
        prompt: CredentialPrompt | None = None,
    ) -> None:
        self.settings = settings
        self.client = client
        self.prompt: CredentialPrompt = prompt or InteractivePrompt()
        self._session: Session | None = None

    @property
    def state(self) -> str:
        """Current position in the credential lifecycle."""
        if self._session is not None:
            return STATE_ACTIVE
        if self.settings.refresh_token:
            return STATE_HAS_REFRESH_TOKEN
        return STATE_NO_CREDENTIAL

    @property
    def access_token(self) -> str | None:
        """Access token held for this process, if any."""
        return self._session.access_token if self._session else None

    def ensure_access_token(self) -> Session:
        """
        Return a usable access token, refreshing or logging in as needed.

        Once a token is held, later calls return it without contacting the
        server.

        Returns:
            Session with the access token. credentials_changed reports
            whether settings now differ from what the caller loaded.

        Raises:
            AuthenticationError: If the password login is rejected.
            GhostApiError: If the token endpoint fails for other reasons.
        """
        if self._session is not None:
            return self._session

        if self.settings.refresh_token:
            try:
                self._session = self._refresh()
                return self._session
            except AuthenticationExpiredError as e:
                logger.warning(f"Stored refresh token is no longer valid ({e}); logging in again")
                self.settings = self.settings.without_refresh_token()

        self._session = self._password_login()
        return self._session

    def login(self, force: bool = False) -> Session:
        """
        Establish credentials for the login command.

        Args:
            force: Discard the stored refresh token first, so the password
                login always runs.

        Returns:
            Session with the access token.
        """
        if force:
            self.settings = self.settings.without_refresh_token()
            self._session = self._password_login()
            return self._session
        return self.ensure_access_token()

    def _refresh(self) -> Session:
        """Exchange the stored refresh token for an access token."""
        logger.debug("Refreshing access token")
        tokens = self.client.refresh_grant(self.settings.refresh_token or "")

        changed = False
        if tokens.refresh_token and tokens.refresh_token != self.settings.refresh_token:
            logger.info("Server issued a new refresh token")
            self.settings = self.settings.with_credentials(
                self.settings.username, tokens.refresh_token
            )
            changed = True

        return Session(access_token=tokens.access_token, credentials_changed=changed, method="refresh")

    def _password_login(self) -> Session:
        """Prompt for a password and exchange it for a token pair."""
        username, password = self.prompt(self.settings.username)
        logger.info(f"Logging in as {username}")

        tokens = self.client.password_grant(username, password)
        self.settings = self.settings.with_credentials(username, tokens.refresh_token)
        return Session(
            access_token=tokens.access_token,
            credentials_changed=True,
            method="password",
        )
