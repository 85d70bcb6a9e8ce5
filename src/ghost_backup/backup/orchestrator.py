"""
Backup orchestration for ghost-backup.

One run produces a timestamped directory holding:

    content/        copy of the local Ghost content directory (if present)
    ghost-db.json   JSON database export, exactly as served by the API

Steps run strictly in order and the first failure aborts the run. Nothing
is rolled back: assets copied before a failed export stay on disk.
"""

from __future__ import annotations

import logging
import re
import shutil
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from ghost_backup.api.client import GhostApiError, GhostClient
from ghost_backup.auth.credentials import CredentialManager
from ghost_backup.config.settings import Settings

logger = logging.getLogger(__name__)

CONTENT_DIR = "content"
DATABASE_FILE = "ghost-db.json"

# "%%" or a strftime directive with an optional glibc flag, e.g. "%F", "%-d"
_DIRECTIVE_PATTERN = re.compile(r"%(%|[-_0^#]?[A-Za-z])")


@dataclass
class BackupResult:
    """Result of a backup run."""

    success: bool
    destination: Path | None = None
    content_path: Path | None = None
    database_path: Path | None = None
    database_bytes: int = 0
    credentials_changed: bool = False
    warnings: list[str] = field(default_factory=list)
    error: str | None = None


def format_timestamp(template: str, moment: datetime) -> str:
    """
    Format a moment into a backup_dir template.

    Every directive the platform strftime understands is substituted
    (including flag forms such as "%-d"), "%%" becomes "%", and directives
    strftime rejects or leaves alone, such as "%Q", pass through
    unchanged. A template without directives is returned as is.

    Args:
        template: Template such as "backups/%Y-%m-%d".
        moment: Time to substitute.

    Returns:
        The formatted string.
    """

    def substitute(match: re.Match[str]) -> str:
        directive = match.group(1)
        if directive == "%":
            return "%"
        try:
            rendered = moment.strftime(match.group(0))
        except ValueError:
            return match.group(0)
        return rendered or match.group(0)

    return _DIRECTIVE_PATTERN.sub(substitute, template)


class BackupOrchestrator:
    """
    Runs the backup sequence for one Ghost instance.

    Usage:
        orchestrator = BackupOrchestrator(settings, manager, client)
        result = orchestrator.run_backup()
    """

    def __init__(
        self,
        settings: Settings,
        credentials: CredentialManager,
        client: GhostClient,
    ) -> None:
        """
        Initialize the orchestrator.

        Args:
            settings: Loaded configuration.
            credentials: Manager that supplies the access token.
            client: API client used for the database export.
        """
        self.settings = settings
        self.credentials = credentials
        self.client = client

    def destination_root(self, now: datetime | None = None) -> Path:
        """Directory this run writes to, for the given (or current) time."""
        if now is None:
            now = datetime.now()
        return Path(format_timestamp(self.settings.backup_dir, now)).expanduser()

    def run_backup(self, now: datetime | None = None) -> BackupResult:
        """
        Run a full backup.

        Args:
            now: Time used for the destination name (default: now).

        Returns:
            BackupResult describing what was written. On failure, success is
            False and error holds the message; credentials_changed is still
            reported so a new refresh token can be persisted.
        """
        result = BackupResult(success=False)
        initial_settings = self.credentials.settings

        try:
            destination = self.destination_root(now)
            result.destination = destination

            destination.mkdir(parents=True, exist_ok=True)
            logger.info(f"Backing up to {destination}")

            result.content_path = self._copy_content(destination, result.warnings)

            session = self.credentials.ensure_access_token()
            result.credentials_changed = self.credentials.settings != initial_settings

            export = self.client.export_database(session.access_token)

            database_path = destination / DATABASE_FILE
            database_path.write_bytes(export)
            result.database_path = database_path
            result.database_bytes = len(export)
            logger.info(f"Database export written to {database_path} ({len(export)} bytes)")

            result.success = True

        except (GhostApiError, OSError) as e:
            logger.error(f"Backup failed: {e}")
            result.error = str(e)
            result.credentials_changed = self.credentials.settings != initial_settings

        return result

    def _copy_content(self, destination: Path, warnings: list[str]) -> Path | None:
        """
        Copy the content directory into the destination.

        Returns:
            The copied tree, or None when the source does not exist.
        """
        source = Path(self.settings.source_content_dir).expanduser()
        if not source.is_dir():
            message = f"Content directory {source} does not exist; skipping asset copy"
            logger.warning(message)
            warnings.append(message)
            return None

        target = destination / CONTENT_DIR
        logger.info(f"Copying {source} to {target}")
        shutil.copytree(source, target, dirs_exist_ok=True)
        return target
