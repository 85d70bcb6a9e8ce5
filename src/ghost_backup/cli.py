"""
Command-line interface for ghost-backup.

Provides the backup (default), login and config commands.

Uses Python's argparse module (no external CLI libraries).
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import NoReturn

import yaml

from ghost_backup import __version__
from ghost_backup.api.client import GhostClient
from ghost_backup.auth.credentials import CredentialManager
from ghost_backup.backup.orchestrator import BackupOrchestrator
from ghost_backup.config.settings import (
    ConfigurationError,
    LoadedConfig,
    load_config,
    save_config,
)

# Set up logging
logger = logging.getLogger(__name__)

# Global verbosity settings (set during main() based on args)
_quiet_mode = False
_verbose_level = 0


def set_output_mode(quiet: bool = False, verbose: int = 0) -> None:
    """
    Set the output mode for the CLI.

    Args:
        quiet: If True, suppress non-essential output.
        verbose: Verbosity level (0=normal, 1+=verbose).
    """
    global _quiet_mode, _verbose_level
    _quiet_mode = quiet
    _verbose_level = verbose


def output(message: str = "", force: bool = False) -> None:
    """
    Print a message to stdout, respecting quiet mode.

    Args:
        message: The message to print.
        force: If True, print even in quiet mode.
    """
    if force or not _quiet_mode:
        print(message)


def output_verbose(message: str, level: int = 1) -> None:
    """
    Print a verbose message only if verbosity is high enough.

    Args:
        message: The message to print.
        level: Required verbosity level to show this message.
    """
    if _verbose_level >= level and not _quiet_mode:
        print(message)


def output_error(message: str) -> None:
    """Print an error message (always shown, even in quiet mode)."""
    print(message, file=sys.stderr)


def create_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser for the ghost-backup CLI."""
    parser = argparse.ArgumentParser(
        prog="ghost-backup",
        description="Back up a self-hosted Ghost blog (database export and content files)",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"ghost-backup {__version__}",
    )

    parser.add_argument(
        "--config",
        metavar="PATH",
        help="Override config file location (default: ~/.ghost-backup/config.yaml)",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase output verbosity (can be repeated)",
    )

    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Suppress non-essential output",
    )

    # backup is run when no command is given
    parser.set_defaults(func=cmd_backup)

    subparsers = parser.add_subparsers(
        title="commands",
        dest="command",
        metavar="<command>",
    )

    # backup command
    backup_parser = subparsers.add_parser(
        "backup",
        help="Back up the database export and content directory (default)",
        description=(
            "Create a timestamped backup directory, copy the content directory "
            "into it and download the JSON database export."
        ),
    )
    backup_parser.set_defaults(func=cmd_backup)

    # login command
    login_parser = subparsers.add_parser(
        "login",
        help="Log in and store a refresh token",
        description=(
            "Obtain a refresh token and save it to the config file. The stored "
            "token is reused when still valid; the password is never saved."
        ),
    )
    login_parser.add_argument(
        "--force",
        action="store_true",
        help="Ask for the password even if a stored refresh token is valid",
    )
    login_parser.set_defaults(func=cmd_login)

    # config command
    config_parser = subparsers.add_parser(
        "config",
        help="Write the configuration file without contacting the server",
        description=(
            "Write the current configuration (or the defaults, on first run) to "
            "the config file so it can be edited."
        ),
    )
    config_parser.add_argument(
        "--show",
        action="store_true",
        help="Print the configuration (refresh token hidden) instead of writing it",
    )
    config_parser.set_defaults(func=cmd_config)

    return parser


def setup_logging(verbose: int, quiet: bool) -> None:
    """Configure logging based on verbosity level."""
    if quiet:
        level = logging.WARNING
    elif verbose == 0:
        level = logging.INFO
    else:
        level = logging.DEBUG

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def _load(args: argparse.Namespace) -> LoadedConfig:
    config_path = Path(args.config) if args.config else None
    return load_config(config_path)


def _create_manager(loaded: LoadedConfig) -> CredentialManager:
    client = GhostClient(loaded.settings.base_url)
    return CredentialManager(loaded.settings, client)


def cmd_backup(args: argparse.Namespace) -> int:
    """Run a full backup."""
    loaded = _load(args)
    manager = _create_manager(loaded)
    orchestrator = BackupOrchestrator(loaded.settings, manager, manager.client)

    output("Ghost Backup")
    output("=" * 50)
    output(f"Instance: {manager.client.api_root}")
    output(f"Content directory: {loaded.settings.source_content_dir}")
    output_verbose(f"Config file: {loaded.path}")
    output_verbose(f"Stored refresh token: {'yes' if loaded.settings.refresh_token else 'no'}")
    output()

    result = orchestrator.run_backup()

    # Persist a rotated refresh token even when the export failed
    if save_config(manager.settings, loaded):
        logger.info(f"Configuration saved to {loaded.path}")

    if not result.success:
        output_error(f"Backup failed: {result.error}")
        return 1

    output("Backup completed successfully!")
    output()
    output(f"  Destination: {result.destination}")
    if result.content_path:
        output(f"  Content: {result.content_path}")
    else:
        output("  Content: skipped (directory not found)")
    output(f"  Database: {result.database_path} ({result.database_bytes:,} bytes)")
    for warning in result.warnings:
        output(f"  Warning: {warning}")
    return 0


def cmd_login(args: argparse.Namespace) -> int:
    """Log in and store the refresh token."""
    loaded = _load(args)
    manager = _create_manager(loaded)
    output_verbose(f"Config file: {loaded.path}")

    session = manager.login(force=args.force)

    if save_config(manager.settings, loaded):
        output(f"Credentials saved to {loaded.path}")

    if session.method == "refresh":
        output(f"Stored refresh token is valid for {manager.settings.username or 'this instance'}")
    else:
        output(f"Logged in as {manager.settings.username}")
    return 0


def cmd_config(args: argparse.Namespace) -> int:
    """Write or show the configuration."""
    loaded = _load(args)

    if args.show:
        output(f"# {loaded.path}" + ("" if loaded.exists else " (not yet written)"), force=True)
        output(
            yaml.safe_dump(loaded.settings.redacted(), default_flow_style=False, sort_keys=False).rstrip(),
            force=True,
        )
        return 0

    save_config(loaded.settings, loaded, force=True)
    output(f"Configuration written to {loaded.path}")
    return 0


def main(argv: list[str] | None = None) -> NoReturn:
    """Main entry point for the ghost-backup CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    # Set up logging and output mode
    setup_logging(args.verbose, args.quiet)
    set_output_mode(args.quiet, args.verbose)

    try:
        exit_code = args.func(args)
        sys.exit(exit_code)
    except KeyboardInterrupt:
        output("\nOperation cancelled.")
        sys.exit(130)
    except ConfigurationError as e:
        output_error(f"Configuration error: {e}")
        sys.exit(2)
    except Exception as e:
        if args.verbose > 0:
            raise
        output_error(f"Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
