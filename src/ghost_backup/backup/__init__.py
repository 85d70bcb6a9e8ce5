"""
Backup orchestration for ghost-backup.

Usage:
    from ghost_backup.backup import BackupOrchestrator

    orchestrator = BackupOrchestrator(settings, manager, client)
    result = orchestrator.run_backup()
"""

from ghost_backup.backup.orchestrator import (
    CONTENT_DIR,
    DATABASE_FILE,
    BackupOrchestrator,
    BackupResult,
    format_timestamp,
)

__all__ = [
    "BackupOrchestrator",
    "BackupResult",
    "format_timestamp",
    "CONTENT_DIR",
    "DATABASE_FILE",
]
