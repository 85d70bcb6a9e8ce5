"""
Entry point for running ghost-backup as a module.

Usage:
    python -m ghost_backup [command] [options]
"""

from ghost_backup.cli import main

if __name__ == "__main__":
    main()
