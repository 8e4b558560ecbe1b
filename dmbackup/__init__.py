# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
DMBackup - Backup lifecycle manager for the DMPool share store.

Takes point-in-time copies of the store directory, catalogs them next to
a metadata sidecar, enforces a retention count, verifies backups
structurally and restores them behind an automatic pre-restore snapshot.
"""

__version__ = "0.1.0"

# Configuration creation (user-facing API)
from dmbackup.builder import create_config
from dmbackup.config import BackupConfig
from dmbackup.env import create_config_from_env

# Runtime state
from dmbackup.core import (
    initialize_backup_state,
    get_metrics,
    shutdown_backup_state,
)

# Backup operations
from dmbackup.backup import (
    create_backup,
    list_backups,
    get_backup,
    delete_backup,
    cleanup_old_backups,
    verify_backup,
    get_backup_stats,
    restore_backup,
)

from dmbackup.scheduler import start_scheduler, stop_scheduler

__all__ = [
    # Version
    "__version__",
    # Configuration
    "BackupConfig",
    "create_config",
    "create_config_from_env",
    # Runtime state
    "initialize_backup_state",
    "get_metrics",
    "shutdown_backup_state",
    # Operations
    "create_backup",
    "list_backups",
    "get_backup",
    "delete_backup",
    "cleanup_old_backups",
    "verify_backup",
    "get_backup_stats",
    "restore_backup",
    # Scheduler
    "start_scheduler",
    "stop_scheduler",
]
