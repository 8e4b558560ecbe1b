# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Backup Engine - Backup lifecycle and restore operations.
"""

from dmbackup.backup.manager import (
    create_backup,
    list_backups,
    get_backup,
    delete_backup,
    cleanup_old_backups,
    verify_backup,
    get_backup_stats,
    take_snapshot,
    copy_store_files,
    BackupStats,
)

from dmbackup.backup.restore import (
    restore_backup,
    validate_backup,
    RestoreResult,
)

__all__ = [
    # Manager
    "create_backup",
    "list_backups",
    "get_backup",
    "delete_backup",
    "cleanup_old_backups",
    "verify_backup",
    "get_backup_stats",
    "take_snapshot",
    "copy_store_files",
    "BackupStats",
    # Restore
    "restore_backup",
    "validate_backup",
    "RestoreResult",
]
