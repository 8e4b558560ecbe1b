# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Backup Catalog - Repository of backup records.
"""

from typing import List, Protocol

from dmbackup.catalog.records import (
    BACKUP_PREFIX,
    PRE_RESTORE_PREFIX,
    METADATA_FILENAME,
    SENTINEL_FILENAME,
    BackupRecord,
    make_backup_name,
)
from dmbackup.catalog.filesystem import (
    FilesystemCatalog,
    calculate_backup_size,
    run_blocking,
)
from dmbackup.catalog.memory import InMemoryCatalog


class BackupCatalog(Protocol):
    """Protocol for backup record storage."""

    async def list(self, include_pre_restore: bool = False) -> List[BackupRecord]:
        """
        Return records ordered by created_at, newest first.

        Args:
            include_pre_restore: Also return pre-restore safety snapshots
        """
        ...

    async def get(self, name: str) -> BackupRecord:
        """Return one record or raise BackupNotFoundError."""
        ...

    async def put(self, record: BackupRecord) -> None:
        """Persist a newly created record."""
        ...

    async def delete(self, name: str) -> None:
        """Remove a backup or raise BackupNotFoundError."""
        ...


__all__ = [
    # Protocol and implementations
    "BackupCatalog",
    "FilesystemCatalog",
    "InMemoryCatalog",
    # Records
    "BackupRecord",
    "make_backup_name",
    "calculate_backup_size",
    "run_blocking",
    # Layout constants
    "BACKUP_PREFIX",
    "PRE_RESTORE_PREFIX",
    "METADATA_FILENAME",
    "SENTINEL_FILENAME",
]
