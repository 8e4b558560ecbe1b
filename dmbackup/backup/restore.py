# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
DMBackup Restore Manager - Replace the live store with a backup.

A restore runs in three steps:
1. Validate the backup (directory and CURRENT file present)
2. Snapshot the current store as a ``pre_restore_`` backup
3. Delete the store's files, then copy the backup's files in

Step 3 is not atomic. Between the delete and the end of the copy the
store directory is empty or partial, so the store's service must not be
reading or writing it. If step 3 fails, recover manually from the
pre-restore snapshot named in the error.
"""

from dataclasses import dataclass, field
from datetime import datetime, UTC
from pathlib import Path
from typing import List

import structlog

from dmbackup.backup.manager import copy_store_files, take_snapshot
from dmbackup.catalog import (
    METADATA_FILENAME,
    PRE_RESTORE_PREFIX,
    SENTINEL_FILENAME,
    BackupRecord,
    run_blocking,
)
from dmbackup.config import BackupConfig
from dmbackup.core import BackupState
from dmbackup.exceptions import (
    BackupIOError,
    BackupNotFoundError,
    DMBackupError,
    InvalidBackupError,
    RestoreError,
)

logger = structlog.get_logger()


@dataclass
class RestoreResult:
    """Result of a restore operation."""

    operation_id: str
    backup_name: str
    target_path: str
    pre_restore_backup: str | None
    removed_count: int
    restored_count: int
    restored_files: List[str] = field(default_factory=list)
    duration_seconds: float = 0.0


def validate_backup(record: BackupRecord) -> None:
    """
    Check that a backup is structurally complete enough to restore.

    Only the directory and the CURRENT file are checked; sizes are not.

    Raises:
        InvalidBackupError: If either is missing
    """
    if not record.backup_path.is_dir():
        raise InvalidBackupError(
            "Backup path does not exist",
            details={"backup_name": record.name, "backup_path": str(record.backup_path)},
        )

    if not (record.backup_path / SENTINEL_FILENAME).exists():
        raise InvalidBackupError(
            f"Invalid backup: missing {SENTINEL_FILENAME} file",
            details={"backup_name": record.name, "backup_path": str(record.backup_path)},
        )


async def _take_pre_restore_snapshot(
    config: BackupConfig,
    state: BackupState,
    target: Path,
) -> str | None:
    if not target.exists():
        logger.warning("pre_restore_snapshot_skipped", target_path=str(target))
        return None

    snapshot = await take_snapshot(
        config,
        state["catalog"],
        PRE_RESTORE_PREFIX,
        source=target,
    )

    logger.info(
        "pre_restore_snapshot_saved",
        backup_name=snapshot.name,
        size_bytes=snapshot.size_bytes,
    )
    return snapshot.name


def _clear_store_files(target: Path) -> int:
    """Delete the regular files directly under target, creating it if missing."""
    if not target.exists():
        try:
            target.mkdir(parents=True)
        except OSError as e:
            raise BackupIOError(
                f"Failed to create store directory: {e}",
                details={"path": str(target)},
            ) from e
        return 0

    removed = 0
    try:
        for path in sorted(target.iterdir()):
            if path.is_file():
                path.unlink()
                removed += 1
    except OSError as e:
        raise BackupIOError(
            f"Failed to clear store directory: {e}",
            details={"path": str(target)},
        ) from e

    return removed


async def restore_backup(
    config: BackupConfig,
    state: BackupState,
    name: str,
    target_override: str | Path | None = None,
) -> RestoreResult:
    """
    Restore the store from a backup.

    The current contents of the destination are always saved as a
    pre-restore snapshot first. That snapshot is not subject to retention
    and stays until deleted by hand.

    Args:
        config: Backup configuration
        state: Runtime state
        name: Backup to restore
        target_override: Restore into this directory instead of the store;
            created if missing, in which case no snapshot is taken

    Returns:
        RestoreResult with operation details

    Raises:
        BackupNotFoundError: If the backup or the configured store does not exist
        InvalidBackupError: If the backup fails validation
        BackupIOError: If the pre-restore snapshot fails (store untouched)
        RestoreError: If clearing or copying fails (store inconsistent)
    """
    from ulid import ULID

    start_time = datetime.now(UTC)
    operation_id = str(ULID())
    target = Path(target_override) if target_override else config.store_path

    logger.info(
        "restore_started",
        operation_id=operation_id,
        backup_name=name,
        target_path=str(target),
    )

    record = await state["catalog"].get(name)
    validate_backup(record)

    if not target_override and not target.exists():
        raise BackupNotFoundError(
            f"Store directory not found: {target}",
            details={"backup_name": name, "target_path": str(target)},
        )

    try:
        pre_restore_backup = await _take_pre_restore_snapshot(config, state, target)
    except Exception as e:
        state["last_error"] = str(e)
        logger.error(
            "pre_restore_snapshot_failed",
            operation_id=operation_id,
            backup_name=name,
            error=str(e),
        )
        raise

    try:
        removed_count = await run_blocking(_clear_store_files, target)
        restored_files = await copy_store_files(
            record.backup_path, target, skip=(METADATA_FILENAME,)
        )
    except DMBackupError as e:
        state["last_error"] = str(e)
        logger.error(
            "restore_failed",
            operation_id=operation_id,
            backup_name=name,
            target_path=str(target),
            pre_restore_backup=pre_restore_backup,
            error=str(e),
        )
        raise RestoreError(
            f"Restore from {name} failed, store left inconsistent: {e.message}",
            details={
                "backup_name": name,
                "target_path": str(target),
                "pre_restore_backup": pre_restore_backup,
                **e.details,
            },
        ) from e

    state["total_restores"] += 1
    duration = (datetime.now(UTC) - start_time).total_seconds()

    result = RestoreResult(
        operation_id=operation_id,
        backup_name=name,
        target_path=str(target),
        pre_restore_backup=pre_restore_backup,
        removed_count=removed_count,
        restored_count=len(restored_files),
        restored_files=restored_files,
        duration_seconds=duration,
    )

    logger.info(
        "restore_completed",
        operation_id=operation_id,
        backup_name=name,
        pre_restore_backup=pre_restore_backup,
        removed=removed_count,
        restored=len(restored_files),
        duration=duration,
    )

    return result
