# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
DMBackup Backup Manager - Snapshot creation, retention and verification.

A snapshot is a flat, byte-for-byte copy of the regular files directly
under the store path. Subdirectories of the store are not copied.

The copy is not coordinated with the store's writers: a file being
written during the copy may be captured half-written. Callers that need
a consistent snapshot must pause the store first.
"""

import shutil
from dataclasses import dataclass
from datetime import datetime, UTC
from pathlib import Path
from typing import Collection, List

import aiofiles
import structlog

from dmbackup import __version__
from dmbackup.catalog import (
    BACKUP_PREFIX,
    SENTINEL_FILENAME,
    BackupCatalog,
    BackupRecord,
    calculate_backup_size,
    make_backup_name,
    run_blocking,
)
from dmbackup.config import BackupConfig
from dmbackup.core import BackupState
from dmbackup.exceptions import BackupIOError, BackupNotFoundError, DMBackupError

logger = structlog.get_logger()

COPY_CHUNK_SIZE = 1024 * 1024


@dataclass
class BackupStats:
    """Catalog statistics, normal backups and safety snapshots together."""

    count: int
    total_size_bytes: int
    oldest: datetime | None
    newest: datetime | None
    pre_restore_count: int


async def _copy_file(src: Path, dst: Path) -> None:
    async with aiofiles.open(src, "rb") as fin:
        async with aiofiles.open(dst, "wb") as fout:
            while True:
                chunk = await fin.read(COPY_CHUNK_SIZE)
                if not chunk:
                    break
                await fout.write(chunk)
    shutil.copymode(src, dst)


async def copy_store_files(
    source: Path,
    dest: Path,
    skip: Collection[str] = (),
) -> List[str]:
    """
    Copy every regular file directly under source into dest.

    Args:
        source: Directory to copy from
        dest: Existing directory to copy into
        skip: File names to leave out

    Returns:
        Names of the copied files

    Raises:
        BackupNotFoundError: If source does not exist
        BackupIOError: If listing or copying fails; files copied so far stay
    """
    if not source.exists():
        raise BackupNotFoundError(
            f"Source directory not found: {source}",
            details={"path": str(source)},
        )

    try:
        entries = sorted(source.iterdir())
    except OSError as e:
        raise BackupIOError(
            f"Failed to read directory: {e}",
            details={"path": str(source)},
        ) from e

    copied: List[str] = []
    for src_path in entries:
        if src_path.name in skip or not src_path.is_file():
            continue

        dest_path = dest / src_path.name
        try:
            await _copy_file(src_path, dest_path)
        except OSError as e:
            raise BackupIOError(
                f"Failed to copy {src_path.name}: {e}",
                details={"source": str(src_path), "destination": str(dest_path)},
            ) from e

        copied.append(src_path.name)
        logger.debug("file_copied", file=src_path.name, destination=str(dest))

    return copied


async def take_snapshot(
    config: BackupConfig,
    catalog: BackupCatalog,
    prefix: str,
    *,
    source: Path | None = None,
    timestamp: datetime | None = None,
) -> BackupRecord:
    """
    Copy a store directory into a new backup directory and record it.

    Does not run retention; see create_backup(). Names have second
    resolution, so a second snapshot with the same prefix in the same
    second fails instead of mixing into the first one.

    Args:
        config: Backup configuration
        catalog: Catalog receiving the new record
        prefix: Name prefix (normal backup or pre-restore snapshot)
        source: Directory to copy (default: the configured store path)
        timestamp: Creation time (default: now, UTC)

    Returns:
        The persisted BackupRecord
    """
    source = source or config.store_path
    created_at = timestamp or datetime.now(UTC)
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=UTC)
    created_at = created_at.astimezone(UTC)

    if not source.exists():
        raise BackupNotFoundError(
            f"Source directory not found: {source}",
            details={"path": str(source)},
        )

    name = make_backup_name(prefix, created_at)
    backup_path = config.backup_dir / name

    try:
        backup_path.mkdir(parents=True)
    except OSError as e:
        raise BackupIOError(
            f"Failed to create backup directory: {e}",
            details={"backup_name": name, "path": str(backup_path)},
        ) from e

    copied = await copy_store_files(source, backup_path)

    record = BackupRecord(
        name=name,
        created_at=created_at,
        source_path=source,
        backup_path=backup_path,
        size_bytes=await run_blocking(calculate_backup_size, backup_path),
        version=__version__,
    )
    await catalog.put(record)

    logger.debug(
        "snapshot_written",
        backup_name=name,
        files=len(copied),
        size_bytes=record.size_bytes,
    )

    return record


async def create_backup(
    config: BackupConfig,
    state: BackupState,
    *,
    timestamp: datetime | None = None,
) -> BackupRecord:
    """
    Back up the store and apply the retention policy.

    A failed retention pass is logged and does not fail the backup.

    Args:
        config: Backup configuration
        state: Runtime state
        timestamp: Creation time override (default: now, UTC)

    Returns:
        Record of the new backup

    Raises:
        BackupNotFoundError: If the store path does not exist
        BackupIOError: If the backup directory or a file copy fails
    """
    logger.info(
        "backup_started",
        store_path=str(config.store_path),
        backup_dir=str(config.backup_dir),
    )

    try:
        record = await take_snapshot(
            config, state["catalog"], BACKUP_PREFIX, timestamp=timestamp
        )
    except Exception as e:
        state["last_error"] = str(e)
        logger.error("backup_failed", error=str(e))
        raise

    try:
        await cleanup_old_backups(config, state)
    except DMBackupError as e:
        state["last_error"] = str(e)
        logger.error("backup_cleanup_failed", backup_name=record.name, error=str(e))

    state["last_backup_at"] = record.created_at
    state["last_backup_name"] = record.name
    state["total_backups"] += 1

    logger.info(
        "backup_completed",
        backup_name=record.name,
        size_bytes=record.size_bytes,
    )

    return record


async def list_backups(
    config: BackupConfig,
    state: BackupState,
    include_pre_restore: bool = False,
) -> List[BackupRecord]:
    """
    List backups, newest first.

    Pre-restore safety snapshots are left out unless include_pre_restore.
    """
    return await state["catalog"].list(include_pre_restore=include_pre_restore)


async def get_backup(
    config: BackupConfig,
    state: BackupState,
    name: str,
) -> BackupRecord:
    """Load one backup record (BackupNotFoundError if absent)."""
    return await state["catalog"].get(name)


async def delete_backup(
    config: BackupConfig,
    state: BackupState,
    name: str,
) -> None:
    """
    Delete one backup, including pre-restore snapshots.

    Raises:
        BackupNotFoundError: If the backup does not exist
        BackupIOError: If removal fails
    """
    await state["catalog"].delete(name)
    logger.info("backup_deleted", backup_name=name)


async def cleanup_old_backups(config: BackupConfig, state: BackupState) -> int:
    """
    Delete the oldest normal backups beyond config.max_backups.

    Pre-restore snapshots are never removed here. The first failed
    deletion stops the pass and is raised; backups removed before it
    stay removed.

    Returns:
        Number of backups removed (0 when under the limit)
    """
    catalog = state["catalog"]
    backups = await catalog.list()

    if len(backups) <= config.max_backups:
        return 0

    removed = 0
    for record in backups[config.max_backups:]:
        logger.info(
            "backup_pruned",
            backup_name=record.name,
            created_at=record.created_at.isoformat(),
        )
        await catalog.delete(record.name)
        removed += 1

    logger.info("backup_cleanup_complete", removed=removed, kept=config.max_backups)

    return removed


async def verify_backup(
    config: BackupConfig,
    state: BackupState,
    name: str,
) -> bool:
    """
    Structurally verify a backup.

    Checks that the store's CURRENT file was captured and that the files
    add up to the size recorded at creation. Same-size corruption is not
    detected.

    Raises:
        BackupNotFoundError: If the backup does not exist
        MetadataError: If its metadata cannot be read
    """
    record = await state["catalog"].get(name)

    if not (record.backup_path / SENTINEL_FILENAME).exists():
        logger.warning(
            "backup_sentinel_missing",
            backup_name=name,
            sentinel=SENTINEL_FILENAME,
        )
        return False

    current_size = await run_blocking(calculate_backup_size, record.backup_path)
    if current_size != record.size_bytes:
        logger.warning(
            "backup_size_mismatch",
            backup_name=name,
            expected=record.size_bytes,
            actual=current_size,
        )
        return False

    return True


async def get_backup_stats(config: BackupConfig, state: BackupState) -> BackupStats:
    """
    Get statistics about backup storage.

    Derived from the catalog alone; sizes are the recorded ones.
    """
    records = await state["catalog"].list(include_pre_restore=True)

    return BackupStats(
        count=len(records),
        total_size_bytes=sum(r.size_bytes for r in records),
        oldest=records[-1].created_at if records else None,
        newest=records[0].created_at if records else None,
        pre_restore_count=sum(1 for r in records if r.is_pre_restore),
    )
