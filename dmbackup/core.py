# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
DMBackup Core - Runtime state shared by the backup operations.

The state holds the catalog, the scheduler handle and a few counters. It
is created once by the host process and passed to every operation.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, TypedDict

import structlog

from dmbackup.config import BackupConfig

logger = structlog.get_logger()


@dataclass
class BackupMetrics:
    """Metrics for backup operations."""

    total_backups: int
    total_restores: int
    last_backup_at: datetime | None
    last_backup_name: str | None
    backup_count: int
    backups_size_bytes: int
    scheduler_running: bool
    last_error: str | None


class BackupState(TypedDict):
    """Runtime state for backup operations."""

    catalog: Any  # BackupCatalog implementation
    scheduler: Any  # AsyncIOScheduler while scheduled backups run
    last_backup_at: datetime | None
    last_backup_name: str | None
    total_backups: int
    total_restores: int
    last_error: str | None


async def initialize_backup_state(
    config: BackupConfig,
    catalog: Any = None,
) -> BackupState:
    """
    Initialize runtime state for backup operations.

    Creates the backups root and, unless one is given, a filesystem
    catalog over it. Starts the scheduler when the config enables it.

    Args:
        config: Backup configuration
        catalog: Optional BackupCatalog to use instead of the filesystem

    Returns:
        Initialized BackupState dictionary
    """
    from dmbackup.catalog import FilesystemCatalog
    from dmbackup.exceptions import BackupIOError

    try:
        config.backup_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise BackupIOError(
            f"Failed to create backup directory: {e}",
            details={"backup_dir": str(config.backup_dir)},
        ) from e

    state = BackupState(
        catalog=catalog or FilesystemCatalog(config.backup_dir, config.store_path),
        scheduler=None,
        last_backup_at=None,
        last_backup_name=None,
        total_backups=0,
        total_restores=0,
        last_error=None,
    )

    if config.scheduler_enabled:
        from dmbackup.scheduler import start_scheduler

        start_scheduler(config, state)

    logger.info(
        "backup_state_initialized",
        store_path=str(config.store_path),
        backup_dir=str(config.backup_dir),
        max_backups=config.max_backups,
        scheduler_enabled=config.scheduler_enabled,
    )

    return state


async def get_metrics(config: BackupConfig, state: BackupState) -> BackupMetrics:
    """Get current backup metrics."""
    from dmbackup.backup.manager import get_backup_stats

    stats = await get_backup_stats(config, state)
    scheduler = state["scheduler"]

    return BackupMetrics(
        total_backups=state["total_backups"],
        total_restores=state["total_restores"],
        last_backup_at=state["last_backup_at"],
        last_backup_name=state["last_backup_name"],
        backup_count=stats.count,
        backups_size_bytes=stats.total_size_bytes,
        scheduler_running=bool(scheduler is not None and scheduler.running),
        last_error=state["last_error"],
    )


async def shutdown_backup_state(state: BackupState) -> None:
    """Stop the scheduler if it is running."""
    from dmbackup.scheduler import stop_scheduler

    await stop_scheduler(state)
    logger.info("backup_state_shutdown_complete")
