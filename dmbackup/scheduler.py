# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
DMBackup Scheduler - Periodic backups on the host's event loop.

Scheduled backups run as APScheduler jobs, so a long backup does not
block request handling. A failed tick is logged and the schedule keeps
going. Ticks are not serialized against manual backups or restores.
"""

import asyncio
from datetime import datetime, timedelta, UTC

import structlog
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from dmbackup.backup.manager import create_backup
from dmbackup.catalog import BackupRecord
from dmbackup.config import BackupConfig
from dmbackup.core import BackupState

logger = structlog.get_logger()

SCHEDULED_JOB_ID = "dmbackup_scheduled"


async def run_scheduled_backup(
    config: BackupConfig,
    state: BackupState,
) -> BackupRecord | None:
    """
    Run one scheduled backup.

    Returns:
        The new backup's record, or None if the backup failed
    """
    logger.info("scheduled_backup_starting")
    try:
        # Stopping the scheduler must not cancel a backup halfway
        record = await asyncio.shield(create_backup(config, state))
    except Exception as e:
        logger.error("scheduled_backup_failed", error=str(e))
        return None

    logger.info(
        "scheduled_backup_completed",
        backup_name=record.name,
        size_bytes=record.size_bytes,
    )
    return record


def start_scheduler(
    config: BackupConfig,
    state: BackupState,
    interval: timedelta | None = None,
    run_immediately: bool = True,
) -> AsyncIOScheduler:
    """
    Start scheduled backups.

    Must be called from a running event loop. The scheduler is stored in
    state["scheduler"]; stop it with ``await stop_scheduler()``.

    Args:
        config: Backup configuration
        state: Runtime state
        interval: Time between backups (default: config.backup_interval_hours)
        run_immediately: Take the first backup right away

    Returns:
        The running scheduler
    """
    current = state["scheduler"]
    if current is not None and current.running:
        logger.warning("scheduler_already_running")
        return current

    if interval is None:
        interval = timedelta(hours=config.backup_interval_hours)

    scheduler = AsyncIOScheduler(timezone=UTC)

    job_options = {}
    if run_immediately:
        job_options["next_run_time"] = datetime.now(UTC)

    scheduler.add_job(
        run_scheduled_backup,
        trigger=IntervalTrigger(seconds=interval.total_seconds(), timezone=UTC),
        args=(config, state),
        id=SCHEDULED_JOB_ID,
        replace_existing=True,
        max_instances=1,
        coalesce=True,
        **job_options,
    )
    scheduler.start()
    state["scheduler"] = scheduler

    logger.info(
        "scheduler_started",
        interval_seconds=interval.total_seconds(),
        next_run=scheduler.get_job(SCHEDULED_JOB_ID).next_run_time.isoformat(),
    )

    return scheduler


async def stop_scheduler(state: BackupState) -> None:
    """
    Stop scheduled backups.

    When this returns no further tick will start and the scheduler is no
    longer running. A backup already running completes.
    """
    scheduler = state["scheduler"]
    if scheduler is None:
        return

    if scheduler.running:
        if scheduler.get_job(SCHEDULED_JOB_ID) is not None:
            scheduler.remove_job(SCHEDULED_JOB_ID)
        # AsyncIOScheduler queues its shutdown on the loop; let it run
        scheduler.shutdown(wait=False)
        await asyncio.sleep(0)
    state["scheduler"] = None

    logger.info("scheduler_stopped")
