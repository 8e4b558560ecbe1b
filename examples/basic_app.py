# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Example FastAPI Application with dmbackup Integration.

This example mounts the backup admin endpoints next to an application and
takes scheduled backups of its store directory.

Run with:
    uvicorn examples.basic_app:app --reload

Environment variables:
    DMBACKUP_STORE_PATH: Store directory to protect (required)
    DMBACKUP_BACKUP_DIR: Backups root (default: ./backups)
    DMBACKUP_MAX_BACKUPS: Backups kept by retention (default: 10)
    DMBACKUP_INTERVAL_HOURS: Hours between scheduled backups (default: 24)
    DMBACKUP_ADMIN_API_KEY: API key for admin endpoints
"""

import os

from fastapi import FastAPI

from dmbackup.builder import (
    build_from_steps,
    keep_last,
    run_every_hours,
    with_backup_dir,
    with_store_path,
)
from dmbackup.env import create_config_from_env
from dmbackup.integrations.fastapi import backup_lifespan, get_backup_state


def create_backup_config():
    """
    Create backup configuration.

    Uses the environment when DMBACKUP_STORE_PATH is set, otherwise the
    functional builder with local defaults.
    """
    if os.getenv("DMBACKUP_STORE_PATH"):
        return create_config_from_env().with_updates(scheduler_enabled=True)

    return build_from_steps(
        lambda c: with_store_path(c, "./data/store"),
        lambda c: with_backup_dir(c, "./data/backups"),
        lambda c: keep_last(c, 7),
        lambda c: run_every_hours(c, 6),
    )


config = create_backup_config()

app = FastAPI(
    title="My Service with dmbackup",
    description="Example application with store backups",
    version="1.0.0",
    lifespan=lambda app: backup_lifespan(app, config),
)


@app.get("/health")
async def health() -> dict:
    """Application health, including the last backup."""
    state = get_backup_state(app)
    return {
        "status": "healthy",
        "last_backup_name": state["last_backup_name"],
        "last_backup_error": state["last_error"],
    }
