# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
DMBackup FastAPI Integration - Admin endpoints for FastAPI applications.

This module provides:
- Lifespan management (startup/shutdown, scheduler)
- Protected admin endpoints for every backup operation
"""

import hmac
import os
from contextlib import asynccontextmanager
from dataclasses import asdict
from typing import Any, Dict, NoReturn

import structlog
from fastapi import Depends, FastAPI, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from dmbackup.backup import (
    cleanup_old_backups,
    create_backup,
    delete_backup,
    get_backup,
    get_backup_stats,
    list_backups,
    restore_backup,
    verify_backup,
)
from dmbackup.catalog import BackupRecord
from dmbackup.config import BackupConfig
from dmbackup.core import (
    BackupState,
    get_metrics,
    initialize_backup_state,
    shutdown_backup_state,
)
from dmbackup.exceptions import (
    BackupNotFoundError,
    ConfigurationError,
    DMBackupError,
    InvalidBackupError,
)

logger = structlog.get_logger()

# Security
security = HTTPBearer(auto_error=False)


async def verify_api_key(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> bool:
    """
    Verify API key from Authorization header.

    The API key is read from the DMBACKUP_ADMIN_API_KEY environment variable.
    Requests must include: Authorization: Bearer <api_key>

    Raises:
        HTTPException: If API key is missing or invalid
    """
    api_key = os.getenv("DMBACKUP_ADMIN_API_KEY")

    if not api_key:
        raise HTTPException(
            status_code=500,
            detail="DMBACKUP_ADMIN_API_KEY environment variable not set",
        )

    if not credentials:
        raise HTTPException(
            status_code=401,
            detail="Authorization header required",
        )

    if not hmac.compare_digest(credentials.credentials.encode(), api_key.encode()):
        raise HTTPException(
            status_code=403,
            detail="Invalid API key",
        )

    return True


def _record_to_dict(record: BackupRecord) -> Dict[str, Any]:
    data = record.to_dict()
    data["pre_restore"] = record.is_pre_restore
    return data


def _raise_http_error(exc: DMBackupError) -> NoReturn:
    if isinstance(exc, BackupNotFoundError):
        status_code = 404
    elif isinstance(exc, InvalidBackupError):
        status_code = 409
    elif isinstance(exc, ConfigurationError):
        status_code = 400
    else:
        status_code = 500

    raise HTTPException(
        status_code=status_code,
        detail={"message": exc.message, "details": exc.details},
    ) from exc


def register_backup_routes(
    app: FastAPI,
    config: BackupConfig,
    state: BackupState,
    prefix: str = "/admin/backups",
) -> None:
    """
    Register backup admin endpoints on a FastAPI app.

    All endpoints require Bearer token authentication.

    Args:
        app: FastAPI application
        config: Backup configuration
        state: Runtime state
        prefix: URL prefix for endpoints (default: /admin/backups)
    """

    @app.post(f"{prefix}/run", dependencies=[Depends(verify_api_key)])
    async def trigger_backup() -> dict:
        """Take a backup now and apply retention."""
        try:
            record = await create_backup(config, state)
        except DMBackupError as e:
            _raise_http_error(e)
        return _record_to_dict(record)

    @app.get(f"{prefix}", dependencies=[Depends(verify_api_key)])
    async def list_all_backups(include_pre_restore: bool = False) -> list:
        """
        List backups, newest first.

        Args:
            include_pre_restore: Also list pre-restore safety snapshots
        """
        try:
            records = await list_backups(config, state, include_pre_restore)
        except DMBackupError as e:
            _raise_http_error(e)
        return [_record_to_dict(r) for r in records]

    @app.get(f"{prefix}/stats", dependencies=[Depends(verify_api_key)])
    async def backup_statistics() -> dict:
        """Get backup count, total size and age range."""
        try:
            stats = await get_backup_stats(config, state)
        except DMBackupError as e:
            _raise_http_error(e)
        return {
            "count": stats.count,
            "total_size_bytes": stats.total_size_bytes,
            "oldest": stats.oldest.isoformat() if stats.oldest else None,
            "newest": stats.newest.isoformat() if stats.newest else None,
            "pre_restore_count": stats.pre_restore_count,
        }

    @app.get(f"{prefix}/status", dependencies=[Depends(verify_api_key)])
    async def backup_status() -> dict:
        """Get runtime counters and scheduler status."""
        metrics = await get_metrics(config, state)
        return {
            "total_backups": metrics.total_backups,
            "total_restores": metrics.total_restores,
            "last_backup_at": (
                metrics.last_backup_at.isoformat() if metrics.last_backup_at else None
            ),
            "last_backup_name": metrics.last_backup_name,
            "backup_count": metrics.backup_count,
            "backups_size_bytes": metrics.backups_size_bytes,
            "scheduler_running": metrics.scheduler_running,
            "last_error": metrics.last_error,
            "max_backups": config.max_backups,
            "backup_interval_hours": config.backup_interval_hours,
        }

    @app.post(f"{prefix}/cleanup", dependencies=[Depends(verify_api_key)])
    async def cleanup_backups() -> dict:
        """Delete the oldest backups beyond the retention count."""
        try:
            removed = await cleanup_old_backups(config, state)
        except DMBackupError as e:
            _raise_http_error(e)
        return {"removed": removed}

    @app.get(f"{prefix}/{{name}}", dependencies=[Depends(verify_api_key)])
    async def show_backup(name: str) -> dict:
        """Get one backup record."""
        try:
            record = await get_backup(config, state, name)
        except DMBackupError as e:
            _raise_http_error(e)
        return _record_to_dict(record)

    @app.get(f"{prefix}/{{name}}/verify", dependencies=[Depends(verify_api_key)])
    async def verify_single_backup(name: str) -> dict:
        """Structurally verify one backup."""
        try:
            valid = await verify_backup(config, state, name)
        except DMBackupError as e:
            _raise_http_error(e)
        return {"name": name, "valid": valid}

    @app.post(f"{prefix}/{{name}}/restore", dependencies=[Depends(verify_api_key)])
    async def restore_single_backup(name: str) -> dict:
        """
        Restore the store from a backup.

        The store's service must not use the store until this returns.
        """
        try:
            result = await restore_backup(config, state, name)
        except DMBackupError as e:
            _raise_http_error(e)
        return asdict(result)

    @app.delete(f"{prefix}/{{name}}", dependencies=[Depends(verify_api_key)])
    async def remove_backup(name: str) -> dict:
        """Delete one backup, including pre-restore snapshots."""
        try:
            await delete_backup(config, state, name)
        except DMBackupError as e:
            _raise_http_error(e)
        return {"deleted": name}


@asynccontextmanager
async def backup_lifespan(app: FastAPI, config: BackupConfig, prefix: str = "/admin/backups"):
    """
    Lifespan context manager for FastAPI.

        app = FastAPI(lifespan=lambda app: backup_lifespan(app, config))

    Args:
        app: FastAPI application
        config: Backup configuration
        prefix: URL prefix for admin endpoints
    """
    logger.info("backup_lifespan_starting", store_path=str(config.store_path))

    state = await initialize_backup_state(config)
    app.state.dmbackup_state = state
    app.state.dmbackup_config = config

    register_backup_routes(app, config, state, prefix)

    logger.info("backup_lifespan_started")

    try:
        yield
    finally:
        logger.info("backup_lifespan_stopping")
        await shutdown_backup_state(state)
        logger.info("backup_lifespan_stopped")


def get_backup_state(app: FastAPI) -> BackupState:
    """
    Get backup state from a FastAPI app.

    Raises:
        RuntimeError: If the lifespan has not run
    """
    state = getattr(app.state, "dmbackup_state", None)
    if not state:
        raise RuntimeError("dmbackup not initialized. Use backup_lifespan first.")
    return state
