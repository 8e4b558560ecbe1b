# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Environment-based configuration helpers.

create_config_from_env() is a small wrapper around create_config() that
reads the well-known DMBACKUP_* variables, so a host service can wire the
backup manager without its own configuration plumbing.
"""

from __future__ import annotations

import os
from pathlib import Path

from dmbackup.builder import create_config
from dmbackup.config import BackupConfig
from dmbackup.errors import (
    explain_invalid_flag_env,
    explain_invalid_interval_env,
    explain_invalid_max_backups_env,
    explain_missing_store_path_env,
)
from dmbackup.exceptions import ConfigurationError

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _parse_max_backups(value: str | None) -> int:
    if not value:
        return 10
    try:
        count = int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(explain_invalid_max_backups_env(value)) from exc
    if count < 1:
        raise ConfigurationError(explain_invalid_max_backups_env(value))
    return count


def _parse_interval_hours(value: str | None) -> float:
    if not value:
        return 24
    try:
        hours = float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(explain_invalid_interval_env(value)) from exc
    if hours <= 0:
        raise ConfigurationError(explain_invalid_interval_env(value))
    return hours


def _parse_flag(name: str, value: str | None, default: bool) -> bool:
    if value is None or value == "":
        return default
    lower = value.strip().lower()
    if lower in _TRUE_VALUES:
        return True
    if lower in _FALSE_VALUES:
        return False
    raise ConfigurationError(explain_invalid_flag_env(name, value))


def create_config_from_env() -> BackupConfig:
    """
    Create a BackupConfig from environment variables.

    Required:
        - DMBACKUP_STORE_PATH: Live store directory to protect

    Optional environment variables:
        - DMBACKUP_BACKUP_DIR: Backups root (default: ./backups)
        - DMBACKUP_MAX_BACKUPS: Positive integer (default: 10)
        - DMBACKUP_INTERVAL_HOURS: Positive number (default: 24)
        - DMBACKUP_COMPRESS: Compression intent flag (default: true)
        - DMBACKUP_SCHEDULER: Start scheduled backups (default: false)
    """

    store_path = os.getenv("DMBACKUP_STORE_PATH")
    if not store_path:
        raise ConfigurationError(explain_missing_store_path_env())

    backup_dir_env = os.getenv("DMBACKUP_BACKUP_DIR")
    backup_dir = Path(backup_dir_env) if backup_dir_env else Path("./backups")
    max_backups = _parse_max_backups(os.getenv("DMBACKUP_MAX_BACKUPS"))
    interval_hours = _parse_interval_hours(os.getenv("DMBACKUP_INTERVAL_HOURS"))
    compress = _parse_flag("DMBACKUP_COMPRESS", os.getenv("DMBACKUP_COMPRESS"), True)
    scheduler_enabled = _parse_flag(
        "DMBACKUP_SCHEDULER", os.getenv("DMBACKUP_SCHEDULER"), False
    )

    return create_config(
        store_path,
        backup_dir=backup_dir,
        max_backups=max_backups,
        compress_backups=compress,
        backup_interval_hours=interval_hours,
        scheduler_enabled=scheduler_enabled,
    )
