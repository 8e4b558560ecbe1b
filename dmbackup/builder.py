# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
DMBackup Builder - Functional builder pattern for configuration.

This module provides pure functions for building BackupConfig objects.
Each function takes a config dict and returns a new dict with the
modification applied (immutable updates).
"""

from pathlib import Path
from typing import Any, Callable, Dict

from dmbackup.config import BackupConfig


# Type alias for builder functions
ConfigDict = Dict[str, Any]
BuilderFunc = Callable[[ConfigDict], ConfigDict]


def create_empty_config() -> ConfigDict:
    """
    Create an initial empty configuration dictionary.

    Returns:
        Dict with default values for all configuration fields
    """
    return {
        "store_path": "",
        "backup_dir": Path("./backups"),
        "max_backups": 10,
        "backup_interval_hours": 24,
        "compress_backups": True,
        "scheduler_enabled": False,
    }


def with_store_path(config: ConfigDict, store_path: str | Path) -> ConfigDict:
    """
    Set the live store directory to back up.

    Args:
        config: Current configuration dictionary
        store_path: Directory holding the store's data files

    Returns:
        New configuration dictionary with store path set
    """
    return {**config, "store_path": Path(store_path)}


def with_backup_dir(config: ConfigDict, backup_dir: str | Path) -> ConfigDict:
    """
    Set the backups root directory.

    Args:
        config: Current configuration dictionary
        backup_dir: Directory that will hold one subdirectory per backup

    Returns:
        New configuration dictionary with backups root set
    """
    return {**config, "backup_dir": Path(backup_dir)}


def keep_last(config: ConfigDict, count: int) -> ConfigDict:
    """
    Set how many normal backups the retention pass keeps.

    Args:
        config: Current configuration dictionary
        count: Number of newest backups to keep

    Returns:
        New configuration dictionary with retention count set
    """
    if count < 1:
        raise ValueError(f"max_backups must be >= 1, got {count}")
    return {**config, "max_backups": count}


def run_every_hours(config: ConfigDict, hours: float) -> ConfigDict:
    """
    Set the scheduled backup interval and enable the scheduler.

    Args:
        config: Current configuration dictionary
        hours: Hours between scheduled backups (fractions allowed)

    Returns:
        New configuration dictionary with the schedule set
    """
    if hours <= 0:
        raise ValueError(f"Invalid backup interval: {hours}, expected > 0 hours")
    return {**config, "backup_interval_hours": hours, "scheduler_enabled": True}


def enable_scheduler(config: ConfigDict) -> ConfigDict:
    """Start scheduled backups with the runtime state."""
    return {**config, "scheduler_enabled": True}


def disable_compression(config: ConfigDict) -> ConfigDict:
    """
    Clear the compression intent flag.

    Args:
        config: Current configuration dictionary

    Returns:
        New configuration dictionary with compression disabled
    """
    return {**config, "compress_backups": False}


def build_config(config_dict: ConfigDict) -> BackupConfig:
    """
    Validate and build an immutable BackupConfig from a configuration dictionary.

    Args:
        config_dict: Configuration dictionary built using builder functions

    Returns:
        Validated, immutable BackupConfig instance

    Raises:
        ConfigurationError: If validation fails
    """
    if not config_dict.get("store_path"):
        from dmbackup.exceptions import ConfigurationError

        raise ConfigurationError("store_path is required")

    return BackupConfig(**config_dict)


def pipe(*funcs: BuilderFunc) -> BuilderFunc:
    """
    Compose multiple builder functions into a single function.

        config = pipe(
            lambda c: with_store_path(c, "/var/lib/dmpool/store"),
            lambda c: keep_last(c, 7),
        )(create_empty_config())

    Args:
        *funcs: Builder functions to compose

    Returns:
        A single function that applies all functions in sequence
    """

    def composed(config: ConfigDict) -> ConfigDict:
        result = config
        for func in funcs:
            result = func(result)
        return result

    return composed


def build_from_steps(*steps: BuilderFunc) -> BackupConfig:
    """
    Build config by applying a sequence of builder functions.

    Example:
        config = build_from_steps(
            lambda c: with_store_path(c, "/var/lib/dmpool/store"),
            lambda c: run_every_hours(c, 6),
        )
    """
    return build_config(pipe(*steps)(create_empty_config()))


def create_config(
    store_path: str | Path,
    *,
    backup_dir: str | Path | None = None,
    max_backups: int = 10,
    backup_interval_hours: float | None = None,
    compress_backups: bool = True,
    **kwargs: Any,
) -> BackupConfig:
    """
    Create backup configuration from simple parameters.

    This is the recommended user-facing API for creating configurations.

    Args:
        store_path: Live store directory (required)
        backup_dir: Backups root (default: "./backups")
        max_backups: Normal backups kept by retention (default: 10)
        backup_interval_hours: Enables the scheduler at this interval (optional)
        compress_backups: Compression intent flag (default: True)
        **kwargs: Additional configuration options

    Returns:
        Validated, immutable BackupConfig instance

    Example:
        config = create_config(
            "/var/lib/dmpool/store",
            backup_dir="/var/backups/dmpool",
            max_backups=7,
            backup_interval_hours=24,
        )
    """
    config_dict = create_empty_config()
    config_dict = with_store_path(config_dict, store_path)

    if backup_dir:
        config_dict = with_backup_dir(config_dict, backup_dir)

    config_dict = keep_last(config_dict, max_backups)

    if backup_interval_hours is not None:
        config_dict = run_every_hours(config_dict, backup_interval_hours)

    if not compress_backups:
        config_dict = disable_compression(config_dict)

    # Apply any additional kwargs
    for key, value in kwargs.items():
        if key in config_dict:
            config_dict[key] = value

    return build_config(config_dict)
