# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Human-friendly error message helpers for dmbackup.

These helpers centralize wording for common configuration errors so that
all modules present consistent, actionable messages.
"""


def explain_missing_store_path_env() -> str:
    """
    Explain that the store path environment variable is missing.
    """

    return (
        "Store path is not configured. "
        "Set the DMBACKUP_STORE_PATH environment variable or pass store_path=... to create_config()."
    )


def explain_invalid_max_backups_env(value: str | None) -> str:
    """
    Explain that DMBACKUP_MAX_BACKUPS is invalid.
    """

    return (
        f"Invalid DMBACKUP_MAX_BACKUPS value: {value!r}. "
        "It must be a positive integer number of backups to keep."
    )


def explain_invalid_interval_env(value: str | None) -> str:
    """
    Explain that DMBACKUP_INTERVAL_HOURS is invalid.
    """

    return (
        f"Invalid DMBACKUP_INTERVAL_HOURS value: {value!r}. "
        "It must be a positive number of hours, e.g. 24 or 0.5."
    )


def explain_invalid_flag_env(name: str, value: str | None) -> str:
    """
    Explain that a boolean environment flag is invalid.
    """

    return (
        f"Invalid {name} value: {value!r}. "
        "Expected one of: 'true', 'false', '1', '0', 'yes', 'no'."
    )
