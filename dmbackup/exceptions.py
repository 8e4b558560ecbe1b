# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
DMBackup Exceptions - Custom exceptions for the dmbackup package.
"""


class DMBackupError(Exception):
    """Base exception for all dmbackup errors."""

    def __init__(self, message: str, details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigurationError(DMBackupError):
    """Raised when configuration is invalid."""

    pass


class BackupNotFoundError(DMBackupError):
    """Raised when a backup or the live store path does not exist."""

    pass


class BackupIOError(DMBackupError):
    """Raised when a copy, delete or directory creation fails."""

    pass


class InvalidBackupError(DMBackupError):
    """Raised when a backup fails the structural checks required for restore."""

    pass


class MetadataError(DMBackupError):
    """Raised when a metadata sidecar cannot be read or decoded."""

    pass


class RestoreError(BackupIOError):
    """
    Raised when the destructive phase of a restore fails.

    The live store is left in an inconsistent state; details carry the
    pre-restore snapshot to recover from.
    """

    pass
