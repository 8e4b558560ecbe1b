# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
DMBackup Configuration - Immutable configuration data structures.

All configuration is frozen (immutable) after creation to prevent
accidental modification while a backup or restore is running.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List


@dataclass(frozen=True)
class BackupConfig:
    """
    Immutable configuration for the backup lifecycle manager.

    The store path and backups root are owned by the host service; this
    package only reads them.
    """

    # Required: live store directory to protect
    store_path: Path

    # Root directory holding one subdirectory per backup
    backup_dir: Path = field(default_factory=lambda: Path("./backups"))

    # Number of normal backups kept by the retention pass
    max_backups: int = 10

    # Interval between scheduled backups
    backup_interval_hours: float = 24

    # Compression intent; the copy algorithm stores files uncompressed
    compress_backups: bool = True

    # Start the scheduler together with the runtime state
    scheduler_enabled: bool = False

    def __post_init__(self) -> None:
        """Validate configuration after creation."""
        errors: List[str] = []

        has_store_path = bool(self.store_path)
        if not has_store_path:
            errors.append("store_path is required")

        # Normalize str paths so callers can pass either
        if isinstance(self.store_path, str):
            object.__setattr__(self, "store_path", Path(self.store_path))
        if isinstance(self.backup_dir, str):
            object.__setattr__(self, "backup_dir", Path(self.backup_dir))

        if self.max_backups < 1:
            errors.append(f"max_backups must be >= 1, got {self.max_backups}")

        if self.backup_interval_hours <= 0:
            errors.append(
                f"backup_interval_hours must be > 0, got {self.backup_interval_hours}"
            )

        # A restore clears the store directory
        if has_store_path and self.backup_dir.resolve() == self.store_path.resolve():
            errors.append("backup_dir must differ from store_path")

        if errors:
            from dmbackup.exceptions import ConfigurationError

            raise ConfigurationError(
                "Configuration validation failed",
                details={"errors": errors},
            )

    def with_updates(self, **kwargs) -> "BackupConfig":
        """
        Create a new config with updated values.

        Since the config is frozen, this creates a new instance.
        """
        from dataclasses import asdict

        current = asdict(self)
        current.update(kwargs)
        return BackupConfig(**current)
