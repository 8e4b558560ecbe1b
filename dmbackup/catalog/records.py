# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Backup records and the on-disk naming scheme.

A backup lives in ``<backup_dir>/<prefix><YYYYMMDD_HHMMSS>/`` next to a
``metadata.json`` sidecar holding its BackupRecord. The sidecar keys are
shared with existing deployments and must not change.
"""

from dataclasses import dataclass
from datetime import datetime, UTC
from pathlib import Path
from typing import Any, Dict

BACKUP_PREFIX = "dmpool_backup_"
PRE_RESTORE_PREFIX = "pre_restore_"
RECOGNIZED_PREFIXES = (BACKUP_PREFIX, PRE_RESTORE_PREFIX)

METADATA_FILENAME = "metadata.json"

# Written by the store itself; its presence means a full data directory was captured
SENTINEL_FILENAME = "CURRENT"

NAME_TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"

UNKNOWN_VERSION = "unknown"


@dataclass(frozen=True)
class BackupRecord:
    """Metadata describing one point-in-time copy of the store."""

    name: str
    created_at: datetime
    source_path: Path
    backup_path: Path
    size_bytes: int
    version: str

    @property
    def is_pre_restore(self) -> bool:
        return self.name.startswith(PRE_RESTORE_PREFIX)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the sidecar layout."""
        return {
            "backup_name": self.name,
            "created_at": self.created_at.isoformat(),
            "store_path": str(self.source_path),
            "backup_path": str(self.backup_path),
            "size_bytes": self.size_bytes,
            "version": self.version,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BackupRecord":
        """
        Build a record from a decoded sidecar.

        Raises:
            KeyError, TypeError, ValueError: If a field is missing or malformed
        """
        created_at = _parse_timestamp(data["created_at"])
        size_bytes = data["size_bytes"]
        if not isinstance(size_bytes, int) or isinstance(size_bytes, bool) or size_bytes < 0:
            raise ValueError(f"size_bytes must be a non-negative integer, got {size_bytes!r}")

        return cls(
            name=str(data["backup_name"]),
            created_at=created_at,
            source_path=Path(data["store_path"]),
            backup_path=Path(data["backup_path"]),
            size_bytes=size_bytes,
            version=str(data["version"]),
        )


def _parse_timestamp(value: str) -> datetime:
    # RFC 3339 "Z" suffix; fromisoformat handles it from 3.11 on
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def make_backup_name(prefix: str, timestamp: datetime) -> str:
    """Build a sortable backup name at second resolution (UTC)."""
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=UTC)
    return f"{prefix}{timestamp.astimezone(UTC).strftime(NAME_TIMESTAMP_FORMAT)}"


def is_recognized_name(name: str, include_pre_restore: bool = True) -> bool:
    """Check whether a directory name belongs to the backup catalog."""
    if name.startswith(BACKUP_PREFIX):
        return True
    return include_pre_restore and name.startswith(PRE_RESTORE_PREFIX)
