# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Filesystem Catalog - Backup records discovered from the backups root.

The backups root is the single source of truth: every call re-scans it,
nothing is cached. Each backup directory carries a metadata.json sidecar;
directories without one (legacy or created by hand) get a record
synthesized from the directory itself, which is never written back.
"""

import asyncio
import json
import shutil
from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
from datetime import datetime, UTC
from pathlib import Path
from typing import Any, Callable, List, TypeVar

import aiofiles
import structlog

from dmbackup.catalog.records import (
    METADATA_FILENAME,
    UNKNOWN_VERSION,
    BackupRecord,
    is_recognized_name,
)
from dmbackup.exceptions import (
    BackupIOError,
    BackupNotFoundError,
    DMBackupError,
    MetadataError,
)

logger = structlog.get_logger()

# Blocking directory scans and removals run here, off the event loop
_executor = ThreadPoolExecutor(max_workers=4)

T = TypeVar("T")


async def run_blocking(func: Callable[..., T], *args: Any) -> T:
    """Run a blocking filesystem call in the worker pool and await its result."""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(_executor, func, *args)


def calculate_backup_size(path: Path) -> int:
    """
    Sum the sizes of the regular files directly under a directory.

    The metadata sidecar is not part of the copied data and is skipped.

    Raises:
        BackupIOError: If the directory cannot be read
    """
    total = 0
    try:
        for entry in path.iterdir():
            if entry.name == METADATA_FILENAME or not entry.is_file():
                continue
            total += entry.stat().st_size
    except OSError as e:
        raise BackupIOError(
            f"Failed to calculate backup size: {e}",
            details={"path": str(path)},
        ) from e
    return total


class FilesystemCatalog:
    """Backup catalog stored as directories under the backups root."""

    def __init__(self, backup_dir: Path, store_path: Path):
        self.backup_dir = Path(backup_dir)
        # Recorded as the source of synthesized legacy records
        self.store_path = Path(store_path)

    def backup_path(self, name: str) -> Path:
        """
        Resolve a backup name to its directory.

        Raises:
            BackupNotFoundError: If the name is not a plain directory name
                under the backups root, or the directory does not exist
        """
        if not name or name in (".", "..") or "/" in name or "\\" in name:
            raise BackupNotFoundError(
                f"Backup not found: {name}",
                details={"backup_name": name, "reason": "invalid_name"},
            )

        path = self.backup_dir / name
        if not path.is_dir():
            raise BackupNotFoundError(
                f"Backup not found: {name}",
                details={"backup_name": name, "backup_dir": str(self.backup_dir)},
            )
        return path

    async def list(self, include_pre_restore: bool = False) -> List[BackupRecord]:
        """
        List backups, newest first.

        Entries whose metadata cannot be read are skipped and logged.
        """
        if not self.backup_dir.exists():
            return []

        try:
            entries = sorted(self.backup_dir.iterdir())
        except OSError as e:
            raise BackupIOError(
                f"Failed to read backup directory: {e}",
                details={"backup_dir": str(self.backup_dir)},
            ) from e

        records: List[BackupRecord] = []
        for entry in entries:
            if not entry.is_dir() or not is_recognized_name(entry.name, include_pre_restore):
                continue
            try:
                records.append(await self._load_record(entry))
            except DMBackupError as e:
                logger.warning(
                    "backup_metadata_unreadable",
                    backup_path=str(entry),
                    error=str(e),
                )

        records.sort(key=lambda r: (r.created_at, r.name), reverse=True)
        return records

    async def get(self, name: str) -> BackupRecord:
        """
        Load one backup record.

        Raises:
            BackupNotFoundError: If the backup directory does not exist
            MetadataError: If the sidecar exists but cannot be decoded
        """
        return await self._load_record(self.backup_path(name))

    async def put(self, record: BackupRecord) -> None:
        """
        Persist a record as the sidecar of its backup directory.

        The file is written atomically (write to temp, then rename).
        """
        metadata_path = record.backup_path / METADATA_FILENAME
        temp_path = metadata_path.with_suffix(".json.tmp")

        try:
            async with aiofiles.open(temp_path, "w", encoding="utf-8") as f:
                await f.write(json.dumps(record.to_dict(), indent=2))
            temp_path.replace(metadata_path)
        except OSError as e:
            raise BackupIOError(
                f"Failed to write backup metadata: {e}",
                details={"backup_name": record.name, "path": str(metadata_path)},
            ) from e

        logger.debug("backup_metadata_written", path=str(metadata_path))

    async def delete(self, name: str) -> None:
        """
        Remove a backup directory recursively.

        Raises:
            BackupNotFoundError: If the backup does not exist
            BackupIOError: If removal fails
        """
        path = self.backup_path(name)
        try:
            await run_blocking(shutil.rmtree, path)
        except OSError as e:
            raise BackupIOError(
                f"Failed to remove backup: {name}: {e}",
                details={"backup_name": name, "path": str(path)},
            ) from e

    async def _load_record(self, backup_path: Path) -> BackupRecord:
        metadata_path = backup_path / METADATA_FILENAME

        if not metadata_path.exists():
            return await self._synthesize_record(backup_path)

        try:
            async with aiofiles.open(metadata_path, "r", encoding="utf-8") as f:
                raw = await f.read()
            record = BackupRecord.from_dict(json.loads(raw))
        except (OSError, ValueError, KeyError, TypeError) as e:
            raise MetadataError(
                f"Failed to load backup metadata: {e}",
                details={"path": str(metadata_path)},
            ) from e

        # The directory is authoritative if the backups root was moved
        if record.backup_path != backup_path or record.name != backup_path.name:
            record = replace(record, name=backup_path.name, backup_path=backup_path)

        return record

    async def _synthesize_record(self, backup_path: Path) -> BackupRecord:
        try:
            mtime = backup_path.stat().st_mtime
        except OSError as e:
            raise BackupIOError(
                f"Failed to stat backup directory: {e}",
                details={"path": str(backup_path)},
            ) from e

        logger.debug("legacy_backup_record_synthesized", backup_path=str(backup_path))

        return BackupRecord(
            name=backup_path.name,
            created_at=datetime.fromtimestamp(mtime, UTC),
            source_path=self.store_path,
            backup_path=backup_path,
            size_bytes=await run_blocking(calculate_backup_size, backup_path),
            version=UNKNOWN_VERSION,
        )
