# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
In-memory catalog, interchangeable with FilesystemCatalog in tests.

Records are kept in a dict; backup file contents are not touched.
"""

from typing import Dict, List

from dmbackup.catalog.records import BackupRecord, is_recognized_name
from dmbackup.exceptions import BackupNotFoundError


class InMemoryCatalog:
    """Backup catalog held in process memory."""

    def __init__(self, records: List[BackupRecord] | None = None):
        self._records: Dict[str, BackupRecord] = {}
        for record in records or []:
            self._records[record.name] = record

    async def list(self, include_pre_restore: bool = False) -> List[BackupRecord]:
        records = [
            r for r in self._records.values()
            if is_recognized_name(r.name, include_pre_restore)
        ]
        records.sort(key=lambda r: (r.created_at, r.name), reverse=True)
        return records

    async def get(self, name: str) -> BackupRecord:
        try:
            return self._records[name]
        except KeyError:
            raise BackupNotFoundError(
                f"Backup not found: {name}",
                details={"backup_name": name},
            ) from None

    async def put(self, record: BackupRecord) -> None:
        self._records[record.name] = record

    async def delete(self, name: str) -> None:
        if name not in self._records:
            raise BackupNotFoundError(
                f"Backup not found: {name}",
                details={"backup_name": name},
            )
        del self._records[name]
