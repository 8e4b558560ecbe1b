# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Restore safety tests.

These tests verify that restoring never loses the store's previous
contents and that a failed restore reports where to recover from.
"""

import shutil
import threading
from datetime import timedelta
from pathlib import Path

import pytest

from conftest import STORE_FILES, T0, read_dir_files

from dmbackup.backup import (
    cleanup_old_backups,
    create_backup,
    get_backup,
    list_backups,
    restore_backup,
)
from dmbackup.backup.restore import validate_backup
from dmbackup.exceptions import (
    BackupIOError,
    BackupNotFoundError,
    InvalidBackupError,
    RestoreError,
)

MODIFIED_FILES = {
    "CURRENT": b"MANIFEST-000009\n",
    "MANIFEST-000009": b"newer manifest",
    "000010.log": b"newer share records",
}


def _replace_store_contents(store_path: Path) -> None:
    for path in store_path.iterdir():
        if path.is_file():
            path.unlink()
    for name, content in MODIFIED_FILES.items():
        (store_path / name).write_bytes(content)


# ============================================================================
# Pre-restore snapshot
# ============================================================================

@pytest.mark.asyncio
async def test_restore_saves_current_store_first(test_config, test_state):
    """The store's contents before the restore are kept as a pre_restore_ backup."""
    backup = await create_backup(test_config, test_state, timestamp=T0)
    _replace_store_contents(test_config.store_path)

    result = await restore_backup(test_config, test_state, backup.name)

    assert result.pre_restore_backup is not None
    assert result.pre_restore_backup.startswith("pre_restore_")

    snapshot = await get_backup(test_config, test_state, result.pre_restore_backup)
    assert snapshot.is_pre_restore
    assert read_dir_files(snapshot.backup_path) == MODIFIED_FILES


@pytest.mark.asyncio
async def test_restore_replaces_store_files(test_config, test_state):
    """After a restore the store holds exactly the backup's files."""
    backup = await create_backup(test_config, test_state, timestamp=T0)
    _replace_store_contents(test_config.store_path)

    result = await restore_backup(test_config, test_state, backup.name)

    assert read_dir_files(test_config.store_path) == STORE_FILES
    assert result.removed_count == len(MODIFIED_FILES)
    assert result.restored_count == len(STORE_FILES)
    assert sorted(result.restored_files) == sorted(STORE_FILES)
    assert result.target_path == str(test_config.store_path)
    assert test_state["total_restores"] == 1


@pytest.mark.asyncio
async def test_restore_does_not_copy_metadata_sidecar(test_config, test_state):
    backup = await create_backup(test_config, test_state, timestamp=T0)

    await restore_backup(test_config, test_state, backup.name)

    assert not (test_config.store_path / "metadata.json").exists()


@pytest.mark.asyncio
async def test_restore_leaves_store_subdirectories(test_config, test_state):
    """Only regular files are cleared; subdirectories of the store survive."""
    backup = await create_backup(test_config, test_state, timestamp=T0)

    await restore_backup(test_config, test_state, backup.name)

    assert (test_config.store_path / "archive" / "old.sst").exists()


@pytest.mark.asyncio
async def test_restore_then_backup_round_trip(test_config, test_state):
    """A backup taken right after a restore holds the restored backup's files."""
    original = await create_backup(test_config, test_state, timestamp=T0)
    _replace_store_contents(test_config.store_path)

    await restore_backup(test_config, test_state, original.name)
    again = await create_backup(test_config, test_state, timestamp=T0 + timedelta(hours=1))

    assert read_dir_files(again.backup_path) == read_dir_files(original.backup_path)
    assert again.size_bytes == original.size_bytes


@pytest.mark.asyncio
async def test_restore_into_missing_directory(test_config, test_state, temp_dir: Path):
    """A missing destination is created and no safety snapshot is taken."""
    backup = await create_backup(test_config, test_state, timestamp=T0)
    target = temp_dir / "fresh" / "store"

    result = await restore_backup(test_config, test_state, backup.name, target_override=target)

    assert result.pre_restore_backup is None
    assert result.removed_count == 0
    assert result.target_path == str(target)
    assert read_dir_files(target) == STORE_FILES
    records = await list_backups(test_config, test_state, include_pre_restore=True)
    assert [r.name for r in records] == [backup.name]


@pytest.mark.asyncio
async def test_pre_restore_snapshots_survive_retention(test_config, test_state):
    """Retention never removes pre-restore snapshots."""
    config = test_config.with_updates(max_backups=1)
    first = await create_backup(config, test_state, timestamp=T0)

    result = await restore_backup(config, test_state, first.name)

    for hour in range(1, 4):
        await create_backup(config, test_state, timestamp=T0 + timedelta(hours=hour))
    await cleanup_old_backups(config, test_state)

    normal = await list_backups(config, test_state)
    everything = await list_backups(config, test_state, include_pre_restore=True)

    assert [r.name for r in normal] == ["dmpool_backup_20250101_030000"]
    assert result.pre_restore_backup in [r.name for r in everything]


# ============================================================================
# Failures
# ============================================================================

@pytest.mark.asyncio
async def test_restore_unknown_backup_raises_not_found(test_config, test_state):
    with pytest.raises(BackupNotFoundError):
        await restore_backup(test_config, test_state, "dmpool_backup_19990101_000000")

    assert read_dir_files(test_config.store_path) == STORE_FILES


@pytest.mark.asyncio
async def test_restore_invalid_backup_leaves_store_untouched(test_config, test_state):
    """A backup without CURRENT is rejected before anything is changed."""
    backup = await create_backup(test_config, test_state, timestamp=T0)
    (backup.backup_path / "CURRENT").unlink()
    _replace_store_contents(test_config.store_path)

    with pytest.raises(InvalidBackupError):
        await restore_backup(test_config, test_state, backup.name)

    assert read_dir_files(test_config.store_path) == MODIFIED_FILES
    records = await list_backups(test_config, test_state, include_pre_restore=True)
    assert not any(r.is_pre_restore for r in records)
    assert test_state["total_restores"] == 0


@pytest.mark.asyncio
async def test_validate_backup_requires_current_file(test_config, test_state):
    backup = await create_backup(test_config, test_state, timestamp=T0)
    record = await get_backup(test_config, test_state, backup.name)
    (record.backup_path / "CURRENT").unlink()

    with pytest.raises(InvalidBackupError) as exc_info:
        validate_backup(record)

    assert exc_info.value.details["backup_name"] == backup.name


@pytest.mark.asyncio
async def test_failed_copy_reports_pre_restore_snapshot(test_config, test_state, monkeypatch):
    """A failure after the store was cleared names the snapshot to recover from."""
    backup = await create_backup(test_config, test_state, timestamp=T0)
    _replace_store_contents(test_config.store_path)

    async def failing_copy(source, dest, skip=()):
        raise BackupIOError("No space left on device", details={"path": str(dest)})

    monkeypatch.setattr("dmbackup.backup.restore.copy_store_files", failing_copy)

    with pytest.raises(RestoreError) as exc_info:
        await restore_backup(test_config, test_state, backup.name)

    error = exc_info.value
    assert isinstance(error, BackupIOError)
    assert isinstance(error.__cause__, BackupIOError)
    assert error.details["backup_name"] == backup.name
    assert error.details["target_path"] == str(test_config.store_path)

    snapshot_name = error.details["pre_restore_backup"]
    snapshot = await get_backup(test_config, test_state, snapshot_name)
    assert read_dir_files(snapshot.backup_path) == MODIFIED_FILES
    assert test_state["total_restores"] == 0
    assert test_state["last_error"] is not None


@pytest.mark.asyncio
async def test_restore_missing_store_raises_not_found(test_config, test_state):
    """Without an override the configured store must exist, so a snapshot can be taken."""
    backup = await create_backup(test_config, test_state, timestamp=T0)
    shutil.rmtree(test_config.store_path)

    with pytest.raises(BackupNotFoundError) as exc_info:
        await restore_backup(test_config, test_state, backup.name)

    assert exc_info.value.details["target_path"] == str(test_config.store_path)
    assert not test_config.store_path.exists()
    records = await list_backups(test_config, test_state, include_pre_restore=True)
    assert [r.name for r in records] == [backup.name]


@pytest.mark.asyncio
async def test_store_clearing_runs_off_the_event_loop(test_config, test_state, monkeypatch):
    import dmbackup.backup.restore as restore

    real_clear = restore._clear_store_files
    clear_threads = []

    def recording_clear(target):
        clear_threads.append(threading.get_ident())
        return real_clear(target)

    monkeypatch.setattr(restore, "_clear_store_files", recording_clear)
    backup = await create_backup(test_config, test_state, timestamp=T0)

    await restore_backup(test_config, test_state, backup.name)

    assert len(clear_threads) == 1
    assert clear_threads[0] != threading.get_ident()
