# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Test fixtures for dmbackup tests.

Provides a fake store directory, test configuration and runtime state.
"""

import os
import tempfile
from datetime import datetime, UTC
from pathlib import Path
from typing import Dict, Generator

import pytest
import pytest_asyncio

# Set test environment variables
os.environ["DMBACKUP_ADMIN_API_KEY"] = "test-api-key-12345"

# Files of a small store directory, CURRENT included
STORE_FILES: Dict[str, bytes] = {
    "CURRENT": b"MANIFEST-000004\n",
    "MANIFEST-000004": b"\x00\x01manifest-bytes" * 8,
    "000005.log": b"share-record;" * 64,
    "OPTIONS-000007": b"[DBOptions]\n  create_if_missing=true\n",
}

T0 = datetime(2025, 1, 1, 0, 0, 0, tzinfo=UTC)


def write_store_files(store_path: Path, files: Dict[str, bytes]) -> None:
    """Create a store directory holding the given files."""
    store_path.mkdir(parents=True, exist_ok=True)
    for name, content in files.items():
        (store_path / name).write_bytes(content)


def read_dir_files(path: Path, skip: tuple = ("metadata.json",)) -> Dict[str, bytes]:
    """Map file name to content for the regular files directly under path."""
    return {
        p.name: p.read_bytes()
        for p in path.iterdir()
        if p.is_file() and p.name not in skip
    }


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def store_path(temp_dir: Path) -> Path:
    """Create a populated store directory, with a subdirectory that is never copied."""
    store = temp_dir / "store"
    write_store_files(store, STORE_FILES)
    (store / "archive").mkdir()
    (store / "archive" / "old.sst").write_bytes(b"not part of a backup")
    return store


@pytest.fixture
def test_config(temp_dir: Path, store_path: Path):
    """Create a test configuration."""
    from dmbackup.config import BackupConfig

    return BackupConfig(
        store_path=store_path,
        backup_dir=temp_dir / "backups",
        max_backups=10,
        backup_interval_hours=24,
    )


@pytest_asyncio.fixture
async def test_state(test_config):
    """Create initialized backup state for testing."""
    from dmbackup.core import initialize_backup_state, shutdown_backup_state

    state = await initialize_backup_state(test_config)
    yield state
    await shutdown_backup_state(state)
