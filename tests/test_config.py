# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Configuration tests: validation, the functional builder and the
environment loader.
"""

from pathlib import Path

import pytest

from dmbackup import create_config, create_config_from_env
from dmbackup.builder import (
    build_config,
    build_from_steps,
    create_empty_config,
    disable_compression,
    enable_scheduler,
    keep_last,
    pipe,
    run_every_hours,
    with_backup_dir,
    with_store_path,
)
from dmbackup.config import BackupConfig
from dmbackup.exceptions import ConfigurationError

ENV_VARS = (
    "DMBACKUP_STORE_PATH",
    "DMBACKUP_BACKUP_DIR",
    "DMBACKUP_MAX_BACKUPS",
    "DMBACKUP_INTERVAL_HOURS",
    "DMBACKUP_COMPRESS",
    "DMBACKUP_SCHEDULER",
)


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


# ============================================================================
# BackupConfig
# ============================================================================

def test_defaults(temp_dir: Path):
    config = BackupConfig(store_path=temp_dir / "store")

    assert config.backup_dir == Path("./backups")
    assert config.max_backups == 10
    assert config.backup_interval_hours == 24
    assert config.compress_backups is True
    assert config.scheduler_enabled is False


def test_string_paths_are_normalized(temp_dir: Path):
    config = BackupConfig(store_path=str(temp_dir / "store"), backup_dir=str(temp_dir / "b"))

    assert config.store_path == temp_dir / "store"
    assert config.backup_dir == temp_dir / "b"


def test_config_is_frozen(test_config):
    with pytest.raises(AttributeError):
        test_config.max_backups = 3


def test_validation_collects_every_error(temp_dir: Path):
    with pytest.raises(ConfigurationError) as exc_info:
        BackupConfig(store_path="", max_backups=0, backup_interval_hours=0)

    errors = exc_info.value.details["errors"]
    assert len(errors) == 3
    assert "store_path is required" in errors


@pytest.mark.parametrize("max_backups", [0, -1])
def test_retention_must_keep_a_backup(temp_dir: Path, max_backups: int):
    with pytest.raises(ConfigurationError):
        BackupConfig(store_path=temp_dir / "store", max_backups=max_backups)


def test_backup_dir_must_differ_from_store(temp_dir: Path):
    with pytest.raises(ConfigurationError) as exc_info:
        BackupConfig(store_path=temp_dir / "store", backup_dir=temp_dir / "store" / ".." / "store")

    assert "backup_dir must differ from store_path" in exc_info.value.details["errors"]


def test_with_updates_returns_new_validated_config(test_config):
    updated = test_config.with_updates(max_backups=3)

    assert updated.max_backups == 3
    assert test_config.max_backups == 10
    assert updated.store_path == test_config.store_path

    with pytest.raises(ConfigurationError):
        test_config.with_updates(backup_interval_hours=-1)


# ============================================================================
# Builder
# ============================================================================

def test_builder_steps(temp_dir: Path):
    config = build_from_steps(
        lambda c: with_store_path(c, temp_dir / "store"),
        lambda c: with_backup_dir(c, str(temp_dir / "backups")),
        lambda c: keep_last(c, 7),
        lambda c: run_every_hours(c, 0.5),
        disable_compression,
    )

    assert config.store_path == temp_dir / "store"
    assert config.backup_dir == temp_dir / "backups"
    assert config.max_backups == 7
    assert config.backup_interval_hours == 0.5
    assert config.scheduler_enabled is True
    assert config.compress_backups is False


def test_builder_functions_do_not_mutate():
    base = create_empty_config()

    updated = pipe(enable_scheduler, lambda c: keep_last(c, 2))(base)

    assert base["scheduler_enabled"] is False
    assert base["max_backups"] == 10
    assert updated["scheduler_enabled"] is True
    assert updated["max_backups"] == 2


def test_builder_rejects_bad_values():
    with pytest.raises(ValueError):
        keep_last(create_empty_config(), 0)
    with pytest.raises(ValueError):
        run_every_hours(create_empty_config(), 0)


def test_build_config_requires_store_path():
    with pytest.raises(ConfigurationError):
        build_config(create_empty_config())


def test_create_config(temp_dir: Path):
    config = create_config(
        temp_dir / "store",
        backup_dir=temp_dir / "backups",
        max_backups=5,
        backup_interval_hours=12,
    )

    assert config.max_backups == 5
    assert config.backup_interval_hours == 12
    assert config.scheduler_enabled is True


def test_create_config_without_interval_leaves_scheduler_off(temp_dir: Path):
    config = create_config(temp_dir / "store", compress_backups=False)

    assert config.scheduler_enabled is False
    assert config.compress_backups is False
    assert config.backup_dir == Path("./backups")


def test_create_config_ignores_unknown_kwargs(temp_dir: Path):
    config = create_config(temp_dir / "store", scheduler_enabled=True, colour="blue")

    assert config.scheduler_enabled is True
    assert not hasattr(config, "colour")


# ============================================================================
# Environment
# ============================================================================

def test_env_requires_store_path(clean_env):
    with pytest.raises(ConfigurationError) as exc_info:
        create_config_from_env()

    assert "DMBACKUP_STORE_PATH" in exc_info.value.message


def test_env_defaults(clean_env, temp_dir: Path):
    clean_env.setenv("DMBACKUP_STORE_PATH", str(temp_dir / "store"))

    config = create_config_from_env()

    assert config.store_path == temp_dir / "store"
    assert config.backup_dir == Path("./backups")
    assert config.max_backups == 10
    assert config.backup_interval_hours == 24
    assert config.compress_backups is True
    assert config.scheduler_enabled is False


def test_env_overrides(clean_env, temp_dir: Path):
    clean_env.setenv("DMBACKUP_STORE_PATH", str(temp_dir / "store"))
    clean_env.setenv("DMBACKUP_BACKUP_DIR", str(temp_dir / "backups"))
    clean_env.setenv("DMBACKUP_MAX_BACKUPS", "4")
    clean_env.setenv("DMBACKUP_INTERVAL_HOURS", "1.5")
    clean_env.setenv("DMBACKUP_COMPRESS", "off")
    clean_env.setenv("DMBACKUP_SCHEDULER", "Yes")

    config = create_config_from_env()

    assert config.backup_dir == temp_dir / "backups"
    assert config.max_backups == 4
    assert config.backup_interval_hours == 1.5
    assert config.compress_backups is False
    assert config.scheduler_enabled is True


@pytest.mark.parametrize(
    ("name", "value"),
    [
        ("DMBACKUP_MAX_BACKUPS", "ten"),
        ("DMBACKUP_MAX_BACKUPS", "0"),
        ("DMBACKUP_INTERVAL_HOURS", "-2"),
        ("DMBACKUP_INTERVAL_HOURS", "daily"),
        ("DMBACKUP_COMPRESS", "maybe"),
        ("DMBACKUP_SCHEDULER", "2"),
    ],
)
def test_env_invalid_values(clean_env, temp_dir: Path, name: str, value: str):
    clean_env.setenv("DMBACKUP_STORE_PATH", str(temp_dir / "store"))
    clean_env.setenv(name, value)

    with pytest.raises(ConfigurationError) as exc_info:
        create_config_from_env()

    assert name in exc_info.value.message
    assert repr(value) in exc_info.value.message
