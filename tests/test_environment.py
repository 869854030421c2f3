# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for environment descriptors and the ``latest`` alias."""

from __future__ import annotations

import os
from govm.config import Settings
from govm.environment import DescriptorStore
from govm.layout import PrefixLayout, record_key
from govm.records import InstallationRecord, Strategy


def _record(settings: Settings, version: str, os_name: str = "linux", arch: str = "amd64") -> InstallationRecord:
    layout = PrefixLayout.from_settings(settings)
    key = record_key(version, os_name, arch)
    return InstallationRecord(
        key=key,
        version=version,
        os=os_name,
        arch=arch,
        install_dir=layout.install_dir(version, os_name, arch),
        descriptor_path=layout.descriptor_path(key),
        strategy=Strategy.PRECOMPILED_BINARY,
    )


def _store(settings: Settings) -> DescriptorStore:
    return DescriptorStore(settings, PrefixLayout.from_settings(settings))


def test_host_native_install_unsets_platform_and_publishes_alias(settings: Settings) -> None:
    store = _store(settings)
    record = _record(settings, "1.21.5")

    descriptor = store.describe(record)

    assert descriptor.variables["GOROOT"] == str(record.install_dir)
    assert descriptor.variables["GOOS"] is None
    assert descriptor.variables["GOARCH"] is None
    assert descriptor.path_prefix == (record.install_dir / "bin",)
    alias = settings.env_prefix / "latest.env"
    assert descriptor.alias == alias
    assert alias.is_symlink()
    assert os.readlink(alias) == "go1.21.5.linux.amd64.env"
    assert store.load(record.key) == descriptor


def test_cross_install_records_overrides_without_alias(settings: Settings) -> None:
    store = _store(settings)
    record = _record(settings, "1.21.5", "windows", "arm64")

    descriptor = store.describe(record)

    assert descriptor.variables["GOOS"] == "windows"
    assert descriptor.variables["GOARCH"] == "arm64"
    assert descriptor.alias is None
    assert not (settings.env_prefix / "latest.env").exists()


def test_alias_suppressed_when_disabled(settings: Settings) -> None:
    store = _store(settings.with_overrides(no_alias=True))

    descriptor = store.describe(_record(settings, "1.21.5"))

    assert descriptor.alias is None
    assert not (settings.env_prefix / "latest.env").exists()


def test_alias_follows_latest_host_install(settings: Settings) -> None:
    store = _store(settings)
    store.describe(_record(settings, "1.21.5"))
    store.describe(_record(settings, "1.22.3"))

    assert os.readlink(settings.env_prefix / "latest.env") == "go1.22.3.linux.amd64.env"
    assert [descriptor.name for descriptor in store.list_installed()] == [
        "go1.21.5.linux.amd64",
        "go1.22.3.linux.amd64",
    ]


def test_remove_drops_descriptor_and_its_alias(settings: Settings) -> None:
    store = _store(settings)
    older = _record(settings, "1.21.5")
    newer = _record(settings, "1.22.3")
    store.describe(older)
    store.describe(newer)

    store.remove(older.key)
    assert (settings.env_prefix / "latest.env").is_symlink()

    store.remove(newer.key)
    assert not os.path.lexists(settings.env_prefix / "latest.env")
    assert store.list_installed() == []


def test_cgo_setting_is_recorded(settings: Settings) -> None:
    descriptor = _store(settings.with_overrides(cgo_enabled=False)).describe(_record(settings, "1.21.5"))

    assert descriptor.variables["CGO_ENABLED"] == "0"


def test_unreadable_descriptor_is_absent(settings: Settings) -> None:
    settings.env_prefix.mkdir(parents=True)
    (settings.env_prefix / "go1.21.5.linux.amd64.env").write_text("garbage", encoding="utf-8")

    assert _store(settings).load("go1.21.5.linux.amd64") is None


def test_to_shell_renders_exports_and_unsets(settings: Settings) -> None:
    descriptor = _store(settings).describe(_record(settings, "1.21.5", "windows", "arm64"))

    script = descriptor.to_shell()

    assert "export GOOS=windows;" in script
    assert f"export GOROOT={descriptor.install_dir};" in script
    assert "export PATH=" in script and ':"${PATH}";' in script

    native = _store(settings).describe(_record(settings, "1.22.3")).to_shell()
    assert "unset GOOS;" in native
    assert "unset GOARCH;" in native


def test_descriptor_round_trips_to_record(settings: Settings) -> None:
    record = _record(settings, "1.21.5")
    descriptor = _store(settings).describe(record)

    assert descriptor.to_record(record.descriptor_path) == record
