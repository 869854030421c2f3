# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for archive extraction and the external build step."""

from __future__ import annotations

import io
import tarfile
from pathlib import Path

import pytest

from conftest import completed_process, toolchain_archive
from govm.config import Settings
from govm.errors import BuildError, FetchError
from govm.install import Builder
from govm.install.archive import extract_toolchain


def test_extract_strips_go_root_and_replaces_destination(tmp_path: Path) -> None:
    archive = tmp_path / "go.tar.gz"
    archive.write_bytes(toolchain_archive())
    destination = tmp_path / "versions" / "go1.21.5.linux.amd64"
    destination.mkdir(parents=True)
    (destination / "stale").write_text("x", encoding="utf-8")

    extract_toolchain(archive, destination)

    assert sorted(path.name for path in destination.iterdir()) == ["VERSION", "bin"]
    assert not (tmp_path / "versions" / ".go1.21.5.linux.amd64.partial").exists()


def test_extract_rejects_archive_without_go_tree(tmp_path: Path) -> None:
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w:gz") as bundle:
        info = tarfile.TarInfo("other/file")
        info.size = 1
        bundle.addfile(info, io.BytesIO(b"x"))
    archive = tmp_path / "bad.tar.gz"
    archive.write_bytes(buffer.getvalue())
    destination = tmp_path / "dest"

    with pytest.raises(FetchError):
        extract_toolchain(archive, destination)
    assert not destination.exists()
    assert not (tmp_path / ".dest.partial").exists()


def test_extract_wraps_corrupt_archive(tmp_path: Path) -> None:
    archive = tmp_path / "corrupt.tar.gz"
    archive.write_bytes(b"not a tarball")

    with pytest.raises(FetchError):
        extract_toolchain(archive, tmp_path / "dest")


def test_builder_requires_source_tree(settings: Settings, make_runner, tmp_path: Path) -> None:
    runner = make_runner()

    with pytest.raises(BuildError, match="not a Go source tree"):
        Builder(settings, runner=runner).build(tmp_path, target_os="linux", target_arch="amd64")
    assert runner.commands == []


def test_builder_passes_cross_settings(settings: Settings, make_runner, tmp_path: Path) -> None:
    (tmp_path / "src").mkdir()
    (tmp_path / "src" / "make.bash").write_text("", encoding="utf-8")
    runner = make_runner()
    cross = settings.with_overrides(cgo_enabled=True, cc_for_target="aarch64-linux-gnu-gcc")

    Builder(cross, runner=runner).build(tmp_path, target_os="linux", target_arch="arm64")

    env = runner.calls[0]["env"]
    assert env["GOARCH"] == "arm64"
    assert env["GOHOSTARCH"] == "amd64"
    assert env["CGO_ENABLED"] == "1"
    assert env["CC_FOR_TARGET"] == "aarch64-linux-gnu-gcc"


def test_builder_wraps_failed_build(settings: Settings, make_runner, tmp_path: Path) -> None:
    (tmp_path / "src").mkdir()
    (tmp_path / "src" / "make.bash").write_text("", encoding="utf-8")

    def handler(command: list[str], *, cwd=None, env=None):  # noqa: ANN001
        return completed_process(command, stderr="cannot find bootstrap", returncode=2)

    with pytest.raises(BuildError) as excinfo:
        Builder(settings, runner=make_runner(handler)).build(tmp_path, target_os="linux", target_arch="amd64")

    assert excinfo.value.returncode == 2
    assert excinfo.value.command[0] == "bash"


def test_bootstrap_from_path(settings: Settings, make_runner, monkeypatch) -> None:
    unset = settings.model_copy(update={"bootstrap_root": None})
    monkeypatch.setattr("govm.install.build.shutil.which", lambda name: "/usr/bin/go")

    def handler(command: list[str], *, cwd=None, env=None):  # noqa: ANN001
        return completed_process(command, stdout="/usr/lib/go\n")

    assert Builder(unset, runner=make_runner(handler)).bootstrap_root() == Path("/usr/lib/go")


def test_missing_bootstrap_is_reported(settings: Settings, make_runner, monkeypatch) -> None:
    unset = settings.model_copy(update={"bootstrap_root": None})
    monkeypatch.setattr("govm.install.build.shutil.which", lambda name: None)

    with pytest.raises(BuildError, match="GOVM_BOOTSTRAP_ROOT"):
        Builder(unset, runner=make_runner()).bootstrap_root()
