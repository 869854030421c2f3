# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for the install strategies and their fallback order."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from conftest import (
    CATALOG_URL,
    DOWNLOAD_BASE,
    MIRROR,
    completed_process,
    sha256_line,
    toolchain_archive,
    toolchain_runner,
)
from govm.config import InstallMode, Settings
from govm.errors import StrategyExhaustedError
from govm.install import NotApplicableError
from govm.models import CommitRef, PublishedVersion
from govm.records import Strategy
from govm.service import Govm

BINARY = "go1.21.5.linux-amd64.tar.gz"
SOURCE = "go1.21.5.src.tar.gz"
KEY = "go1.21.5.linux.amd64"


def _serve(responses: dict[str, bytes], base: str, filename: str, payload: bytes) -> None:
    responses[f"{base}/{filename}"] = payload
    responses[f"{base}/{filename}.sha256"] = sha256_line(payload, filename)


@pytest.fixture
def binary_network(make_transport):  # noqa: ANN001, ANN201
    responses: dict[str, bytes] = {}
    _serve(responses, DOWNLOAD_BASE, BINARY, toolchain_archive())
    return make_transport(responses)


@pytest.fixture
def source_network(make_transport):  # noqa: ANN001, ANN201
    responses: dict[str, bytes] = {}
    _serve(responses, MIRROR, SOURCE, toolchain_archive(source=True))
    return make_transport(responses)


def test_binary_install_creates_record_and_descriptor(settings: Settings, binary_network, go_runner) -> None:
    govm = Govm(settings.with_overrides(install_mode=InstallMode.BINARY), transport=binary_network, runner=go_runner)

    outcome = govm.install("1.21.5")

    install_dir = settings.version_prefix / KEY
    assert outcome.resolved == PublishedVersion("1.21.5")
    assert outcome.result.strategy is Strategy.PRECOMPILED_BINARY
    assert not outcome.result.reused
    assert (install_dir / "bin" / "go").is_file()
    assert (install_dir / "VERSION").read_text(encoding="utf-8") == "go1.21.5\n"
    assert outcome.descriptor.name == KEY
    assert (settings.env_prefix / f"{KEY}.env").is_file()
    assert list((settings.tmp_dir / "govm" / "downloads").iterdir()) == []
    assert [cmd[1:] for cmd in go_runner.commands] == [["version"]]


def test_auto_mode_reuses_existing_install_without_network(settings: Settings, binary_network, go_runner) -> None:
    first = Govm(settings, transport=binary_network, runner=go_runner).install("1.21.5")
    calls_after_install = list(binary_network.calls)

    second = Govm(settings, transport=binary_network, runner=go_runner).install("1.21.5")

    assert binary_network.calls == calls_after_install
    assert second.result.reused
    assert second.result.strategy is Strategy.EXISTING_BINARY
    assert second.descriptor == first.descriptor
    assert (settings.env_prefix / f"{KEY}.env").read_text(encoding="utf-8") == first.descriptor.model_dump_json(
        indent=2
    ) + "\n"


def test_binary_mode_with_no_archives_exhausts(settings: Settings, make_transport, go_runner) -> None:
    govm = Govm(settings.with_overrides(install_mode=InstallMode.BINARY), transport=make_transport(), runner=go_runner)

    with pytest.raises(StrategyExhaustedError) as excinfo:
        govm.install("1.21.5")

    assert excinfo.value.mode == "binary"
    assert [strategy for strategy, _ in excinfo.value.failures] == ["existing-binary", "binary"]
    assert not (settings.version_prefix / KEY).exists()
    assert not (settings.env_prefix / f"{KEY}.env").exists()


def test_auto_mode_falls_back_to_source_build(settings: Settings, source_network, go_runner) -> None:
    outcome = Govm(settings, transport=source_network, runner=go_runner).install("1.21.5")

    assert outcome.result.strategy is Strategy.SOURCE_BUILD
    builds = [call for call in go_runner.calls if call["args"][0] == "bash"]
    assert len(builds) == 1
    install_dir = settings.version_prefix / KEY
    assert builds[0]["cwd"] == install_dir / "src"
    env = builds[0]["env"]
    assert env["GOROOT_BOOTSTRAP"] == str(settings.bootstrap_root)
    assert (env["GOOS"], env["GOARCH"]) == ("linux", "amd64")
    assert "GOROOT" not in env


def test_source_install_is_reused_by_existing_source(settings: Settings, source_network, go_runner) -> None:
    Govm(settings, transport=source_network, runner=go_runner).install("1.21.5")
    calls = len(source_network.calls)

    outcome = Govm(settings, transport=source_network, runner=go_runner).install("1.21.5")

    assert outcome.result.strategy is Strategy.EXISTING_SOURCE
    assert len(source_network.calls) == calls


def test_self_test_runs_after_build(settings: Settings, source_network, go_runner) -> None:
    govm = Govm(
        settings.with_overrides(install_mode=InstallMode.SOURCE, self_test=True),
        transport=source_network,
        runner=go_runner,
    )

    govm.install("1.21.5")

    scripts = [Path(cmd[1]).name for cmd in go_runner.commands if cmd[0] == "bash"]
    assert scripts == ["make.bash", "run.bash"]


def test_force_reinstall_replaces_record(settings: Settings, binary_network, go_runner) -> None:
    govm = Govm(settings, transport=binary_network, runner=go_runner)
    govm.install("1.21.5")
    stale = settings.version_prefix / KEY / "stale.txt"
    stale.write_text("left over", encoding="utf-8")
    fetches = len(binary_network.calls)

    outcome = govm.force_reinstall("1.21.5")

    assert not outcome.result.reused
    assert outcome.result.strategy is Strategy.PRECOMPILED_BINARY
    assert len(binary_network.calls) > fetches
    assert not stale.exists()


def test_directory_without_descriptor_counts_as_absent(settings: Settings, binary_network, go_runner) -> None:
    govm = Govm(settings, transport=binary_network, runner=go_runner)
    govm.install("1.21.5")
    (settings.env_prefix / f"{KEY}.env").unlink()
    (settings.env_prefix / "latest.env").unlink()
    leftover = settings.version_prefix / KEY / "partial.txt"
    leftover.write_text("interrupted", encoding="utf-8")

    outcome = govm.install("1.21.5")

    assert not outcome.result.reused
    assert not leftover.exists()
    assert (settings.env_prefix / f"{KEY}.env").is_file()


def test_existing_install_that_does_not_run_is_replaced(settings: Settings, binary_network, go_runner) -> None:
    govm = Govm(settings, transport=binary_network, runner=go_runner)
    govm.install("1.21.5")
    (settings.version_prefix / KEY / "bin" / "go").unlink()

    outcome = govm.install("1.21.5")

    assert outcome.result.strategy is Strategy.PRECOMPILED_BINARY
    assert (settings.version_prefix / KEY / "bin" / "go").is_file()


def test_cross_install_uses_host_archive_and_skips_alias(settings: Settings, binary_network, go_runner) -> None:
    cross = settings.with_overrides(target_os="windows", target_arch="arm64")

    outcome = Govm(cross, transport=binary_network, runner=go_runner).install("1.21.5")

    assert outcome.descriptor.name == "go1.21.5.windows.arm64"
    assert outcome.descriptor.variables["GOOS"] == "windows"
    assert outcome.descriptor.alias is None
    assert not (settings.env_prefix / "latest.env").exists()
    assert binary_network.calls[0] == f"{DOWNLOAD_BASE}/{BINARY}"


def test_commit_in_binary_mode_is_not_applicable(settings: Settings, make_transport, go_runner) -> None:
    network = make_transport()
    govm = Govm(settings.with_overrides(install_mode=InstallMode.BINARY), transport=network, runner=go_runner)

    with pytest.raises(StrategyExhaustedError) as excinfo:
        govm.orchestrator.install(CommitRef(sha="a1b2c3d", original_spec="a1b2c3d"))

    assert all(isinstance(error, NotApplicableError) for _, error in excinfo.value.failures)
    assert network.calls == []
    assert go_runner.commands == []


def test_git_mode_builds_checkout(settings: Settings, make_transport) -> None:
    base = toolchain_runner()
    delegate = base.handler
    repo = settings.version_prefix / "go"

    def handler(command: list[str], *, cwd=None, env=None):  # noqa: ANN001
        if command[:2] == ["git", "clone"]:
            (repo / "src").mkdir(parents=True)
            (repo / "src" / "make.bash").write_text("#!/usr/bin/env bash\n", encoding="utf-8")
            return None
        if "--verify" in command:
            known = command[-1] == "origin/master^{commit}"
            return completed_process(command, stdout="f" * 40 + "\n", returncode=0 if known else 1)
        return delegate(command, cwd=cwd, env=env)

    base.handler = handler
    govm = Govm(settings.with_overrides(install_mode=InstallMode.GIT), transport=make_transport(), runner=base)

    outcome = govm.install("tip")

    assert outcome.result.strategy is Strategy.GIT_BUILD
    assert outcome.descriptor.name == "go.git.linux.amd64"
    assert outcome.descriptor.commit == "abc1234"
    assert outcome.descriptor.install_dir == repo
    resets = [cmd[-1] for cmd in base.commands if cmd[1:2] == ["reset"]]
    assert resets == ["origin/master"]


def test_reuse_leaves_alias_alone_when_disabled(settings: Settings, binary_network, go_runner) -> None:
    Govm(settings, transport=binary_network, runner=go_runner).install("1.21.5")
    alias = settings.env_prefix / "latest.env"
    alias.unlink()

    outcome = Govm(settings.with_overrides(no_alias=True), transport=binary_network, runner=go_runner).install(
        "1.21.5"
    )

    assert outcome.result.reused
    assert not alias.exists()


def test_wildcard_binary_install_falls_back_to_mirror(settings: Settings, make_transport, go_runner) -> None:
    archive = toolchain_archive()
    filename = "go1.21.5.linux-amd64.tar.gz"
    responses: dict[str, bytes] = {
        CATALOG_URL: json.dumps([{"version": f"go{v}"} for v in ("1.21.0", "1.21.5", "1.22.0")]).encode()
    }
    _serve(responses, MIRROR, filename, archive)
    network = make_transport(responses)
    govm = Govm(settings.with_overrides(install_mode=InstallMode.BINARY), transport=network, runner=go_runner)

    outcome = govm.install("1.21.x")

    assert govm.orchestrator.plan() == (Strategy.EXISTING_BINARY, Strategy.PRECOMPILED_BINARY)
    assert outcome.resolved == PublishedVersion("1.21.5")
    assert outcome.result.strategy is Strategy.PRECOMPILED_BINARY
    assert network.calls == [
        CATALOG_URL,
        f"{DOWNLOAD_BASE}/{filename}",
        f"{MIRROR}/{filename}",
        f"{MIRROR}/{filename}.sha256",
    ]
    assert (settings.version_prefix / KEY / "bin" / "go").is_file()
    assert outcome.descriptor.name == KEY
