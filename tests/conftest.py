# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Shared pytest fixtures: isolated settings, fake transports and runners."""

from __future__ import annotations

import hashlib
import io
import tarfile
from collections.abc import Callable, Mapping
from pathlib import Path
from subprocess import CompletedProcess
from typing import Any

import pytest

from govm.config import Settings
from govm.errors import FetchError
from govm.process_utils import SubprocessExecutionError

DOWNLOAD_BASE = "https://dl.example.test/go"
MIRROR = "https://mirror.example.test/golang"
CATALOG_URL = "https://go.example.test/dl/?mode=json&include=all"
STABLE_URL = "https://go.example.test/VERSION?m=text"


class FakeTransport:
    """Serve canned bodies by URL and record every request."""

    def __init__(self, responses: Mapping[str, bytes | Exception] | None = None) -> None:
        self.responses: dict[str, bytes | Exception] = dict(responses or {})
        self.calls: list[str] = []

    def fetch(self, url: str) -> bytes:
        self.calls.append(url)
        response = self.responses.get(url)
        if response is None:
            raise FetchError(f"404 for {url}", urls=(url,))
        if isinstance(response, Exception):
            raise response
        return response

    def download(self, url: str, destination: Path) -> str:
        payload = self.fetch(url)
        destination.parent.mkdir(parents=True, exist_ok=True)
        destination.write_bytes(payload)
        return hashlib.sha256(payload).hexdigest()


class FakeRunner:
    """Record commands and answer them through an optional handler."""

    def __init__(self, handler: Callable[..., CompletedProcess[str] | None] | None = None) -> None:
        self.handler = handler
        self.commands: list[list[str]] = []
        self.calls: list[dict[str, Any]] = []

    def __call__(self, args, *, cwd=None, env=None, check=True, capture_output=False, text=True):  # noqa: ANN001
        command = [str(arg) for arg in args]
        self.commands.append(command)
        self.calls.append({"args": command, "cwd": cwd, "env": env, "check": check})
        completed = self.handler(command, cwd=cwd, env=env) if self.handler else None
        if completed is None:
            completed = completed_process(command)
        if check and completed.returncode != 0:
            raise SubprocessExecutionError(command, completed.returncode, completed.stdout, completed.stderr)
        return completed


def completed_process(
    args: list[str],
    *,
    stdout: str = "",
    stderr: str = "",
    returncode: int = 0,
) -> CompletedProcess[str]:
    return CompletedProcess(args=args, returncode=returncode, stdout=stdout, stderr=stderr)


def toolchain_archive(*, source: bool = False, version: str = "1.21.5") -> bytes:
    """Return a gzipped tarball shaped like a Go release archive."""

    buffer = io.BytesIO()
    entries: dict[str, bytes] = {"go/VERSION": f"go{version}\n".encode()}
    if source:
        entries["go/src/make.bash"] = b"#!/usr/bin/env bash\n"
        entries["go/src/run.bash"] = b"#!/usr/bin/env bash\n"
    else:
        entries["go/bin/go"] = b"#!/bin/sh\n"
    with tarfile.open(fileobj=buffer, mode="w:gz") as bundle:
        for name, payload in entries.items():
            info = tarfile.TarInfo(name)
            info.size = len(payload)
            info.mode = 0o755
            bundle.addfile(info, io.BytesIO(payload))
    return buffer.getvalue()


def sha256_line(payload: bytes, name: str = "archive.tar.gz") -> bytes:
    return f"{hashlib.sha256(payload).hexdigest()}  {name}\n".encode()


def toolchain_runner(version_output: str = "go version go1.21.5 linux/amd64") -> FakeRunner:
    """Return a runner that fakes ``make.bash`` builds and ``go version`` checks."""

    def handler(command: list[str], *, cwd=None, env=None):  # noqa: ANN001
        if command[0] == "bash" and command[1].endswith("make.bash"):
            goroot = Path(command[1]).parent.parent
            binary = goroot / "bin" / "go"
            binary.parent.mkdir(parents=True, exist_ok=True)
            binary.write_text("#!/bin/sh\n", encoding="utf-8")
            return None
        if command[0].endswith("/bin/go") and command[1:] == ["version"]:
            return completed_process(command, stdout=version_output + "\n")
        if command[:2] == ["git", "rev-parse"] and "--short" in command:
            return completed_process(command, stdout="abc1234\n")
        return None

    return FakeRunner(handler)


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Return settings confined to ``tmp_path`` for a linux/amd64 host."""

    bootstrap = tmp_path / "bootstrap"
    bootstrap.mkdir()
    return Settings(
        target_os="linux",
        target_arch="amd64",
        host_os="linux",
        host_arch="amd64",
        version_prefix=tmp_path / "versions",
        env_prefix=tmp_path / "envs",
        tmp_dir=tmp_path / "tmp",
        download_base=DOWNLOAD_BASE,
        download_mirrors=(MIRROR,),
        catalog_url=CATALOG_URL,
        stable_url=STABLE_URL,
        bootstrap_root=bootstrap,
    )


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def make_transport() -> Callable[..., FakeTransport]:
    return FakeTransport


@pytest.fixture
def make_runner() -> Callable[..., FakeRunner]:
    return FakeRunner


@pytest.fixture
def go_runner() -> FakeRunner:
    return toolchain_runner()
