# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Invocation of the Go distribution's own build and test scripts."""

from __future__ import annotations

import logging
import os
import shutil
from collections.abc import Mapping
from pathlib import Path
from typing import Final

from ..config import Settings
from ..errors import BuildError
from ..process_utils import CommandRunner, SubprocessExecutionError, run_command

LOGGER = logging.getLogger(__name__)

MAKE_SCRIPT: Final[str] = "make.bash"
TEST_SCRIPT: Final[str] = "run.bash"


class Builder:
    """Build a Go source tree in place with ``src/make.bash``.

    The bootstrap toolchain comes from ``bootstrap_root`` when configured,
    otherwise from ``go env GOROOT`` of a ``go`` found on ``PATH``.
    """

    def __init__(self, settings: Settings, *, runner: CommandRunner = run_command) -> None:
        self._settings = settings
        self._runner = runner

    def build(self, goroot: Path, *, target_os: str, target_arch: str) -> None:
        """Compile the toolchain rooted at ``goroot`` for the target platform.

        Raises:
            BuildError: If the bootstrap toolchain is missing or the build fails.
        """

        src_dir = goroot.absolute() / "src"
        if not (src_dir / MAKE_SCRIPT).is_file():
            raise BuildError(f"{goroot} is not a Go source tree (missing src/{MAKE_SCRIPT})")
        env = self._build_env(goroot, target_os=target_os, target_arch=target_arch)
        LOGGER.debug("building %s for %s/%s", goroot, target_os, target_arch)
        self._run(["bash", str(src_dir / MAKE_SCRIPT)], cwd=src_dir, env=env)

    def self_test(self, goroot: Path, *, target_os: str, target_arch: str) -> None:
        """Run the distribution test suite against an already built tree.

        Raises:
            BuildError: If any test fails.
        """

        env = self._build_env(goroot, target_os=target_os, target_arch=target_arch)
        LOGGER.debug("running self-test in %s", goroot)
        src_dir = goroot.absolute() / "src"
        self._run(["bash", str(src_dir / TEST_SCRIPT), "--no-rebuild"], cwd=src_dir, env=env)

    def bootstrap_root(self) -> Path:
        """Return the toolchain used to compile a new one."""

        if self._settings.bootstrap_root is not None:
            return self._settings.bootstrap_root
        if shutil.which("go") is None:
            raise BuildError("no bootstrap toolchain: set GOVM_BOOTSTRAP_ROOT or put go on PATH")
        try:
            completed = self._runner(["go", "env", "GOROOT"], capture_output=True)
        except (SubprocessExecutionError, OSError) as exc:
            raise BuildError(f"unable to locate bootstrap toolchain: {exc}") from exc
        root = (completed.stdout or "").strip()
        if not root:
            raise BuildError("go env GOROOT reported no bootstrap toolchain")
        return Path(root)

    def _build_env(self, goroot: Path, *, target_os: str, target_arch: str) -> dict[str, str]:
        overrides: dict[str, str] = {
            "GOROOT_BOOTSTRAP": str(self.bootstrap_root()),
            "GOOS": target_os,
            "GOARCH": target_arch,
            "GOHOSTOS": self._settings.host_os,
            "GOHOSTARCH": self._settings.host_arch,
        }
        if self._settings.cgo_enabled is not None:
            overrides["CGO_ENABLED"] = "1" if self._settings.cgo_enabled else "0"
        if self._settings.cc_for_target:
            overrides["CC_FOR_TARGET"] = self._settings.cc_for_target
        return _merge_env(overrides, drop=("GOROOT", "GOPATH", "GOBIN"))

    def _run(self, args: list[str], *, cwd: Path, env: Mapping[str, str]) -> None:
        try:
            self._runner(args, cwd=cwd, env=env, capture_output=not self._settings.debug)
        except SubprocessExecutionError as exc:
            raise BuildError(str(exc), command=exc.command, returncode=exc.returncode) from exc
        except OSError as exc:
            raise BuildError(f"unable to run {args[0]}: {exc}", command=args) from exc


def _merge_env(overrides: Mapping[str, str], *, drop: tuple[str, ...] = ()) -> dict[str, str]:
    env = {key: value for key, value in os.environ.items() if key not in drop}
    env.update(overrides)
    return env


__all__ = ["Builder"]
