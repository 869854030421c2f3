# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Strategy abstraction shared by every installation method."""

from __future__ import annotations

import logging
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

from ..checkout import CheckoutResolver
from ..config import Settings
from ..environment import DescriptorStore, EnvironmentDescriptor
from ..errors import BuildError, GovmError
from ..layout import PrefixLayout, git_record_key, record_key
from ..models import PublishedVersion, ResolvedVersion
from ..process_utils import CommandRunner, SubprocessExecutionError
from ..records import InstallationRecord, Strategy
from ..transport import Transport
from .build import Builder

LOGGER = logging.getLogger(__name__)


class NotApplicableError(GovmError):
    """Raised by a strategy that cannot handle the resolved version at all."""


@dataclass(frozen=True, slots=True)
class InstallContext:
    """Collaborators shared by the strategies of one invocation."""

    settings: Settings
    layout: PrefixLayout
    store: DescriptorStore
    transport: Transport
    checkout: CheckoutResolver
    builder: Builder
    runner: CommandRunner


@dataclass(frozen=True, slots=True)
class InstallResult:
    """Outcome of a successful strategy."""

    record: InstallationRecord
    descriptor: EnvironmentDescriptor
    strategy: Strategy
    reused: bool = False


def published_key(context: InstallContext, resolved: PublishedVersion) -> str:
    settings = context.settings
    return record_key(resolved.version, settings.target_os, settings.target_arch)


def git_key(context: InstallContext) -> str:
    settings = context.settings
    return git_record_key(settings.target_os, settings.target_arch)


class InstallStrategy(ABC):
    """Strategy object responsible for producing one kind of installation."""

    strategy: Strategy

    def __init__(self, context: InstallContext) -> None:
        self._context = context

    @property
    def settings(self) -> Settings:
        return self._context.settings

    @abstractmethod
    def install(self, resolved: ResolvedVersion) -> InstallResult:
        """Produce a complete installation for ``resolved`` or raise a :class:`GovmError`."""

        raise NotImplementedError

    def _record(
        self,
        *,
        key: str,
        version: str,
        install_dir: Path,
        commit: str | None = None,
    ) -> InstallationRecord:
        return InstallationRecord(
            key=key,
            version=version,
            os=self.settings.target_os,
            arch=self.settings.target_arch,
            install_dir=install_dir,
            descriptor_path=self._context.layout.descriptor_path(key),
            strategy=self.strategy,
            commit=commit,
        )

    def _finalize(self, record: InstallationRecord) -> InstallResult:
        """Check the toolchain runs, then persist its descriptor."""

        reported = self._probe(record)
        if reported is None:
            raise BuildError(f"{record.go_binary} does not run after {self.strategy.value} install")
        LOGGER.debug("%s reports %s", record.go_binary, reported)
        descriptor = self._context.store.describe(record)
        return InstallResult(record=record, descriptor=descriptor, strategy=self.strategy)

    def _probe(self, record: InstallationRecord) -> str | None:
        """Return the ``go version`` output of ``record``, or ``None`` when it does not run."""

        binary = record.go_binary
        if not binary.is_file():
            return None
        env = {key: value for key, value in os.environ.items() if key not in ("GOOS", "GOARCH")}
        env["GOROOT"] = str(record.install_dir)
        try:
            completed = self._context.runner(
                [str(binary), "version"],
                env=env,
                capture_output=True,
            )
        except (SubprocessExecutionError, OSError) as exc:
            LOGGER.debug("version probe of %s failed: %s", binary, exc)
            return None
        output = (completed.stdout or "").strip()
        if not output.startswith("go version"):
            return None
        return output


__all__ = [
    "InstallContext",
    "InstallResult",
    "InstallStrategy",
    "NotApplicableError",
    "git_key",
    "published_key",
]
