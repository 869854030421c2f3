# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Environment descriptors: persisted activation metadata for installs."""

from __future__ import annotations

import logging
import os
import shlex
from pathlib import Path
from typing import Final

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .config import Settings
from .filesystem import atomic_write_text
from .layout import ALIAS_NAME, DESCRIPTOR_SUFFIX, PrefixLayout
from .records import InstallationRecord, Strategy

LOGGER = logging.getLogger(__name__)

ROOT_VARIABLE: Final[str] = "GOROOT"
OS_VARIABLE: Final[str] = "GOOS"
ARCH_VARIABLE: Final[str] = "GOARCH"
DESCRIPTOR_VARIABLE: Final[str] = "GOVM_ENV"


class EnvironmentDescriptor(BaseModel):
    """Variables, path prefix and record metadata needed to activate an install.

    A ``None`` value in :attr:`variables` is an unset directive.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    version: str
    os: str
    arch: str
    strategy: Strategy
    install_dir: Path
    commit: str | None = None
    variables: dict[str, str | None] = Field(default_factory=dict)
    path_prefix: tuple[Path, ...] = ()
    alias: Path | None = None

    def to_record(self, descriptor_path: Path) -> InstallationRecord:
        return InstallationRecord(
            key=self.name,
            version=self.version,
            os=self.os,
            arch=self.arch,
            install_dir=self.install_dir,
            descriptor_path=descriptor_path,
            strategy=self.strategy,
            commit=self.commit,
        )

    def to_shell(self) -> str:
        """Render POSIX ``sh`` statements that activate this environment."""

        lines: list[str] = []
        for name, value in sorted(self.variables.items()):
            if value is None:
                lines.append(f"unset {name};")
            else:
                lines.append(f"export {name}={shlex.quote(value)};")
        if self.path_prefix:
            prefix = ":".join(shlex.quote(str(entry)) for entry in self.path_prefix)
            lines.append(f'export PATH={prefix}:"${{PATH}}";')
        return "\n".join(lines) + "\n"


class DescriptorStore:
    """Persist descriptors under the env prefix and maintain the ``latest`` alias.

    A record exists if and only if its descriptor file exists.
    """

    def __init__(self, settings: Settings, layout: PrefixLayout) -> None:
        self._settings = settings
        self._layout = layout

    def describe(self, record: InstallationRecord) -> EnvironmentDescriptor:
        """Build, persist and return the descriptor for ``record``.

        When the install targets the host platform the OS/architecture
        variables are unset and, unless aliasing is disabled, the ``latest``
        alias is refreshed to point at the new descriptor. Cross installs record
        explicit overrides and never move the alias.
        """

        host_native = record.os == self._settings.host_os and record.arch == self._settings.host_arch
        install_dir = record.install_dir.absolute()
        variables: dict[str, str | None] = {
            ROOT_VARIABLE: str(install_dir),
            OS_VARIABLE: None if host_native else record.os,
            ARCH_VARIABLE: None if host_native else record.arch,
            DESCRIPTOR_VARIABLE: str(record.descriptor_path),
        }
        if self._settings.cgo_enabled is not None:
            variables["CGO_ENABLED"] = "1" if self._settings.cgo_enabled else "0"
        alias = self._layout.alias_path if host_native and not self._settings.no_alias else None
        descriptor = EnvironmentDescriptor(
            name=record.key,
            version=record.version,
            os=record.os,
            arch=record.arch,
            strategy=record.strategy,
            install_dir=install_dir,
            commit=record.commit,
            variables=variables,
            path_prefix=(install_dir / "bin",),
            alias=alias,
        )
        atomic_write_text(record.descriptor_path, descriptor.model_dump_json(indent=2) + "\n")
        if alias is not None:
            self.publish_alias(record.descriptor_path)
        LOGGER.debug("wrote environment descriptor %s", record.descriptor_path)
        return descriptor

    def load(self, key: str) -> EnvironmentDescriptor | None:
        """Return the descriptor named ``key`` or ``None`` when it does not exist."""

        return self._read(self._layout.descriptor_path(key))

    def remove(self, key: str) -> None:
        """Delete the descriptor named ``key`` and any alias pointing at it."""

        path = self._layout.descriptor_path(key)
        alias = self._layout.alias_path
        if alias.is_symlink():
            if Path(os.readlink(alias)).name == path.name:
                alias.unlink(missing_ok=True)
        elif alias.is_file():
            copied = self._read(alias)
            if copied is not None and copied.name == key:
                alias.unlink(missing_ok=True)
        path.unlink(missing_ok=True)

    def list_installed(self) -> list[EnvironmentDescriptor]:
        """Return every persisted descriptor, alias excluded, sorted by name."""

        if not self._layout.env_prefix.is_dir():
            return []
        descriptors: list[EnvironmentDescriptor] = []
        for path in sorted(self._layout.env_prefix.glob(f"*{DESCRIPTOR_SUFFIX}")):
            if path.name == f"{ALIAS_NAME}{DESCRIPTOR_SUFFIX}":
                continue
            descriptor = self._read(path)
            if descriptor is not None:
                descriptors.append(descriptor)
        return descriptors

    def publish_alias(self, descriptor_path: Path) -> None:
        """Atomically point the ``latest`` alias at ``descriptor_path``."""

        alias = self._layout.alias_path
        alias.parent.mkdir(parents=True, exist_ok=True)
        staging = alias.with_name(f".{alias.name}.{os.getpid()}.tmp")
        staging.unlink(missing_ok=True)
        try:
            staging.symlink_to(descriptor_path.name)
        except OSError:
            # Filesystems without symlink support get a copy instead.
            atomic_write_text(alias, descriptor_path.read_text(encoding="utf-8"))
            return
        os.replace(staging, alias)

    def _read(self, path: Path) -> EnvironmentDescriptor | None:
        if not path.is_file():
            return None
        try:
            return EnvironmentDescriptor.model_validate_json(path.read_text(encoding="utf-8"))
        except (OSError, ValidationError) as exc:
            LOGGER.warning("ignoring unreadable descriptor %s: %s", path, exc)
            return None


__all__ = [
    "ARCH_VARIABLE",
    "DESCRIPTOR_VARIABLE",
    "DescriptorStore",
    "EnvironmentDescriptor",
    "OS_VARIABLE",
    "ROOT_VARIABLE",
]
