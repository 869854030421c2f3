# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Filesystem layout shared by the catalog cache, installs and descriptors."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Final

from .config import Settings

GIT_CHECKOUT_DIRNAME: Final[str] = "go"
DESCRIPTOR_SUFFIX: Final[str] = ".env"
ALIAS_NAME: Final[str] = "latest"
CATALOG_FILENAME: Final[str] = "known-versions.json"
STABLE_FILENAME: Final[str] = "stable-version"
OLDSTABLE_FILENAME: Final[str] = "oldstable-version"
DOWNLOADS_SUBDIR: Final[str] = "downloads"


def record_key(version: str, os_name: str, arch: str) -> str:
    """Return the deterministic name shared by an install directory and its descriptor."""

    return f"go{version}.{os_name}.{arch}"


def git_record_key(os_name: str, arch: str) -> str:
    return f"go.git.{os_name}.{arch}"


@dataclass(frozen=True, slots=True)
class PrefixLayout:
    """Directory layout rooted at the configured version and env prefixes."""

    version_prefix: Path
    env_prefix: Path
    tmp_dir: Path

    @classmethod
    def from_settings(cls, settings: Settings) -> PrefixLayout:
        return cls(
            version_prefix=settings.version_prefix,
            env_prefix=settings.env_prefix,
            tmp_dir=settings.tmp_dir,
        )

    @property
    def catalog_file(self) -> Path:
        return self.version_prefix / CATALOG_FILENAME

    @property
    def stable_file(self) -> Path:
        return self.version_prefix / STABLE_FILENAME

    @property
    def oldstable_file(self) -> Path:
        return self.version_prefix / OLDSTABLE_FILENAME

    @property
    def git_dir(self) -> Path:
        """Return the single working tree shared by source-control installs."""

        return self.version_prefix / GIT_CHECKOUT_DIRNAME

    @property
    def downloads_dir(self) -> Path:
        return self.tmp_dir / "govm" / DOWNLOADS_SUBDIR

    @property
    def alias_path(self) -> Path:
        return self.env_prefix / f"{ALIAS_NAME}{DESCRIPTOR_SUFFIX}"

    def install_dir(self, version: str, os_name: str, arch: str) -> Path:
        return self.version_prefix / record_key(version, os_name, arch)

    def descriptor_path(self, key: str) -> Path:
        return self.env_prefix / f"{key}{DESCRIPTOR_SUFFIX}"

    def ensure_directories(self) -> None:
        for path in (self.version_prefix, self.env_prefix):
            path.mkdir(parents=True, exist_ok=True)


__all__ = [
    "ALIAS_NAME",
    "DESCRIPTOR_SUFFIX",
    "PrefixLayout",
    "git_record_key",
    "record_key",
]
