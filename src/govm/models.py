# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Resolution results passed from the resolver to the installer."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Final, TypeAlias

from .versions import is_exact_version

COMMIT_SHA: Final[re.Pattern[str]] = re.compile(r"[0-9a-fA-F]{6,}")


@dataclass(frozen=True, slots=True)
class PublishedVersion:
    """A release named in the catalog, e.g. ``1.21.5``."""

    version: str

    def __post_init__(self) -> None:
        if not is_exact_version(self.version):
            raise ValueError(f"not a published version name: {self.version!r}")

    def __str__(self) -> str:
        return self.version


@dataclass(frozen=True, slots=True)
class CommitRef:
    """A source-control commit resolved from ``original_spec``."""

    sha: str
    original_spec: str

    def __post_init__(self) -> None:
        if not COMMIT_SHA.fullmatch(self.sha):
            raise ValueError(f"not a commit hash: {self.sha!r}")

    def __str__(self) -> str:
        return self.sha


@dataclass(frozen=True, slots=True)
class SymbolicRef:
    """A moving reference (``tip``) resolved only when the checkout happens."""

    name: str

    def __str__(self) -> str:
        return self.name


ResolvedVersion: TypeAlias = PublishedVersion | CommitRef | SymbolicRef


__all__ = [
    "CommitRef",
    "PublishedVersion",
    "ResolvedVersion",
    "SymbolicRef",
]
