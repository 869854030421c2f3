# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Installation strategies and the records they produce."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Final

from .config import InstallMode


class Strategy(str, Enum):
    """Closed set of ways to obtain a working toolchain."""

    EXISTING_BINARY = "existing-binary"
    EXISTING_SOURCE = "existing-source"
    PRECOMPILED_BINARY = "binary"
    SOURCE_BUILD = "source"
    GIT_BUILD = "git"

    @property
    def is_reuse(self) -> bool:
        return self in (Strategy.EXISTING_BINARY, Strategy.EXISTING_SOURCE)


# Fallback order per install mode. ``auto`` reuses any prior install before
# attempting network or build work.
STRATEGY_ORDER: Final[dict[InstallMode, tuple[Strategy, ...]]] = {
    InstallMode.BINARY: (Strategy.EXISTING_BINARY, Strategy.PRECOMPILED_BINARY),
    InstallMode.SOURCE: (Strategy.EXISTING_SOURCE, Strategy.SOURCE_BUILD, Strategy.GIT_BUILD),
    InstallMode.GIT: (Strategy.GIT_BUILD,),
    InstallMode.AUTO: (
        Strategy.EXISTING_BINARY,
        Strategy.EXISTING_SOURCE,
        Strategy.PRECOMPILED_BINARY,
        Strategy.SOURCE_BUILD,
        Strategy.GIT_BUILD,
    ),
}

# Reuse strategy -> strategies whose records it may pick up.
REUSABLE_BY: Final[dict[Strategy, frozenset[Strategy]]] = {
    Strategy.EXISTING_BINARY: frozenset({Strategy.PRECOMPILED_BINARY}),
    Strategy.EXISTING_SOURCE: frozenset({Strategy.SOURCE_BUILD, Strategy.GIT_BUILD}),
}


@dataclass(frozen=True, slots=True)
class InstallationRecord:
    """A completed install: where it lives, how it was made, how to activate it."""

    key: str
    version: str
    os: str
    arch: str
    install_dir: Path
    descriptor_path: Path
    strategy: Strategy
    commit: str | None = None

    @property
    def bin_dir(self) -> Path:
        return self.install_dir / "bin"

    @property
    def go_binary(self) -> Path:
        return self.bin_dir / "go"


__all__ = ["InstallationRecord", "REUSABLE_BY", "STRATEGY_ORDER", "Strategy"]
