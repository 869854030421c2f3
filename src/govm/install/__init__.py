# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Public exports for the installation strategy layer."""

from __future__ import annotations

from .base import InstallContext, InstallResult, InstallStrategy, NotApplicableError
from .binary import PrecompiledBinary
from .build import Builder
from .existing import ExistingInstall
from .git import GitBuild
from .orchestrator import Orchestrator, default_strategies
from .source import SourceBuild

__all__ = [
    "Builder",
    "ExistingInstall",
    "GitBuild",
    "InstallContext",
    "InstallResult",
    "InstallStrategy",
    "NotApplicableError",
    "Orchestrator",
    "PrecompiledBinary",
    "SourceBuild",
    "default_strategies",
]
