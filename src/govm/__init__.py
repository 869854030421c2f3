# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Go toolchain version manager."""

from __future__ import annotations

from .config import InstallMode, Settings
from .environment import EnvironmentDescriptor
from .errors import GovmError
from .models import CommitRef, PublishedVersion, ResolvedVersion, SymbolicRef
from .service import Govm, InstallOutcome

__version__ = "0.1.0"

__all__ = [
    "CommitRef",
    "EnvironmentDescriptor",
    "Govm",
    "GovmError",
    "InstallMode",
    "InstallOutcome",
    "PublishedVersion",
    "ResolvedVersion",
    "Settings",
    "SymbolicRef",
    "__version__",
]
