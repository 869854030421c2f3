# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Command-line interface for govm."""

from __future__ import annotations

from .app import main

__all__ = ["main"]
