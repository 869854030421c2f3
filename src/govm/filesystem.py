# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Idempotent filesystem helpers for state shared between invocations."""

from __future__ import annotations

import os
import shutil
import tempfile
from pathlib import Path


def atomic_write_bytes(destination: Path, payload: bytes) -> None:
    """Replace ``destination`` with ``payload`` via write-temp-then-rename.

    Concurrent readers observe either the previous file or the complete new
    one, never a partially written file.
    """

    destination.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{destination.name}.", suffix=".tmp", dir=destination.parent)
    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(payload)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_name, destination)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def atomic_write_text(destination: Path, text: str) -> None:
    atomic_write_bytes(destination, text.encode("utf-8"))


def remove_tree(path: Path) -> None:
    """Delete ``path`` whether it is a directory, file or dangling symlink."""

    if path.is_symlink() or path.is_file():
        path.unlink(missing_ok=True)
    elif path.is_dir():
        shutil.rmtree(path)


__all__ = ["atomic_write_bytes", "atomic_write_text", "remove_tree"]
