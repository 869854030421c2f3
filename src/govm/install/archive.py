# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Unpacking of Go release archives into install directories."""

from __future__ import annotations

import tarfile
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import Final

from ..errors import FetchError
from ..filesystem import remove_tree

ARCHIVE_ROOT: Final[str] = "go"


def _strip_root(members: Iterable[tarfile.TarInfo]) -> Iterator[tarfile.TarInfo]:
    """Yield members below the archive's top-level ``go/`` directory, re-rooted."""

    prefix = f"{ARCHIVE_ROOT}/"
    for member in members:
        if not member.name.startswith(prefix):
            continue
        member.name = member.name[len(prefix) :]
        if not member.name:
            continue
        if member.islnk() and member.linkname.startswith(prefix):
            member.linkname = member.linkname[len(prefix) :]
        yield member


def extract_toolchain(archive: Path, destination: Path) -> Path:
    """Unpack ``archive`` so that its ``go/`` directory becomes ``destination``.

    The tree is staged next to ``destination`` and renamed into place, so a
    leftover directory from an interrupted run is replaced rather than merged.

    Raises:
        FetchError: If the archive is unreadable or has no ``go/`` tree.
    """

    staging = destination.with_name(f".{destination.name}.partial")
    remove_tree(staging)
    staging.mkdir(parents=True)
    try:
        with tarfile.open(archive, "r:*") as bundle:
            members = list(_strip_root(bundle.getmembers()))
            if not members:
                raise FetchError(f"{archive.name} does not contain a {ARCHIVE_ROOT}/ tree")
            bundle.extractall(staging, members=members, filter="data")
    except (tarfile.TarError, OSError) as exc:
        remove_tree(staging)
        raise FetchError(f"unable to unpack {archive.name}: {exc}") from exc
    except FetchError:
        remove_tree(staging)
        raise
    remove_tree(destination)
    staging.rename(destination)
    return destination


__all__ = ["extract_toolchain"]
