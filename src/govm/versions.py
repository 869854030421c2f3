# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Structured Go release versions and the patterns used to find them."""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from functools import total_ordering
from typing import Final

from packaging.version import InvalidVersion, Version

# Release names as they appear in the download catalog, e.g. ``go1.21.5.src``
# in the HTML listing or ``"version": "go1.21.5"`` in the JSON feed.
VERSION_TOKEN: Final[re.Pattern[str]] = re.compile(
    r"\bgo(\d{1,4}\.\d{1,4}(?:\.\d{1,4})?(?:(?:beta|rc)\d{1,3})?)(?=\.src\b|\")"
)

_EXACT_VERSION: Final[re.Pattern[str]] = re.compile(
    r"(?P<major>\d{1,4})\.(?P<minor>\d{1,4})(?:\.(?P<patch>\d{1,4}))?(?:(?:beta|rc)\d{1,3})?"
)
_WILDCARD_BASE: Final[re.Pattern[str]] = re.compile(r"[0-9.]+")
MAX_MAJOR: Final[int] = 9999


@total_ordering
@dataclass(frozen=True, slots=True)
class GoVersion:
    """A published Go release, ordered numerically with pre-releases first."""

    raw: str
    _key: Version = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        try:
            key = Version(self.raw)
        except InvalidVersion as exc:
            raise ValueError(f"not a Go release version: {self.raw!r}") from exc
        object.__setattr__(self, "_key", key)

    @property
    def major(self) -> int:
        return self._key.major

    @property
    def minor(self) -> int:
        return self._key.minor

    @property
    def is_prerelease(self) -> bool:
        return self._key.is_prerelease

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, GoVersion):
            return NotImplemented
        if self._key == other._key:
            return self.raw < other.raw
        return self._key < other._key

    def __str__(self) -> str:
        return self.raw


def is_exact_version(text: str) -> bool:
    """Return ``True`` when ``text`` is a plausible published release name.

    Only ``major.minor[.patch][betaN|rcN]`` with bounded component lengths and a
    major component in ``[1, 9999]`` is accepted, which keeps arbitrary input
    out of catalog lookups and download URLs.
    """

    match = _EXACT_VERSION.fullmatch(text)
    if match is None:
        return False
    return 1 <= int(match.group("major")) <= MAX_MAJOR


def is_wildcard_base(base: str) -> bool:
    return bool(_WILDCARD_BASE.fullmatch(base)) and not base.startswith(".") and ".." not in base


def wildcard_pattern(base: str) -> re.Pattern[str]:
    """Return the pattern matching ``base`` optionally followed by one more component."""

    return re.compile(rf"{re.escape(base.rstrip('.'))}(?:\.[0-9]+)?")


def extract_versions(text: str) -> list[str]:
    """Return every release name mentioned in catalog ``text`` (may repeat)."""

    return VERSION_TOKEN.findall(text)


def sort_versions(versions: Iterable[str]) -> tuple[str, ...]:
    """Deduplicate ``versions`` and return them in ascending release order.

    Entries that are not valid release names are dropped.
    """

    parsed: set[GoVersion] = set()
    for entry in versions:
        try:
            parsed.add(GoVersion(entry))
        except ValueError:
            continue
    return tuple(version.raw for version in sorted(parsed))


def latest_matching(base: str, versions: Iterable[str]) -> str | None:
    """Return the highest entry of ``versions`` matching the wildcard ``base``.

    Args:
        base: Dotted numeric prefix, e.g. ``1.21`` for the ``1.21.x`` specifier.
        versions: Candidate release names in ascending release order.

    Returns:
        str | None: The last matching entry, or ``None`` when nothing matches.
    """

    pattern = wildcard_pattern(base)
    selected: str | None = None
    for entry in versions:
        if pattern.fullmatch(entry):
            selected = entry
    return selected


def previous_minor_base(version: str) -> str:
    """Return the ``major.minor`` prefix one minor release before ``version``.

    Raises:
        ValueError: If ``version`` has no earlier minor release.
    """

    parsed = GoVersion(version)
    if parsed.minor < 1:
        raise ValueError(f"{version} has no previous minor release")
    return f"{parsed.major}.{parsed.minor - 1}"


__all__ = [
    "GoVersion",
    "VERSION_TOKEN",
    "extract_versions",
    "is_exact_version",
    "is_wildcard_base",
    "latest_matching",
    "previous_minor_base",
    "sort_versions",
    "wildcard_pattern",
]
