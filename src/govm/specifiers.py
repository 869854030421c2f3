# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Parsing of user supplied version specifiers."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Final

from .errors import SpecifierError
from .versions import is_exact_version, is_wildcard_base

WILDCARD_SUFFIX: Final[str] = ".x"
MAX_SPECIFIER_LENGTH: Final[int] = 256


class SpecifierKind(str, Enum):
    """Enumerate the shapes a version specifier may take."""

    STABLE = "stable"
    OLDSTABLE = "oldstable"
    TIP = "tip"
    WILDCARD = "wildcard"
    EXACT = "exact"
    SOURCE_REF = "source_ref"
    MODULE = "module"


@dataclass(frozen=True, slots=True)
class VersionSpecifier:
    """Parsed, immutable version specifier."""

    kind: SpecifierKind
    value: str
    raw: str

    def __str__(self) -> str:
        return self.raw


_KEYWORDS: Final[dict[str, SpecifierKind]] = {
    "stable": SpecifierKind.STABLE,
    "oldstable": SpecifierKind.OLDSTABLE,
    "tip": SpecifierKind.TIP,
    "module": SpecifierKind.MODULE,
}


def parse_specifier(raw: str) -> VersionSpecifier:
    """Classify ``raw`` into a :class:`VersionSpecifier`.

    Args:
        raw: Specifier as typed by the user, e.g. ``1.21.x`` or ``go1.22.3``.

    Returns:
        VersionSpecifier: The parsed specifier.

    Raises:
        SpecifierError: If ``raw`` is empty or a malformed wildcard.
    """

    text = raw.strip()
    if not text:
        raise SpecifierError(raw, "empty specifier")
    if len(text) > MAX_SPECIFIER_LENGTH:
        raise SpecifierError(raw, "specifier is too long")
    if any(char.isspace() for char in text):
        raise SpecifierError(raw, "specifier must not contain whitespace")

    keyword = _KEYWORDS.get(text.lower())
    if keyword is not None:
        return VersionSpecifier(kind=keyword, value=text.lower(), raw=raw)

    if text.endswith(WILDCARD_SUFFIX):
        base = text[: -len(WILDCARD_SUFFIX)]
        if base.startswith("go"):
            base = base[2:]
        if not is_wildcard_base(base):
            raise SpecifierError(raw, f"wildcard base {base!r} must contain only digits and dots")
        return VersionSpecifier(kind=SpecifierKind.WILDCARD, value=base, raw=raw)

    candidate = text[2:] if text.startswith("go") else text
    if is_exact_version(candidate):
        return VersionSpecifier(kind=SpecifierKind.EXACT, value=candidate, raw=raw)

    return VersionSpecifier(kind=SpecifierKind.SOURCE_REF, value=text, raw=raw)


__all__ = ["SpecifierKind", "VersionSpecifier", "parse_specifier"]
