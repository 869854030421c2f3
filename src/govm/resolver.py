# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Turn version specifiers into concrete releases or commits."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Final

from .catalog import CatalogCache, ValueCache, parse_stable_response
from .checkout import TIP, CheckoutResolver
from .config import Settings
from .errors import NotFoundError, SpecifierError
from .layout import PrefixLayout
from .models import CommitRef, PublishedVersion, ResolvedVersion, SymbolicRef
from .specifiers import SpecifierKind, VersionSpecifier, parse_specifier
from .transport import Transport
from .versions import is_exact_version, latest_matching, previous_minor_base

LOGGER = logging.getLogger(__name__)

GO_MOD: Final[str] = "go.mod"
_GO_DIRECTIVE: Final[re.Pattern[str]] = re.compile(r"^go\s+(\d{1,4}\.\d{1,4}(?:\.\d{1,4})?)\s*$", re.MULTILINE)


class VersionResolver:
    """Resolve specifiers using the catalog cache and the git checkout resolver.

    Given the same catalog snapshot and repository state, resolution is
    deterministic.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        layout: PrefixLayout,
        catalog: CatalogCache,
        stable: ValueCache,
        oldstable: ValueCache,
        checkout: CheckoutResolver,
        transport: Transport,
        workdir: Path | None = None,
    ) -> None:
        self._settings = settings
        self._layout = layout
        self._catalog = catalog
        self._stable = stable
        self._oldstable = oldstable
        self._checkout = checkout
        self._transport = transport
        self._workdir = workdir or Path.cwd()

    def resolve(self, spec: str | VersionSpecifier) -> ResolvedVersion:
        """Return the release or commit ``spec`` designates.

        Args:
            spec: Raw specifier text or an already parsed specifier.

        Returns:
            ResolvedVersion: Published release, commit, or deferred ``tip`` marker.

        Raises:
            SpecifierError: If ``spec`` is malformed.
            NotFoundError: If no catalog entry matches a wildcard.
            FetchError: If a remote endpoint is needed but unreachable.
            CheckoutError: If a source reference cannot be resolved.
        """

        parsed = parse_specifier(spec) if isinstance(spec, str) else spec
        LOGGER.debug("resolving %s specifier %r", parsed.kind.value, parsed.raw)
        match parsed.kind:
            case SpecifierKind.STABLE:
                return PublishedVersion(self.stable())
            case SpecifierKind.OLDSTABLE:
                return PublishedVersion(self.oldstable())
            case SpecifierKind.TIP:
                return SymbolicRef(TIP)
            case SpecifierKind.WILDCARD:
                return PublishedVersion(self.resolve_wildcard(parsed.value, spec=parsed.raw))
            case SpecifierKind.EXACT:
                return PublishedVersion(parsed.value)
            case SpecifierKind.MODULE:
                return self._resolve_module(parsed)
            case SpecifierKind.SOURCE_REF:
                return self._resolve_source_ref(parsed)
        raise SpecifierError(parsed.raw, f"unsupported specifier kind {parsed.kind!r}")

    def stable(self) -> str:
        """Return the current stable release from the authoritative endpoint."""

        value = self._stable.get(self._fetch_stable, force=self._settings.force_known_update)
        if not is_exact_version(value):
            self._stable.invalidate()
            raise NotFoundError("stable", context=f"endpoint reported unusable version {value!r}")
        return value

    def oldstable(self) -> str:
        """Return the newest release of the minor line preceding stable."""

        return self._oldstable.get(self._compute_oldstable, force=self._settings.force_known_update)

    def resolve_wildcard(self, base: str, *, spec: str | None = None) -> str:
        """Return the highest catalog release matching ``base`` (``1.21`` for ``1.21.x``)."""

        snapshot = self._catalog.get(force=self._settings.force_known_update)
        selected = latest_matching(base, snapshot.versions)
        if selected is None:
            raise NotFoundError(spec or f"{base}.x", context=f"no catalog entry starts with {base}")
        return selected

    def _fetch_stable(self) -> str:
        return parse_stable_response(self._transport.fetch(self._settings.stable_url))

    def _compute_oldstable(self) -> str:
        current = self.stable()
        try:
            base = previous_minor_base(current)
        except ValueError as exc:
            raise NotFoundError("oldstable", context=str(exc)) from exc
        LOGGER.debug("stable %s gives oldstable search %s.x", current, base)
        return self.resolve_wildcard(base, spec="oldstable")

    def _resolve_source_ref(self, parsed: VersionSpecifier) -> CommitRef:
        repo_dir = self._layout.git_dir
        self._checkout.ensure_repository(repo_dir)
        sha = self._checkout.checkout(parsed.value, repo_dir)
        return CommitRef(sha=sha, original_spec=parsed.raw)

    def _resolve_module(self, parsed: VersionSpecifier) -> PublishedVersion:
        go_mod = find_go_mod(self._workdir)
        if go_mod is None:
            raise SpecifierError(parsed.raw, f"no {GO_MOD} found above {self._workdir}")
        match = _GO_DIRECTIVE.search(go_mod.read_text(encoding="utf-8"))
        if match is None:
            raise SpecifierError(parsed.raw, f"{go_mod} has no go directive")
        declared = match.group(1)
        if declared.count(".") == 2:
            return PublishedVersion(declared)
        return PublishedVersion(self.resolve_wildcard(declared, spec=f"{declared}.x"))


def find_go_mod(start: Path) -> Path | None:
    """Return the nearest ``go.mod`` at or above ``start``."""

    for directory in (start, *start.parents):
        candidate = directory / GO_MOD
        if candidate.is_file():
            return candidate
    return None


__all__ = ["VersionResolver", "find_go_mod"]
