# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Locally cached snapshots of the remote release catalog."""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Callable
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import FetchError
from .filesystem import atomic_write_text
from .transport import Transport
from .versions import extract_versions, sort_versions

LOGGER = logging.getLogger(__name__)

Clock = Callable[[], float]


class CatalogSnapshot(BaseModel):
    """Version-sorted set of published releases captured at ``fetched_at``."""

    model_config = ConfigDict(frozen=True)

    versions: tuple[str, ...] = Field(default_factory=tuple)
    fetched_at: float
    source_url: str

    def age(self, now: float) -> float:
        return max(now - self.fetched_at, 0.0)


class CatalogCache:
    """Serve the release catalog from disk, refreshing it when older than ``ttl``."""

    def __init__(
        self,
        path: Path,
        *,
        url: str,
        ttl: int,
        transport: Transport,
        clock: Clock = time.time,
    ) -> None:
        self._path = path
        self._url = url
        self._ttl = ttl
        self._transport = transport
        self._clock = clock

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> CatalogSnapshot | None:
        """Return the persisted snapshot, or ``None`` when absent or unreadable."""

        if not self._path.is_file():
            return None
        try:
            return CatalogSnapshot.model_validate_json(self._path.read_text(encoding="utf-8"))
        except (OSError, ValidationError) as exc:
            LOGGER.warning("ignoring unreadable catalog snapshot %s: %s", self._path, exc)
            return None

    def get(self, *, force: bool = False) -> CatalogSnapshot:
        """Return a snapshot no older than the TTL unless the network is unavailable.

        Args:
            force: Refresh from the remote catalog regardless of snapshot age.

        Returns:
            CatalogSnapshot: Fresh snapshot, or the previous one when refreshing failed.

        Raises:
            FetchError: If the catalog cannot be fetched and no snapshot exists.
        """

        current = self.load()
        now = self._clock()
        if current is not None and not force and current.age(now) <= self._ttl:
            return current

        try:
            return self.refresh()
        except FetchError:
            if current is None:
                raise
            LOGGER.warning("catalog refresh from %s failed; using snapshot from %s", self._url, self._path)
            return current

    def refresh(self) -> CatalogSnapshot:
        """Fetch the remote catalog and atomically replace the snapshot file."""

        body = self._transport.fetch(self._url).decode("utf-8", errors="replace")
        versions = sort_versions(extract_versions(body))
        if not versions:
            raise FetchError(f"catalog at {self._url} lists no versions", urls=(self._url,))
        snapshot = CatalogSnapshot(versions=versions, fetched_at=self._clock(), source_url=self._url)
        atomic_write_text(self._path, snapshot.model_dump_json(indent=2) + "\n")
        LOGGER.debug("cached %d catalog versions in %s", len(versions), self._path)
        return snapshot


class ValueCache:
    """Cache a single string value in ``path`` with its own TTL."""

    def __init__(self, path: Path, *, ttl: int, clock: Clock = time.time) -> None:
        self._path = path
        self._ttl = ttl
        self._clock = clock

    def read(self) -> str | None:
        """Return the cached value when present and younger than the TTL."""

        try:
            modified = self._path.stat().st_mtime
            value = self._path.read_text(encoding="utf-8").strip()
        except OSError:
            return None
        if not value or self._clock() - modified > self._ttl:
            return None
        return value

    def get(self, producer: Callable[[], str], *, force: bool = False) -> str:
        """Return the cached value, calling ``producer`` to refresh a stale entry."""

        if not force:
            cached = self.read()
            if cached is not None:
                return cached
        value = producer().strip()
        atomic_write_text(self._path, value + "\n")
        return value

    def invalidate(self) -> None:
        self._path.unlink(missing_ok=True)


def parse_stable_response(body: bytes) -> str:
    """Return the release named on the first line of a ``VERSION`` response.

    ``go.dev/VERSION?m=text`` answers with ``go1.22.3`` followed by build
    metadata lines.
    """

    text = body.decode("utf-8", errors="replace").strip()
    if not text:
        raise FetchError("stable version endpoint returned an empty body")
    first = text.splitlines()[0].strip()
    if text.startswith("["):
        # Some mirrors serve the JSON release feed instead.
        try:
            releases = json.loads(text)
        except json.JSONDecodeError as exc:
            raise FetchError(f"unparseable stable version response: {exc}") from exc
        stable = [entry.get("version", "") for entry in releases if isinstance(entry, dict) and entry.get("stable")]
        if not stable:
            raise FetchError("stable version feed lists no stable release")
        first = stable[0]
    return first[2:] if first.startswith("go") else first


__all__ = ["CatalogCache", "CatalogSnapshot", "ValueCache", "parse_stable_response"]
