# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Download artifacts from an ordered list of mirrors with digest checks."""

from __future__ import annotations

import logging
import os
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Final

from .errors import FetchError
from .transport import Transport, digest_matches

LOGGER = logging.getLogger(__name__)

DIGEST_SUFFIX: Final[str] = ".sha256"


@dataclass(frozen=True, slots=True)
class Candidate:
    """A location that may serve the wanted artifact."""

    url: str
    digest_url: str | None = None

    @property
    def checksum_url(self) -> str:
        return self.digest_url or self.url + DIGEST_SUFFIX


@dataclass(frozen=True, slots=True)
class FetchOutcome:
    """Result of a successful :func:`fetch_verified` call."""

    path: Path
    url: str
    verified: bool


def fetch_verified(
    candidates: Sequence[Candidate],
    destination: Path,
    transport: Transport,
) -> FetchOutcome:
    """Download the first candidate that passes digest verification.

    Each candidate is streamed in order to a staging file beside
    ``destination`` without being held in memory. When ``<url>.sha256`` is reachable the
    artifact must match it; a mismatch abandons that candidate only. A missing
    digest file is tolerated and the artifact is accepted unverified. The file
    only appears at ``destination`` once a candidate succeeds.

    Args:
        candidates: Ordered download locations.
        destination: File path receiving the artifact.
        transport: Transport used for both artifact and digest requests.

    Returns:
        FetchOutcome: Path, winning URL and whether a digest was checked.

    Raises:
        FetchError: If every candidate failed.
    """

    staging = destination.with_name(f".{destination.name}.part")
    attempted: list[str] = []
    errors: list[str] = []
    for candidate in candidates:
        attempted.append(candidate.url)
        try:
            actual = transport.download(candidate.url, staging)
        except FetchError as exc:
            LOGGER.debug("candidate %s unavailable: %s", candidate.url, exc)
            errors.append(str(exc))
            continue

        verified = False
        try:
            digest_text = transport.fetch(candidate.checksum_url).decode("utf-8", errors="replace")
        except FetchError:
            LOGGER.debug("no digest published at %s; accepting unverified", candidate.checksum_url)
        else:
            if not digest_matches(actual, digest_text):
                staging.unlink(missing_ok=True)
                LOGGER.warning("sha256 mismatch for %s; trying next candidate", candidate.url)
                errors.append(f"sha256 mismatch for {candidate.url}")
                continue
            verified = True

        os.replace(staging, destination)
        return FetchOutcome(path=destination, url=candidate.url, verified=verified)

    staging.unlink(missing_ok=True)
    destination.unlink(missing_ok=True)
    detail = "; ".join(errors) if errors else "no candidates"
    raise FetchError(f"unable to download {destination.name}: {detail}", urls=attempted)


__all__ = ["Candidate", "DIGEST_SUFFIX", "FetchOutcome", "fetch_verified"]
