# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""HTTP transport and digest verification used for remote artifacts."""

from __future__ import annotations

import hashlib
import hmac
import logging
import re
from pathlib import Path
from typing import Final, Protocol

import requests

from .errors import FetchError

LOGGER = logging.getLogger(__name__)

USER_AGENT: Final[str] = "govm"
CHUNK_SIZE: Final[int] = 1 << 16
_SHA256_HEX: Final[re.Pattern[str]] = re.compile(r"[0-9a-f]{64}")


class Transport(Protocol):
    """Retrieve the body stored at a URL."""

    def fetch(self, url: str) -> bytes:
        """Return the body of ``url`` or raise :class:`FetchError`."""
        ...

    def download(self, url: str, destination: Path) -> str:
        """Stream ``url`` into ``destination`` and return the SHA-256 of what was written."""
        ...


class RequestsTransport:
    """:class:`Transport` backed by a shared ``requests`` session.

    No timeout is applied unless one is passed explicitly; the network stack
    decides how long a stalled download may take.
    """

    def __init__(self, session: requests.Session | None = None, *, timeout: float | None = None) -> None:
        self._session = session or requests.Session()
        self._session.headers.setdefault("User-Agent", USER_AGENT)
        self._timeout = timeout

    def fetch(self, url: str) -> bytes:
        LOGGER.debug("fetching %s", url)
        try:
            with self._session.get(url, stream=True, timeout=self._timeout) as response:
                response.raise_for_status()
                return b"".join(response.iter_content(chunk_size=CHUNK_SIZE))
        except requests.RequestException as exc:
            raise FetchError(f"failed to fetch {url}: {exc}", urls=(url,)) from exc

    def download(self, url: str, destination: Path) -> str:
        """Write the body of ``url`` to ``destination`` chunk by chunk.

        A partially written ``destination`` is removed when the transfer fails.

        Returns:
            str: Hex SHA-256 of the bytes written.

        Raises:
            FetchError: If the request fails or the server answers with an error.
        """

        LOGGER.debug("downloading %s to %s", url, destination)
        destination.parent.mkdir(parents=True, exist_ok=True)
        digest = hashlib.sha256()
        try:
            with self._session.get(url, stream=True, timeout=self._timeout) as response:
                response.raise_for_status()
                with destination.open("wb") as handle:
                    for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                        handle.write(chunk)
                        digest.update(chunk)
        except requests.RequestException as exc:
            destination.unlink(missing_ok=True)
            raise FetchError(f"failed to fetch {url}: {exc}", urls=(url,)) from exc
        except BaseException:
            destination.unlink(missing_ok=True)
            raise
        return digest.hexdigest()


def sha256_hexdigest(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def digest_matches(actual: str, digest_text: str) -> bool:
    """Return ``True`` when ``actual`` equals the digest published in ``digest_text``.

    Digest files hold the hex SHA-256 optionally followed by a file name, as
    produced by ``sha256sum``. A leading byte-order mark is ignored; any first
    token that is not 64 hex digits never matches.
    """

    tokens = digest_text.lstrip("\ufeff").strip().split()
    if not tokens:
        return False
    expected = tokens[0].lower()
    if not _SHA256_HEX.fullmatch(expected):
        return False
    return hmac.compare_digest(expected.encode("ascii"), actual.lower().encode("ascii"))



__all__ = ["RequestsTransport", "Transport", "digest_matches", "sha256_hexdigest"]
