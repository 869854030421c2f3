# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Installation from precompiled release archives."""

from __future__ import annotations

import logging

from ..fetcher import Candidate, fetch_verified
from ..models import PublishedVersion, ResolvedVersion
from ..records import Strategy
from .archive import extract_toolchain
from .base import InstallResult, InstallStrategy, NotApplicableError, published_key

LOGGER = logging.getLogger(__name__)


def download_candidates(bases: tuple[str, ...], filename: str) -> list[Candidate]:
    """Return one candidate per download base, in configured order."""

    return [Candidate(url=f"{base}/{filename}") for base in bases]


class PrecompiledBinary(InstallStrategy):
    """Download and unpack the release archive built for the host platform.

    Go cross-compiles natively, so the host archive serves every target; the
    target only changes the install key and the descriptor's overrides.
    """

    strategy = Strategy.PRECOMPILED_BINARY

    def install(self, resolved: ResolvedVersion) -> InstallResult:
        if not isinstance(resolved, PublishedVersion):
            raise NotApplicableError(f"{resolved} is not a published release")
        settings = self.settings
        layout = self._context.layout
        filename = f"go{resolved.version}.{settings.host_os}-{settings.host_arch}.tar.gz"
        bases = (settings.download_base, *settings.download_mirrors)
        archive = layout.downloads_dir / filename

        outcome = fetch_verified(download_candidates(bases, filename), archive, self._context.transport)
        if not outcome.verified:
            LOGGER.warning("installing %s without checksum verification", outcome.url)
        key = published_key(self._context, resolved)
        install_dir = layout.install_dir(resolved.version, settings.target_os, settings.target_arch)
        try:
            extract_toolchain(outcome.path, install_dir)
        finally:
            outcome.path.unlink(missing_ok=True)
        record = self._record(key=key, version=resolved.version, install_dir=install_dir)
        return self._finalize(record)


__all__ = ["PrecompiledBinary", "download_candidates"]
