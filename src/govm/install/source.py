# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Installation by compiling a published source release."""

from __future__ import annotations

from ..fetcher import fetch_verified
from ..models import PublishedVersion, ResolvedVersion
from ..records import Strategy
from .archive import extract_toolchain
from .base import InstallResult, InstallStrategy, NotApplicableError, published_key
from .binary import download_candidates


class SourceBuild(InstallStrategy):
    """Download ``go<version>.src.tar.gz``, unpack it and run the build."""

    strategy = Strategy.SOURCE_BUILD

    def install(self, resolved: ResolvedVersion) -> InstallResult:
        if not isinstance(resolved, PublishedVersion):
            raise NotApplicableError(f"{resolved} is not a published release")
        settings = self.settings
        layout = self._context.layout
        filename = f"go{resolved.version}.src.tar.gz"
        bases = (settings.download_base, *settings.download_mirrors)
        archive = layout.downloads_dir / filename

        outcome = fetch_verified(download_candidates(bases, filename), archive, self._context.transport)
        install_dir = layout.install_dir(resolved.version, settings.target_os, settings.target_arch)
        try:
            extract_toolchain(outcome.path, install_dir)
        finally:
            outcome.path.unlink(missing_ok=True)

        builder = self._context.builder
        builder.build(install_dir, target_os=settings.target_os, target_arch=settings.target_arch)
        if settings.self_test:
            builder.self_test(install_dir, target_os=settings.target_os, target_arch=settings.target_arch)
        record = self._record(
            key=published_key(self._context, resolved),
            version=resolved.version,
            install_dir=install_dir,
        )
        return self._finalize(record)


__all__ = ["SourceBuild"]
