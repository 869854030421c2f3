# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Installation by building a checkout of the Go source repository."""

from __future__ import annotations

from ..models import CommitRef, PublishedVersion, ResolvedVersion, SymbolicRef
from ..records import Strategy
from .base import InstallResult, InstallStrategy, git_key


class GitBuild(InstallStrategy):
    """Check out the wanted commit in the shared working tree and build it.

    Published releases are located through their ``go<version>`` tags.
    """

    strategy = Strategy.GIT_BUILD

    def install(self, resolved: ResolvedVersion) -> InstallResult:
        settings = self.settings
        repo_dir = self._context.layout.git_dir
        checkout = self._context.checkout

        match resolved:
            case CommitRef(sha=sha, original_spec=spec):
                ref, label = sha, spec
            case SymbolicRef(name=name):
                ref, label = name, name
            case PublishedVersion(version=version):
                ref, label = version, version

        checkout.ensure_repository(repo_dir)
        commit = checkout.checkout(ref, repo_dir)

        builder = self._context.builder
        builder.build(repo_dir, target_os=settings.target_os, target_arch=settings.target_arch)
        if settings.self_test:
            builder.self_test(repo_dir, target_os=settings.target_os, target_arch=settings.target_arch)
        record = self._record(key=git_key(self._context), version=label, install_dir=repo_dir, commit=commit)
        return self._finalize(record)


__all__ = ["GitBuild"]
