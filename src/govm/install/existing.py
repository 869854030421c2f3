# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Reuse of installations left by earlier runs."""

from __future__ import annotations

import logging

from ..errors import GovmError
from ..models import CommitRef, PublishedVersion, ResolvedVersion, SymbolicRef
from ..records import REUSABLE_BY, Strategy
from .base import InstallContext, InstallResult, InstallStrategy, NotApplicableError, git_key, published_key

LOGGER = logging.getLogger(__name__)


class ExistingInstall(InstallStrategy):
    """Validate and reuse a prior install; never touches the network or builds.

    An install is reusable when its descriptor exists, it was produced by a
    strategy this reuse flavour accepts, and its ``go`` binary runs. The last
    check rejects directories left behind by interrupted installs.
    """

    def __init__(self, context: InstallContext, strategy: Strategy) -> None:
        if not strategy.is_reuse:
            raise ValueError(f"{strategy.value} is not a reuse strategy")
        super().__init__(context)
        self.strategy = strategy

    def install(self, resolved: ResolvedVersion) -> InstallResult:
        key = self._key_for(resolved)
        store = self._context.store
        descriptor = store.load(key)
        if descriptor is None:
            raise GovmError(f"no existing install recorded as {key}")
        if descriptor.strategy not in REUSABLE_BY[self.strategy]:
            raise GovmError(f"{key} was installed by {descriptor.strategy.value}, not reusable here")
        if isinstance(resolved, CommitRef) and not _same_commit(descriptor.commit, resolved.sha):
            raise GovmError(f"{key} is checked out at {descriptor.commit}, wanted {resolved.sha}")

        record = descriptor.to_record(self._context.layout.descriptor_path(key))
        reported = self._probe(record)
        if reported is None:
            raise GovmError(f"existing install {record.install_dir} does not run; ignoring it")
        if descriptor.alias is not None and not self.settings.no_alias:
            store.publish_alias(record.descriptor_path)
        LOGGER.debug("reusing %s (%s)", record.install_dir, reported)
        return InstallResult(record=record, descriptor=descriptor, strategy=self.strategy, reused=True)

    def _key_for(self, resolved: ResolvedVersion) -> str:
        if isinstance(resolved, PublishedVersion):
            return published_key(self._context, resolved)
        if isinstance(resolved, SymbolicRef):
            raise NotApplicableError(f"{resolved.name} moves; an existing checkout cannot be trusted")
        if self.strategy is Strategy.EXISTING_BINARY:
            raise NotApplicableError("commits are never installed from binaries")
        return git_key(self._context)


def _same_commit(recorded: str | None, wanted: str) -> bool:
    if not recorded:
        return False
    recorded, wanted = recorded.lower(), wanted.lower()
    return recorded.startswith(wanted) or wanted.startswith(recorded)


__all__ = ["ExistingInstall"]
