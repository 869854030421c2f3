# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Ordered fallback across installation strategies."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path

from ..config import InstallMode
from ..errors import GovmError, StrategyExhaustedError
from ..filesystem import remove_tree
from ..models import PublishedVersion, ResolvedVersion
from ..records import STRATEGY_ORDER, Strategy
from .base import InstallContext, InstallResult, InstallStrategy, NotApplicableError, git_key, published_key
from .binary import PrecompiledBinary
from .existing import ExistingInstall
from .git import GitBuild
from .source import SourceBuild

LOGGER = logging.getLogger(__name__)


def default_strategies(context: InstallContext) -> dict[Strategy, InstallStrategy]:
    """Return one handler per :class:`Strategy` bound to ``context``."""

    return {
        Strategy.EXISTING_BINARY: ExistingInstall(context, Strategy.EXISTING_BINARY),
        Strategy.EXISTING_SOURCE: ExistingInstall(context, Strategy.EXISTING_SOURCE),
        Strategy.PRECOMPILED_BINARY: PrecompiledBinary(context),
        Strategy.SOURCE_BUILD: SourceBuild(context),
        Strategy.GIT_BUILD: GitBuild(context),
    }


class Orchestrator:
    """Try the strategies configured for the install mode until one succeeds."""

    def __init__(
        self,
        context: InstallContext,
        strategies: Mapping[Strategy, InstallStrategy] | None = None,
    ) -> None:
        self._context = context
        self._strategies = dict(strategies) if strategies is not None else default_strategies(context)

    @property
    def mode(self) -> InstallMode:
        return self._context.settings.install_mode

    def plan(self) -> tuple[Strategy, ...]:
        return STRATEGY_ORDER[self.mode]

    def install(self, resolved: ResolvedVersion, *, force: bool = False) -> InstallResult:
        """Install ``resolved`` with the first strategy of the mode that succeeds.

        Args:
            resolved: Output of the version resolver.
            force: Remove any existing record first.

        Returns:
            InstallResult: Record and descriptor of the completed install.

        Raises:
            StrategyExhaustedError: If every configured strategy failed.
        """

        if force or self._context.settings.force_reinstall:
            self.remove(resolved)

        failures: list[tuple[str, Exception]] = []
        for strategy in self.plan():
            handler = self._strategies[strategy]
            try:
                result = handler.install(resolved)
            except NotApplicableError as exc:
                LOGGER.debug("%s skipped: %s", strategy.value, exc)
                failures.append((strategy.value, exc))
                continue
            except (GovmError, OSError) as exc:
                if strategy.is_reuse:
                    LOGGER.debug("%s unavailable: %s", strategy.value, exc)
                else:
                    LOGGER.warning("%s install of %s failed: %s", strategy.value, resolved, exc)
                failures.append((strategy.value, exc))
                continue
            LOGGER.debug("%s succeeded for %s", strategy.value, resolved)
            return result
        raise StrategyExhaustedError(self.mode.value, failures)

    def record_keys(self, resolved: ResolvedVersion) -> tuple[str, ...]:
        """Return the record keys an install of ``resolved`` may occupy under this mode."""

        if isinstance(resolved, PublishedVersion) and self.mode is not InstallMode.GIT:
            return (published_key(self._context, resolved),)
        return (git_key(self._context),)

    def remove(self, resolved: ResolvedVersion) -> list[str]:
        """Delete the records ``resolved`` maps to; return the keys that existed.

        The descriptor goes first: an install directory without a descriptor is
        an absent record, so an interruption between the two deletions is safe.
        """

        store = self._context.store
        removed: list[str] = []
        for key in self.record_keys(resolved):
            descriptor = store.load(key)
            store.remove(key)
            if descriptor is not None:
                removed.append(key)
                remove_tree(descriptor.install_dir)
            else:
                leftover = self._install_dir_for(key, resolved)
                if leftover is not None:
                    remove_tree(leftover)
        return removed

    def _install_dir_for(self, key: str, resolved: ResolvedVersion) -> Path | None:
        layout = self._context.layout
        settings = self._context.settings
        if isinstance(resolved, PublishedVersion) and key == published_key(self._context, resolved):
            return layout.install_dir(resolved.version, settings.target_os, settings.target_arch)
        # The shared checkout is reset, not rebuilt from scratch, when it has no record.
        return None


__all__ = ["Orchestrator", "default_strategies"]
