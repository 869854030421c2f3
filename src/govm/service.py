# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Application service wiring the resolver, installer and descriptor store."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from .catalog import CatalogCache, ValueCache
from .checkout import CheckoutResolver
from .config import Settings
from .environment import DescriptorStore, EnvironmentDescriptor
from .errors import NotInstalledError
from .install import Builder, InstallContext, InstallResult, Orchestrator
from .layout import PrefixLayout
from .models import ResolvedVersion
from .process_utils import CommandRunner, run_command
from .resolver import VersionResolver
from .transport import RequestsTransport, Transport


@dataclass(frozen=True, slots=True)
class InstallOutcome:
    """What an install request resolved to and how it was satisfied."""

    spec: str
    resolved: ResolvedVersion
    result: InstallResult

    @property
    def descriptor(self) -> EnvironmentDescriptor:
        return self.result.descriptor


class Govm:
    """Entry point behind every CLI command.

    Args:
        settings: Frozen configuration for this invocation.
        transport: HTTP transport; a ``requests`` session by default.
        runner: Subprocess runner used for git, builds and version probes.
        workdir: Directory searched for ``go.mod`` by the ``module`` specifier.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        transport: Transport | None = None,
        runner: CommandRunner = run_command,
        workdir: Path | None = None,
    ) -> None:
        self.settings = settings
        self._runner = runner
        self._workdir = workdir
        self.layout = PrefixLayout.from_settings(settings)
        self.transport = transport or RequestsTransport()
        self.store = DescriptorStore(settings, self.layout)
        self.catalog = CatalogCache(
            self.layout.catalog_file,
            url=settings.catalog_url,
            ttl=settings.catalog_ttl,
            transport=self.transport,
        )
        self.checkout = CheckoutResolver(settings, runner=runner)
        self.resolver = VersionResolver(
            settings,
            layout=self.layout,
            catalog=self.catalog,
            stable=ValueCache(self.layout.stable_file, ttl=settings.stable_ttl),
            oldstable=ValueCache(self.layout.oldstable_file, ttl=settings.stable_ttl),
            checkout=self.checkout,
            transport=self.transport,
            workdir=workdir,
        )
        self.orchestrator = Orchestrator(
            InstallContext(
                settings=settings,
                layout=self.layout,
                store=self.store,
                transport=self.transport,
                checkout=self.checkout,
                builder=Builder(settings, runner=runner),
                runner=runner,
            )
        )

    def resolve(self, spec: str) -> ResolvedVersion:
        return self.resolver.resolve(spec)

    def install(self, spec: str, prefix: Path | None = None, *, force: bool = False) -> InstallOutcome:
        """Resolve ``spec`` and install it, reusing an existing install when possible.

        Args:
            spec: Version specifier.
            prefix: Optional override of the versions directory for this call.
            force: Remove the existing record before installing.

        Returns:
            InstallOutcome: Resolution and install result.
        """

        if prefix is not None and prefix.absolute() != self.settings.version_prefix:
            return Govm(
                self.settings.with_overrides(version_prefix=prefix),
                transport=self.transport,
                runner=self._runner,
                workdir=self._workdir,
            ).install(spec, force=force)
        self.layout.ensure_directories()
        resolved = self.resolver.resolve(spec)
        result = self.orchestrator.install(resolved, force=force)
        return InstallOutcome(spec=spec, resolved=resolved, result=result)

    def force_reinstall(self, spec: str) -> InstallOutcome:
        return self.install(spec, force=True)

    def environment(self, spec: str) -> EnvironmentDescriptor:
        """Return the descriptor of the existing install ``spec`` resolves to.

        Raises:
            NotInstalledError: If no record exists for the resolved version.
        """

        resolved = self.resolver.resolve(spec)
        for key in self.orchestrator.record_keys(resolved):
            descriptor = self.store.load(key)
            if descriptor is not None:
                return descriptor
        raise NotInstalledError(spec)

    def list_installed(self) -> list[EnvironmentDescriptor]:
        return self.store.list_installed()

    def list_known(self, *, force: bool = False) -> tuple[str, ...]:
        snapshot = self.catalog.get(force=force or self.settings.force_known_update)
        return snapshot.versions


__all__ = ["Govm", "InstallOutcome"]
