# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Typer application exposing the govm commands."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Annotated, Any

import typer

from ..config import InstallMode, Settings
from ..errors import GovmError, NotFoundError, SpecifierError, StrategyExhaustedError, UnknownReferenceError
from ..logging import configure_logging, fail, info, ok, warn
from ..service import Govm

app = typer.Typer(
    name="govm",
    help="Install and activate Go toolchains.",
    add_completion=False,
    no_args_is_help=True,
)

SpecArgument = Annotated[
    str,
    typer.Argument(help="Version specifier: 1.21.5, 1.21.x, stable, oldstable, tip, module or a git ref."),
]


@dataclass(slots=True)
class CLIState:
    """Global options shared by every subcommand."""

    debug: bool = False
    use_emoji: bool = True


@app.callback()
def _root(
    ctx: typer.Context,
    debug: Annotated[bool, typer.Option("--debug", help="Log probe decisions and fetched URLs.")] = False,
    emoji: Annotated[bool, typer.Option("--emoji/--no-emoji", help="Toggle emoji in CLI output.")] = True,
) -> None:
    ctx.obj = CLIState(debug=debug, use_emoji=emoji)


def _state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    return state if isinstance(state, CLIState) else CLIState()


def _load_settings(state: CLIState, **overrides: Any) -> Settings:
    """Build settings from the process environment plus CLI overrides."""

    try:
        settings = Settings.from_environ(os.environ).with_overrides(
            debug=True if state.debug else None,
            **overrides,
        )
    except GovmError as exc:
        fail(str(exc), use_emoji=state.use_emoji)
        raise typer.Exit(code=exc.exit_code) from exc
    configure_logging(debug=settings.debug)
    return settings


def _abort(exc: GovmError, state: CLIState, *, code: int | None = None) -> typer.Exit:
    fail(str(exc), use_emoji=state.use_emoji)
    if isinstance(exc, StrategyExhaustedError) and state.debug:
        for strategy, error in exc.failures:
            warn(f"{strategy}: {error}", use_emoji=state.use_emoji)
    return typer.Exit(code=exc.exit_code if code is None else code)


@app.command("install")
def install_command(
    ctx: typer.Context,
    spec: SpecArgument,
    install_type: Annotated[
        InstallMode | None,
        typer.Option("--type", "-t", case_sensitive=False, help="Restrict the install strategies."),
    ] = None,
    prefix: Annotated[
        Path | None,
        typer.Option("--prefix", help="Directory holding installed toolchains."),
    ] = None,
    force: Annotated[bool, typer.Option("--force", help="Remove any existing install first.")] = False,
    no_alias: Annotated[bool, typer.Option("--no-alias", help="Do not refresh the latest alias.")] = False,
    silent: Annotated[bool, typer.Option("--silent", help="Do not print the activation script.")] = False,
) -> None:
    """Install SPEC and print the shell statements that activate it."""

    state = _state(ctx)
    settings = _load_settings(
        state,
        install_mode=install_type,
        no_alias=True if no_alias else None,
        silent=True if silent else None,
    )
    info(f"Installing Go {spec} ({settings.install_mode.value} mode)", use_emoji=state.use_emoji)
    try:
        outcome = Govm(settings).install(spec, prefix, force=force)
    except GovmError as exc:
        # A resolve failure during install is an install failure.
        raise _abort(exc, state, code=1) from exc

    descriptor = outcome.descriptor
    verb = "Reusing" if outcome.result.reused else "Installed"
    ok(f"{verb} {descriptor.name} ({outcome.result.strategy.value})", use_emoji=state.use_emoji)
    if not settings.silent:
        typer.echo(descriptor.to_shell(), nl=False)


@app.command("force-reinstall")
def force_reinstall_command(ctx: typer.Context, spec: SpecArgument) -> None:
    """Remove the install SPEC resolves to, then install it again."""

    state = _state(ctx)
    settings = _load_settings(state)
    try:
        outcome = Govm(settings).force_reinstall(spec)
    except GovmError as exc:
        raise _abort(exc, state, code=1) from exc
    ok(f"Reinstalled {outcome.descriptor.name}", use_emoji=state.use_emoji)
    if not settings.silent:
        typer.echo(outcome.descriptor.to_shell(), nl=False)


@app.command("resolve")
def resolve_command(ctx: typer.Context, spec: SpecArgument) -> None:
    """Print the concrete version SPEC resolves to."""

    state = _state(ctx)
    settings = _load_settings(state)
    try:
        resolved = Govm(settings).resolve(spec)
    except (NotFoundError, SpecifierError, UnknownReferenceError) as exc:
        raise _abort(exc, state, code=2) from exc
    except GovmError as exc:
        raise _abort(exc, state, code=1) from exc
    typer.echo(str(resolved))


@app.command("list")
def list_command(ctx: typer.Context) -> None:
    """List installed toolchains."""

    state = _state(ctx)
    settings = _load_settings(state)
    descriptors = Govm(settings).list_installed()
    if not descriptors:
        info("No toolchains installed.", use_emoji=state.use_emoji)
        return
    for descriptor in descriptors:
        detail = f" @ {descriptor.commit}" if descriptor.commit else ""
        typer.echo(f"{descriptor.name}\t{descriptor.strategy.value}{detail}\t{descriptor.install_dir}")


@app.command("known")
def known_command(
    ctx: typer.Context,
    force_update: Annotated[
        bool,
        typer.Option("--force-update", help="Refresh the catalog even if the cache is fresh."),
    ] = False,
) -> None:
    """List every published version in ascending order."""

    state = _state(ctx)
    settings = _load_settings(state)
    try:
        versions = Govm(settings).list_known(force=force_update)
    except GovmError as exc:
        raise _abort(exc, state, code=1) from exc
    for version in versions:
        typer.echo(version)


@app.command("env")
def env_command(ctx: typer.Context, spec: SpecArgument) -> None:
    """Print the activation script of an installed toolchain."""

    state = _state(ctx)
    settings = _load_settings(state)
    try:
        descriptor = Govm(settings).environment(spec)
    except GovmError as exc:
        raise _abort(exc, state, code=1) from exc
    typer.echo(descriptor.to_shell(), nl=False)


def main() -> None:
    """Console-script entry point."""

    app(prog_name="govm")


__all__ = ["CLIState", "app", "main"]
