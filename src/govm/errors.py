# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Error taxonomy shared by every govm component."""

from __future__ import annotations

from collections.abc import Sequence


class GovmError(RuntimeError):
    """Base class for failures surfaced to govm callers."""

    exit_code: int = 1


class ConfigError(GovmError):
    """Raised when configuration values cannot be interpreted."""


class SpecifierError(GovmError):
    """Raised when a version specifier is malformed or unrecognised."""

    def __init__(self, spec: str, reason: str) -> None:
        super().__init__(f"invalid version specifier {spec!r}: {reason}")
        self.spec = spec
        self.reason = reason


class NotFoundError(GovmError):
    """Raised when a well-formed specifier matches nothing in the catalog."""

    exit_code = 2

    def __init__(self, spec: str, *, context: str | None = None) -> None:
        message = f"no published version matches {spec!r}"
        if context:
            message = f"{message} ({context})"
        super().__init__(message)
        self.spec = spec
        self.context = context


class NotInstalledError(GovmError):
    """Raised when a resolved version has no installation record."""

    def __init__(self, spec: str) -> None:
        super().__init__(f"{spec!r} is not installed")
        self.spec = spec


class FetchError(GovmError):
    """Raised when no candidate location yields a usable artifact."""

    def __init__(self, message: str, *, urls: Sequence[str] = ()) -> None:
        super().__init__(message)
        self.urls = tuple(urls)


class CheckoutError(GovmError):
    """Raised when a source-control reference cannot be resolved or checked out."""

    def __init__(self, ref: str, reason: str) -> None:
        super().__init__(f"unable to check out {ref!r}: {reason}")
        self.ref = ref
        self.reason = reason


class UnknownReferenceError(CheckoutError):
    """Raised when a reference names no commit, branch, tag or revision."""

    exit_code = 2


class BuildError(GovmError):
    """Raised when the external toolchain build step fails."""

    def __init__(self, message: str, *, command: Sequence[str] = (), returncode: int | None = None) -> None:
        super().__init__(message)
        self.command = tuple(command)
        self.returncode = returncode


class StrategyExhaustedError(GovmError):
    """Raised when every strategy configured for the install mode failed."""

    def __init__(self, mode: str, failures: Sequence[tuple[str, Exception]]) -> None:
        self.mode = mode
        self.failures = tuple(failures)
        if failures:
            strategy, last = failures[-1]
            detail = f"last error from {strategy}: {last}"
        else:
            detail = "no strategy applies"
        super().__init__(f"all install strategies failed for mode {mode!r}; {detail}")


__all__ = [
    "BuildError",
    "CheckoutError",
    "ConfigError",
    "FetchError",
    "GovmError",
    "NotFoundError",
    "NotInstalledError",
    "SpecifierError",
    "StrategyExhaustedError",
    "UnknownReferenceError",
]
