# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Immutable runtime settings resolved once from the process environment."""

from __future__ import annotations

import platform
import tempfile
from collections.abc import Mapping
from enum import Enum
from pathlib import Path
from typing import Any, Final

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .errors import ConfigError

ENV_PREFIX: Final[str] = "GOVM_"
DEFAULT_HOME: Final[Path] = Path("~/.govm")
DEFAULT_DOWNLOAD_BASE: Final[str] = "https://dl.google.com/go"
DEFAULT_DOWNLOAD_MIRRORS: Final[tuple[str, ...]] = ("https://storage.googleapis.com/golang",)
DEFAULT_CATALOG_URL: Final[str] = "https://go.dev/dl/?mode=json&include=all"
DEFAULT_STABLE_URL: Final[str] = "https://go.dev/VERSION?m=text"
DEFAULT_GIT_REMOTE: Final[str] = "https://github.com/golang/go.git"
DEFAULT_CATALOG_TTL: Final[int] = 10800
DEFAULT_STABLE_TTL: Final[int] = 86400

TRUTHY_LITERALS: Final[set[str]] = {"1", "true", "yes", "on"}
FALSY_LITERALS: Final[set[str]] = {"0", "false", "no", "off", ""}

_OS_ALIASES: Final[dict[str, str]] = {
    "darwin": "darwin",
    "linux": "linux",
    "windows": "windows",
    "freebsd": "freebsd",
}
_ARCH_ALIASES: Final[dict[str, str]] = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "i386": "386",
    "i686": "386",
    "aarch64": "arm64",
    "arm64": "arm64",
    "armv6l": "armv6l",
    "armv7l": "armv6l",
    "ppc64le": "ppc64le",
    "s390x": "s390x",
}


class InstallMode(str, Enum):
    """Enumerate the strategy families an install may draw from."""

    AUTO = "auto"
    BINARY = "binary"
    SOURCE = "source"
    GIT = "git"


def coerce_bool_literal(value: str, *, name: str) -> bool:
    """Return the boolean represented by ``value``.

    Args:
        value: Raw string containing a boolean literal.
        name: Variable name used when reporting invalid input.

    Returns:
        bool: ``True`` for truthy literals, ``False`` for falsy literals.

    Raises:
        ConfigError: If ``value`` does not match a known boolean literal.
    """

    normalized = value.strip().lower()
    if normalized in TRUTHY_LITERALS:
        return True
    if normalized in FALSY_LITERALS:
        return False
    raise ConfigError(f"{name}: unsupported boolean literal {value!r}")


def detect_host_os() -> str:
    """Return the Go-style name of the running operating system."""

    system = platform.system().lower()
    return _OS_ALIASES.get(system, system)


def detect_host_arch() -> str:
    """Return the Go-style name of the running CPU architecture."""

    machine = platform.machine().lower()
    return _ARCH_ALIASES.get(machine, machine)


class Settings(BaseModel):
    """Single immutable configuration value threaded through every component."""

    model_config = ConfigDict(frozen=True, validate_default=True)

    target_os: str = Field(default_factory=detect_host_os)
    target_arch: str = Field(default_factory=detect_host_arch)
    host_os: str = Field(default_factory=detect_host_os)
    host_arch: str = Field(default_factory=detect_host_arch)
    install_mode: InstallMode = InstallMode.AUTO
    version_prefix: Path = DEFAULT_HOME / "versions"
    env_prefix: Path = DEFAULT_HOME / "envs"
    tmp_dir: Path = Field(default_factory=lambda: Path(tempfile.gettempdir()))
    download_base: str = DEFAULT_DOWNLOAD_BASE
    download_mirrors: tuple[str, ...] = DEFAULT_DOWNLOAD_MIRRORS
    catalog_url: str = DEFAULT_CATALOG_URL
    stable_url: str = DEFAULT_STABLE_URL
    catalog_ttl: int = Field(default=DEFAULT_CATALOG_TTL, ge=0)
    stable_ttl: int = Field(default=DEFAULT_STABLE_TTL, ge=0)
    git_remote: str = DEFAULT_GIT_REMOTE
    primary_branch: str = "master"
    force_reinstall: bool = False
    force_known_update: bool = False
    cgo_enabled: bool | None = None
    cc_for_target: str | None = None
    bootstrap_root: Path | None = None
    self_test: bool = False
    silent: bool = False
    no_alias: bool = False
    debug: bool = False

    @field_validator("version_prefix", "env_prefix", "tmp_dir", "bootstrap_root")
    @classmethod
    def _absolute_path(cls, value: Path | None) -> Path | None:
        if value is None:
            return None
        return value.expanduser().absolute()

    @field_validator("download_base")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("download_mirrors")
    @classmethod
    def _strip_mirror_slashes(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        return tuple(mirror.rstrip("/") for mirror in value)

    @property
    def host_matches_target(self) -> bool:
        """Return ``True`` when the target platform is the host platform."""

        return self.target_os == self.host_os and self.target_arch == self.host_arch

    def with_overrides(self, **changes: Any) -> Settings:
        """Return a validated copy of the settings with ``changes`` applied."""

        merged = self.model_dump()
        merged.update({key: value for key, value in changes.items() if value is not None})
        return Settings.model_validate(merged)

    @classmethod
    def from_environ(cls, environ: Mapping[str, str]) -> Settings:
        """Build settings from ``GOVM_*`` variables found in ``environ``.

        Args:
            environ: Mapping of environment variables, typically ``os.environ``.

        Returns:
            Settings: Frozen settings with defaults applied for unset variables.

        Raises:
            ConfigError: If a variable cannot be interpreted.
        """

        values: dict[str, Any] = {}
        for field_name, env_name in _STRING_FIELDS.items():
            raw = environ.get(ENV_PREFIX + env_name)
            if raw:
                values[field_name] = raw
        for field_name, env_name in _BOOL_FIELDS.items():
            raw = environ.get(ENV_PREFIX + env_name)
            if raw is not None:
                values[field_name] = coerce_bool_literal(raw, name=ENV_PREFIX + env_name)
        for field_name, env_name in _INT_FIELDS.items():
            raw = environ.get(ENV_PREFIX + env_name)
            if raw:
                try:
                    values[field_name] = int(raw)
                except ValueError as exc:
                    raise ConfigError(f"{ENV_PREFIX}{env_name}: expected seconds, got {raw!r}") from exc

        mode = environ.get(ENV_PREFIX + "TYPE")
        if mode:
            try:
                values["install_mode"] = InstallMode(mode.strip().lower())
            except ValueError as exc:
                choices = ", ".join(member.value for member in InstallMode)
                raise ConfigError(f"{ENV_PREFIX}TYPE must be one of {choices}, got {mode!r}") from exc

        mirrors = environ.get(ENV_PREFIX + "DOWNLOAD_MIRRORS")
        if mirrors is not None:
            values["download_mirrors"] = tuple(item.strip() for item in mirrors.split(",") if item.strip())

        cgo = environ.get(ENV_PREFIX + "CGO_ENABLED")
        if cgo:
            values["cgo_enabled"] = coerce_bool_literal(cgo, name=ENV_PREFIX + "CGO_ENABLED")

        home = environ.get(ENV_PREFIX + "HOME")
        if home:
            values.setdefault("version_prefix", str(Path(home) / "versions"))
            values.setdefault("env_prefix", str(Path(home) / "envs"))

        try:
            return cls.model_validate(values)
        except ValueError as exc:
            raise ConfigError(str(exc)) from exc


_STRING_FIELDS: Final[dict[str, str]] = {
    "target_os": "OS",
    "target_arch": "ARCH",
    "host_os": "HOSTOS",
    "host_arch": "HOSTARCH",
    "version_prefix": "VERSION_PREFIX",
    "env_prefix": "ENV_PREFIX",
    "tmp_dir": "TMP",
    "download_base": "DOWNLOAD_BASE",
    "catalog_url": "KNOWN_URL",
    "stable_url": "STABLE_URL",
    "git_remote": "GO_GIT_REMOTE",
    "primary_branch": "PRIMARY_BRANCH",
    "cc_for_target": "CC_FOR_TARGET",
    "bootstrap_root": "BOOTSTRAP_ROOT",
}
_BOOL_FIELDS: Final[dict[str, str]] = {
    "force_reinstall": "FORCE_REINSTALL",
    "force_known_update": "FORCE_KNOWN_UPDATE",
    "self_test": "SELF_TEST",
    "silent": "SILENT_ENV",
    "no_alias": "NO_ENV_ALIAS",
    "debug": "DEBUG",
}
_INT_FIELDS: Final[dict[str, str]] = {
    "catalog_ttl": "KNOWN_CACHE_MAX_AGE",
    "stable_ttl": "STABLE_CACHE_MAX_AGE",
}


__all__ = [
    "InstallMode",
    "Settings",
    "coerce_bool_literal",
    "detect_host_arch",
    "detect_host_os",
]
