# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Resolve arbitrary git references against a local Go source checkout."""

from __future__ import annotations

import logging
import re
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Final

from .config import Settings
from .errors import CheckoutError, UnknownReferenceError
from .process_utils import CommandRunner, SubprocessExecutionError, run_command

if TYPE_CHECKING:
    from subprocess import CompletedProcess  # nosec B404

LOGGER = logging.getLogger(__name__)

TIP: Final[str] = "tip"
REF_MODIFIER_CHARS: Final[frozenset[str]] = frozenset("@^~:{}")
_COMMIT_LIKE: Final[re.Pattern[str]] = re.compile(r"[0-9a-fA-F]{6,}")


class RefForm(str, Enum):
    """Disjoint shapes a reference is classified into before resolution."""

    COMMIT = "commit"
    MODIFIER = "modifier"
    SYMBOLIC = "symbolic"


def classify(ref: str) -> RefForm:
    """Return the :class:`RefForm` of ``ref``.

    Hex strings of six or more characters are commits; anything using git's
    revision modifier syntax skips symbolic probing; everything else is probed
    as a branch or tag name.
    """

    if _COMMIT_LIKE.fullmatch(ref):
        return RefForm.COMMIT
    if any(char in REF_MODIFIER_CHARS for char in ref):
        return RefForm.MODIFIER
    return RefForm.SYMBOLIC


def symbolic_candidates(ref: str) -> tuple[str, ...]:
    """Return the names probed for ``ref`` in the order they are tried.

    The order decides which object wins when a branch and a tag share a name,
    so it must not be rearranged.
    """

    candidates = [f"origin/{ref}", f"origin/go{ref}"]
    if ref == TIP:
        candidates.append("origin/master")
    candidates.extend((f"refs/tags/{ref}", f"refs/tags/go{ref}"))
    return tuple(candidates)


class CheckoutResolver:
    """Move a Go source working tree to the commit named by a reference.

    Resolution is a checkout: every successful call leaves the working tree of
    the repository at the resolved commit.
    """

    def __init__(self, settings: Settings, *, runner: CommandRunner = run_command) -> None:
        self._remote = settings.git_remote
        self._primary = f"origin/{settings.primary_branch}"
        self._runner = runner

    def ensure_repository(self, repo_dir: Path) -> None:
        """Clone the configured remote into ``repo_dir`` or refresh an existing clone.

        Raises:
            CheckoutError: If cloning or fetching fails.
        """

        try:
            if (repo_dir / ".git").exists():
                LOGGER.debug("fetching updates into %s", repo_dir)
                self._git(repo_dir, "fetch", "--quiet", "--all", "--tags")
                return
            repo_dir.parent.mkdir(parents=True, exist_ok=True)
            LOGGER.debug("cloning %s into %s", self._remote, repo_dir)
            self._runner(
                ["git", "clone", "--quiet", self._remote, str(repo_dir)],
                capture_output=True,
            )
        except (SubprocessExecutionError, OSError) as exc:
            raise CheckoutError(self._remote, f"unable to prepare repository {repo_dir}: {exc}") from exc

    def checkout(self, ref: str, repo_dir: Path) -> str:
        """Reset ``repo_dir`` to the commit named by ``ref`` and return its short hash.

        Args:
            ref: Commit hash, branch or tag name, or revision expression.
            repo_dir: Existing clone of the Go source repository.

        Returns:
            str: Abbreviated hash of the commit now checked out.

        Raises:
            CheckoutError: If no resolution step succeeds.
        """

        if not ref or ref.startswith("-"):
            raise CheckoutError(ref, "reference must be a non-empty name not starting with '-'")

        form = classify(ref)
        LOGGER.debug("reference %r classified as %s", ref, form.value)
        if form is RefForm.COMMIT:
            self._reset(repo_dir, ref)
            return self._short_head(repo_dir, ref)

        if form is RefForm.SYMBOLIC:
            for candidate in symbolic_candidates(ref):
                if self._resolves(repo_dir, candidate):
                    LOGGER.debug("reference %r matched %s", ref, candidate)
                    self._reset(repo_dir, candidate)
                    return self._short_head(repo_dir, ref)

        expression = self._primary if ref == "@" else ref
        self._reset(repo_dir, self._primary)
        sha = self._rev_parse(repo_dir, expression)
        if sha is None:
            raise UnknownReferenceError(ref, "not a known commit, branch, tag or revision expression")
        self._reset(repo_dir, sha)
        return self._short_head(repo_dir, ref)

    def _resolves(self, repo_dir: Path, name: str) -> bool:
        return self._rev_parse(repo_dir, name) is not None

    def _rev_parse(self, repo_dir: Path, expression: str) -> str | None:
        try:
            completed = self._git(
                repo_dir,
                "rev-parse",
                "--quiet",
                "--verify",
                f"{expression}^{{commit}}",
                check=False,
            )
        except OSError as exc:
            raise CheckoutError(expression, str(exc)) from exc
        if completed.returncode != 0:
            return None
        return (completed.stdout or "").strip() or None

    def _reset(self, repo_dir: Path, target: str) -> None:
        try:
            self._git(repo_dir, "reset", "--quiet", "--hard", target)
        except (SubprocessExecutionError, OSError) as exc:
            raise CheckoutError(target, f"hard reset failed: {exc}") from exc

    def _short_head(self, repo_dir: Path, ref: str) -> str:
        try:
            completed = self._git(repo_dir, "rev-parse", "--short", "HEAD")
        except (SubprocessExecutionError, OSError) as exc:
            raise CheckoutError(ref, f"unable to read checked out commit: {exc}") from exc
        return (completed.stdout or "").strip()

    def _git(self, repo_dir: Path, *args: str, check: bool = True) -> CompletedProcess[str]:
        return self._runner(["git", *args], cwd=repo_dir, check=check, capture_output=True)


__all__ = ["CheckoutResolver", "RefForm", "classify", "symbolic_candidates"]
