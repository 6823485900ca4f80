# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Safe wrappers around ``subprocess`` execution for external diagnostic tools."""

from __future__ import annotations

import logging
import shutil

# Bandit: subprocess usage is intentional; commands are argument lists and
# ``shell=True`` is never used.
import subprocess  # nosec B404
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Final, Protocol, runtime_checkable

LOGGER = logging.getLogger(__name__)

TIMEOUT_EXIT_CODE: Final[int] = 124


class ToolNotFoundError(FileNotFoundError):
    """Raised when an external executable cannot be located."""

    def __init__(self, executable: str) -> None:
        super().__init__(f"Executable '{executable}' was not found")
        self.executable = executable


@dataclass(frozen=True, slots=True)
class CommandOutput:
    """Captured output of a completed external command."""

    stdout: str
    returncode: int
    stderr: str = ""

    @property
    def ok(self) -> bool:
        """Return ``True`` when the command exited successfully."""
        return self.returncode == 0

    @property
    def combined(self) -> str:
        """Return stdout followed by stderr."""
        return f"{self.stdout}{self.stderr}"


@runtime_checkable
class CommandRunner(Protocol):
    """Port used by checks to execute external tools."""

    def run(
        self,
        args: Sequence[str],
        *,
        cwd: Path | None = None,
        timeout: float | None = None,
    ) -> CommandOutput:
        """Execute ``args`` to completion and capture its output.

        Args:
            args: Executable followed by its arguments.
            cwd: Optional working directory for the command.
            timeout: Optional timeout in seconds.

        Returns:
            CommandOutput: Captured stdout, stderr and exit code.

        Raises:
            ToolNotFoundError: If the executable cannot be located.
        """

        raise NotImplementedError


def _ensure_text(value: str | bytes | None) -> str:
    """Return ``value`` decoded to text when supplied as ``bytes``."""

    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return value.decode(errors="ignore")


def resolve_executable(executable: str | Path) -> str:
    """Return an absolute path for ``executable``.

    Absolute or relative paths containing a directory component must exist on
    disk; bare names are looked up on ``PATH``.

    Args:
        executable: Executable path or command name.

    Returns:
        str: Resolved executable path.

    Raises:
        ToolNotFoundError: If the executable cannot be found.
    """

    candidate = Path(executable)
    if candidate.is_absolute() or len(candidate.parts) > 1:
        if not candidate.is_file():
            raise ToolNotFoundError(str(executable))
        return str(candidate)
    resolved = shutil.which(str(executable))
    if resolved is None:
        raise ToolNotFoundError(str(executable))
    return resolved


class SubprocessRunner:
    """Production :class:`CommandRunner` backed by :func:`subprocess.run`."""

    def run(
        self,
        args: Sequence[str],
        *,
        cwd: Path | None = None,
        timeout: float | None = None,
    ) -> CommandOutput:
        if not args:
            raise ValueError("subprocess command requires at least one argument")
        head, *rest = args
        normalized = [resolve_executable(head), *rest]
        LOGGER.debug("running %s (cwd=%s, timeout=%s)", " ".join(normalized), cwd, timeout)
        try:
            completed = subprocess.run(  # nosec B603 - argument list, no shell
                normalized,
                cwd=str(cwd) if cwd is not None else None,
                check=False,
                capture_output=True,
                text=True,
                timeout=timeout,
                stdin=subprocess.DEVNULL,
            )
        except subprocess.TimeoutExpired as exc:
            stderr = _ensure_text(exc.stderr)
            timeout_msg = f"Command timed out after {timeout:.1f}s" if timeout is not None else "Command timed out"
            return CommandOutput(
                stdout=_ensure_text(exc.stdout),
                returncode=TIMEOUT_EXIT_CODE,
                stderr=f"{stderr}\n{timeout_msg}" if stderr else timeout_msg,
            )
        return CommandOutput(
            stdout=_ensure_text(completed.stdout),
            returncode=completed.returncode,
            stderr=_ensure_text(completed.stderr),
        )


__all__ = [
    "CommandOutput",
    "CommandRunner",
    "SubprocessRunner",
    "TIMEOUT_EXIT_CODE",
    "ToolNotFoundError",
    "resolve_executable",
]
