# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Composer manifest helpers and the ``composer validate`` adapter."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Final, Protocol, runtime_checkable

from .config import CommandSettings
from .process import CommandRunner, SubprocessRunner

MANIFEST_FILENAME: Final[str] = "composer.json"
COMPOSER_PHAR: Final[str] = "composer.phar"


@dataclass(frozen=True, slots=True)
class ComposerValidation:
    """Outcome of running the external manifest validator."""

    is_valid: bool
    output: str


@runtime_checkable
class ComposerValidator(Protocol):
    """Port validating a project's Composer manifest."""

    def validate(self, path: Path) -> ComposerValidation:
        """Validate the manifest of the project rooted at ``path``."""

        raise NotImplementedError


class ComposerCommandValidator:
    """Validate manifests with ``composer validate --no-check-publish``."""

    def __init__(self, *, settings: CommandSettings | None = None, runner: CommandRunner | None = None) -> None:
        self.settings = settings or CommandSettings()
        self._runner = runner or SubprocessRunner()

    def composer_command(self, path: Path) -> list[str]:
        """Return the Composer invocation, preferring a project-local ``composer.phar``."""

        phar = path / COMPOSER_PHAR
        if phar.is_file():
            return [self.settings.php_binary, str(phar)]
        return ["composer"]

    def validate(self, path: Path) -> ComposerValidation:
        output = self._runner.run(
            [*self.composer_command(path), "validate", "--no-check-publish", "--no-ansi"],
            cwd=path,
            timeout=self.settings.timeout,
        )
        return ComposerValidation(is_valid=output.ok, output=output.combined)


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not a valid JSON value")


def loads_strict(text: str) -> Any:
    """Decode ``text`` as strict RFC 8259 JSON.

    Python's decoder accepts ``NaN`` and ``Infinity``; those are rejected here
    so that behaviour matches Composer's own parser.

    Raises:
        ValueError: If ``text`` is not valid JSON.
    """

    return json.loads(text, parse_constant=_reject_constant)


__all__ = [
    "COMPOSER_PHAR",
    "ComposerCommandValidator",
    "ComposerValidation",
    "ComposerValidator",
    "MANIFEST_FILENAME",
    "loads_strict",
]
