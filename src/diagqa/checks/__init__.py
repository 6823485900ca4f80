# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Built-in diagnostic checks."""

from __future__ import annotations

from ..composer import ComposerCommandValidator
from ..config import DiagnosticsConfig
from ..process import CommandRunner
from .base import Check
from .cache_prefix import CacheConfig, CachePrefixCheck
from .composer_validation import ComposerValidationCheck
from .invalid_function_calls import InvalidFunctionCallCheck
from .migrations import ArtisanMigrationStatus, UpToDateMigrationsCheck


def default_checks(
    config: DiagnosticsConfig,
    *,
    cache_config: CacheConfig | None = None,
    runner: CommandRunner | None = None,
) -> list[Check]:
    """Return the built-in checks configured from ``config``.

    Args:
        config: Runner configuration supplying tool settings.
        cache_config: Cache configuration snapshot; the cache prefix check is
            only registered when one is supplied.
        runner: Optional command runner shared by the tool-backed checks.

    Returns:
        list[Check]: Checks in registration order.
    """

    checks: list[Check] = [
        ComposerValidationCheck(validator=ComposerCommandValidator(settings=config.commands, runner=runner)),
        InvalidFunctionCallCheck(settings=config.phpstan, runner=runner),
        UpToDateMigrationsCheck(command=ArtisanMigrationStatus(settings=config.commands, runner=runner)),
    ]
    if cache_config is not None:
        checks.append(CachePrefixCheck(cache_config))
    return checks


__all__ = [
    "CacheConfig",
    "CachePrefixCheck",
    "Check",
    "ComposerValidationCheck",
    "InvalidFunctionCallCheck",
    "UpToDateMigrationsCheck",
    "default_checks",
]
