# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Drive checks through their lifecycle and collect their results."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field

from .checks.base import Check
from .config import DiagnosticsConfig
from .logging import detect_tty, fail, info, ok, section, warn
from .models import Result
from .severity import Status

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class RunReport:
    """Results of a runner invocation in registration order."""

    results: list[Result] = field(default_factory=list)

    def by_status(self, status: Status) -> list[Result]:
        """Return the results carrying ``status``."""
        return [result for result in self.results if result.status is status]

    @property
    def failed(self) -> bool:
        """Return ``True`` when any result should fail the run."""
        return any(not result.is_success() for result in self.results)

    @property
    def issue_count(self) -> int:
        """Return the number of issues across all results."""
        return sum(result.issue_count for result in self.results)


class CheckRunner:
    """Configure, filter and execute a set of checks."""

    def __init__(self, checks: Iterable[Check], config: DiagnosticsConfig | None = None) -> None:
        self.config = config or DiagnosticsConfig()
        self.checks: list[Check] = list(checks)
        for check in self.checks:
            check.set_default_base_path(self.config.base_path)

    def selected(self) -> list[Check]:
        """Return checks enabled by configuration, in registration order."""

        return [check for check in self.checks if self.config.is_enabled(check.id, check.metadata.category)]

    def run_check(self, check: Check) -> Result:
        """Drive one check through ``should_run`` and ``analyze``.

        Checks flagged as unsuitable for CI are skipped in CI mode before
        either lifecycle method is called.

        Args:
            check: Check to execute.

        Returns:
            Result: Result of the check, or a skipped result.
        """

        if self.config.ci_mode and not check.run_in_ci:
            LOGGER.debug("skipping %s in CI mode", check.id)
            return check.skipped("Not applicable in CI environments")
        try:
            applicable = check.should_run()
        except Exception as exc:  # noqa: BLE001
            LOGGER.debug("should_run raised for %s", check.id, exc_info=True)
            return check.failed(
                f"Unable to determine whether the check applies: {exc}",
                metadata={"exception": str(exc), "exception_type": type(exc).__name__},
            )
        if not applicable:
            return check.skipped()
        return check.analyze()

    def run(self) -> RunReport:
        """Execute every selected check.

        Returns:
            RunReport: Results in registration order regardless of ``jobs``.
        """

        checks = self.selected()
        if self.config.jobs > 1 and len(checks) > 1:
            with ThreadPoolExecutor(max_workers=self.config.jobs) as executor:
                results = list(executor.map(self.run_check, checks))
        else:
            results = [self.run_check(check) for check in checks]
        if self.config.echo:
            self._echo(checks, results)
        return RunReport(results=results)

    def _echo(self, checks: Sequence[Check], results: Sequence[Result]) -> None:
        """Print a header and one status line per executed check.

        Args:
            checks: Checks that were executed, in registration order.
            results: Results aligned with ``checks``.
        """

        section(f"diagqa: {len(checks)} check(s)", use_color=detect_tty())
        for check, result in zip(checks, results, strict=True):
            line = f"{check.metadata.name}: {result.message}"
            if result.status is Status.PASSED:
                ok(line, use_emoji=True)
            elif result.status is Status.SKIPPED:
                info(line, use_emoji=True)
            elif result.status is Status.WARNING:
                warn(line, use_emoji=True)
            else:
                fail(line, use_emoji=True)


__all__ = ["CheckRunner", "RunReport"]
