# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Base contract shared by every diagnostic check."""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any, ClassVar, Final

from ..models import CheckMetadata, Issue, Location, Result
from ..severity import Severity, Status

LOGGER = logging.getLogger(__name__)

SNIPPET_CONTEXT_LINES: Final[int] = 3


def read_snippet(path: Path, line: int | None, *, context: int = SNIPPET_CONTEXT_LINES) -> str | None:
    """Return numbered source lines surrounding ``line`` in ``path``.

    Args:
        path: Source file to read.
        line: 1-based line of interest; ``None`` selects the start of the file.
        context: Number of lines to include either side of ``line``.

    Returns:
        str | None: Snippet text, or ``None`` when the file cannot be read.
    """

    try:
        lines = path.read_text(encoding="utf-8", errors="replace").splitlines()
    except OSError:
        return None
    if not lines:
        return None
    target = min(max(line or 1, 1), len(lines))
    start = max(target - context, 1)
    end = min(target + context, len(lines))
    width = len(str(end))
    return "\n".join(f"{number:>{width}} | {lines[number - 1]}" for number in range(start, end + 1))


class Check(ABC):
    """Polymorphic contract implemented by every check.

    A check is constructed once, configured through :meth:`set_base_path`,
    queried with :meth:`should_run` and finally executed with :meth:`analyze`.
    Instances may be reused across ``analyze`` calls with different base paths
    but are not safe to invoke concurrently.
    """

    metadata: ClassVar[CheckMetadata]
    run_in_ci: ClassVar[bool] = True

    def __init__(self, base_path: Path | str | None = None) -> None:
        self._default_base_path = Path.cwd()
        self._base_path: Path | None = None
        self.set_base_path(base_path)

    @abstractmethod
    def run_analysis(self) -> Result:
        """Perform the check; may raise, :meth:`analyze` converts failures."""

    def set_default_base_path(self, path: Path | str) -> None:
        """Set the ambient project root used when no base path override is set."""

        self._default_base_path = Path(path)

    def set_base_path(self, path: Path | str | None) -> None:
        """Override the directory the check operates against.

        Args:
            path: Directory to inspect; an empty string or ``None`` restores the
                ambient project root.
        """

        self._base_path = Path(path) if path not in (None, "") else None

    @property
    def base_path(self) -> Path:
        """Return the directory the check operates against."""

        return self._base_path if self._base_path is not None else self._default_base_path

    def build_path(self, *parts: str) -> Path:
        """Return ``base_path`` joined with ``parts``."""

        return self.base_path.joinpath(*parts)

    def relative_path(self, path: Path | str) -> str:
        """Return ``path`` relative to the base path when it lives beneath it."""

        candidate = Path(path)
        try:
            return candidate.relative_to(self.base_path).as_posix()
        except ValueError:
            return str(candidate)

    @property
    def id(self) -> str:
        """Return the stable identifier of the check."""

        return self.metadata.id

    def get_metadata(self) -> CheckMetadata:
        """Return the static metadata describing the check."""

        return self.metadata

    def should_run(self) -> bool:
        """Return ``True`` when the check applies to the current environment."""

        return True

    def get_skip_reason(self) -> str:
        """Return a human readable reason for skipping the check."""

        return "Not applicable in the current environment"

    def analyze(self) -> Result:
        """Run the check, converting unexpected failures into a failed result.

        Returns:
            Result: Outcome of the check with execution time recorded.
        """

        started = time.perf_counter()
        try:
            result = self.run_analysis()
        except Exception as exc:  # noqa: BLE001
            LOGGER.debug("check %s raised", self.id, exc_info=True)
            result = self.failed(
                f"Check failed unexpectedly: {exc}",
                metadata={"exception": str(exc), "exception_type": type(exc).__name__},
            )
        return result.with_timing(time.perf_counter() - started)

    def create_issue(
        self,
        message: str,
        *,
        location: Location | None = None,
        recommendation: str = "",
        severity: Severity | None = None,
        metadata: Mapping[str, Any] | None = None,
        snippet: bool = True,
    ) -> Issue:
        """Build an :class:`Issue`, attaching a code snippet when the file is readable.

        Args:
            message: Issue title.
            location: Optional file position of the finding.
            recommendation: Suggested remediation.
            severity: Issue severity; defaults to the check severity.
            metadata: Machine-readable context for the issue.
            snippet: Whether to attempt snippet enrichment.

        Returns:
            Issue: Constructed issue.
        """

        code = None
        if snippet and location is not None:
            source = Path(location.path)
            if not source.is_absolute():
                source = self.base_path / source
            code = read_snippet(source, location.line)
        return Issue(
            message=message,
            location=location,
            recommendation=recommendation,
            severity=severity or self.metadata.severity,
            code=code,
            metadata=dict(metadata or {}),
        )

    def _result(
        self,
        status: Status,
        message: str,
        issues: Sequence[Issue] = (),
        metadata: Mapping[str, Any] | None = None,
    ) -> Result:
        """Build a result for this check.

        Args:
            status: Outcome of the check.
            message: Human readable summary.
            issues: Findings attached to the result, in order.
            metadata: Machine-readable context for the result.

        Returns:
            Result: Constructed result.
        """

        return Result(
            check_id=self.id,
            status=status,
            message=message,
            issues=tuple(issues),
            metadata=dict(metadata or {}),
        )

    def passed(self, message: str, metadata: Mapping[str, Any] | None = None) -> Result:
        """Return a passed result.

        Args:
            message: Summary of the successful check.
            metadata: Optional machine-readable context.

        Returns:
            Result: Result with :attr:`Status.PASSED`.
        """

        return self._result(Status.PASSED, message, (), metadata)

    def failed(
        self,
        message: str,
        issues: Sequence[Issue] = (),
        metadata: Mapping[str, Any] | None = None,
    ) -> Result:
        """Return a failed result.

        Args:
            message: Summary of the failure.
            issues: Findings explaining the failure.
            metadata: Optional machine-readable context.

        Returns:
            Result: Result with :attr:`Status.FAILED`.
        """

        return self._result(Status.FAILED, message, issues, metadata)

    def warning(
        self,
        message: str,
        issues: Sequence[Issue] = (),
        metadata: Mapping[str, Any] | None = None,
    ) -> Result:
        """Return a warning result.

        Args:
            message: Summary of the warning.
            issues: Findings explaining the warning.
            metadata: Optional machine-readable context.

        Returns:
            Result: Result with :attr:`Status.WARNING`.
        """

        return self._result(Status.WARNING, message, issues, metadata)

    def skipped(self, reason: str | None = None) -> Result:
        """Return a skipped result carrying ``reason`` or :meth:`get_skip_reason`."""

        return self._result(Status.SKIPPED, reason or self.get_skip_reason())

    def result_by_severity(self, message: str, issues: Sequence[Issue]) -> Result:
        """Fail when any issue is high or critical, otherwise warn.

        Args:
            message: Summary shared by either outcome.
            issues: Findings used to pick the status.

        Returns:
            Result: Failed or warning result carrying ``issues``.
        """

        if any(issue.severity >= Severity.HIGH for issue in issues):
            return self.failed(message, issues)
        return self.warning(message, issues)


__all__ = ["Check", "SNIPPET_CONTEXT_LINES", "read_snippet"]
