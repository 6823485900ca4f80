# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""PHPStan invocation and JSON report parsing."""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Final

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .config import PHPStanSettings
from .process import CommandRunner, SubprocessRunner, ToolNotFoundError

LOGGER = logging.getLogger(__name__)

RAW_OUTPUT_LIMIT: Final[int] = 500

# PHPStan does not recognise CarbonPeriod as an Iterator.
KNOWN_FALSE_POSITIVES: Final[tuple[re.Pattern[str], ...]] = (
    re.compile(r"Argument of an invalid type Carbon\\CarbonPeriod supplied for foreach"),
)


class PHPStanOutputError(ValueError):
    """Raised when PHPStan output cannot be parsed as a JSON report."""

    def __init__(self, message: str, output: str) -> None:
        super().__init__(message)
        self.output = output


class ReportMessage(BaseModel):
    """A single message reported against a file."""

    model_config = ConfigDict(frozen=True)

    message: str = ""
    line: int | None = None
    ignorable: bool = True

    @field_validator("line", mode="before")
    @classmethod
    def _coerce_line(cls, value: object) -> object:
        """Tolerate string and missing line numbers."""
        if value in (None, ""):
            return None
        if isinstance(value, str) and value.strip().isdigit():
            return int(value)
        return value


class ReportFile(BaseModel):
    """Messages reported for one source file."""

    model_config = ConfigDict(frozen=True)

    errors: int = 0
    messages: tuple[ReportMessage, ...] = Field(default_factory=tuple)


class ReportTotals(BaseModel):
    """Summary counters emitted by PHPStan."""

    model_config = ConfigDict(frozen=True)

    errors: int = 0
    file_errors: int = 0


class PHPStanReport(BaseModel):
    """Parsed ``--error-format=json`` report."""

    model_config = ConfigDict(frozen=True)

    totals: ReportTotals = Field(default_factory=ReportTotals)
    files: dict[str, ReportFile] = Field(default_factory=dict)
    errors: tuple[str, ...] = Field(default_factory=tuple)

    @field_validator("files", mode="before")
    @classmethod
    def _coerce_files(cls, value: object) -> object:
        """PHPStan encodes an empty ``files`` object as ``[]``."""
        if isinstance(value, list) and not value:
            return {}
        return value

    @field_validator("errors", mode="before")
    @classmethod
    def _coerce_errors(cls, value: object) -> object:
        if isinstance(value, list):
            return tuple(str(item) for item in value)
        return value

    def iter_findings(self) -> Iterable[Finding]:
        """Yield every message in report order."""

        for path, entry in self.files.items():
            for message in entry.messages:
                yield Finding(file=path, line=message.line or 0, message=message.message)


@dataclass(frozen=True, slots=True)
class Finding:
    """Flattened PHPStan message with its file position."""

    file: str
    line: int
    message: str


def parse_report(stdout: str) -> PHPStanReport:
    """Parse PHPStan JSON output.

    Args:
        stdout: Raw standard output of ``phpstan analyse --error-format=json``.

    Returns:
        PHPStanReport: Parsed report.

    Raises:
        PHPStanOutputError: If the output is empty, not JSON, or not a report object.
    """

    text = stdout.strip()
    if not text:
        raise PHPStanOutputError("PHPStan produced no output", stdout)
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise PHPStanOutputError(f"PHPStan output is not valid JSON: {exc.msg}", stdout) from exc
    if not isinstance(payload, dict):
        raise PHPStanOutputError("PHPStan output is not a JSON object", stdout)
    try:
        return PHPStanReport.model_validate(payload)
    except ValidationError as exc:
        raise PHPStanOutputError(f"PHPStan report has an unexpected shape: {exc}", stdout) from exc


def is_known_false_positive(message: str) -> bool:
    """Return ``True`` when ``message`` matches a suppressed false positive."""

    return any(pattern.search(message) for pattern in KNOWN_FALSE_POSITIVES)


def matches_any(message: str, patterns: Sequence[str]) -> bool:
    """Return ``True`` when ``message`` matches one of the ``*`` wildcard ``patterns``."""

    return any(fnmatchcase(message, pattern) for pattern in patterns)


class PHPStanRunner:
    """Run PHPStan against a project and expose its findings."""

    def __init__(
        self,
        base_path: Path,
        *,
        settings: PHPStanSettings | None = None,
        runner: CommandRunner | None = None,
    ) -> None:
        self.base_path = base_path
        self.settings = settings or PHPStanSettings()
        self._runner = runner or SubprocessRunner()

    @property
    def binary(self) -> Path:
        """Return the PHPStan executable location inside the project."""

        return self.base_path / self.settings.binary

    def is_available(self) -> bool:
        """Return ``True`` when the PHPStan binary exists."""

        return self.binary.is_file()

    def build_command(self, paths: Sequence[str] | None = None, level: int | None = None) -> list[str]:
        """Return the argument list used to invoke PHPStan."""

        return [
            str(self.binary),
            "analyse",
            f"--level={self.settings.level if level is None else level}",
            "--error-format=json",
            "--no-progress",
            "--no-interaction",
            *(paths if paths is not None else self.settings.paths),
        ]

    def analyze(self, paths: Sequence[str] | None = None, level: int | None = None) -> list[Finding]:
        """Run PHPStan and return its findings minus known false positives.

        Args:
            paths: Project-relative paths to analyse; defaults to the configured paths.
            level: Rule level; defaults to the configured level.

        Returns:
            list[Finding]: Findings in report order.

        Raises:
            ToolNotFoundError: If the PHPStan binary is missing.
            PHPStanOutputError: If PHPStan did not produce a JSON report.
        """

        if not self.is_available():
            raise ToolNotFoundError(str(self.binary))
        output = self._runner.run(
            self.build_command(paths, level),
            cwd=self.base_path,
            timeout=self.settings.timeout,
        )
        # Exit status is advisory; PHPStan exits 1 whenever it reports errors.
        LOGGER.debug("phpstan exited with %s", output.returncode)
        report = parse_report(output.stdout)
        return [finding for finding in report.iter_findings() if not is_known_false_positive(finding.message)]


__all__ = [
    "Finding",
    "KNOWN_FALSE_POSITIVES",
    "PHPStanOutputError",
    "PHPStanReport",
    "PHPStanRunner",
    "RAW_OUTPUT_LIMIT",
    "is_known_false_positive",
    "matches_any",
    "parse_report",
]
