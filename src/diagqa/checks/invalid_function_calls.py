# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Classify PHPStan diagnostics describing invalid function calls."""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import ClassVar, Final

from ..config import PHPStanSettings
from ..models import CheckMetadata, Issue, Location, Result
from ..phpstan import RAW_OUTPUT_LIMIT, Finding, PHPStanOutputError, PHPStanRunner, matches_any
from ..process import CommandRunner, ToolNotFoundError
from ..severity import Category, Severity
from .base import Check

MAX_DISPLAYED_ISSUES: Final[int] = 50
ISSUE_TITLE: Final[str] = "Invalid function call detected"

FUNCTION_CALL_PATTERNS: Final[tuple[str, ...]] = (
    "Function * not found*",
    "Function * invoked with * parameter*",
    "Parameter * of function * expects*",
    "Missing parameter * in call to function *",
    "Unknown parameter * in call to function *",
    "Parameter * of * expects * given*",
    "Result of function * (void) is used*",
    "Cannot call function * on *",
)


class CallCategory(str, Enum):
    """Kinds of invalid function call recognised by the classifier."""

    UNDEFINED_FUNCTION = "undefined_function"
    PARAMETER_COUNT = "parameter_count"
    PARAMETER_TYPE = "parameter_type"
    VOID_RETURN = "void_return"
    GENERIC = "generic"


@dataclass(frozen=True, slots=True)
class ClassificationRule:
    """One entry of the ordered classification table."""

    category: CallCategory
    pattern: re.Pattern[str]
    recommendation: str

    def matches(self, message: str) -> bool:
        """Return ``True`` when the rule applies to ``message``."""
        return self.pattern.search(message) is not None

    def render(self, message: str) -> str:
        """Return the recommendation text for ``message``."""
        return f"{self.recommendation} PHPStan message: {message}"


# Evaluated top to bottom, first match wins. The catch-all must stay last.
CLASSIFICATION_RULES: Final[tuple[ClassificationRule, ...]] = (
    ClassificationRule(
        CallCategory.UNDEFINED_FUNCTION,
        re.compile(r"\bnot found\b"),
        "Fix the function call - the function does not exist. Check for typos in the function name, "
        "ensure the function is defined, or verify the required extension/library is installed.",
    ),
    ClassificationRule(
        CallCategory.PARAMETER_COUNT,
        re.compile(r"invoked with .*parameter|(?:Missing|Unknown) parameter .* in call to|parameters? .*required"),
        "Fix the function parameters - they do not match the function signature. "
        "The supplied parameters do not match the function's signature; check the parameter count and order.",
    ),
    ClassificationRule(
        CallCategory.PARAMETER_TYPE,
        re.compile(r"Parameter .* expects .* given"),
        "Fix the function parameters - they do not match the function signature. "
        "Check the parameter types passed to the function and convert or validate values before the call.",
    ),
    ClassificationRule(
        CallCategory.VOID_RETURN,
        re.compile(r"Result of function .*\(void\) is used"),
        "The function returns void - you cannot use its return value. "
        "Remove the code that attempts to use the return value.",
    ),
    ClassificationRule(
        CallCategory.GENERIC,
        re.compile(r""),
        "Fix the function call issue detected by PHPStan.",
    ),
)


def classify(message: str, rules: Sequence[ClassificationRule] = CLASSIFICATION_RULES) -> ClassificationRule:
    """Return the first rule in ``rules`` matching ``message``.

    Args:
        message: Raw PHPStan message.
        rules: Ordered rule table; the final entry should match everything.

    Returns:
        ClassificationRule: Matching rule, or the last rule when none match.
    """

    for rule in rules:
        if rule.matches(message):
            return rule
    return rules[-1]


class InvalidFunctionCallCheck(Check):
    """Detect calls to undefined functions and invalid function signatures."""

    metadata: ClassVar[CheckMetadata] = CheckMetadata(
        id="invalid-function-calls",
        name="Invalid Function Calls",
        description="Detects invalid function calls in application code using PHPStan static analysis",
        category=Category.RELIABILITY,
        severity=Severity.HIGH,
        tags=("phpstan", "static-analysis", "functions", "type-safety"),
        docs_url="https://phpstan.org/user-guide/getting-started",
        time_to_fix=15,
    )

    def __init__(
        self,
        base_path: Path | str | None = None,
        *,
        settings: PHPStanSettings | None = None,
        runner: CommandRunner | None = None,
    ) -> None:
        super().__init__(base_path)
        self.settings = settings or PHPStanSettings()
        self._runner = runner

    def _phpstan(self) -> PHPStanRunner:
        return PHPStanRunner(self.base_path, settings=self.settings, runner=self._runner)

    def run_analysis(self) -> Result:
        phpstan = self._phpstan()
        try:
            findings = phpstan.analyze()
        except ToolNotFoundError:
            return self.warning(
                "PHPStan binary not found",
                [
                    self.create_issue(
                        "PHPStan binary not found",
                        location=Location(path=self.relative_path(phpstan.binary)),
                        severity=Severity.MEDIUM,
                        recommendation=(
                            "PHPStan is not installed in this project. "
                            'Run "composer install" to install the development dependencies, then re-run the analysis.'
                        ),
                        snippet=False,
                    )
                ],
            )
        except PHPStanOutputError as exc:
            return self.failed(
                f"Unable to run PHPStan: {exc}",
                metadata={"raw_output": exc.output[:RAW_OUTPUT_LIMIT]},
            )

        issues = [
            self._issue_for(finding) for finding in findings if matches_any(finding.message, FUNCTION_CALL_PATTERNS)
        ]
        if not issues:
            return self.passed("No invalid function calls detected")
        return self.summarize(issues)

    def summarize(self, issues: Sequence[Issue]) -> Result:
        """Build the failed result for ``issues``, truncating the displayed list.

        Args:
            issues: Every issue found, in discovery order.

        Returns:
            Result: Failed result reporting the total count.
        """

        total = len(issues)
        displayed = list(issues[:MAX_DISPLAYED_ISSUES])
        message = f"{total} invalid function call(s) detected"
        if total > len(displayed):
            message = f"{message} (showing first {len(displayed)})"
        return self.failed(message, displayed, metadata={"total_count": total, "displayed_count": len(displayed)})

    def _issue_for(self, finding: Finding) -> Issue:
        rule = classify(finding.message)
        return self.create_issue(
            ISSUE_TITLE,
            location=Location(path=finding.file, line=finding.line),
            recommendation=rule.render(finding.message),
            metadata={
                "phpstan_message": finding.message,
                "file": finding.file,
                "line": finding.line,
                "category": rule.category.value,
            },
        )


__all__ = [
    "CLASSIFICATION_RULES",
    "CallCategory",
    "ClassificationRule",
    "FUNCTION_CALL_PATTERNS",
    "InvalidFunctionCallCheck",
    "MAX_DISPLAYED_ISSUES",
    "classify",
]
