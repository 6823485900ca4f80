# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Severity and status enumerations shared by every check."""

from __future__ import annotations

from enum import Enum
from typing import Final


class Severity(str, Enum):
    """Ordinal severity attached to check metadata and issues."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        """Return the ordinal position of the severity (``low`` is ``0``)."""

        return _SEVERITY_ORDER[self]

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank >= other.rank


_SEVERITY_ORDER: Final[dict[Severity, int]] = {
    Severity.LOW: 0,
    Severity.MEDIUM: 1,
    Severity.HIGH: 2,
    Severity.CRITICAL: 3,
}


class Status(str, Enum):
    """Outcome of a single check invocation."""

    PASSED = "passed"
    FAILED = "failed"
    WARNING = "warning"
    SKIPPED = "skipped"
    ERROR = "error"

    @property
    def is_failure(self) -> bool:
        """Return ``True`` when the status should fail an aggregate run."""

        return self in (Status.FAILED, Status.ERROR)


class Category(str, Enum):
    """Grouping used by reporting and by category filters in configuration."""

    RELIABILITY = "reliability"
    PERFORMANCE = "performance"
    SECURITY = "security"
    BEST_PRACTICES = "best-practices"
    CODE_QUALITY = "code-quality"


__all__ = ["Category", "Severity", "Status"]
