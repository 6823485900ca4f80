# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Core data models shared across the diagqa package."""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator, model_validator

from .severity import Category, Severity, Status


def freeze_metadata(value: Mapping[str, Any]) -> Mapping[str, Any]:
    """Return a read-only view over a copy of ``value``."""

    return MappingProxyType(dict(value))


class Location(BaseModel):
    """File position associated with an issue."""

    model_config = ConfigDict(frozen=True)

    path: str
    line: int | None = None

    @field_validator("path", mode="before")
    @classmethod
    def _coerce_path(cls, value: object) -> str:
        """Accept :class:`pathlib.Path` instances as well as strings."""
        return str(value)

    @field_validator("line", mode="before")
    @classmethod
    def _normalise_line(cls, value: object) -> object:
        """Treat zero and negative line numbers as file-level locations."""
        if value is None:
            return None
        if isinstance(value, int) and value <= 0:
            return None
        return value

    def __str__(self) -> str:
        return self.path if self.line is None else f"{self.path}:{self.line}"


class Issue(BaseModel):
    """A single structured finding produced by a check."""

    model_config = ConfigDict(frozen=True)

    message: str
    location: Location | None = None
    recommendation: str = ""
    severity: Severity = Severity.MEDIUM
    code: str | None = None
    metadata: Mapping[str, Any] = Field(default_factory=dict, validate_default=True)

    @field_validator("metadata", mode="after")
    @classmethod
    def _freeze_metadata(cls, value: Mapping[str, Any]) -> Mapping[str, Any]:
        return freeze_metadata(value)

    @field_serializer("metadata")
    def _dump_metadata(self, value: Mapping[str, Any]) -> dict[str, Any]:
        return dict(value)

    @field_validator("message")
    @classmethod
    def _require_message(cls, value: str) -> str:
        """Reject blank issue titles."""
        if not value.strip():
            raise ValueError("issue message must not be empty")
        return value


class Result(BaseModel):
    """Outcome of one check invocation."""

    model_config = ConfigDict(frozen=True)

    check_id: str
    status: Status
    message: str
    issues: tuple[Issue, ...] = Field(default_factory=tuple)
    metadata: Mapping[str, Any] = Field(default_factory=dict, validate_default=True)
    execution_time: float = 0.0

    @field_validator("metadata", mode="after")
    @classmethod
    def _freeze_metadata(cls, value: Mapping[str, Any]) -> Mapping[str, Any]:
        return freeze_metadata(value)

    @field_serializer("metadata")
    def _dump_metadata(self, value: Mapping[str, Any]) -> dict[str, Any]:
        return dict(value)

    @model_validator(mode="after")
    def _check_status_invariants(self) -> Result:
        """Enforce the relationship between status, issues and message."""
        if self.status is Status.PASSED and self.issues:
            raise ValueError("a passed result cannot carry issues")
        if self.status in (Status.FAILED, Status.WARNING) and not self.issues and not self.message.strip():
            raise ValueError(f"a {self.status.value} result requires issues or an explanatory message")
        return self

    @property
    def issue_count(self) -> int:
        """Return the number of issues attached to the result."""

        return len(self.issues)

    def is_success(self) -> bool:
        """Return ``True`` when the result should not fail an aggregate run."""

        return not self.status.is_failure

    def with_timing(self, seconds: float) -> Result:
        """Return a copy of the result recording ``seconds`` of execution time."""

        return self.model_copy(update={"execution_time": seconds})

    def with_metadata(self, extra: Mapping[str, Any]) -> Result:
        """Return a copy of the result with ``extra`` merged into its metadata."""

        return self.model_copy(update={"metadata": freeze_metadata({**self.metadata, **extra})})


class CheckMetadata(BaseModel):
    """Static descriptive data for a check type."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str = ""
    category: Category = Category.RELIABILITY
    severity: Severity = Severity.MEDIUM
    tags: tuple[str, ...] = Field(default_factory=tuple)
    docs_url: str | None = None
    time_to_fix: int | None = None


__all__ = ["CheckMetadata", "Issue", "Location", "Result"]
