# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Shared pytest fixtures."""

from __future__ import annotations

import json
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path

import pytest

from diagqa.process import CommandOutput


@dataclass
class StubRunner:
    """Command runner returning canned output and recording invocations."""

    output: CommandOutput = field(default_factory=lambda: CommandOutput(stdout="", returncode=0))
    calls: list[tuple[list[str], Path | None, float | None]] = field(default_factory=list)

    def run(
        self,
        args: Sequence[str],
        *,
        cwd: Path | None = None,
        timeout: float | None = None,
    ) -> CommandOutput:
        self.calls.append((list(args), cwd, timeout))
        return self.output


def _phpstan_report(messages: Sequence[Mapping[str, object]]) -> str:
    """Return PHPStan JSON output for ``messages`` (each with file, line, message)."""

    files: dict[str, dict[str, object]] = {}
    for entry in messages:
        bucket = files.setdefault(str(entry["file"]), {"errors": 0, "messages": []})
        bucket["messages"].append({"message": entry["message"], "line": entry["line"], "ignorable": True})
        bucket["errors"] = len(bucket["messages"])
    payload = {
        "totals": {"errors": 0, "file_errors": len(messages)},
        "files": files if files else [],
        "errors": [],
    }
    return json.dumps(payload)


@pytest.fixture
def phpstan_report() -> Callable[[Sequence[Mapping[str, object]]], str]:
    """Return a builder producing PHPStan JSON output from message mappings."""
    return _phpstan_report


@pytest.fixture
def stub_runner() -> StubRunner:
    """Return a fresh :class:`StubRunner`."""
    return StubRunner()


@pytest.fixture
def phpstan_project(tmp_path: Path) -> Path:
    """Return a project directory containing a placeholder PHPStan binary."""
    binary = tmp_path / "vendor" / "bin" / "phpstan"
    binary.parent.mkdir(parents=True)
    binary.write_text("#!/bin/sh\nexit 0\n", encoding="utf-8")
    binary.chmod(0o755)
    (tmp_path / "app").mkdir()
    return tmp_path
