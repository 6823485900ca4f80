# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for the subprocess-backed command runner."""

from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest

from diagqa.process import TIMEOUT_EXIT_CODE, CommandRunner, SubprocessRunner, ToolNotFoundError, resolve_executable

posix_only = pytest.mark.skipif(os.name != "posix", reason="requires a POSIX shell script")


def _script(tmp_path: Path, body: str) -> Path:
    script = tmp_path / "tool.sh"
    script.write_text(f"#!/bin/sh\n{body}\n", encoding="utf-8")
    script.chmod(0o755)
    return script


def test_subprocess_runner_satisfies_protocol() -> None:
    assert isinstance(SubprocessRunner(), CommandRunner)


def test_missing_executable_raises(tmp_path: Path) -> None:
    with pytest.raises(ToolNotFoundError):
        resolve_executable(tmp_path / "vendor" / "bin" / "phpstan")
    with pytest.raises(ToolNotFoundError):
        SubprocessRunner().run(["definitely-not-a-real-tool-diagqa"])


@posix_only
def test_captures_stdout_and_exit_code(tmp_path: Path) -> None:
    script = _script(tmp_path, 'echo "hello"\necho "oops" >&2\nexit 3')

    output = SubprocessRunner().run([str(script)], cwd=tmp_path)

    assert output.stdout == "hello\n"
    assert output.stderr == "oops\n"
    assert output.returncode == 3
    assert not output.ok


@posix_only
def test_timeout_maps_to_exit_code(tmp_path: Path) -> None:
    script = _script(tmp_path, "exec sleep 5")

    output = SubprocessRunner().run([str(script)], timeout=0.2)

    assert output.returncode == TIMEOUT_EXIT_CODE
    assert "timed out" in output.stderr


def test_runs_python_interpreter() -> None:
    output = SubprocessRunner().run([sys.executable, "-c", "print('ok')"])
    assert output.ok
    assert output.stdout.strip() == "ok"
