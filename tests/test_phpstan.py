# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for PHPStan report parsing."""

from __future__ import annotations

import json

import pytest

from diagqa.phpstan import PHPStanOutputError, matches_any, parse_report


def test_parse_report_flattens_messages() -> None:
    payload = {
        "totals": {"errors": 0, "file_errors": 2},
        "files": {
            "/app/A.php": {"errors": 1, "messages": [{"message": "first", "line": 3, "ignorable": True}]},
            "/app/B.php": {"errors": 1, "messages": [{"message": "second", "line": None, "ignorable": False}]},
        },
        "errors": [],
    }

    report = parse_report(json.dumps(payload))
    findings = list(report.iter_findings())

    assert report.totals.file_errors == 2
    assert [(f.file, f.line, f.message) for f in findings] == [("/app/A.php", 3, "first"), ("/app/B.php", 0, "second")]


def test_parse_report_accepts_empty_files_list() -> None:
    report = parse_report('{"totals": {"errors": 0, "file_errors": 0}, "files": [], "errors": []}')
    assert list(report.iter_findings()) == []


@pytest.mark.parametrize("stdout", ["", "   ", "Error: something broke", "[]", '{"files": 3}'])
def test_parse_report_rejects_non_reports(stdout: str) -> None:
    with pytest.raises(PHPStanOutputError) as excinfo:
        parse_report(stdout)
    assert excinfo.value.output == stdout


def test_wildcard_patterns_are_anchored() -> None:
    assert matches_any("Function foo not found.", ["Function * not found*"])
    assert not matches_any("Class Function foo not found.", ["Function * not found*"])
    assert matches_any("Result of function f (void) is used.", ["Result of function * (void) is used*"])
