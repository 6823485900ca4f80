# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for the invalid function call classifier and check."""

from __future__ import annotations

from pathlib import Path

import pytest

from diagqa.checks.invalid_function_calls import (
    CLASSIFICATION_RULES,
    CallCategory,
    InvalidFunctionCallCheck,
    classify,
)
from diagqa.process import CommandOutput
from diagqa.severity import Status


def _check(project: Path, runner) -> InvalidFunctionCallCheck:
    check = InvalidFunctionCallCheck(runner=runner)
    check.set_base_path(project)
    return check


@pytest.mark.parametrize(
    ("message", "expected"),
    [
        ("Function nonExistentFunction not found.", CallCategory.UNDEFINED_FUNCTION),
        ("Function substr invoked with 1 parameter, 2-3 required.", CallCategory.PARAMETER_COUNT),
        ("Missing parameter $length in call to function substr.", CallCategory.PARAMETER_COUNT),
        ("Parameter #1 $string of function strlen expects string, int given.", CallCategory.PARAMETER_TYPE),
        ("Result of function App\\Example::voidFunc (void) is used.", CallCategory.VOID_RETURN),
        ("Cannot call function foo on bar.", CallCategory.GENERIC),
    ],
)
def test_classify_categories(message: str, expected: CallCategory) -> None:
    assert classify(message).category is expected


def test_classification_order_is_first_match_wins() -> None:
    # Matches both the "not found" and the parameter type rules.
    message = "Parameter #1 $cb of function call expects callable, string given: function not found"
    assert classify(message).category is CallCategory.UNDEFINED_FUNCTION
    assert [rule.category for rule in CLASSIFICATION_RULES] == [
        CallCategory.UNDEFINED_FUNCTION,
        CallCategory.PARAMETER_COUNT,
        CallCategory.PARAMETER_TYPE,
        CallCategory.VOID_RETURN,
        CallCategory.GENERIC,
    ]


def test_recommendations_per_category() -> None:
    assert "Check for typos" in classify("Function foo not found.").render("m")
    assert "extension/library" in classify("Function foo not found.").render("m")
    count = classify("Function substr invoked with 1 parameter, 2-3 required.").render("m")
    assert "do not match the function signature" in count
    types = classify("Parameter #1 of function test expects string, int given.").render("m")
    assert "parameter types" in types
    assert "function parameters" in types
    void = classify("Result of function test (void) is used.").render("m")
    assert "returns void" in void
    assert "cannot use its return value" in void


def test_detects_undefined_function(phpstan_project: Path, stub_runner, phpstan_report) -> None:
    source = phpstan_project / "app" / "Example.php"
    source.write_text("<?php\n\nclass Example {\n    public function test() {\n\n        nonExistentFunction();\n    }\n}\n")
    stub_runner.output = CommandOutput(
        stdout=phpstan_report([{"file": str(source), "line": 6, "message": "Function nonExistentFunction not found."}]),
        returncode=1,
    )

    result = _check(phpstan_project, stub_runner).analyze()

    assert result.status is Status.FAILED
    assert result.issue_count == 1
    issue = result.issues[0]
    assert issue.message == "Invalid function call detected"
    assert issue.location is not None
    assert issue.location.path == str(source)
    assert issue.location.line == 6
    assert "Check for typos" in issue.recommendation
    assert issue.metadata["phpstan_message"] == "Function nonExistentFunction not found."
    assert issue.metadata["file"] == str(source)
    assert issue.metadata["line"] == 6
    assert issue.code is not None and "nonExistentFunction" in issue.code
    assert "1 invalid function call(s)" in result.message


def test_command_uses_json_error_format(phpstan_project: Path, stub_runner, phpstan_report) -> None:
    stub_runner.output = CommandOutput(stdout=phpstan_report([]), returncode=0)

    _check(phpstan_project, stub_runner).analyze()

    args, cwd, timeout = stub_runner.calls[0]
    assert args[0] == str(phpstan_project / "vendor" / "bin" / "phpstan")
    assert "--error-format=json" in args
    assert "--level=5" in args
    assert args[-1] == "app"
    assert cwd == phpstan_project
    assert timeout == 300.0


def test_passes_with_zero_messages(phpstan_project: Path, stub_runner, phpstan_report) -> None:
    stub_runner.output = CommandOutput(stdout=phpstan_report([]), returncode=0)

    result = _check(phpstan_project, stub_runner).analyze()

    assert result.status is Status.PASSED
    assert "No invalid function calls detected" in result.message
    assert result.issues == ()


def test_ignores_unrelated_messages(phpstan_project: Path, stub_runner, phpstan_report) -> None:
    stub_runner.output = CommandOutput(
        stdout=phpstan_report([{"file": "app/A.php", "line": 3, "message": "Class Foo not found."}]),
        returncode=1,
    )

    result = _check(phpstan_project, stub_runner).analyze()

    assert result.status is Status.PASSED


def test_truncates_to_first_fifty(phpstan_project: Path, stub_runner, phpstan_report) -> None:
    messages = [{"file": "app/Missing.php", "line": i, "message": f"Function test{i} not found."} for i in range(1, 76)]
    stub_runner.output = CommandOutput(stdout=phpstan_report(messages), returncode=1)

    result = _check(phpstan_project, stub_runner).analyze()

    assert result.status is Status.FAILED
    assert result.issue_count == 50
    assert "75 invalid function call(s)" in result.message
    assert "showing first 50" in result.message
    assert [issue.location.line for issue in result.issues] == list(range(1, 51))
    assert result.metadata["total_count"] == 75


def test_missing_source_file_still_emits_issue(phpstan_project: Path, stub_runner, phpstan_report) -> None:
    stub_runner.output = CommandOutput(
        stdout=phpstan_report([{"file": "app/Gone.php", "line": 4, "message": "Function gone not found."}]),
        returncode=1,
    )

    result = _check(phpstan_project, stub_runner).analyze()

    assert result.issue_count == 1
    assert result.issues[0].code is None


def test_known_false_positive_is_filtered(phpstan_project: Path, stub_runner, phpstan_report) -> None:
    message = "Argument of an invalid type Carbon\\CarbonPeriod supplied for foreach, only iterables are supported."
    stub_runner.output = CommandOutput(
        stdout=phpstan_report(
            [
                {"file": "app/A.php", "line": 1, "message": message},
                {"file": "app/A.php", "line": 2, "message": "Function a not found."},
            ]
        ),
        returncode=1,
    )

    result = _check(phpstan_project, stub_runner).analyze()

    assert result.issue_count == 1


def test_warns_when_binary_missing(tmp_path: Path, stub_runner) -> None:
    result = _check(tmp_path, stub_runner).analyze()

    assert result.status is Status.WARNING
    assert result.issue_count == 1
    assert result.issues[0].message == "PHPStan binary not found"
    assert "composer install" in result.issues[0].recommendation
    assert "composer require" not in result.issues[0].recommendation
    assert stub_runner.calls == []


@pytest.mark.parametrize("stdout", ["", "not json", "[1, 2]"])
def test_unparseable_output_fails(phpstan_project: Path, stub_runner, stdout: str) -> None:
    stub_runner.output = CommandOutput(stdout=stdout, returncode=1)

    result = _check(phpstan_project, stub_runner).analyze()

    assert result.status is Status.FAILED
    assert result.message.startswith("Unable to run PHPStan")
    assert result.metadata["raw_output"] == stdout


def test_reuse_with_different_base_paths(phpstan_project: Path, tmp_path_factory, stub_runner, phpstan_report) -> None:
    stub_runner.output = CommandOutput(stdout=phpstan_report([]), returncode=0)
    check = _check(phpstan_project, stub_runner)
    assert check.analyze().status is Status.PASSED

    check.set_base_path(tmp_path_factory.mktemp("empty"))
    assert check.analyze().status is Status.WARNING


def test_metadata() -> None:
    metadata = InvalidFunctionCallCheck().get_metadata()
    assert metadata.id == "invalid-function-calls"
    assert "phpstan" in metadata.tags
