# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests covering configuration loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from diagqa.config import ConfigError, DiagnosticsConfig, load_config
from diagqa.severity import Category


def test_defaults_without_files(tmp_path: Path) -> None:
    config = load_config(tmp_path)
    assert config == DiagnosticsConfig(base_path=tmp_path)
    assert config.phpstan.level == 5
    assert config.phpstan.paths == ("app",)


def test_reads_pyproject_section(tmp_path: Path) -> None:
    (tmp_path / "pyproject.toml").write_text(
        """
[tool.diagqa]
ci-mode = true
disabled-checks = ["cache-prefix-configuration"]
enabled-categories = ["reliability"]
base-path = "site"

[tool.diagqa.phpstan]
level = 7
paths = ["app", "src"]
""",
        encoding="utf-8",
    )

    config = load_config(tmp_path)

    assert config.ci_mode is True
    assert config.disabled_checks == ("cache-prefix-configuration",)
    assert config.enabled_categories == (Category.RELIABILITY,)
    assert config.base_path == tmp_path / "site"
    assert config.phpstan.level == 7
    assert config.phpstan.paths == ("app", "src")


def test_standalone_file_takes_precedence(tmp_path: Path) -> None:
    (tmp_path / "pyproject.toml").write_text("[tool.diagqa]\njobs = 2\n", encoding="utf-8")
    (tmp_path / ".diagqa.toml").write_text("jobs = 4\n", encoding="utf-8")

    assert load_config(tmp_path).jobs == 4


@pytest.mark.parametrize(
    "content",
    ["jobs = 0\n", "[phpstan]\nlevel = 12\n", "jobs = [\n"],
)
def test_invalid_configuration_raises(tmp_path: Path, content: str) -> None:
    (tmp_path / ".diagqa.toml").write_text(content, encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(tmp_path)


def test_is_enabled() -> None:
    config = DiagnosticsConfig(disabled_checks=("a",), enabled_categories=(Category.SECURITY,))
    assert not config.is_enabled("a", Category.SECURITY)
    assert not config.is_enabled("b", Category.RELIABILITY)
    assert config.is_enabled("b", Category.SECURITY)
