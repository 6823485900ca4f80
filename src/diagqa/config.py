# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Configuration models and loaders for diagqa."""

from __future__ import annotations

import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Final

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .severity import Category

PYPROJECT_FILENAME: Final[str] = "pyproject.toml"
STANDALONE_FILENAME: Final[str] = ".diagqa.toml"
PYPROJECT_TOOL_KEY: Final[str] = "tool"
PYPROJECT_SECTION_KEY: Final[str] = "diagqa"


class ConfigError(Exception):
    """Raised when configuration input is invalid."""


class PHPStanSettings(BaseModel):
    """Options controlling the PHPStan invocation."""

    model_config = ConfigDict(validate_assignment=True)

    paths: tuple[str, ...] = ("app",)
    level: int = Field(default=5, ge=0, le=9)
    timeout: float = Field(default=300.0, gt=0)
    binary: str = "vendor/bin/phpstan"


class CommandSettings(BaseModel):
    """Options shared by the remaining external commands."""

    model_config = ConfigDict(validate_assignment=True)

    timeout: float = Field(default=120.0, gt=0)
    php_binary: str = "php"


class DiagnosticsConfig(BaseModel):
    """Top-level configuration consumed by the check runner."""

    model_config = ConfigDict(validate_assignment=True)

    base_path: Path = Field(default_factory=Path.cwd)
    ci_mode: bool = False
    disabled_checks: tuple[str, ...] = Field(default_factory=tuple)
    enabled_categories: tuple[Category, ...] = Field(default_factory=tuple)
    jobs: int = Field(default=1, ge=1)
    echo: bool = False
    phpstan: PHPStanSettings = Field(default_factory=PHPStanSettings)
    commands: CommandSettings = Field(default_factory=CommandSettings)

    @field_validator("base_path", mode="before")
    @classmethod
    def _expand_base_path(cls, value: object) -> object:
        """Expand ``~`` in configured base paths."""
        if isinstance(value, str):
            return Path(value).expanduser()
        return value

    def is_enabled(self, check_id: str, category: Category) -> bool:
        """Return ``True`` when configuration allows ``check_id`` to run.

        Args:
            check_id: Stable identifier of the check.
            category: Category declared by the check metadata.

        Returns:
            bool: ``False`` when the check is disabled or its category is filtered out.
        """

        if check_id in self.disabled_checks:
            return False
        if self.enabled_categories and category not in self.enabled_categories:
            return False
        return True


def _read_toml(path: Path) -> Mapping[str, Any]:
    try:
        with path.open("rb") as handle:
            return tomllib.load(handle)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Invalid TOML in {path}: {exc}") from exc
    except OSError as exc:
        raise ConfigError(f"Unable to read {path}: {exc}") from exc


def _section_from_pyproject(data: Mapping[str, Any]) -> Mapping[str, Any]:
    tool_section = data.get(PYPROJECT_TOOL_KEY)
    if not isinstance(tool_section, Mapping):
        return {}
    section = tool_section.get(PYPROJECT_SECTION_KEY)
    if section is None:
        return {}
    if not isinstance(section, Mapping):
        raise ConfigError(f"[{PYPROJECT_TOOL_KEY}.{PYPROJECT_SECTION_KEY}] must be a table")
    return section


def config_from_mapping(data: Mapping[str, Any], *, base_path: Path | None = None) -> DiagnosticsConfig:
    """Build a :class:`DiagnosticsConfig` from a raw mapping.

    Args:
        data: Configuration table, typically read from TOML.
        base_path: Optional project root used when ``data`` does not set one.

    Returns:
        DiagnosticsConfig: Validated configuration.

    Raises:
        ConfigError: If the mapping fails validation.
    """

    payload = {key.replace("-", "_"): value for key, value in data.items()}
    if base_path is not None:
        configured = payload.get("base_path")
        if configured is None:
            payload["base_path"] = base_path
        elif not Path(str(configured)).expanduser().is_absolute():
            payload["base_path"] = base_path / str(configured)
    try:
        return DiagnosticsConfig.model_validate(payload)
    except ValidationError as exc:
        raise ConfigError(str(exc)) from exc


def load_config(root: Path) -> DiagnosticsConfig:
    """Load configuration for the project rooted at ``root``.

    A standalone ``.diagqa.toml`` takes precedence over ``[tool.diagqa]`` in
    ``pyproject.toml``; when neither exists the defaults are used.

    Args:
        root: Project root directory.

    Returns:
        DiagnosticsConfig: Loaded configuration with ``base_path`` defaulting to ``root``.

    Raises:
        ConfigError: If a configuration file exists but is invalid.
    """

    standalone = root / STANDALONE_FILENAME
    if standalone.is_file():
        return config_from_mapping(_read_toml(standalone), base_path=root)
    pyproject = root / PYPROJECT_FILENAME
    if pyproject.is_file():
        return config_from_mapping(_section_from_pyproject(_read_toml(pyproject)), base_path=root)
    return DiagnosticsConfig(base_path=root)


__all__ = [
    "CommandSettings",
    "ConfigError",
    "DiagnosticsConfig",
    "PHPStanSettings",
    "config_from_mapping",
    "load_config",
]
