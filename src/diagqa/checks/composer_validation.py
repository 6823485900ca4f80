# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Two-phase validation of the project's ``composer.json``."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import ClassVar

from ..composer import MANIFEST_FILENAME, ComposerCommandValidator, ComposerValidator, loads_strict
from ..models import CheckMetadata, Location, Result
from ..process import ToolNotFoundError
from ..severity import Category, Severity
from .base import Check

LOGGER = logging.getLogger(__name__)


class ComposerValidationCheck(Check):
    """Check JSON syntax locally, then delegate to ``composer validate``."""

    metadata: ClassVar[CheckMetadata] = CheckMetadata(
        id="composer-validation",
        name="Composer Validation",
        description="Ensures composer.json file is valid and follows best practices",
        category=Category.RELIABILITY,
        severity=Severity.CRITICAL,
        tags=("composer", "dependencies", "reliability", "configuration"),
        docs_url="https://getcomposer.org/doc/03-cli.md#validate",
        time_to_fix=10,
    )

    def __init__(self, base_path: Path | str | None = None, *, validator: ComposerValidator | None = None) -> None:
        super().__init__(base_path)
        self.validator = validator or ComposerCommandValidator()

    @property
    def manifest_path(self) -> Path:
        """Return the location of ``composer.json``."""

        return self.build_path(MANIFEST_FILENAME)

    def run_analysis(self) -> Result:
        manifest = self.manifest_path
        location = Location(path=str(manifest), line=1)

        if not manifest.exists():
            return self.failed(
                f"{MANIFEST_FILENAME} file not found",
                [
                    self.create_issue(
                        f"{MANIFEST_FILENAME} file is missing",
                        location=Location(path=str(self.base_path), line=1),
                        recommendation=(
                            f"Create a {MANIFEST_FILENAME} file in the root of your project. "
                            'Run "composer init" to create one interactively.'
                        ),
                        snippet=False,
                    )
                ],
            )

        local_failure = self._validate_syntax(manifest, location)
        if local_failure is not None:
            return local_failure

        try:
            validation = self.validator.validate(self.base_path)
        except ToolNotFoundError:
            return self.warning(
                "Composer binary not found",
                [
                    self.create_issue(
                        "Composer binary not found",
                        location=location,
                        severity=Severity.MEDIUM,
                        recommendation=(
                            "Install Composer (https://getcomposer.org/download/) so that "
                            f'"composer validate" can check {MANIFEST_FILENAME}.'
                        ),
                        snippet=False,
                    )
                ],
            )
        except Exception as exc:  # noqa: BLE001
            LOGGER.debug("composer validate could not be run", exc_info=True)
            return self.failed(
                f"Unable to validate {MANIFEST_FILENAME}",
                [
                    self.create_issue(
                        "composer validate command could not be run",
                        location=location,
                        severity=Severity.HIGH,
                        recommendation=(
                            'Ensure Composer is installed and executable, then run "composer validate" '
                            f"manually. Error: {exc}"
                        ),
                        metadata={"error": str(exc), "exception": type(exc).__name__},
                        snippet=False,
                    )
                ],
            )

        if not validation.is_valid:
            return self.failed(
                f"{MANIFEST_FILENAME} validation failed",
                [
                    self.create_issue(
                        "composer validate command reported issues",
                        location=location,
                        severity=Severity.HIGH,
                        recommendation=(
                            'Run "composer validate" to see full details and resolve the reported issues. '
                            "Ensure version constraints and schema match Composer expectations."
                        ),
                        metadata={"composer_output": validation.output.strip()},
                    )
                ],
            )

        return self.passed(f"{MANIFEST_FILENAME} is valid")

    def _validate_syntax(self, manifest: Path, location: Location) -> Result | None:
        """Return a failed result when ``manifest`` is unreadable or not a JSON object."""

        try:
            content = manifest.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            return self.failed(
                f"Unable to read {MANIFEST_FILENAME} file",
                [
                    self.create_issue(
                        f"{MANIFEST_FILENAME} file cannot be read",
                        location=location,
                        recommendation=f"Check the file permissions of {MANIFEST_FILENAME}.",
                        metadata={"error": str(exc)},
                        snippet=False,
                    )
                ],
            )

        try:
            decoded = loads_strict(content)
        except ValueError as exc:
            return self.failed(
                f"{MANIFEST_FILENAME} contains invalid JSON",
                [
                    self.create_issue(
                        f"{MANIFEST_FILENAME} is not valid JSON: {exc}",
                        location=location,
                        recommendation=(
                            f"Fix the JSON syntax errors in {MANIFEST_FILENAME}. Use a JSON validator or run "
                            '"composer validate" to see specific errors. Common issues: missing commas, '
                            "trailing commas, unescaped quotes."
                        ),
                        metadata={"json_error": str(exc)},
                    )
                ],
            )

        if not isinstance(decoded, dict):
            return self.failed(
                f"{MANIFEST_FILENAME} is not a valid JSON object",
                [
                    self.create_issue(
                        f"{MANIFEST_FILENAME} must be a JSON object, not a primitive value or array",
                        location=location,
                        recommendation=(
                            f"{MANIFEST_FILENAME} must be a valid JSON object. Ensure the root element is an "
                            "object (wrapped in curly braces {})."
                        ),
                        metadata={"json_type": type(decoded).__name__},
                    )
                ],
            )
        return None


__all__ = ["ComposerValidationCheck"]
