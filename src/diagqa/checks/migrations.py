# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Detect pending database migrations from ``migrate:status`` output."""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from pathlib import Path
from typing import ClassVar, Final, Protocol, runtime_checkable

from ..config import CommandSettings
from ..models import CheckMetadata, Location, Result
from ..process import CommandRunner, SubprocessRunner, ToolNotFoundError
from ..severity import Category, Severity
from .base import Check

LOGGER = logging.getLogger(__name__)

NO_PENDING_MIGRATIONS_MESSAGE: Final[str] = "No pending migrations."
PENDING_MIGRATION_PATTERN: Final[re.Pattern[str]] = re.compile(r"Pending\s+(.+)")
MAX_LISTED_MIGRATIONS: Final[int] = 5
ELLIPSIS: Final[str] = "..."
RAW_OUTPUT_LIMIT: Final[int] = 500

DATABASE_ERROR_PHRASES: Final[tuple[str, ...]] = (
    "Connection refused",
    "Access denied for user",
    "Unknown database",
    "Could not find driver",
)
DATABASE_ERROR_TYPES: Final[frozenset[str]] = frozenset({"PDOException", "QueryException", "DatabaseDriverError"})


class MigrationCommandError(RuntimeError):
    """Raised when the migration status command fails."""


class DatabaseDriverError(MigrationCommandError):
    """Raised when the migration status command fails inside the database driver."""


@runtime_checkable
class MigrationStatusCommand(Protocol):
    """Port returning the textual output of a migration status command."""

    def status(self, base_path: Path) -> str:
        """Return the status report for the project at ``base_path``.

        Raises:
            Exception: Any failure raised by the command; checks classify it.
        """

        raise NotImplementedError


class ArtisanMigrationStatus:
    """Run ``php artisan migrate:status --pending`` through a :class:`CommandRunner`."""

    def __init__(self, *, settings: CommandSettings | None = None, runner: CommandRunner | None = None) -> None:
        self.settings = settings or CommandSettings()
        self._runner = runner or SubprocessRunner()

    def status(self, base_path: Path) -> str:
        artisan = base_path / "artisan"
        if not artisan.is_file():
            raise ToolNotFoundError(str(artisan))
        output = self._runner.run(
            [self.settings.php_binary, str(artisan), "migrate:status", "--pending", "--no-ansi"],
            cwd=base_path,
            timeout=self.settings.timeout,
        )
        if not output.ok:
            detail = (output.stderr.strip() or output.stdout.strip()) or f"exit status {output.returncode}"
            raise MigrationCommandError(detail)
        return output.stdout


def parse_pending_migrations(output: str) -> list[str]:
    """Return pending migration identifiers in the order they appear.

    Args:
        output: Text produced by the migration status command.

    Returns:
        list[str]: Trimmed identifiers; blank matches dropped, duplicates kept.
    """

    migrations: list[str] = []
    for line in output.splitlines():
        match = PENDING_MIGRATION_PATTERN.search(line)
        if match is None:
            continue
        migration = match.group(1).strip()
        if migration:
            migrations.append(migration)
    return migrations


def pending_migrations_recommendation(pending: Sequence[str]) -> str:
    """Return operator guidance listing at most five pending migrations."""

    listed = ", ".join(pending[:MAX_LISTED_MIGRATIONS])
    if len(pending) > MAX_LISTED_MIGRATIONS:
        listed = f"{listed}{ELLIPSIS}"
    return (
        'Run "php artisan migrate" to execute pending migrations. In production, ensure migrations are run '
        f"as part of your deployment process. Pending migrations: {listed}"
    )


def is_database_error(error: BaseException) -> bool:
    """Return ``True`` when ``error`` indicates a database connectivity failure.

    The error type (or any of its bases) must be a database driver error, or
    its message must contain one of :data:`DATABASE_ERROR_PHRASES` verbatim.
    """

    if any(klass.__name__ in DATABASE_ERROR_TYPES for klass in type(error).__mro__):
        return True
    message = str(error)
    return any(phrase in message for phrase in DATABASE_ERROR_PHRASES)


def database_error_recommendation(error: BaseException) -> str:
    """Return guidance for a database connectivity failure including the error text."""

    return (
        "Database connection error detected. Ensure your database configuration is correct in "
        "config/database.php and the .env file. Verify the database server is running and accessible. "
        'If this is a new installation, run "php artisan migrate:install" to create the migrations table. '
        f"Error: {error}"
    )


class UpToDateMigrationsCheck(Check):
    """Ensure every database migration has been executed."""

    # Migration state is deployment specific.
    run_in_ci: ClassVar[bool] = False

    metadata: ClassVar[CheckMetadata] = CheckMetadata(
        id="up-to-date-migrations",
        name="Up-to-Date Migrations",
        description="Ensures all database migrations are up to date and have been executed",
        category=Category.RELIABILITY,
        severity=Severity.HIGH,
        tags=("database", "migrations", "reliability", "deployment"),
        docs_url="https://laravel.com/docs/migrations#running-migrations",
        time_to_fix=5,
    )

    def __init__(
        self,
        base_path: Path | str | None = None,
        *,
        command: MigrationStatusCommand | None = None,
    ) -> None:
        super().__init__(base_path)
        self.command = command or ArtisanMigrationStatus()

    @property
    def migrations_path(self) -> Path:
        """Return the project's migrations directory."""

        return self.build_path("database", "migrations")

    def _location(self) -> Location:
        return Location(path=self.relative_path(self.migrations_path), line=1)

    def run_analysis(self) -> Result:
        try:
            output = self.command.status(self.base_path)
        except ToolNotFoundError as exc:
            return self.warning(
                "Artisan console not found",
                [
                    self.create_issue(
                        "Cannot check migration status - artisan script not found",
                        location=Location(path=self.relative_path(exc.executable)),
                        severity=Severity.MEDIUM,
                        recommendation=(
                            "Run the check from the root of a Laravel application so that the artisan "
                            "console is available."
                        ),
                        snippet=False,
                    )
                ],
            )
        except Exception as exc:  # noqa: BLE001
            LOGGER.debug("migration status command failed", exc_info=True)
            return self._command_failure(exc)

        if NO_PENDING_MIGRATIONS_MESSAGE in output:
            return self.passed("All migrations are up to date")

        pending = parse_pending_migrations(output)
        if not pending:
            return self.warning(
                "Unable to parse migration status output",
                [
                    self.create_issue(
                        "Migration status output format is unexpected",
                        location=self._location(),
                        severity=Severity.MEDIUM,
                        recommendation=(
                            'Run "php artisan migrate:status" manually to check migration status. '
                            "The output format could not be parsed."
                        ),
                        metadata={"raw_output": output[:RAW_OUTPUT_LIMIT]},
                        snippet=False,
                    )
                ],
            )

        return self.failed(
            f"Found {len(pending)} pending migration(s)",
            [
                self.create_issue(
                    "Pending migrations detected",
                    location=self._location(),
                    recommendation=pending_migrations_recommendation(pending),
                    metadata={"pending_count": len(pending), "pending_migrations": list(pending)},
                    snippet=False,
                )
            ],
        )

    def _command_failure(self, error: Exception) -> Result:
        metadata = {"exception": type(error).__name__, "error": str(error)}
        if is_database_error(error):
            return self.failed(
                "Database connection error while checking migration status",
                [
                    self.create_issue(
                        "Migration status check failed due to database connection issue",
                        location=self._location(),
                        recommendation=database_error_recommendation(error),
                        metadata={**metadata, "error_type": "database_connection"},
                        snippet=False,
                    )
                ],
            )
        return self.failed(
            "Unable to check migration status",
            [
                self.create_issue(
                    f"Migration status check failed: {error}",
                    location=self._location(),
                    recommendation=(
                        "Ensure the migration status command can run and the migrations table exists. "
                        f"Error: {error}"
                    ),
                    metadata=metadata,
                    snippet=False,
                )
            ],
        )


__all__ = [
    "ArtisanMigrationStatus",
    "DATABASE_ERROR_PHRASES",
    "DatabaseDriverError",
    "MigrationCommandError",
    "MigrationStatusCommand",
    "UpToDateMigrationsCheck",
    "database_error_recommendation",
    "is_database_error",
    "parse_pending_migrations",
    "pending_migrations_recommendation",
]
