# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Check the cache key prefix used on shared cache servers."""

from __future__ import annotations

import re
from collections.abc import Sequence
from pathlib import Path
from typing import ClassVar, Final

from pydantic import BaseModel, ConfigDict, Field

from ..models import CheckMetadata, Location, Result
from ..severity import Category, Severity
from .base import Check

SHARED_CACHE_DRIVERS: Final[tuple[str, ...]] = ("redis", "memcached", "dynamodb", "database")
GENERIC_PREFIXES: Final[frozenset[str]] = frozenset(
    {
        "laravel_cache",
        "laravel_database_cache",
        "laravel",
        "app",
        "cache",
        "my_app",
        "myapp",
        "test",
        "demo",
        "example",
    }
)
CACHE_CONFIG_FILE: Final[str] = "config/cache.php"
_SLUG_SEPARATORS: Final[re.Pattern[str]] = re.compile(r"[^a-z0-9]+")
_FILLER_ONLY: Final[re.Pattern[str]] = re.compile(r"^[\s_]+$")


class CacheStore(BaseModel):
    """One entry of the ``stores`` section of the cache configuration."""

    model_config = ConfigDict(frozen=True)

    driver: str
    prefix: str | None = None


class CacheConfig(BaseModel):
    """Read-only snapshot of the framework cache configuration."""

    model_config = ConfigDict(frozen=True)

    default: str = "file"
    prefix: str = ""
    stores: dict[str, CacheStore] = Field(default_factory=dict)
    app_name: str | None = None

    @property
    def default_driver(self) -> str:
        """Return the driver of the default store, falling back to its name."""

        store = self.stores.get(self.default)
        return store.driver if store is not None else self.default

    @property
    def has_store_prefix(self) -> bool:
        """Return ``True`` when the default store overrides the global prefix."""

        store = self.stores.get(self.default)
        return store is not None and store.prefix is not None

    @property
    def effective_prefix(self) -> str:
        """Return the prefix applied to keys written through the default store."""

        store = self.stores.get(self.default)
        if store is not None and store.prefix is not None:
            return store.prefix
        return self.prefix


def slugify(value: str) -> str:
    """Return ``value`` lower-cased with runs of other characters collapsed to ``_``."""

    return _SLUG_SEPARATORS.sub("_", value.lower()).strip("_")


def is_generic_prefix(prefix: str) -> bool:
    """Return ``True`` when ``prefix`` is likely to collide with other applications."""

    raw = prefix.strip()
    if raw.lower() in GENERIC_PREFIXES or slugify(raw) in GENERIC_PREFIXES:
        return True
    if len(raw) <= 2:
        return True
    if _FILLER_ONLY.match(prefix):
        return True
    return raw.isdigit()


def find_key_line(lines: Sequence[str], key: str, *, start: int = 1) -> int | None:
    """Return the first line number at or after ``start`` declaring ``'key' =>``.

    Args:
        lines: Lines of a PHP configuration file.
        key: Array key to look for.
        start: One-based line number where the search begins.

    Returns:
        int | None: One-based line number of the declaration, or ``None``.
    """

    pattern = re.compile(rf"""['"]{re.escape(key)}['"]\s*=>""")
    for number, line in enumerate(lines[start - 1 :], start=start):
        if pattern.search(line):
            return number
    return None


class CachePrefixCheck(Check):
    """Ensure a distinctive cache prefix is configured for shared cache drivers."""

    metadata: ClassVar[CheckMetadata] = CheckMetadata(
        id="cache-prefix-configuration",
        name="Cache Prefix Configuration",
        description="Ensures cache prefix is set to avoid collisions with other applications sharing cache servers",
        category=Category.RELIABILITY,
        severity=Severity.HIGH,
        tags=("cache", "configuration", "reliability", "multi-tenant"),
        time_to_fix=5,
    )

    def __init__(self, cache_config: CacheConfig, base_path: Path | str | None = None) -> None:
        super().__init__(base_path)
        self.cache_config = cache_config

    def should_run(self) -> bool:
        return self.cache_config.default_driver in SHARED_CACHE_DRIVERS

    def get_skip_reason(self) -> str:
        drivers = "/".join(SHARED_CACHE_DRIVERS)
        return f"Not using shared cache driver (current: {self.cache_config.default_driver}, requires: {drivers})"

    def _prefix_location(self) -> Location:
        try:
            lines = self.build_path(CACHE_CONFIG_FILE).read_text(encoding="utf-8", errors="replace").splitlines()
        except OSError:
            return Location(path=CACHE_CONFIG_FILE, line=1)
        if self.cache_config.has_store_prefix:
            # Store-level keys follow the store declaration.
            store_line = find_key_line(lines, self.cache_config.default) or 1
            line = find_key_line(lines, "prefix", start=store_line) or store_line
        else:
            line = find_key_line(lines, "prefix") or 1
        return Location(path=CACHE_CONFIG_FILE, line=line)

    def run_analysis(self) -> Result:
        prefix = self.cache_config.effective_prefix
        metadata = {"cache_driver": self.cache_config.default_driver, "prefix": prefix}

        if prefix == "":
            return self.result_by_severity(
                "Cache prefix is not configured",
                [
                    self.create_issue(
                        "Cache prefix is empty or not set",
                        location=self._prefix_location(),
                        recommendation=(
                            "Set CACHE_PREFIX in your .env file (or the prefix in config/cache.php) to a value "
                            "unique to this application, for example a slug of the application name."
                        ),
                        metadata=metadata,
                    )
                ],
            )

        if is_generic_prefix(prefix):
            suggestion = f"{slugify(self.cache_config.app_name)}_cache" if self.cache_config.app_name else None
            recommendation = (
                f"The cache prefix '{prefix}' is too generic and may collide with other applications sharing "
                "the cache server. Use a prefix unique to this application."
            )
            if suggestion:
                recommendation = f"{recommendation} Suggested: '{suggestion}'."
            return self.result_by_severity(
                "Cache prefix is too generic",
                [
                    self.create_issue(
                        f"Cache prefix '{prefix}' is too generic and may cause collisions",
                        location=self._prefix_location(),
                        recommendation=recommendation,
                        metadata={**metadata, "app_name": self.cache_config.app_name},
                    )
                ],
            )

        return self.passed("Cache prefix is properly configured")


__all__ = ["CacheConfig", "CachePrefixCheck", "CacheStore", "find_key_line", "is_generic_prefix", "slugify"]
