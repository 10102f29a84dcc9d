"""Tolerance for a schema that lags behind the code.

Writes that touch optional columns go through ``insert_with_capabilities``:
columns known to be missing are left out up front, and a write that fails
on an unknown optional column is retried exactly once without it.
"""

import logging
import re
import sqlite3
import time
from typing import Any, Callable, Dict, Iterable, Optional, Set, Tuple

from appraiser.config import get_settings

logger = logging.getLogger(__name__)

_UNKNOWN_COLUMN = re.compile(r"no column named (\w+)")


class UnknownFieldError(Exception):
    """A write referenced a column the table does not have."""

    def __init__(self, table: str, field: str):
        super().__init__(f"{table} has no column {field}")
        self.table = table
        self.field = field


def unknown_field_from(error: sqlite3.OperationalError, table: str) -> Optional[UnknownFieldError]:
    """Translate SQLite's missing-column error, or None for other errors."""
    match = _UNKNOWN_COLUMN.search(str(error))
    if match is None:
        return None
    return UnknownFieldError(table, match.group(1))


class FieldCapabilityCache:
    """Remembers which optional columns are currently unsupported.

    Entries expire after ``ttl_seconds`` so a migrated schema is picked up.
    Losing the cache only costs one extra failed write.
    """

    def __init__(
        self,
        ttl_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = (
            get_settings().capability_cache_ttl_seconds if ttl_seconds is None else ttl_seconds
        )
        self.clock = clock
        self._unsupported: Dict[Tuple[str, str], float] = {}

    def mark_unsupported(self, table: str, field: str) -> None:
        self._unsupported[(table, field)] = self.clock() + self.ttl_seconds

    def is_supported(self, table: str, field: str) -> bool:
        expires = self._unsupported.get((table, field))
        if expires is None:
            return True
        if self.clock() >= expires:
            del self._unsupported[(table, field)]
            return True
        return False

    def unsupported_fields(self, table: str) -> Set[str]:
        return {f for (t, f) in list(self._unsupported) if t == table and not self.is_supported(t, f)}

    def reset(self) -> None:
        self._unsupported.clear()


def _insert(conn: sqlite3.Connection, table: str, row: Dict[str, Any]) -> int:
    columns = ", ".join(row)
    placeholders = ", ".join("?" for _ in row)
    try:
        cursor = conn.execute(
            f"INSERT INTO {table} ({columns}) VALUES ({placeholders})", tuple(row.values())
        )
    except sqlite3.OperationalError as e:
        unknown = unknown_field_from(e, table)
        if unknown is not None:
            raise unknown from e
        raise
    return cursor.lastrowid


def insert_with_capabilities(
    conn: sqlite3.Connection,
    table: str,
    row: Dict[str, Any],
    optional_fields: Iterable[str],
    cache: FieldCapabilityCache,
) -> int:
    """Insert a row, dropping optional columns the schema does not have.

    Args:
        conn: Open connection; the caller commits
        table: Table name
        row: Column values
        optional_fields: Columns that may be dropped
        cache: Capability cache shared by writers

    Returns:
        Row id of the inserted row

    Raises:
        UnknownFieldError: If a required column is missing, or a second
            optional column is missing after the retry
    """
    optional = set(optional_fields)
    row = {k: v for k, v in row.items() if k not in optional or cache.is_supported(table, k)}

    try:
        return _insert(conn, table, row)
    except UnknownFieldError as e:
        if e.field not in optional or e.field not in row:
            raise
        logger.warning(f"{table}.{e.field} not in schema; retrying without it")
        cache.mark_unsupported(table, e.field)
        row.pop(e.field)
        return _insert(conn, table, row)


# Process-wide default; pass your own cache to repositories to isolate tests.
_default_cache: Optional[FieldCapabilityCache] = None


def get_capability_cache() -> FieldCapabilityCache:
    """Get or create the shared capability cache."""
    global _default_cache
    if _default_cache is None:
        _default_cache = FieldCapabilityCache()
    return _default_cache
