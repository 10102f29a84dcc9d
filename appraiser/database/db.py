"""SQLite connection shared by the analysis and benchmark stores."""

import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, List, Optional, Sequence

from appraiser.config import get_settings
from appraiser.database.models import ALL_TABLES

IN_MEMORY = ":memory:"


class Database:
    """Database connection manager.

    Persistence runs in worker threads, so one connection is shared across
    threads and every statement goes through ``lock``.
    """

    def __init__(self, db_path: Optional[str] = None):
        """Initialize database connection.

        Args:
            db_path: Path to SQLite database file. If None, uses config value.
        """
        self.db_path = db_path or get_settings().database_path
        if self.db_path != IN_MEMORY:
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

        self._conn: Optional[sqlite3.Connection] = None
        self.lock = threading.RLock()

    @property
    def conn(self) -> sqlite3.Connection:
        """Open connection, created on first use."""
        if self._conn is None:
            conn = sqlite3.connect(self.db_path, check_same_thread=False)
            conn.row_factory = sqlite3.Row
            if self.db_path != IN_MEMORY:
                conn.execute("PRAGMA journal_mode=WAL")
            self._conn = conn
        return self._conn

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Hold the lock for a unit of work; commit on success, roll back on error."""
        with self.lock:
            conn = self.conn
            try:
                yield conn
                conn.commit()
            except Exception:
                conn.rollback()
                raise

    def query(self, sql: str, params: Sequence[Any] = ()) -> List[sqlite3.Row]:
        with self.lock:
            return self.conn.execute(sql, params).fetchall()

    def initialize_schema(self) -> None:
        """Create all tables and indexes if they don't exist."""
        with self.transaction() as conn:
            for sql in ALL_TABLES:
                conn.execute(sql)

    def close(self) -> None:
        with self.lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


_db: Optional[Database] = None


def get_db() -> Database:
    """Process-wide database at the configured path, with the schema in place."""
    global _db
    if _db is None:
        _db = Database()
        _db.initialize_schema()
    return _db


def close_db() -> None:
    global _db
    if _db is not None:
        _db.close()
        _db = None
