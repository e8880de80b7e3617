from __future__ import annotations

"""SQLite connection handling and schema migrations.

Each schema change is a function in ``MIGRATIONS``; applied versions are
tracked in ``schema_migrations`` so ``init_db`` can run on every start.

One connection is shared by every thread of the process. All statements go
through ``_lock`` and multi-statement writes use :meth:`DatabaseManager.transaction`,
which commits on success and rolls back on any exception.
"""

from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
import sqlite3
import threading
from typing import Callable, Iterable, Iterator


@dataclass(slots=True)
class DBConfig:
    path: Path
    pragmas: tuple[tuple[str, str | int], ...] = (
        ("journal_mode", "WAL"),
        ("foreign_keys", 1),
        ("synchronous", "NORMAL"),
        ("busy_timeout", 5000),
    )


class DatabaseManager:
    def __init__(self, config: DBConfig):
        self.config = config
        self._conn: sqlite3.Connection | None = None
        self._lock = threading.RLock()

    # --- Low level helpers -------------------------------------------------
    def connect(self) -> sqlite3.Connection:
        with self._lock:
            if self._conn is None:
                self.config.path.parent.mkdir(parents=True, exist_ok=True)
                self._conn = sqlite3.connect(self.config.path, check_same_thread=False)
                self._conn.row_factory = sqlite3.Row
                self._apply_pragmas(self._conn)
            return self._conn

    def _apply_pragmas(self, conn: sqlite3.Connection) -> None:
        cur = conn.cursor()
        for key, value in self.config.pragmas:
            cur.execute(f"PRAGMA {key}={value}")
        cur.close()

    def close(self) -> None:
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        with self._lock:
            conn = self.connect()
            with conn:
                yield conn

    # --- Migration system --------------------------------------------------
    def init_db(self) -> None:
        with self.transaction() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS schema_migrations (
                    version INTEGER PRIMARY KEY,
                    applied_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ','now'))
                )
                """
            )

        applied_versions = self._get_applied_versions()
        for version, migration_fn in enumerate(MIGRATIONS, start=1):
            if version in applied_versions:
                continue
            with self.transaction() as conn:
                migration_fn(conn)
                conn.execute(
                    "INSERT INTO schema_migrations (version) VALUES (?)", (version,)
                )

    def _get_applied_versions(self) -> set[int]:
        return {row[0] for row in self.query_all("SELECT version FROM schema_migrations")}

    # --- Convenience -------------------------------------------------------
    def execute(self, sql: str, params: Iterable | None = None) -> sqlite3.Cursor:
        """Run a single statement and commit it."""
        with self.transaction() as conn:
            return conn.execute(sql, params or [])

    def query_all(self, sql: str, params: Iterable | None = None) -> list[sqlite3.Row]:
        with self._lock:
            return self.connect().execute(sql, params or []).fetchall()

    def query_one(self, sql: str, params: Iterable | None = None) -> sqlite3.Row | None:
        with self._lock:
            return self.connect().execute(sql, params or []).fetchone()


# --- Migration definitions --------------------------------------------------

def migration_001_create_core_tables(conn: sqlite3.Connection) -> None:
    # executescript() would COMMIT the surrounding transaction.
    statements = [
        """
        CREATE TABLE tasks (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            description TEXT NOT NULL DEFAULT '',
            due_at TEXT NOT NULL,
            importance INTEGER NOT NULL DEFAULT 5,
            required_minutes INTEGER NOT NULL DEFAULT 0,
            allocated_minutes INTEGER NOT NULL DEFAULT 0,
            done INTEGER NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ','now'))
        )
        """,
        """
        CREATE TABLE routines (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            title TEXT NOT NULL,
            start_date TEXT NOT NULL,
            end_date TEXT NOT NULL,
            importance INTEGER NOT NULL DEFAULT 5,
            start_time TEXT NOT NULL,
            end_time TEXT NOT NULL,
            weekdays TEXT NOT NULL DEFAULT '[]',
            created_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ','now'))
        )
        """,
        """
        CREATE TABLE schedules (
            date TEXT PRIMARY KEY,
            created_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ','now'))
        )
        """,
        """
        CREATE TABLE schedule_slots (
            schedule_date TEXT NOT NULL REFERENCES schedules(date) ON DELETE CASCADE,
            hour_index INTEGER NOT NULL CHECK (hour_index BETWEEN 0 AND 23),
            remaining_minutes INTEGER NOT NULL CHECK (remaining_minutes BETWEEN 0 AND 60),
            is_open INTEGER NOT NULL,
            labels TEXT NOT NULL DEFAULT '[]',
            PRIMARY KEY (schedule_date, hour_index)
        )
        """,
        "CREATE INDEX idx_tasks_due_at ON tasks(due_at)",
        "CREATE INDEX idx_routines_range ON routines(start_date, end_date)",
    ]
    for sql in statements:
        conn.execute(sql)


def migration_002_add_settings_table(conn: sqlite3.Connection) -> None:
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS settings (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL
        )
        """
    )


MIGRATIONS: list[Callable[[sqlite3.Connection], None]] = [
    migration_001_create_core_tables,
    migration_002_add_settings_table,
]

__all__ = [
    "DBConfig",
    "DatabaseManager",
]
