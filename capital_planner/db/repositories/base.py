"""
Base repository providing shared SQLite execution helpers.

All repositories inherit from ``BaseRepository`` and receive a
``sqlite3.Connection`` at construction time. The connection is opened and
managed by the caller (typically via ``get_connection()``); repositories never
commit.

Design:
  - No ORM; all SQL is explicit and lives in repository methods.
  - Repositories speak Pydantic models, not raw dicts.
  - ``savepoint()`` scopes a group of statements so one failing row can be
    undone without touching the rest of the enclosing transaction.
"""

from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from typing import Any, Generator, Optional

logger = logging.getLogger(__name__)


class BaseRepository:
    """Shared SQL execution helpers for all repository classes.

    Attributes:
        conn: The active ``sqlite3.Connection``.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn

    def execute(
        self,
        sql: str,
        params: tuple[Any, ...] | dict[str, Any] = (),
    ) -> sqlite3.Cursor:
        """Execute a single SQL statement.

        Args:
            sql: SQL string with ``?`` or ``:name`` placeholders.
            params: Positional tuple or named dict of parameters.

        Returns:
            The resulting ``sqlite3.Cursor``.
        """
        logger.debug("SQL: %s | params: %s", sql.strip(), params)
        return self.conn.execute(sql, params)

    def executemany(
        self,
        sql: str,
        params_list: list[tuple[Any, ...] | dict[str, Any]],
    ) -> sqlite3.Cursor:
        logger.debug("SQL (many): %s | count: %d", sql.strip(), len(params_list))
        return self.conn.executemany(sql, params_list)

    def fetchone(
        self,
        sql: str,
        params: tuple[Any, ...] | dict[str, Any] = (),
    ) -> Optional[sqlite3.Row]:
        """Execute a query and return the first row, or ``None``."""
        return self.execute(sql, params).fetchone()

    def fetchall(
        self,
        sql: str,
        params: tuple[Any, ...] | dict[str, Any] = (),
    ) -> list[sqlite3.Row]:
        """Execute a query and return all rows."""
        return self.execute(sql, params).fetchall()

    def last_insert_rowid(self) -> int:
        row = self.conn.execute("SELECT last_insert_rowid();").fetchone()
        assert row is not None
        return int(row[0])

    @contextmanager
    def savepoint(self, name: str) -> Generator[None, None, None]:
        """Run the enclosed statements atomically inside the current transaction.

        On exception the savepoint is rolled back and the exception re-raised;
        earlier work in the enclosing transaction is kept.

        Args:
            name: SQL identifier for the savepoint.
        """
        self.conn.execute(f"SAVEPOINT {name};")
        try:
            yield
        except Exception:
            self.conn.execute(f"ROLLBACK TO SAVEPOINT {name};")
            self.conn.execute(f"RELEASE SAVEPOINT {name};")
            raise
        else:
            self.conn.execute(f"RELEASE SAVEPOINT {name};")
