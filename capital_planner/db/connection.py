"""
SQLite connection management.

``get_connection()`` is a context manager that:
  - Enables foreign key enforcement (OFF by default in SQLite).
  - Enables WAL journal mode so readers are not blocked by a recalculation.
  - Sets a busy timeout to handle lock contention gracefully.
  - Uses ``sqlite3.Row`` factory so rows behave like dicts.
  - Commits on clean exit, rolls back on exception.

A recalculation pass runs inside one ``get_connection()`` block, so an
exception part-way through rolls the whole epoch back.

Usage::

    from capital_planner.db.connection import get_connection

    with get_connection("data/db/capital_planner.db") as conn:
        RankingCoordinator(conn).recalculate_all()
"""

from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

logger = logging.getLogger(__name__)


@contextmanager
def get_connection(
    db_path: str,
    wal_mode: bool = True,
    busy_timeout_ms: int = 5000,
) -> Generator[sqlite3.Connection, None, None]:
    """Context manager yielding a configured SQLite connection.

    The database file (and any parent directories) are created if they do
    not already exist.

    Args:
        db_path: Path to the SQLite database file, or ``":memory:"``.
        wal_mode: If ``True``, enable WAL journal mode.
        busy_timeout_ms: Milliseconds to wait on a locked database before
            raising ``OperationalError``.

    Yields:
        An open, configured ``sqlite3.Connection``.

    Raises:
        sqlite3.OperationalError: If the database cannot be opened or is locked.
    """
    if db_path != ":memory:":
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(db_path, timeout=busy_timeout_ms / 1000)
    conn.row_factory = sqlite3.Row

    try:
        conn.execute("PRAGMA foreign_keys = ON;")
        conn.execute(f"PRAGMA busy_timeout = {busy_timeout_ms};")

        if wal_mode:
            conn.execute("PRAGMA journal_mode = WAL;")

        yield conn
        conn.commit()

    except Exception:
        conn.rollback()
        raise

    finally:
        conn.close()
