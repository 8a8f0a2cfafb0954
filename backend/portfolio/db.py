"""Database handle for the application's SQLite store."""

from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator


class DatabaseUnavailableError(RuntimeError):
    """Raised when the store is used before it was configured and opened."""


class Database:
    """Explicitly managed handle to the SQLite file backing the repository.

    The handle is created once per application, opened during startup and
    closed on shutdown. Each unit of work gets its own connection through
    :meth:`connection`, which commits on success and rolls back on error.
    """

    def __init__(self, path: Path | None, *, logger: logging.Logger | None = None) -> None:
        self.path = path
        self._logger = logger or logging.getLogger(__name__)
        self._opened = False

    @property
    def is_open(self) -> bool:
        return self._opened

    def open(self) -> None:
        if self.path is None:
            self._logger.warning("No database path configured. Projects will not persist!")
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._opened = True
        with self.connection() as connection:
            ensure_schema(connection)
        self._logger.info("Projects table ready at %s", self.path)

    def close(self) -> None:
        if self._opened:
            self._opened = False
            self._logger.info("Database connection closed")

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        """Provide a configured SQLite connection as a context manager."""

        if not self._opened or self.path is None:
            raise DatabaseUnavailableError("Database not initialized")

        # isolation_level=None leaves transaction control to explicit BEGIN.
        connection = sqlite3.connect(self.path, check_same_thread=False, isolation_level=None)
        connection.row_factory = sqlite3.Row
        try:
            connection.execute("BEGIN")
            yield connection
            connection.execute("COMMIT")
        except Exception:
            connection.execute("ROLLBACK")
            raise
        finally:
            connection.close()


def ensure_schema(connection: sqlite3.Connection) -> None:
    connection.execute(
        """
        CREATE TABLE IF NOT EXISTS projects (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            title TEXT NOT NULL,
            description TEXT,
            year TEXT,
            category TEXT,
            image TEXT,
            video TEXT,
            type TEXT,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        )
        """
    )
