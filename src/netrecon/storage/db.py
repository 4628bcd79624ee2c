"""SQLite database connection and initialization.

Thread safety: Uses threading.local for per-thread connections.
No check_same_thread=False; each thread gets its own connection.
All writes use explicit transactions.
"""

import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from netrecon.errors import StorageError
from netrecon.storage.models import ALL_SCHEMAS

DEFAULT_DB_PATH = Path("./data/netrecon.db")


class Database:
    """A SQLite database file with one connection per thread."""

    def __init__(self, path: Path | str = DEFAULT_DB_PATH) -> None:
        self.path = Path(path)
        self._local = threading.local()

    def init(self) -> None:
        """Create the directory, file and all tables.

        Safe to call multiple times (uses CREATE TABLE IF NOT EXISTS).
        """
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            conn = _connect(self.path)
            try:
                for ddl in ALL_SCHEMAS:
                    conn.execute(ddl)
                conn.commit()
            finally:
                conn.close()
        except (OSError, sqlite3.Error) as e:
            raise StorageError(f"failed to initialize database {self.path}: {e}") from e

    def connection(self) -> sqlite3.Connection:
        """Get this thread's connection, opening it on first use."""
        conn = getattr(self._local, "connection", None)
        if conn is None:
            try:
                conn = _connect(self.path)
            except sqlite3.Error as e:
                raise StorageError(f"failed to open database {self.path}: {e}") from e
            self._local.connection = conn
        return conn

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Commit on success, roll back and raise StorageError on failure."""
        conn = self.connection()
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise StorageError(str(e)) from e
        except BaseException:
            conn.rollback()
            raise

    def close(self) -> None:
        """Close this thread's connection (if any)."""
        conn = getattr(self._local, "connection", None)
        if conn is not None:
            conn.close()
            self._local.connection = None


def _connect(path: Path) -> sqlite3.Connection:
    """Create a new SQLite connection with preferred settings."""
    conn = sqlite3.connect(str(path))
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA foreign_keys=ON")
    return conn
