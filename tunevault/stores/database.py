"""SQLite database shared by the row-shaped stores."""

import sqlite3
import threading
from pathlib import Path
from typing import Any, Iterable, List, Sequence, Union

from tenacity import retry, retry_if_exception, stop_after_attempt, wait_exponential

from ..util.logging import get_logger
from ..util.paths import ensure_directory

logger = get_logger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS favorites (
    songId INTEGER PRIMARY KEY,
    isFavorite INTEGER NOT NULL DEFAULT 1,
    timestamp INTEGER NOT NULL DEFAULT 0
);
CREATE TABLE IF NOT EXISTS lyrics (
    songId INTEGER PRIMARY KEY,
    content TEXT NOT NULL,
    isSynced INTEGER NOT NULL DEFAULT 0,
    source TEXT
);
CREATE TABLE IF NOT EXISTS search_history (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    query TEXT NOT NULL,
    timestamp INTEGER NOT NULL
);
CREATE TABLE IF NOT EXISTS transition_rules (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    playlistId TEXT NOT NULL,
    fromTrackId TEXT,
    toTrackId TEXT,
    mode TEXT NOT NULL DEFAULT 'OVERLAP',
    durationMs INTEGER NOT NULL DEFAULT 6000,
    curveIn TEXT NOT NULL DEFAULT 'S_CURVE',
    curveOut TEXT NOT NULL DEFAULT 'S_CURVE',
    enabled INTEGER NOT NULL DEFAULT 1
);
"""


def _is_busy(error: BaseException) -> bool:
    """Check whether an error is a transient lock on the database file."""
    if not isinstance(error, sqlite3.OperationalError):
        return False
    message = str(error).lower()
    return "locked" in message or "busy" in message


_retry_when_busy = retry(
    retry=retry_if_exception(_is_busy),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=0.1, min=0.1, max=2),
    reraise=True,
)


class Database:
    """Single SQLite connection guarded by a lock.

    Every adapter built on the same ``Database`` shares its connection,
    so calls are serialized here rather than in the adapters.
    """

    def __init__(self, path: Union[Path, str] = ":memory:") -> None:
        self.path = path if path == ":memory:" else Path(path)
        if isinstance(self.path, Path):
            ensure_directory(self.path.parent)

        self._lock = threading.RLock()
        self._connection = sqlite3.connect(str(self.path), check_same_thread=False)
        self._connection.row_factory = sqlite3.Row
        self._connection.executescript(SCHEMA)
        logger.debug(f"Opened database {self.path}")

    @_retry_when_busy
    def fetch_all(self, sql: str, params: Sequence[Any] = ()) -> List[sqlite3.Row]:
        """Run a query and return every row."""
        with self._lock:
            return self._connection.execute(sql, params).fetchall()

    @_retry_when_busy
    def execute(self, sql: str, params: Sequence[Any] = ()) -> None:
        """Run a single statement in its own transaction."""
        with self._lock:
            with self._connection:
                self._connection.execute(sql, params)

    @_retry_when_busy
    def replace_table(
        self,
        table: str,
        columns: Sequence[str],
        rows: Iterable[Sequence[Any]],
    ) -> int:
        """Delete every row of a table and insert ``rows`` in one transaction.

        The table's AUTOINCREMENT counter restarts too, so rows without an
        id get the same ids on every replace.

        On any error the transaction is rolled back and the table keeps
        its previous contents.

        Returns:
            Number of rows inserted
        """
        rows = list(rows)
        column_list = ", ".join(columns)
        placeholders = ", ".join("?" for _ in columns)

        with self._lock:
            with self._connection:
                self._connection.execute(f"DELETE FROM {table}")
                self._connection.execute("DELETE FROM sqlite_sequence WHERE name = ?", (table,))
                if rows:
                    self._connection.executemany(
                        f"INSERT OR REPLACE INTO {table} ({column_list}) VALUES ({placeholders})",
                        rows,
                    )
        return len(rows)

    def close(self) -> None:
        """Close the connection."""
        with self._lock:
            self._connection.close()

    def __enter__(self) -> "Database":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
