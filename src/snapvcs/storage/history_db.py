"""SQLite history index for snapvcs.

This module records one row per snapshot (commit index, timestamp, author,
message) together with the files each snapshot copied. The database is a
rebuildable index - the true source of truth is the commits/ directory.
"""

import logging
import sqlite3
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

from snapvcs.constants import DB_SCHEMA_VERSION, HISTORY_DB
from snapvcs.errors import HistoryError

logger = logging.getLogger(__name__)


class HistoryDB:
    """SQLite database manager for snapshot history.

    Schema Tables:
        - snapshots: One record per commit index with timestamp, author, message
        - snapshot_files: Paths, fingerprints and sizes copied by each snapshot
        - metadata: Schema version

    Attributes:
        db_path: Path to the SQLite database file
        conn: Active database connection (if open)

    Example:
        >>> with HistoryDB(Path(".snapvcs")) as db:
        ...     db.init_schema()
        ...     db.record_snapshot(0, "2026-02-09T10:00:00+00:00", "user@host", "Initial", [])
    """

    def __init__(self, repo_dir: Path) -> None:
        """Initialize database manager.

        Args:
            repo_dir: Path to the .snapvcs directory
        """
        self.repo_dir = Path(repo_dir)
        self.db_path = self.repo_dir / HISTORY_DB
        self.conn: Optional[sqlite3.Connection] = None

    def open(self) -> None:
        """Open the database connection.

        Raises:
            HistoryError: If connection fails
        """
        if self.conn is not None:
            return  # Already open

        try:
            self.conn = sqlite3.connect(str(self.db_path), timeout=30.0)
            self.conn.row_factory = sqlite3.Row  # Access columns by name
            self.conn.execute("PRAGMA foreign_keys=ON")
        except sqlite3.Error as e:
            raise HistoryError(f"Failed to open history database: {e}") from e

    def close(self) -> None:
        """Close database connection."""
        if self.conn is not None:
            self.conn.close()
            self.conn = None

    def __enter__(self) -> "HistoryDB":
        self.open()
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def _require_conn(self) -> sqlite3.Connection:
        if self.conn is None:
            raise HistoryError("History database not open")
        return self.conn

    def init_schema(self) -> None:
        """Create tables and indices. Safe to call on an existing database.

        Raises:
            HistoryError: If schema creation fails
        """
        conn = self._require_conn()

        try:
            cursor = conn.cursor()

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS metadata (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS snapshots (
                    commit_index INTEGER PRIMARY KEY,
                    timestamp TEXT NOT NULL,
                    author TEXT NOT NULL,
                    message TEXT NOT NULL
                )
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS snapshot_files (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    commit_index INTEGER NOT NULL,
                    path TEXT NOT NULL,
                    fingerprint TEXT NOT NULL,
                    size_bytes INTEGER,
                    FOREIGN KEY (commit_index) REFERENCES snapshots(commit_index) ON DELETE CASCADE
                )
            """)
            cursor.execute("""
                CREATE INDEX IF NOT EXISTS idx_snapshot_files_commit
                ON snapshot_files(commit_index)
            """)
            cursor.execute("""
                CREATE INDEX IF NOT EXISTS idx_snapshot_files_path
                ON snapshot_files(path)
            """)

            cursor.execute(
                "INSERT OR REPLACE INTO metadata (key, value) VALUES (?, ?)",
                ("schema_version", str(DB_SCHEMA_VERSION)),
            )

            conn.commit()

        except sqlite3.Error as e:
            conn.rollback()
            raise HistoryError(f"Failed to initialize schema: {e}") from e

    def record_snapshot(
        self,
        commit_index: int,
        timestamp: str,
        author: str,
        message: str,
        files: Iterable[Tuple[str, str, int]],
    ) -> None:
        """Insert a snapshot and its files in one transaction.

        Args:
            commit_index: Index of the commit directory
            timestamp: ISO 8601 timestamp
            author: Author identifier (e.g., "user@hostname")
            message: Snapshot message (may be empty)
            files: (path, fingerprint, size_bytes) for every copied file

        Raises:
            HistoryError: If the index already exists or the insert fails
        """
        conn = self._require_conn()

        try:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO snapshots (commit_index, timestamp, author, message)
                VALUES (?, ?, ?, ?)
                """,
                (commit_index, timestamp, author, message),
            )
            cursor.executemany(
                """
                INSERT INTO snapshot_files (commit_index, path, fingerprint, size_bytes)
                VALUES (?, ?, ?, ?)
                """,
                [(commit_index, path, fp, size) for path, fp, size in files],
            )
            conn.commit()

        except sqlite3.IntegrityError as e:
            conn.rollback()
            raise HistoryError(f"Snapshot {commit_index} already recorded") from e
        except sqlite3.Error as e:
            conn.rollback()
            raise HistoryError(f"Failed to record snapshot: {e}") from e

        logger.debug("Recorded snapshot %d in history index", commit_index)

    def get_snapshot(self, commit_index: int) -> Optional[Dict[str, Any]]:
        """Retrieve one snapshot record, or None if it was never recorded."""
        conn = self._require_conn()

        try:
            row = conn.execute(
                "SELECT * FROM snapshots WHERE commit_index = ?",
                (commit_index,),
            ).fetchone()
        except sqlite3.Error as e:
            raise HistoryError(f"Failed to query snapshot: {e}") from e

        return dict(row) if row is not None else None

    def get_files(self, commit_index: int) -> List[Dict[str, Any]]:
        """Get all files recorded for a snapshot, ordered by path."""
        conn = self._require_conn()

        try:
            rows = conn.execute(
                "SELECT path, fingerprint, size_bytes FROM snapshot_files "
                "WHERE commit_index = ? ORDER BY path",
                (commit_index,),
            ).fetchall()
        except sqlite3.Error as e:
            raise HistoryError(f"Failed to get files: {e}") from e

        return [dict(row) for row in rows]

    def get_history(self, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        """Get snapshots newest first.

        Args:
            limit: Maximum number of snapshots to return

        Returns:
            List of snapshot dictionaries, each with a ``file_count`` key
        """
        conn = self._require_conn()

        query = """
            SELECT s.*, COUNT(f.id) AS file_count
            FROM snapshots s
            LEFT JOIN snapshot_files f ON f.commit_index = s.commit_index
            GROUP BY s.commit_index
            ORDER BY s.commit_index DESC
        """
        params: Tuple[Any, ...] = ()
        if limit:
            query += " LIMIT ?"
            params = (limit,)

        try:
            rows = conn.execute(query, params).fetchall()
        except sqlite3.Error as e:
            raise HistoryError(f"Failed to get history: {e}") from e

        return [dict(row) for row in rows]

    def get_schema_version(self) -> int:
        """Get the database schema version (0 if never initialized)."""
        conn = self._require_conn()

        try:
            row = conn.execute(
                "SELECT value FROM metadata WHERE key = 'schema_version'"
            ).fetchone()
        except sqlite3.Error as e:
            raise HistoryError(f"Failed to get schema version: {e}") from e

        return int(row[0]) if row is not None else 0
