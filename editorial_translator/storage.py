"""Shared SQLite plumbing for the local stores.

History, glossary and drafts each own a table in the same database file.
"""
import logging
import sqlite3
import threading
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


class SqliteStore:
    """Base class for SQLite-backed stores.

    Features:
    - Lazily opened persistent connection with multi-threaded access
    - Busy timeout to avoid indefinite hangs
    - Automatic table creation via ``_schema``
    """

    _schema: str = ""

    def __init__(self, db_path: str = "translator.db"):
        """Initialize the store.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = Path(db_path)
        self._conn: Optional[sqlite3.Connection] = None
        self._lock = threading.Lock()  # Serializes writes on the shared connection
        self._ensure_table()

    @property
    def conn(self) -> sqlite3.Connection:
        """Get or create the database connection.

        Returns:
            Persistent SQLite connection with timeout and busy handling
        """
        if self._conn is None:
            self._conn = sqlite3.connect(
                str(self.db_path),
                check_same_thread=False,  # Web handlers run on worker threads
                timeout=5.0
            )
            self._conn.execute("PRAGMA busy_timeout = 5000")
        return self._conn

    def close(self):
        """Close the database connection."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()

    def __del__(self):
        self.close()

    def _ensure_table(self):
        """Create the store's table if it doesn't exist"""
        if self._schema:
            self.conn.executescript(self._schema)
            self.conn.commit()
