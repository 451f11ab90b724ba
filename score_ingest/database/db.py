"""
Owns the single SQLite connection the score store runs on.
"""
import sqlite3
import logging
import threading
from pathlib import Path
from typing import Optional

from ..exceptions import DatabaseError
from .schema import init_schema

class DBManager:
    def __init__(self, db_path: Path):
        self.db_path = db_path
        self._conn: Optional[sqlite3.Connection] = None
        # One score insert spans several tables; workers take turns
        self._score_lock = threading.Lock()

    def connect(self) -> sqlite3.Connection:
        """
        Opens the score database (created on first use) with the tables in place.
        Raises DatabaseError when the file cannot be opened or migrated.
        """
        if self._conn:
            return self._conn

        logging.info(f"Opening score database: {self.db_path}")
        try:
            # Screenshot workers insert from their own threads
            conn = sqlite3.connect(self.db_path, check_same_thread=False)
            for pragma in ("journal_mode=WAL", "synchronous=NORMAL", "foreign_keys=ON"):
                conn.execute(f"PRAGMA {pragma};")
            init_schema(conn)
        except sqlite3.Error as e:
            raise DatabaseError(f"Cannot open score database {self.db_path}: {e}") from e

        self._conn = conn
        return conn

    def close(self):
        if self._conn is None:
            return
        self._conn.close()
        self._conn = None
        logging.debug(f"Closed score database: {self.db_path}")

    def __enter__(self):
        return self.connect()

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    @property
    def write_lock(self) -> threading.Lock:
        """Held while a score and its players are written."""
        return self._score_lock
