"""Thin SQLite wrapper shared by the ``DL*Manager`` classes."""

from __future__ import annotations

import os
import sqlite3
import threading
from typing import Optional

from swiftpay.core.logging import log


class DatabaseManager:
    """One lazily opened connection, usable from worker threads.

    Callers that run several statements as a unit hold :attr:`lock`.
    """

    def __init__(self, db_path: str) -> None:
        self.db_path = db_path
        self._lock = threading.RLock()
        self.conn: Optional[sqlite3.Connection] = None

    @property
    def lock(self) -> threading.RLock:
        return self._lock

    def connect(self) -> sqlite3.Connection:
        with self._lock:
            if self.conn is None:
                folder = os.path.dirname(self.db_path)
                if folder:
                    os.makedirs(folder, exist_ok=True)
                self.conn = sqlite3.connect(self.db_path, check_same_thread=False)
                self.conn.row_factory = sqlite3.Row
                self.conn.execute("PRAGMA journal_mode=WAL;")
                log.debug(f"Opened SQLite database {self.db_path}", source="DatabaseManager")
            return self.conn

    def get_cursor(self) -> sqlite3.Cursor:
        return self.connect().cursor()

    def commit(self) -> None:
        with self._lock:
            if self.conn is not None:
                self.conn.commit()

    def close(self) -> None:
        with self._lock:
            if self.conn is not None:
                self.conn.close()
                self.conn = None


__all__ = ["DatabaseManager"]
