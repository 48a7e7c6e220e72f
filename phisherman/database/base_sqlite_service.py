"""
Base SQLite Service

This module provides a base class with common patterns for SQLite services,
reducing code duplication and providing consistent error handling.
"""

import sqlite3
import logging
from contextlib import contextmanager
from enum import Enum
from typing import Dict, Any, Optional, List, Sequence

from .sqlite_config import SQLiteConnection, get_sqlite_connection
from ..exceptions import DatabaseOperationError

logger = logging.getLogger(__name__)


class BaseSQLiteService:
    """Base class for SQLite services with common patterns."""

    def __init__(self, connection: Optional[SQLiteConnection] = None):
        """
        Initialize the base service.

        Args:
            connection: SQLite connection instance. If None, uses global connection.
        """
        self.connection = connection or get_sqlite_connection()

    @staticmethod
    def _convert_params(params: Sequence[Any]) -> tuple:
        """Convert enum and bool parameters to values SQLite stores."""
        converted = []
        for value in params:
            if isinstance(value, Enum):
                value = value.value
            elif isinstance(value, bool):
                value = 1 if value else 0
            converted.append(value)
        return tuple(converted)

    @contextmanager
    def transaction(self):
        """
        Run several statements atomically.

        Yields:
            sqlite3.Connection to execute statements on
        """
        with self.connection.lock:
            conn = self.connection.get_connection()
            try:
                yield conn
                conn.commit()
            except sqlite3.Error as e:
                conn.rollback()
                logger.error(f"SQLite transaction failed: {e}")
                raise DatabaseOperationError(f"Database operation failed: {e}") from e
            except Exception:
                conn.rollback()
                raise

    def _execute(self, sql: str, params: Sequence[Any] = ()) -> int:
        """
        Execute a single write statement.

        Returns:
            lastrowid of the statement
        """
        with self.transaction() as conn:
            cursor = conn.execute(sql, self._convert_params(params))
            return cursor.lastrowid

    def _execute_script(self, script: str):
        with self.connection.lock:
            conn = self.connection.get_connection()
            try:
                conn.executescript(script)
                conn.commit()
            except sqlite3.Error as e:
                logger.error(f"SQLite script failed: {e}")
                raise DatabaseOperationError(f"Database script failed: {e}") from e

    def _fetch_one(self, sql: str, params: Sequence[Any] = ()) -> Optional[Dict[str, Any]]:
        """Fetch a single row as a dictionary, or None."""
        with self.connection.lock:
            try:
                row = self.connection.get_connection().execute(sql, self._convert_params(params)).fetchone()
            except sqlite3.Error as e:
                logger.error(f"SQLite query failed: {e}")
                raise DatabaseOperationError(f"Database query failed: {e}") from e
        return dict(row) if row is not None else None

    def _fetch_all(self, sql: str, params: Sequence[Any] = ()) -> List[Dict[str, Any]]:
        """Fetch all rows as dictionaries."""
        with self.connection.lock:
            try:
                rows = self.connection.get_connection().execute(sql, self._convert_params(params)).fetchall()
            except sqlite3.Error as e:
                logger.error(f"SQLite query failed: {e}")
                raise DatabaseOperationError(f"Database query failed: {e}") from e
        return [dict(row) for row in rows]

    def _exists(self, table: str, record_id: Any) -> bool:
        """Check whether a row with the given id exists in a known table."""
        row = self._fetch_one(f"SELECT 1 AS found FROM {table} WHERE id = ?", (record_id,))
        return row is not None
