#!/usr/bin/env python3
"""
SQLite Configuration and Connection Manager

This module provides configuration and connection management for the SQLite
database that stores departments, employees, simulations, campaigns and results.
"""

import os
import sqlite3
import threading
from pathlib import Path
from typing import Optional
import logging

from ..exceptions import DatabaseConnectionError

logger = logging.getLogger(__name__)


class SQLiteConfig:
    """Configuration class for SQLite connection settings."""

    def __init__(self, db_path: Optional[str] = None):
        # Load from environment variables with sensible defaults
        self.db_path = db_path or os.getenv('PHISHERMAN_DB_PATH', 'phisherman.db')
        self.timeout = float(os.getenv('PHISHERMAN_DB_TIMEOUT', '5'))

    @property
    def is_memory(self) -> bool:
        return self.db_path == ':memory:'


class SQLiteConnection:
    """SQLite connection manager shared by the request threads of the API server."""

    def __init__(self, config: Optional[SQLiteConfig] = None):
        """
        Initialize SQLite connection manager.

        Args:
            config: SQLite configuration. If None, creates default config.
        """
        self.config = config or SQLiteConfig()
        self._connection: Optional[sqlite3.Connection] = None
        # Serialises statements: one connection is shared across threads
        self.lock = threading.RLock()

    def connect(self) -> bool:
        """
        Open the database file, creating parent directories when needed.

        Returns:
            True if connection successful, False otherwise
        """
        try:
            if not self.config.is_memory:
                Path(self.config.db_path).parent.mkdir(parents=True, exist_ok=True)

            self._connection = sqlite3.connect(
                self.config.db_path,
                timeout=self.config.timeout,
                check_same_thread=False
            )
            self._connection.row_factory = sqlite3.Row
            self._connection.execute("PRAGMA foreign_keys = ON")

            logger.info(f"Connected to SQLite database: {self.config.db_path}")
            return True

        except (sqlite3.Error, OSError) as e:
            logger.error(f"Failed to open SQLite database {self.config.db_path}: {e}")
            self._connection = None
            return False

    def disconnect(self):
        """Close SQLite connection."""
        if self._connection is not None:
            self._connection.close()
            self._connection = None
            logger.info("Disconnected from SQLite")

    def get_connection(self) -> sqlite3.Connection:
        """
        Get the open connection, connecting on first use.

        Raises:
            DatabaseConnectionError: If the database cannot be opened
        """
        if self._connection is None and not self.connect():
            raise DatabaseConnectionError(f"Could not open SQLite database: {self.config.db_path}")
        return self._connection

    def is_connected(self) -> bool:
        """
        Check if connection is active.

        Returns:
            True if connected, False otherwise
        """
        if self._connection is None:
            return False
        try:
            self._connection.execute("SELECT 1")
            return True
        except sqlite3.Error:
            return False

    def __enter__(self):
        """Context manager entry."""
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.disconnect()


# Global connection instance
_global_connection: Optional[SQLiteConnection] = None


def get_sqlite_connection() -> SQLiteConnection:
    """
    Get or create global SQLite connection instance.

    Returns:
        SQLiteConnection instance
    """
    global _global_connection
    if _global_connection is None:
        _global_connection = SQLiteConnection()
    return _global_connection


def test_connection(db_path: Optional[str] = None) -> bool:
    """
    Test SQLite connection with current configuration.

    Returns:
        True if connection successful, False otherwise
    """
    connection = SQLiteConnection(SQLiteConfig(db_path))
    success = connection.connect() and connection.is_connected()
    connection.disconnect()
    return success
