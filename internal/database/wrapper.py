"""
Database wrapper for Weathervane.
This wrapper provides an abstraction layer over SQLite key-value settings
storage that can be easily replaced with other database backends in the future.
"""

import logging
import sqlite3
import threading
from contextlib import contextmanager
from typing import Dict, Optional

logger = logging.getLogger(__name__)


class DatabaseWrapper:
    """
    A wrapper around SQLite that provides a consistent interface
    that can be easily replaced with other database backends.
    """

    def __init__(self, dbPath: str, timeout: float = 30.0):
        """
        Initialize database wrapper and create schema, dood!

        Args:
            dbPath: Path to SQLite database file (":memory:" for in-memory DB)
            timeout: Connection timeout in seconds (default: 30.0)
        """
        self.dbPath = dbPath
        self.timeout = timeout
        self._local = threading.local()
        self._lock = threading.Lock()
        # In-memory database lives only as long as its connection,
        # so it has to be shared between threads
        self._sharedConnection: Optional[sqlite3.Connection] = None
        self._initDatabase()

    def _connect(self) -> sqlite3.Connection:
        logger.debug(f"Creating new connection (path={self.dbPath})")
        connection = sqlite3.connect(
            self.dbPath,
            timeout=self.timeout,
            check_same_thread=False,
            detect_types=sqlite3.PARSE_DECLTYPES,
        )
        connection.row_factory = sqlite3.Row
        return connection

    def _getConnection(self) -> sqlite3.Connection:
        """Get thread-local connection, creating it on first use."""
        if self.dbPath == ":memory:":
            with self._lock:
                if self._sharedConnection is None:
                    self._sharedConnection = self._connect()
            return self._sharedConnection

        if not hasattr(self._local, "connection"):
            self._local.connection = self._connect()
        return self._local.connection

    @contextmanager
    def getCursor(self):
        """
        Context manager for database operations, dood!

        Yields:
            sqlite3.Cursor: Database cursor with auto-commit/rollback
        """
        conn = self._getConnection()
        cursor = conn.cursor()
        try:
            yield cursor
            conn.commit()
        except Exception as e:
            conn.rollback()
            logger.error(f"Database operation failed: {e}")
            logger.exception(e)
            raise
        finally:
            cursor.close()

    def close(self):
        """Close database connections opened by this thread (and shared in-memory one)"""
        if hasattr(self._local, "connection"):
            try:
                self._local.connection.close()
            except sqlite3.Error as e:
                logger.error(f"Error closing connection: {e}")
            del self._local.connection

        with self._lock:
            if self._sharedConnection is not None:
                self._sharedConnection.close()
                self._sharedConnection = None
        logger.debug(f"Closed database {self.dbPath}")

    def _initDatabase(self):
        """Initialize database schema"""
        with self.getCursor() as cursor:
            cursor.execute(
                """
                CREATE TABLE IF NOT EXISTS settings (
                    key TEXT PRIMARY KEY,
                    value TEXT,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """
            )
        logger.info(f"Database initialized: {self.dbPath}")

    ###
    # Settings manipulation functions
    ###

    def setSetting(self, key: str, value: str) -> bool:
        """
        Set a setting, overwriting previous value.

        Args:
            key: Setting key
            value: Setting value

        Returns:
            bool: True if successful, False otherwise
        """
        try:
            with self.getCursor() as cursor:
                cursor.execute(
                    """
                    INSERT INTO settings (key, value)
                    VALUES (:key, :value)
                    ON CONFLICT(key) DO UPDATE SET
                        value = excluded.value,
                        updated_at = CURRENT_TIMESTAMP
                """,
                    {
                        "key": key,
                        "value": value,
                    },
                )
                return True
        except sqlite3.Error as e:
            logger.error(f"Failed to set setting {key}: {e}")
            return False

    def getSetting(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """Get a setting.

        Args:
            key: Setting key to retrieve
            default: Default value if key not found

        Returns:
            Setting value or default if not found"""
        try:
            with self.getCursor() as cursor:
                cursor.execute("SELECT value FROM settings WHERE key = ?", (key,))
                row = cursor.fetchone()
                return row["value"] if row else default
        except sqlite3.Error as e:
            logger.error(f"Failed to get setting {key}: {e}")
            return default

    def getSettings(self) -> Dict[str, str]:
        """Get all settings as key-value dictionary"""
        try:
            with self.getCursor() as cursor:
                cursor.execute("SELECT key, value FROM settings")
                return {row["key"]: row["value"] for row in cursor.fetchall()}
        except sqlite3.Error as e:
            logger.error(f"Failed to get settings: {e}")
            return {}
