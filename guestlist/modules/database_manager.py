"""
Database Manager Module - Guest Check-in System

This module owns the local SQLite file used as the device-side store.
The guest list is kept as one serialized blob under one fixed key, so the
schema is a single key/value table. The manager provides connection
handling, schema creation and blob read/write helpers.

Features:
- SQLite database connection management
- Key/value table creation
- Blob read and write by key
- Transaction support
"""

import sqlite3
import logging
from contextlib import contextmanager
import threading
import os


class DatabaseManager:
    """
    Key/value database manager backing the local guest list store.
    Connections are thread-local and reused within a thread.
    """

    def __init__(self, db_path):
        """
        Initialize the database manager with the specified database path.

        Args:
            db_path (str): Path to the SQLite database file, or ':memory:'
        """
        self.db_path = str(db_path)
        self.logger = logging.getLogger(__name__)
        self._local = threading.local()

        # Ensure database directory exists
        db_dir = os.path.dirname(self.db_path)
        if self.db_path != ':memory:' and db_dir:
            os.makedirs(db_dir, exist_ok=True)

        self.initialize_database()

    @contextmanager
    def get_connection(self):
        """
        Context manager for database connections.
        Provides thread-local connections for thread safety.

        Yields:
            sqlite3.Connection: Database connection object
        """
        if not hasattr(self._local, 'connection'):
            self._local.connection = sqlite3.connect(
                self.db_path,
                check_same_thread=False,
                timeout=30.0
            )
            self._local.connection.row_factory = sqlite3.Row

        try:
            yield self._local.connection
        except Exception as e:
            self._local.connection.rollback()
            self.logger.error(f"Database operation failed: {str(e)}")
            raise

    def initialize_database(self):
        """
        Create the key/value table. Idempotent.
        """
        with self.transaction() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS kv_store (
                    store_key VARCHAR(100) PRIMARY KEY,
                    store_value TEXT NOT NULL,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)

        self.logger.debug(f"Local store ready at {self.db_path}")

    @contextmanager
    def transaction(self):
        """
        Context manager for database transactions with automatic rollback on error.

        Yields:
            sqlite3.Connection: Database connection within transaction
        """
        with self.get_connection() as conn:
            try:
                yield conn
                conn.commit()
            except Exception as e:
                conn.rollback()
                self.logger.error(f"Transaction rolled back: {str(e)}")
                raise

    def get_blob(self, key, default_value=None):
        """
        Get the raw value stored under a key.

        Args:
            key (str): Storage key
            default_value: Value returned when the key is absent

        Returns:
            str: Stored value
        """
        with self.get_connection() as conn:
            row = conn.execute(
                "SELECT store_value FROM kv_store WHERE store_key = ?",
                (key,)
            ).fetchone()

        return row['store_value'] if row else default_value

    def set_blob(self, key, value):
        """
        Insert or overwrite the value stored under a key.

        Args:
            key (str): Storage key
            value (str): Serialized value
        """
        with self.transaction() as conn:
            conn.execute("""
                INSERT INTO kv_store (store_key, store_value, updated_at)
                VALUES (?, ?, CURRENT_TIMESTAMP)
                ON CONFLICT(store_key) DO UPDATE SET
                    store_value = excluded.store_value,
                    updated_at = CURRENT_TIMESTAMP
            """, (key, value))

    def close_all_connections(self):
        """Close the connection owned by the current thread."""
        # An in-memory database lives only as long as its connection
        if self.db_path == ':memory:':
            return

        try:
            if hasattr(self._local, 'connection'):
                self._local.connection.close()
                del self._local.connection
        except sqlite3.Error as e:
            self.logger.error(f"Error closing connections: {str(e)}")
