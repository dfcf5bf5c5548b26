"""
SQLite storage backend implementation.

Provides the embedded, single-file store behind the telemetry store. Every
public operation runs inside one exclusive, scoped transaction.
"""

import json
import logging
import sqlite3
import threading
import time
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Iterator, Optional

from ..config.constants import ALL_TABLES, DEFAULT_SQLITE_DB_PATH
from ..schemas.tables import INDEX_DEFINITIONS, TABLE_DEFINITIONS, VALID_TABLES
from .base import (
    QueryError,
    SchemaError,
    StorageBackend,
    StoreUnavailable,
    WriteFailed,
)

logger = logging.getLogger(__name__)

IN_MEMORY = ":memory:"


# =============================================================================
# Type Conversion Helpers
# =============================================================================


def now_millis() -> int:
    """Current wall clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def to_epoch_millis(value: Any) -> Optional[int]:
    """Convert datetime/timestamp to epoch milliseconds for SQLite.

    Handles:
    - datetime objects (naive values are taken as local time)
    - ISO8601 strings
    - integers, taken as epoch milliseconds unchanged
    - floats and numeric strings: seconds, unless already above 1e11 (ms)
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return int(value.timestamp() * 1000)
    if isinstance(value, str):
        try:
            return to_epoch_millis(float(value))
        except ValueError:
            return to_epoch_millis(datetime.fromisoformat(value.replace("Z", "+00:00")))
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if value > 1e11:  # Already milliseconds since epoch
            return int(value)
        return int(value * 1000)
    raise TypeError(f"Cannot convert {type(value).__name__} to epoch milliseconds")


def to_sqlite_json(value: Any) -> str:
    """Convert dict/list to JSON string for SQLite."""
    if value is None:
        return "{}"
    if isinstance(value, str):
        return value  # Assume already JSON
    return json.dumps(value, sort_keys=True, default=str)


def from_sqlite_json(value: Any) -> dict:
    """Convert JSON string to Python dict."""
    if value is None:
        return {}
    if isinstance(value, dict):
        return value
    try:
        return json.loads(value)
    except (json.JSONDecodeError, TypeError):
        logger.debug(f"Unparseable JSON column value: {value!r}")
        return {}


def _validate_identifier(value: str, valid_set: frozenset, name: str) -> str:
    """
    Validate an identifier against a whitelist to prevent SQL injection.

    Raises:
        ValueError: If identifier is not in the valid set
    """
    if value not in valid_set:
        raise ValueError(
            f"Invalid {name}: '{value}'. Must be one of: {sorted(valid_set)}"
        )
    return value


# =============================================================================
# SQLite Backend Implementation
# =============================================================================


class SQLiteBackend(StorageBackend):
    """
    SQLite storage backend for the telemetry store.

    One connection per backend, opened by initialize() and released by
    close(). A re-entrant lock makes every statement and every transaction
    mutually exclusive across threads.
    """

    def __init__(
        self,
        db_path: Path | str = DEFAULT_SQLITE_DB_PATH,
        *,
        check_same_thread: bool = False,
        timeout: float = 30.0,
    ):
        """
        Initialize SQLite backend.

        Args:
            db_path: Path to SQLite database file, or ':memory:'
            check_same_thread: SQLite check_same_thread parameter
            timeout: Connection timeout in seconds
        """
        self.db_path = Path(db_path)
        self._check_same_thread = check_same_thread
        self._timeout = timeout
        self._connection: Optional[sqlite3.Connection] = None
        self._lock = threading.RLock()
        self._tx_depth = 0

        if str(db_path) != IN_MEMORY:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def backend_type(self) -> str:
        """Return backend type identifier."""
        return "sqlite"

    @property
    def is_open(self) -> bool:
        return self._connection is not None

    @property
    def in_transaction(self) -> bool:
        return self._tx_depth > 0

    def _open(self) -> sqlite3.Connection:
        """Establish the connection (autocommit; transactions are explicit)."""
        if self._connection is None:
            try:
                self._connection = sqlite3.connect(
                    str(self.db_path),
                    check_same_thread=self._check_same_thread,
                    timeout=self._timeout,
                    isolation_level=None,
                )
                self._connection.row_factory = sqlite3.Row
                logger.debug(f"Connected to SQLite database: {self.db_path}")
            except sqlite3.Error as e:
                raise StoreUnavailable(
                    f"Failed to connect to SQLite database: {e}"
                ) from e
        return self._connection

    def _get_connection(self) -> sqlite3.Connection:
        """Return the open connection."""
        if self._connection is None:
            raise StoreUnavailable(
                f"SQLite store {self.db_path} is not open; call initialize() first"
            )
        return self._connection

    @contextmanager
    def _cursor(self) -> Iterator[sqlite3.Cursor]:
        """Context manager for a database cursor under the store lock."""
        with self._lock:
            conn = self._get_connection()
            cursor = conn.cursor()
            try:
                yield cursor
            except sqlite3.Error as e:
                raise QueryError(f"SQLite query failed: {e}") from e
            finally:
                cursor.close()

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Exclusive transaction: commit on success, rollback on any error."""
        with self._lock:
            conn = self._get_connection()

            if self._tx_depth:
                # Join the enclosing transaction
                self._tx_depth += 1
                try:
                    yield
                finally:
                    self._tx_depth -= 1
                return

            try:
                conn.execute("BEGIN IMMEDIATE")
            except sqlite3.Error as e:
                raise WriteFailed("Failed to begin transaction", e) from e

            self._tx_depth = 1
            try:
                yield
                conn.execute("COMMIT")
            except (StoreUnavailable, WriteFailed):
                self._rollback(conn)
                raise
            except Exception as e:
                self._rollback(conn)
                raise WriteFailed("Transaction rolled back", e) from e
            except BaseException:
                self._rollback(conn)
                raise
            finally:
                self._tx_depth = 0

    def _rollback(self, conn: sqlite3.Connection) -> None:
        if not conn.in_transaction:
            return
        try:
            conn.execute("ROLLBACK")
            logger.debug("Transaction rolled back")
        except sqlite3.Error as e:
            logger.error(f"Rollback failed: {e}")

    def initialize(self) -> None:
        """
        Open the database and create all required tables and indexes.

        Safe to call multiple times - uses IF NOT EXISTS.
        """
        logger.info(f"Initializing SQLite database: {self.db_path}")

        with self._lock:
            self._open()
            try:
                with self.transaction():
                    with self._cursor() as cursor:
                        for table_sql in TABLE_DEFINITIONS:
                            cursor.execute(table_sql)
                        for index_sql in INDEX_DEFINITIONS:
                            cursor.execute(index_sql)
            except WriteFailed as e:
                raise SchemaError(f"Schema bootstrap failed: {e.cause}") from e

        logger.info("SQLite database initialized successfully")

    def close(self) -> None:
        """Close database connection."""
        with self._lock:
            if self._connection is not None:
                self._connection.close()
                self._connection = None
                logger.debug("SQLite connection closed")

    def query(
        self,
        sql: str,
        params: Optional[dict] = None,
    ) -> list[dict]:
        """
        Execute query and return results as list of dictionaries.

        Args:
            sql: SQL query (use :param_name for parameters)
            params: Optional parameter dictionary

        Returns:
            List of result rows as dictionaries
        """
        with self._cursor() as cursor:
            cursor.execute(sql, params or {})
            columns = [desc[0] for desc in cursor.description or []]
            rows = cursor.fetchall()
            return [dict(zip(columns, row)) for row in rows]

    def execute(
        self,
        sql: str,
        params: Optional[dict] = None,
    ) -> int:
        """
        Execute statement (UPDATE, DELETE, DDL).

        Returns:
            Number of affected rows
        """
        with self._cursor() as cursor:
            cursor.execute(sql, params or {})
            return cursor.rowcount

    def insert(
        self,
        sql: str,
        params: Optional[dict] = None,
    ) -> int:
        """Execute an INSERT and return the assigned row id."""
        with self._cursor() as cursor:
            cursor.execute(sql, params or {})
            return cursor.lastrowid

    def table_exists(self, table_name: str) -> bool:
        """Check if a table exists."""
        sql = """
            SELECT name FROM sqlite_master
            WHERE type='table' AND name=:table_name
        """
        result = self.query(sql, {"table_name": table_name})
        return len(result) > 0

    def get_table_row_count(self, table_name: str) -> int:
        """Get total row count for a table."""
        _validate_identifier(table_name, VALID_TABLES, "table name")
        if not self.table_exists(table_name):
            raise SchemaError(f"Table '{table_name}' does not exist")

        sql = f"SELECT COUNT(*) as count FROM {table_name}"
        result = self.query(sql)
        return result[0]["count"] if result else 0

    # =========================================================================
    # SQLite-specific helper methods
    # =========================================================================

    def vacuum(self) -> None:
        """
        Optimize database by reclaiming space.

        Call after a collection pass that deleted many rows.
        """
        if self.in_transaction:
            raise QueryError("VACUUM cannot run inside a transaction")
        with self._cursor() as cursor:
            cursor.execute("VACUUM")
        logger.info("Database vacuumed")

    def health_check(self) -> dict:
        """Extended health check with SQLite-specific info."""
        base_check = super().health_check()

        if base_check["healthy"]:
            is_file = str(self.db_path) != IN_MEMORY and self.db_path.exists()
            base_check["details"] = {
                "db_path": str(self.db_path),
                "db_size_bytes": self.db_path.stat().st_size if is_file else 0,
                "table_count": sum(
                    1 for table in ALL_TABLES if self.table_exists(table)
                ),
            }

        return base_check
