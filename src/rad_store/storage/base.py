"""
Abstract base class for storage backends.

Provides a unified interface for the telemetry store's storage operations:
connection lifecycle, schema bootstrap, scoped transactions and raw SQL.
"""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from typing import Optional


class StorageBackend(ABC):
    """
    Abstract base class for storage backends.

    All storage implementations must implement this interface so record
    stores and reporting components stay backend-agnostic.
    """

    @property
    @abstractmethod
    def backend_type(self) -> str:
        """Return the backend type identifier (e.g., 'sqlite')."""
        pass

    @abstractmethod
    def initialize(self) -> None:
        """
        Open the store and create tables and indexes if they don't exist.

        Should be idempotent - safe to call multiple times.
        """
        pass

    @abstractmethod
    def close(self) -> None:
        """
        Close connections and release resources.

        Any operation attempted after close raises StoreUnavailable.
        """
        pass

    @property
    @abstractmethod
    def is_open(self) -> bool:
        """True while a connection is established."""
        pass

    @abstractmethod
    def transaction(self) -> AbstractContextManager[None]:
        """
        Scoped, exclusive transaction.

        Usage:
            with backend.transaction():
                backend.execute(...)

        Commits when the block exits normally and rolls back on any
        exception. Nested use on the same thread joins the outer transaction.

        Raises:
            StoreUnavailable: If the backend is not open.
            WriteFailed: If anything inside the block fails.
        """
        pass

    @abstractmethod
    def query(
        self,
        sql: str,
        params: Optional[dict] = None,
    ) -> list[dict]:
        """
        Execute a query and return results as a list of dictionaries.

        Args:
            sql: SQL query string (named :param placeholders)
            params: Optional dictionary of query parameters

        Returns:
            List of dictionaries, one per row.

        Raises:
            QueryError: If query execution fails.
        """
        pass

    @abstractmethod
    def execute(
        self,
        sql: str,
        params: Optional[dict] = None,
    ) -> int:
        """
        Execute a statement (INSERT, UPDATE, DELETE, DDL).

        Returns:
            Number of affected rows (0 for DDL statements).

        Raises:
            QueryError: If execution fails.
        """
        pass

    @abstractmethod
    def insert(
        self,
        sql: str,
        params: Optional[dict] = None,
    ) -> int:
        """
        Execute an INSERT and return the new row's id.

        Raises:
            QueryError: If execution fails.
        """
        pass

    @abstractmethod
    def table_exists(self, table_name: str) -> bool:
        """Check if a table exists in the storage backend."""
        pass

    @abstractmethod
    def get_table_row_count(self, table_name: str) -> int:
        """
        Get the total row count for a table.

        Raises:
            SchemaError: If the table doesn't exist.
        """
        pass

    def health_check(self) -> dict:
        """
        Perform a health check on the storage backend.

        Returns:
            Dictionary with health status information:
            {
                "healthy": bool,
                "backend_type": str,
                "message": str,
                "details": dict
            }
        """
        try:
            self.query("SELECT 1 as test")
            return {
                "healthy": True,
                "backend_type": self.backend_type,
                "message": "Backend is operational",
                "details": {},
            }
        except StorageError as e:
            return {
                "healthy": False,
                "backend_type": self.backend_type,
                "message": f"Health check failed: {str(e)}",
                "details": {"error": str(e)},
            }

    def __enter__(self) -> "StorageBackend":
        """Context manager entry - opens the store."""
        self.initialize()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit - ensures resources are released."""
        self.close()


class StorageError(Exception):
    """Base exception for storage backend errors."""

    pass


class StoreUnavailable(StorageError):
    """Raised when no connection to the store is established."""

    pass


class QueryError(StorageError):
    """Raised when a query fails to execute."""

    pass


class SchemaError(StorageError):
    """Raised when there's a schema-related error."""

    pass


class WriteFailed(StorageError):
    """
    Raised when a transaction fails and has been rolled back.

    Attributes:
        cause: The exception that aborted the transaction
    """

    def __init__(self, message: str, cause: BaseException | None = None):
        self.cause = cause
        self.message = message
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the error message with the underlying cause."""
        if self.cause is not None:
            return f"{self.message}: {self.cause}"
        return self.message
