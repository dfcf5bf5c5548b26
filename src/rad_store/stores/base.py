"""
Record store base classes.

A record store maps one table to its entity type. Stores never open
transactions themselves; the reporting components wrap every public
operation in backend.transaction() and call stores inside it.
"""

import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Generic, Iterable, Optional, TypeVar

from ..storage import StorageBackend

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RecordStore(ABC, Generic[T]):
    """
    Table-level operations shared by every record store.

    Subclasses set `table`, the columns keep-set deletion may filter on, and
    the row-to-entity mapping.
    """

    table: str
    key_columns: frozenset[str] = frozenset()
    order_by: str = "rowid"

    def __init__(self, backend: StorageBackend):
        self._backend = backend

    @abstractmethod
    def _from_row(self, row: dict) -> T:
        """Build the entity for a result row."""
        pass

    def read(self) -> list[T]:
        """All rows of the table."""
        rows = self._backend.query(
            f"SELECT * FROM {self.table} ORDER BY {self.order_by}"
        )
        return [self._from_row(row) for row in rows]

    def count(self) -> int:
        result = self._backend.query(f"SELECT COUNT(*) as count FROM {self.table}")
        return result[0]["count"] if result else 0

    def delete_all(self) -> int:
        deleted = self._backend.execute(f"DELETE FROM {self.table}")
        logger.debug(f"Deleted all {deleted} rows from {self.table}")
        return deleted

    def delete_not_in(self, keep: Iterable[Any], column: str) -> int:
        """
        Keep-set deletion: delete every row whose `column` value is not in
        `keep`.

        The keep-set is bound as a single JSON array parameter, so sets of any
        size avoid SQLite's host-parameter limit. None values are ignored.
        An empty keep-set deletes every row with a non-NULL `column`.

        Returns:
            Number of rows deleted
        """
        if column not in self.key_columns:
            raise ValueError(
                f"Invalid key column for {self.table}: '{column}'. "
                f"Must be one of: {sorted(self.key_columns)}"
            )

        keep_values = sorted({value for value in keep if value is not None})
        sql = f"""
            DELETE FROM {self.table}
            WHERE {column} NOT IN (SELECT value FROM json_each(:keep))
        """
        deleted = self._backend.execute(sql, {"keep": json.dumps(keep_values)})
        logger.debug(
            f"Deleted {deleted} rows from {self.table} "
            f"outside {len(keep_values)} kept {column} values"
        )
        return deleted


class EntityStore(RecordStore[T]):
    """Record store for a table with its own integer primary key."""

    id_column: str

    @property
    def order_by(self) -> str:
        return self.id_column

    def get_by_id(self, record_id: Optional[int]) -> Optional[T]:
        """Point lookup. Returns None when the row does not exist."""
        if record_id is None:
            return None
        rows = self._backend.query(
            f"SELECT * FROM {self.table} WHERE {self.id_column} = :record_id",
            {"record_id": record_id},
        )
        return self._from_row(rows[0]) if rows else None

    def get_ids(self) -> list[int]:
        rows = self._backend.query(
            f"SELECT {self.id_column} AS id FROM {self.table} ORDER BY {self.id_column}"
        )
        return [row["id"] for row in rows]

    def delete_not_in(self, keep: Iterable[Any], column: Optional[str] = None) -> int:
        """Keep-set deletion on the primary key unless another column is given."""
        return super().delete_not_in(keep, column or self.id_column)
