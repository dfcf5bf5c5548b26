"""Record store for metadata snapshots."""

import logging
from typing import Optional

from ..config.constants import TABLE_METADATA
from ..schemas import Metadata
from ..storage.sqlite_backend import from_sqlite_json, to_sqlite_json
from .base import EntityStore

logger = logging.getLogger(__name__)


class MetadataStore(EntityStore[Metadata]):
    """
    Metadata rows, deduplicated by content hash.

    get_or_create() checks for an existing hash before inserting; the unique
    index on metadata.hash rejects any duplicate that slips past it.
    """

    table = TABLE_METADATA
    id_column = "metadata_id"
    key_columns = frozenset(["metadata_id"])

    def _from_row(self, row: dict) -> Metadata:
        return Metadata(
            metadata_id=row["metadata_id"],
            hash=row["hash"],
            fields=from_sqlite_json(row["fields"]),
        )

    def get_by_hash(self, metadata_hash: str) -> Optional[Metadata]:
        rows = self._backend.query(
            f"SELECT * FROM {self.table} WHERE hash = :hash",
            {"hash": metadata_hash},
        )
        return self._from_row(rows[0]) if rows else None

    def get_hash_for(self, metadata_id: int) -> Optional[str]:
        rows = self._backend.query(
            f"SELECT hash FROM {self.table} WHERE metadata_id = :metadata_id",
            {"metadata_id": metadata_id},
        )
        return rows[0]["hash"] if rows else None

    def create(self, metadata: Metadata) -> Metadata:
        metadata_id = self._backend.insert(
            f"INSERT INTO {self.table} (hash, fields) VALUES (:hash, :fields)",
            {"hash": metadata.hash, "fields": to_sqlite_json(metadata.fields)},
        )
        return Metadata(fields=metadata.fields, hash=metadata.hash, metadata_id=metadata_id)

    def get_or_create(self, metadata: Metadata) -> Metadata:
        """Return the stored row with this metadata's hash, inserting it if new."""
        existing = self.get_by_hash(metadata.hash)
        if existing is not None:
            logger.debug(
                f"Reusing metadata {existing.metadata_id} for hash {metadata.hash[:12]}"
            )
            return existing
        return self.create(metadata)
