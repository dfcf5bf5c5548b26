"""Record store for the metadata / tracking URL join rows."""

from ..config.constants import TABLE_METADATA_URL_REFS
from ..schemas import MetadataUrlRef
from .base import RecordStore


class MetadataUrlRefStore(RecordStore[MetadataUrlRef]):
    table = TABLE_METADATA_URL_REFS
    key_columns = frozenset(["metadata_id", "tracking_url_id"])

    def _from_row(self, row: dict) -> MetadataUrlRef:
        return MetadataUrlRef(
            tracking_url_id=row["tracking_url_id"],
            metadata_id=row["metadata_id"],
        )

    def create(self, tracking_url_id: int, metadata_id: int) -> MetadataUrlRef:
        self._backend.insert(
            f"""
            INSERT INTO {self.table} (tracking_url_id, metadata_id)
            VALUES (:tracking_url_id, :metadata_id)
            """,
            {"tracking_url_id": tracking_url_id, "metadata_id": metadata_id},
        )
        return MetadataUrlRef(tracking_url_id=tracking_url_id, metadata_id=metadata_id)

    def get_tracking_url_ids(self) -> list[int]:
        """Distinct tracking URL ids still linked to some metadata."""
        rows = self._backend.query(
            f"SELECT DISTINCT tracking_url_id FROM {self.table} ORDER BY tracking_url_id"
        )
        return [row["tracking_url_id"] for row in rows]
