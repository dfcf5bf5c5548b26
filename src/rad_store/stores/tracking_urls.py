"""Record store for tracking URLs."""

from ..config.constants import TABLE_TRACKING_URLS
from ..schemas import TrackingUrl
from .base import EntityStore


class TrackingUrlStore(EntityStore[TrackingUrl]):
    """Tracking URLs are never deduplicated: every create inserts a new row."""

    table = TABLE_TRACKING_URLS
    id_column = "tracking_url_id"
    key_columns = frozenset(["tracking_url_id"])

    def _from_row(self, row: dict) -> TrackingUrl:
        return TrackingUrl(url=row["url"], tracking_url_id=row["tracking_url_id"])

    def create(self, tracking_url: TrackingUrl) -> TrackingUrl:
        tracking_url_id = self._backend.insert(
            f"INSERT INTO {self.table} (url) VALUES (:url)",
            {"url": tracking_url.url},
        )
        return TrackingUrl(url=tracking_url.url, tracking_url_id=tracking_url_id)
