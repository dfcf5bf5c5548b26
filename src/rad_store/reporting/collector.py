"""
Retention collector.

A mark-and-sweep pass over the telemetry tables. Expired events go first;
then sessions, metadata, metadata/URL refs and tracking URLs are kept only
while something still reaches them, or while a caller pins them through the
aggregate it is about to use.
"""

import logging
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Optional

from ..config.settings import RetentionSettings
from ..schemas import ReportingData
from ..storage import StorageBackend
from ..storage.sqlite_backend import now_millis
from ..stores import RecordStores

logger = logging.getLogger(__name__)


@dataclass
class CollectionResult:
    """Rows removed by one collection pass."""

    expired_events: int = 0
    sessions_deleted: int = 0
    metadata_deleted: int = 0
    events_deleted: int = 0
    refs_deleted: int = 0
    tracking_urls_deleted: int = 0
    links_deleted: int = 0
    duration_seconds: float = 0.0

    @property
    def total_deleted(self) -> int:
        return (
            self.expired_events
            + self.sessions_deleted
            + self.metadata_deleted
            + self.events_deleted
            + self.refs_deleted
            + self.tracking_urls_deleted
            + self.links_deleted
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for logging/serialization."""
        result = asdict(self)
        result["total_deleted"] = self.total_deleted
        return result


class RetentionCollector:
    """
    Reachability-based garbage collector for the telemetry store.

    Roots are the sessions referenced by remaining events plus whatever the
    caller pins. Reachability runs Session -> Metadata (by id),
    Event -> Metadata (by hash), MetadataUrlRef -> Metadata and
    MetadataUrlRef -> TrackingUrl. The whole pass is one transaction.
    """

    def __init__(
        self,
        backend: StorageBackend,
        retention: Optional[RetentionSettings] = None,
        stores: Optional[RecordStores] = None,
    ):
        self._backend = backend
        self._retention = retention or RetentionSettings()
        self._stores = stores or RecordStores.for_backend(backend)

    def collect(
        self,
        pinned: Optional[ReportingData] = None,
        now_ms: Optional[int] = None,
    ) -> CollectionResult:
        """
        Run one collection pass.

        Args:
            pinned: Aggregate still in use; its session, metadata and tracking
                URLs survive the pass even when nothing else references them.
                Entities without ids (not yet persisted) pin nothing.
            now_ms: Reference time for expiry, epoch milliseconds (default now)

        Returns:
            CollectionResult with per-table deletion counts

        Raises:
            WriteFailed: If any step fails (nothing is deleted)
        """
        now = now_ms if now_ms is not None else now_millis()
        started_at = datetime.now().astimezone()
        result = CollectionResult()
        stores = self._stores
        event_cutoff = self._retention.event_cutoff_ms(now)

        with self._backend.transaction():
            # 1. Expired events go regardless of what is pinned
            result.links_deleted += stores.reporting.delete_expired(event_cutoff)
            result.expired_events = stores.events.delete_expired(event_cutoff)
            result.links_deleted += stores.reporting.delete_orphans()

            # 2. Sessions
            live_session_ids = set(stores.reporting.get_session_ids())
            if pinned is not None and pinned.session is not None:
                if pinned.session.session_id is not None:
                    live_session_ids.add(pinned.session.session_id)

            if not live_session_ids:
                # Nothing anchors any session; only age them out
                result.sessions_deleted = stores.sessions.delete_expired(
                    self._retention.session_cutoff_ms(now)
                )
            else:
                result.sessions_deleted = stores.sessions.delete_not_in(
                    live_session_ids
                )

            # 3. Metadata, and the events hanging off it by hash
            live_metadata_ids = set(stores.sessions.get_metadata_ids())
            live_metadata_ids.update(self._pinned_metadata_ids(pinned))

            if live_metadata_ids:
                result.metadata_deleted = stores.metadata.delete_not_in(
                    live_metadata_ids
                )
                live_hashes = []
                for metadata_id in sorted(live_metadata_ids):
                    metadata_hash = stores.metadata.get_hash_for(metadata_id)
                    if metadata_hash is not None:
                        live_hashes.append(metadata_hash)
                result.events_deleted = stores.events.delete_hashes_not_in(
                    live_hashes
                )
            else:
                result.metadata_deleted = stores.metadata.delete_all()
                result.events_deleted = stores.events.delete_all()

            result.links_deleted += stores.reporting.delete_orphans()

            # 4. Metadata / tracking URL refs
            remaining_metadata_ids = stores.metadata.get_ids()
            if not remaining_metadata_ids:
                result.refs_deleted = stores.metadata_url_refs.delete_all()
            else:
                result.refs_deleted = stores.metadata_url_refs.delete_not_in(
                    remaining_metadata_ids, column="metadata_id"
                )

            # 5. Tracking URLs
            live_tracking_url_ids = set(stores.metadata_url_refs.get_tracking_url_ids())
            if pinned is not None:
                live_tracking_url_ids.update(
                    url.tracking_url_id
                    for url in pinned.tracking_urls
                    if url.tracking_url_id is not None
                )

            if live_tracking_url_ids:
                result.tracking_urls_deleted = stores.tracking_urls.delete_not_in(
                    live_tracking_url_ids
                )
            else:
                result.tracking_urls_deleted = stores.tracking_urls.delete_all()

        result.duration_seconds = (
            datetime.now().astimezone() - started_at
        ).total_seconds()
        logger.info(
            f"Collection pass removed {result.total_deleted} rows "
            f"({result.expired_events} expired events, "
            f"{result.sessions_deleted} sessions, "
            f"{result.metadata_deleted} metadata, "
            f"{result.events_deleted} unreachable events, "
            f"{result.refs_deleted} refs, "
            f"{result.tracking_urls_deleted} tracking URLs)"
        )
        return result

    def _pinned_metadata_ids(self, pinned: Optional[ReportingData]) -> set[int]:
        """
        Metadata ids rooted by the pinned aggregate.

        Metadata not yet persisted is matched by hash, since persisting it
        would reuse the stored row with the same hash.
        """
        if pinned is None or pinned.metadata is None:
            return set()
        if pinned.metadata.metadata_id is not None:
            return {pinned.metadata.metadata_id}
        existing = self._stores.metadata.get_by_hash(pinned.metadata.hash)
        return {existing.metadata_id} if existing is not None else set()
