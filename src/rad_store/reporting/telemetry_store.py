"""
Telemetry store facade.

One explicit handle over a storage backend that exposes every public
operation: persist, append_events, collect, list_all and delete.
"""

import logging
from pathlib import Path
from typing import Iterable, Optional

from ..config.settings import Settings, get_settings
from ..schemas import Event, ReportingData, TrackingUrl
from ..storage import StorageBackend, get_backend
from ..stores import RecordStores
from .collector import CollectionResult, RetentionCollector
from .reader import AggregateReader
from .writer import AggregateWriter

logger = logging.getLogger(__name__)


class TelemetryStore:
    """
    Embedded, transactional store for analytics telemetry.

    Usage:
        with TelemetryStore(db_path="data/rad.db") as store:
            stored = store.persist(aggregate)
            store.collect(pinned=stored)
            for data in store.list_all():
                upload(data)
                store.delete(data)

    Every operation is one exclusive transaction on the backend.
    """

    def __init__(
        self,
        backend: Optional[StorageBackend] = None,
        backend_type: str = "sqlite",
        db_path: Optional[Path | str] = None,
        settings: Optional[Settings] = None,
    ):
        """
        Initialize the telemetry store.

        Args:
            backend: Pre-initialized StorageBackend (optional)
            backend_type: Backend type if creating new ('sqlite')
            db_path: Path to SQLite database (for sqlite backend)
            settings: Settings to use (default: get_settings())
        """
        self._settings = settings or get_settings()

        if backend:
            self._backend = backend
            self._owns_backend = False
        else:
            kwargs = {}
            if backend_type == "sqlite":
                kwargs["db_path"] = db_path or self._settings.sqlite_db_path
            self._backend = get_backend(backend_type, **kwargs)
            self._owns_backend = True

        stores = RecordStores.for_backend(self._backend)
        self._stores = stores
        self._writer = AggregateWriter(self._backend, stores)
        self._collector = RetentionCollector(
            self._backend, self._settings.retention, stores
        )
        self._reader = AggregateReader(self._backend, stores)
        self._initialized = False

        logger.info(
            f"TelemetryStore initialized with {self._backend.backend_type} backend"
        )

    @property
    def backend(self) -> StorageBackend:
        return self._backend

    def initialize(self) -> None:
        """Open the backend and create tables if needed."""
        if not self._initialized:
            self._backend.initialize()
            self._initialized = True

    def close(self) -> None:
        """Close the backend connection if this store created it."""
        if self._owns_backend:
            self._backend.close()
        self._initialized = False

    def __enter__(self) -> "TelemetryStore":
        """Context manager entry."""
        self.initialize()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        self.close()

    # =========================================================================
    # Write path
    # =========================================================================

    def persist(self, aggregate: ReportingData) -> ReportingData:
        """Store an aggregate; see AggregateWriter.persist."""
        return self._writer.persist(aggregate)

    def append_events(
        self,
        session_id: int,
        tracking_urls: Iterable[TrackingUrl],
        events: Iterable[Event],
    ) -> list[Event]:
        """Store more events for an existing session; see AggregateWriter."""
        return self._writer.append_events(session_id, tracking_urls, events)

    # =========================================================================
    # Retention
    # =========================================================================

    def collect(
        self,
        pinned: Optional[ReportingData] = None,
        now_ms: Optional[int] = None,
    ) -> CollectionResult:
        """Run one collection pass; see RetentionCollector.collect."""
        return self._collector.collect(pinned, now_ms=now_ms)

    # =========================================================================
    # Export path
    # =========================================================================

    def list_all(self) -> list[ReportingData]:
        """Reassemble every stored aggregate; see AggregateReader.list_all."""
        return self._reader.list_all()

    def delete(self, aggregate: ReportingData) -> int:
        """Delete an exported aggregate's events; see AggregateReader.delete."""
        return self._reader.delete(aggregate)

    # =========================================================================
    # Diagnostics
    # =========================================================================

    def get_table_counts(self) -> dict[str, int]:
        """Row counts per table, read in one transaction."""
        stores = self._stores
        with self._backend.transaction():
            return {
                store.table: store.count()
                for store in (
                    stores.tracking_urls,
                    stores.metadata,
                    stores.metadata_url_refs,
                    stores.sessions,
                    stores.events,
                    stores.reporting,
                )
            }

    def health_check(self) -> dict:
        return self._backend.health_check()
