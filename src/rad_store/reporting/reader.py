"""
Aggregate reader.

Reassembles ReportingData aggregates from the store for export/upload, and
removes exported events once the caller is done with them.
"""

import logging
from typing import Optional

from ..schemas import ReportingData
from ..storage import StorageBackend
from ..stores import RecordStores

logger = logging.getLogger(__name__)


class AggregateReader:
    """Export-side access to stored aggregates."""

    def __init__(
        self,
        backend: StorageBackend,
        stores: Optional[RecordStores] = None,
    ):
        self._backend = backend
        self._stores = stores or RecordStores.for_backend(backend)

    def list_all(self) -> list[ReportingData]:
        """
        Build one aggregate per (tracking URL, session) pair.

        Each aggregate carries a single tracking URL, the events linked to that
        URL within the session (payload re-read from the event store), the
        session and the metadata the session references. Pairs whose session
        has been collected in the meantime are skipped. The whole read is one
        transaction, so it sees a consistent snapshot.

        Returns:
            List of ReportingData aggregates
        """
        stores = self._stores
        results = []

        with self._backend.transaction():
            for tracking_url in stores.tracking_urls.read():
                session_ids = stores.reporting.get_sessions_for_tracking_url(
                    tracking_url.tracking_url_id
                )
                for session_id in session_ids:
                    session = stores.sessions.get_by_id(session_id)
                    if session is None:
                        logger.debug(
                            f"Skipping tracking URL {tracking_url.tracking_url_id}: "
                            f"session {session_id} no longer exists"
                        )
                        continue

                    data = ReportingData()
                    data.add_tracking_url(tracking_url)

                    linked_events = stores.reporting.get_events_for(
                        tracking_url.tracking_url_id, session_id
                    )
                    for event in linked_events:
                        stored_event = stores.events.get_by_id(event.event_id)
                        if stored_event is None:
                            continue
                        event.event_time = stored_event.event_time
                        event.fields = stored_event.fields
                        event.metadata_hash = stored_event.metadata_hash
                        data.add_event(event)

                    data.session = session
                    data.metadata = stores.metadata.get_by_id(session.metadata_id)
                    results.append(data)

        logger.debug(f"Read {len(results)} stored aggregates")
        return results

    def delete(self, aggregate: ReportingData) -> int:
        """
        Delete an exported aggregate's events.

        Each event's reporting link is removed by the key (first tracking URL,
        session, event id, timestamp); the event row goes once nothing links to
        it any more. Metadata, session and tracking URL rows are left for the
        next collection pass.

        Returns:
            Number of event rows deleted

        Raises:
            WriteFailed: If the aggregate has events but no tracking URL or
                session to key them by, or a delete fails
        """
        if not aggregate.events:
            return 0

        stores = self._stores
        deleted = 0

        with self._backend.transaction():
            if not aggregate.tracking_urls or aggregate.session is None:
                raise ValueError(
                    "Aggregate needs a tracking URL and a session to delete events"
                )
            tracking_url_id = aggregate.tracking_urls[0].tracking_url_id
            session_id = aggregate.session.session_id

            for event in aggregate.events:
                stores.reporting.delete(
                    tracking_url_id, session_id, event.event_id, event.timestamp
                )
                deleted += stores.events.delete_if_unlinked(event.event_id)

        logger.info(f"Deleted {deleted} exported events of session {session_id}")
        return deleted
