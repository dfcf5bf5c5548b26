"""
Aggregate writer.

Persists ReportingData aggregates, allocating store ids and propagating them
across entities inside one transaction.
"""

import logging
from dataclasses import replace
from typing import Iterable, Optional

from ..schemas import Event, ReportingData, TrackingUrl
from ..storage import StorageBackend
from ..stores import RecordStores

logger = logging.getLogger(__name__)


class AggregateWriter:
    """
    Write path for telemetry aggregates.

    Each public method runs as one exclusive transaction; any failure rolls
    the whole write back and surfaces as WriteFailed.
    """

    def __init__(
        self,
        backend: StorageBackend,
        stores: Optional[RecordStores] = None,
    ):
        self._backend = backend
        self._stores = stores or RecordStores.for_backend(backend)

    def persist(self, aggregate: ReportingData) -> ReportingData:
        """
        Persist an aggregate and attach store-assigned ids to it.

        Steps run in dependency order:
        1. resolve metadata by hash (reuse an existing row or insert)
        2. insert every tracking URL as a fresh row
        3. link each tracking URL to the metadata
        4. stamp the session with the metadata id and insert it
        5. insert the events tagged with the metadata hash
        6. link the events to the session and tracking URLs

        Ids are attached to `aggregate` only once the transaction commits. A
        failed write leaves the aggregate exactly as it was passed in, so it
        can be retried as is.

        An aggregate without tracking URLs gets no reporting links. It is
        never returned by list_all(), and collect() removes it once another
        session is live.

        Args:
            aggregate: The aggregate to store; updated in place on success

        Returns:
            The same aggregate, every nested entity now carrying its id

        Raises:
            ValueError: If the aggregate has no metadata or no session
            WriteFailed: If any step fails (nothing is written)
        """
        if aggregate.metadata is None:
            raise ValueError("Cannot persist an aggregate without metadata")
        if aggregate.session is None:
            raise ValueError("Cannot persist an aggregate without a session")

        stores = self._stores

        with self._backend.transaction():
            metadata = stores.metadata.get_or_create(aggregate.metadata)

            tracking_urls = [
                stores.tracking_urls.create(tracking_url)
                for tracking_url in aggregate.tracking_urls
            ]
            for tracking_url in tracking_urls:
                stores.metadata_url_refs.create(
                    tracking_url.tracking_url_id, metadata.metadata_id
                )

            session = stores.sessions.create(
                replace(aggregate.session, metadata_id=metadata.metadata_id)
            )

            events = stores.events.create_many(metadata.hash, aggregate.events)
            for event in events:
                event.session_id = session.session_id
            stores.reporting.create(session.session_id, tracking_urls, events)

        aggregate.metadata = metadata
        aggregate.tracking_urls = tracking_urls
        aggregate.session = session
        aggregate.events = events

        logger.info(
            f"Stored session {session.session_id} (metadata {metadata.metadata_id}) "
            f"with {len(events)} events and {len(tracking_urls)} tracking URLs"
        )
        return aggregate

    def append_events(
        self,
        session_id: int,
        tracking_urls: Iterable[TrackingUrl],
        events: Iterable[Event],
    ) -> list[Event]:
        """
        Store more events for an already persisted session.

        Events are tagged with the hash of the session's metadata and linked
        to the session and each (already persisted) tracking URL. Metadata,
        session and tracking URL rows are not touched.

        Returns:
            The stored events, carrying their assigned ids

        Raises:
            WriteFailed: If the session or its metadata is missing, a
                tracking URL has no id, or any insert fails
        """
        tracking_urls = list(tracking_urls)
        stores = self._stores

        with self._backend.transaction():
            session = stores.sessions.get_by_id(session_id)
            if session is None:
                raise LookupError(f"Session {session_id} does not exist")

            metadata_hash = stores.metadata.get_hash_for(session.metadata_id)
            if metadata_hash is None:
                raise LookupError(
                    f"Metadata {session.metadata_id} of session {session_id} "
                    "does not exist"
                )

            stored = stores.events.create_many(metadata_hash, events)
            for event in stored:
                event.session_id = session_id
            stores.reporting.create(session_id, tracking_urls, stored)

        logger.debug(
            f"Appended {len(stored)} events to session {session_id} "
            f"across {len(tracking_urls)} tracking URLs"
        )
        return stored
