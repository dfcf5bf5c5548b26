"""
Unit tests for the record stores.

Tests:
- Point lookups and creation per entity
- Metadata deduplication
- Keep-set deletion
- Reporting join queries
"""

import pytest

from rad_store.schemas import Event, Metadata, Session, TrackingUrl
from rad_store.storage import QueryError


class TestKeepSetDeletion:
    """Tests for delete_not_in shared by every store."""

    def test_deletes_rows_outside_keep_set(self, stores):
        """Only rows whose id is kept should survive."""
        ids = [
            stores.tracking_urls.create(TrackingUrl(url=f"https://t/{i}")).tracking_url_id
            for i in range(5)
        ]

        deleted = stores.tracking_urls.delete_not_in({ids[1], ids[3]})

        assert deleted == 3
        assert stores.tracking_urls.get_ids() == [ids[1], ids[3]]

    def test_empty_keep_set_deletes_everything(self, stores):
        """An empty keep-set should delete every row."""
        for i in range(3):
            stores.tracking_urls.create(TrackingUrl(url=f"https://t/{i}"))

        assert stores.tracking_urls.delete_not_in([]) == 3
        assert stores.tracking_urls.count() == 0

    def test_none_values_are_ignored(self, stores):
        """None in the keep-set should not break the query."""
        kept = stores.tracking_urls.create(TrackingUrl(url="https://t/1"))
        stores.tracking_urls.create(TrackingUrl(url="https://t/2"))

        stores.tracking_urls.delete_not_in([kept.tracking_url_id, None])

        assert stores.tracking_urls.get_ids() == [kept.tracking_url_id]

    def test_large_keep_set(self, stores):
        """Keep-sets beyond SQLite's host parameter limit should work."""
        kept = stores.tracking_urls.create(TrackingUrl(url="https://t/kept"))
        stores.tracking_urls.create(TrackingUrl(url="https://t/dropped"))
        keep = set(range(100_000, 140_000)) | {kept.tracking_url_id}

        assert stores.tracking_urls.delete_not_in(keep) == 1
        assert stores.tracking_urls.count() == 1

    def test_invalid_column_rejected(self, stores):
        """Only declared key columns may be filtered on."""
        with pytest.raises(ValueError, match="Invalid key column"):
            stores.tracking_urls.delete_not_in([1], column="url")


class TestMetadataStore:
    """Tests for metadata deduplication."""

    def test_get_or_create_reuses_existing_hash(self, stores):
        """Equal fields should resolve to the same stored row."""
        first = stores.metadata.get_or_create(Metadata(fields={"podcastId": "1"}))
        second = stores.metadata.get_or_create(Metadata(fields={"podcastId": "1"}))

        assert first.metadata_id is not None
        assert second.metadata_id == first.metadata_id
        assert stores.metadata.count() == 1

    def test_different_fields_create_new_rows(self, stores):
        """Different fields should create distinct rows."""
        first = stores.metadata.get_or_create(Metadata(fields={"podcastId": "1"}))
        second = stores.metadata.get_or_create(Metadata(fields={"podcastId": "2"}))
        assert first.metadata_id != second.metadata_id

    def test_duplicate_hash_rejected_by_index(self, stores):
        """A second insert of the same hash should violate the unique index."""
        stores.metadata.create(Metadata(fields={"podcastId": "1"}))
        with pytest.raises(QueryError):
            stores.metadata.create(Metadata(fields={"podcastId": "1"}))

    def test_lookups(self, stores):
        """get_by_hash, get_by_id and get_hash_for should agree."""
        stored = stores.metadata.get_or_create(Metadata(fields={"podcastId": "1"}))

        assert stores.metadata.get_by_hash(stored.hash) == stored
        assert stores.metadata.get_by_id(stored.metadata_id) == stored
        assert stores.metadata.get_hash_for(stored.metadata_id) == stored.hash
        assert stores.metadata.get_by_hash("missing") is None
        assert stores.metadata.get_hash_for(999) is None


class TestSessionStore:
    """Tests for the session store."""

    def test_create_defaults_timestamp(self, stores):
        """Sessions created without a timestamp should be stamped now."""
        session = stores.sessions.create(Session(session_uuid="s-1", metadata_id=1))
        assert session.session_id is not None
        assert session.timestamp > 1_600_000_000_000

    def test_get_by_id_missing(self, stores):
        """Missing ids and None should both return None."""
        assert stores.sessions.get_by_id(42) is None
        assert stores.sessions.get_by_id(None) is None

    def test_get_metadata_ids_is_distinct(self, stores):
        """Referenced metadata ids should be distinct and skip NULLs."""
        stores.sessions.create(Session(metadata_id=2))
        stores.sessions.create(Session(metadata_id=2))
        stores.sessions.create(Session(metadata_id=1))
        stores.sessions.create(Session(metadata_id=None))

        assert stores.sessions.get_metadata_ids() == [1, 2]

    def test_delete_expired(self, stores):
        """Only sessions created before the cutoff should be deleted."""
        old = stores.sessions.create(Session(metadata_id=1, timestamp=1_000_000_000_000))
        new = stores.sessions.create(Session(metadata_id=1, timestamp=2_000_000_000_000))

        assert stores.sessions.delete_expired(1_500_000_000_000) == 1
        assert stores.sessions.get_by_id(old.session_id) is None
        assert stores.sessions.get_by_id(new.session_id) is not None


class TestEventStore:
    """Tests for the event store."""

    def test_create_many_assigns_ids(self, stores, stored_session, sample_events):
        """Stored events should carry ids, the hash and a timestamp."""
        metadata, _, _ = stored_session
        stored = stores.events.create_many(metadata.hash, sample_events)

        assert len(stored) == 2
        assert all(event.event_id is not None for event in stored)
        assert all(event.metadata_hash == metadata.hash for event in stored)
        assert all(event.timestamp is not None for event in stored)
        assert sample_events[0].event_id is None

    def test_fields_round_trip(self, stores, stored_session, sample_events):
        """Payload fields should read back unchanged."""
        metadata, _, _ = stored_session
        stored = stores.events.create_many(metadata.hash, sample_events)

        event = stores.events.get_by_id(stored[1].event_id)

        assert event.fields == {"event": "PROGRESS"}
        assert event.event_time == "2026-10-17T10:00:15+00:00"

    def test_delete_expired(self, stores, stored_session):
        """Events recorded before the cutoff should be deleted."""
        metadata, _, _ = stored_session
        stores.events.create_many(
            metadata.hash,
            [Event(timestamp=1_000_000_000_000), Event(timestamp=2_000_000_000_000)],
        )

        assert stores.events.delete_expired(1_500_000_000_000) == 1
        assert stores.events.count() == 1

    def test_delete_hashes_not_in(self, stores):
        """Events tagged with an unkept hash should be deleted."""
        stores.events.create_many("h1", [Event(), Event()])
        stores.events.create_many("h2", [Event()])

        assert stores.events.delete_hashes_not_in(["h1"]) == 1
        assert {event.metadata_hash for event in stores.events.read()} == {"h1"}

    def test_delete_if_unlinked(self, stores, stored_session, sample_events):
        """An event should only be deleted once no link references it."""
        metadata, session, tracking_url = stored_session
        stored = stores.events.create_many(metadata.hash, sample_events[:1])
        stores.reporting.create(session.session_id, [tracking_url], stored)
        event = stored[0]

        assert stores.events.delete_if_unlinked(event.event_id) == 0

        stores.reporting.delete(
            tracking_url.tracking_url_id,
            session.session_id,
            event.event_id,
            event.timestamp,
        )
        assert stores.events.delete_if_unlinked(event.event_id) == 1


class TestMetadataUrlRefStore:
    """Tests for metadata / tracking URL refs."""

    def test_tracking_url_ids_are_distinct(self, stores):
        """Referenced tracking URL ids should be distinct."""
        stores.metadata_url_refs.create(3, 1)
        stores.metadata_url_refs.create(3, 2)
        stores.metadata_url_refs.create(1, 1)

        assert stores.metadata_url_refs.get_tracking_url_ids() == [1, 3]

    def test_delete_not_in_by_metadata(self, stores):
        """Refs to unkept metadata should be deleted."""
        stores.metadata_url_refs.create(1, 1)
        stores.metadata_url_refs.create(2, 2)

        assert stores.metadata_url_refs.delete_not_in([1], column="metadata_id") == 1
        assert [ref.metadata_id for ref in stores.metadata_url_refs.read()] == [1]


class TestReportingLinkStore:
    """Tests for the reporting join."""

    def test_create_links_every_url_and_event(self, stores, stored_session, sample_events):
        """Each event should be linked once per tracking URL."""
        metadata, session, tracking_url = stored_session
        second_url = stores.tracking_urls.create(TrackingUrl(url="https://t/2"))
        events = stores.events.create_many(metadata.hash, sample_events)

        created = stores.reporting.create(
            session.session_id, [tracking_url, second_url], events
        )

        assert created == 4
        assert stores.reporting.get_session_ids() == [session.session_id]
        assert stores.reporting.get_sessions_for_tracking_url(
            second_url.tracking_url_id
        ) == [session.session_id]

    def test_create_requires_ids(self, stores, stored_session):
        """Unsaved tracking URLs or events cannot be linked."""
        _, session, tracking_url = stored_session

        with pytest.raises(ValueError):
            stores.reporting.create(
                session.session_id, [TrackingUrl(url="https://t/new")], [Event(event_id=1)]
            )
        with pytest.raises(ValueError):
            stores.reporting.create(session.session_id, [tracking_url], [Event()])

    def test_get_events_for(self, stores, stored_session, sample_events):
        """Linked events should come back ordered by timestamp."""
        metadata, session, tracking_url = stored_session
        sample_events[0].timestamp = 2_000_000_000_000
        sample_events[1].timestamp = 1_000_000_000_000
        events = stores.events.create_many(metadata.hash, sample_events)
        stores.reporting.create(session.session_id, [tracking_url], events)

        linked = stores.reporting.get_events_for(
            tracking_url.tracking_url_id, session.session_id
        )

        assert [event.event_id for event in linked] == [
            events[1].event_id,
            events[0].event_id,
        ]
        assert all(event.session_id == session.session_id for event in linked)

    def test_links_to_missing_events_are_invisible(self, stores, stored_session, sample_events):
        """Reads should ignore links whose event row is gone."""
        metadata, session, tracking_url = stored_session
        events = stores.events.create_many(metadata.hash, sample_events)
        stores.reporting.create(session.session_id, [tracking_url], events)

        stores.events.delete_all()

        assert stores.reporting.get_session_ids() == []
        assert stores.reporting.get_events_for(
            tracking_url.tracking_url_id, session.session_id
        ) == []
        assert stores.reporting.delete_orphans() == 2
        assert stores.reporting.count() == 0

    def test_delete_expired(self, stores, stored_session):
        """Links stamped before the cutoff should be deleted."""
        metadata, session, tracking_url = stored_session
        events = stores.events.create_many(
            metadata.hash,
            [Event(timestamp=1_000_000_000_000), Event(timestamp=2_000_000_000_000)],
        )
        stores.reporting.create(session.session_id, [tracking_url], events)

        assert stores.reporting.delete_expired(1_500_000_000_000) == 1
        assert stores.reporting.count() == 1
