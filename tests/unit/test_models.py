"""
Unit tests for telemetry entities.

Tests:
- Metadata content hashing
- Aggregate serialization
"""

from rad_store.schemas import (
    Event,
    Metadata,
    ReportingData,
    Session,
    TrackingUrl,
    compute_metadata_hash,
)


class TestMetadataHash:
    """Tests for the metadata content fingerprint."""

    def test_hash_ignores_key_order(self):
        """Equal field sets should hash equally regardless of key order."""
        a = compute_metadata_hash({"podcastId": "1", "episodeId": "2"})
        b = compute_metadata_hash({"episodeId": "2", "podcastId": "1"})
        assert a == b

    def test_hash_changes_with_content(self):
        """Different field values should produce different hashes."""
        a = compute_metadata_hash({"podcastId": "1"})
        b = compute_metadata_hash({"podcastId": "2"})
        assert a != b

    def test_metadata_computes_hash_when_missing(self):
        """Metadata built without a hash should derive it from its fields."""
        metadata = Metadata(fields={"podcastId": "1"})
        assert metadata.hash == compute_metadata_hash({"podcastId": "1"})
        assert len(metadata.hash) == 64

    def test_explicit_hash_is_kept(self):
        """A caller-supplied hash should not be recomputed."""
        metadata = Metadata(fields={"podcastId": "1"}, hash="h1")
        assert metadata.hash == "h1"


class TestReportingData:
    """Tests for the aggregate container."""

    def test_new_aggregate_is_empty(self):
        """A fresh aggregate should have no URLs or events."""
        data = ReportingData()
        assert data.tracking_urls == []
        assert data.events == []
        assert data.metadata is None
        assert data.session is None

    def test_add_helpers_append(self):
        """add_tracking_url and add_event should append to the lists."""
        data = ReportingData()
        data.add_tracking_url(TrackingUrl(url="https://t.example.org"))
        data.add_event(Event(fields={"event": "PLAY"}))
        assert [u.url for u in data.tracking_urls] == ["https://t.example.org"]
        assert data.events[0].fields == {"event": "PLAY"}

    def test_to_dict(self):
        """to_dict should serialize every nested entity."""
        data = ReportingData(
            metadata=Metadata(fields={"a": 1}, hash="h1", metadata_id=7),
            session=Session(session_id=3, metadata_id=7, timestamp=1000),
            tracking_urls=[TrackingUrl(url="https://t.example.org", tracking_url_id=2)],
            events=[Event(event_id=5, metadata_hash="h1", fields={"event": "PLAY"})],
        )

        result = data.to_dict()

        assert result["metadata"] == {"metadata_id": 7, "hash": "h1", "fields": {"a": 1}}
        assert result["session"]["session_id"] == 3
        assert result["tracking_urls"] == [
            {"tracking_url_id": 2, "url": "https://t.example.org"}
        ]
        assert result["events"][0]["event_id"] == 5
        assert result["events"][0]["metadata_hash"] == "h1"
