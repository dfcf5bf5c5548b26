"""
Pytest configuration and shared fixtures for unit tests.
"""

import pytest

from rad_store.schemas import Event, Metadata, Session, TrackingUrl


@pytest.fixture
def stored_session(stores):
    """
    A metadata row, a session pointing at it, and one tracking URL.

    Returns tuple of (metadata, session, tracking_url).
    """
    metadata = stores.metadata.get_or_create(Metadata(fields={"podcastId": "p-1"}))
    session = stores.sessions.create(Session(metadata_id=metadata.metadata_id))
    tracking_url = stores.tracking_urls.create(
        TrackingUrl(url="https://tracking.example.org/rad")
    )
    stores.metadata_url_refs.create(tracking_url.tracking_url_id, metadata.metadata_id)
    return metadata, session, tracking_url


@pytest.fixture
def sample_events():
    """Two unsaved events."""
    return [
        Event(event_time="2026-10-17T10:00:00+00:00", fields={"event": "PLAY"}),
        Event(event_time="2026-10-17T10:00:15+00:00", fields={"event": "PROGRESS"}),
    ]
