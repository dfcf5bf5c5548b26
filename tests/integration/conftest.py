"""
Shared fixtures for integration tests.

Provides:
- A TelemetryStore over a temporary database
- Aggregate factories and table snapshot helpers
"""

from datetime import timedelta

import pytest

from rad_store.reporting import TelemetryStore
from rad_store.schemas import Event, Metadata, ReportingData, Session, TrackingUrl
from rad_store.storage.sqlite_backend import now_millis

DAY_MS = int(timedelta(days=1).total_seconds() * 1000)


# =============================================================================
# SAMPLE DATA FIXTURES
# =============================================================================


def build_aggregate(
    metadata_fields: dict | None = None,
    urls: tuple[str, ...] = ("https://tracking.example.org/rad",),
    num_events: int = 3,
    event_timestamp: int | None = None,
    session_timestamp: int | None = None,
    session_uuid: str = "session-1",
) -> ReportingData:
    """
    Build an unsaved ReportingData aggregate.

    Args:
        metadata_fields: Descriptive metadata fields (hash derives from them)
        urls: Tracking URLs for the aggregate
        num_events: Number of events to attach
        event_timestamp: Recording time for all events (default: now)
        session_timestamp: Session creation time (default: now)
        session_uuid: Caller-side session identifier
    """
    if metadata_fields is None:
        metadata_fields = {"podcastId": "510289", "episodeId": "e-1"}

    events = [
        Event(
            event_time=f"2026-10-17T10:00:{i:02d}+00:00",
            timestamp=event_timestamp,
            fields={"event": "PLAY" if i == 0 else "PROGRESS", "offset": i * 15},
        )
        for i in range(num_events)
    ]

    return ReportingData(
        metadata=Metadata(fields=dict(metadata_fields)),
        session=Session(session_uuid=session_uuid, timestamp=session_timestamp),
        tracking_urls=[TrackingUrl(url=url) for url in urls],
        events=events,
    )


@pytest.fixture
def make_aggregate():
    """Factory fixture for unsaved aggregates."""
    return build_aggregate


@pytest.fixture
def long_ago() -> int:
    """An instant well past every default TTL (30 days ago)."""
    return now_millis() - 30 * DAY_MS


@pytest.fixture
def far_future() -> int:
    """A reference time at which everything stored now has expired."""
    return now_millis() + 400 * DAY_MS


# =============================================================================
# STORE FIXTURES
# =============================================================================


@pytest.fixture
def telemetry_store(sqlite_backend, settings):
    """
    TelemetryStore over the temporary backend.

    The backend fixture owns the connection and closes it after the test.
    """
    store = TelemetryStore(backend=sqlite_backend, settings=settings)
    store.initialize()
    yield store
    store.close()


def snapshot(backend) -> dict[str, list[dict]]:
    """Every row of every table, for before/after comparisons."""
    tables = {
        "tracking_urls": "tracking_url_id",
        "metadata": "metadata_id",
        "metadata_url_refs": "tracking_url_id, metadata_id",
        "sessions": "session_id",
        "events": "event_id",
        "reporting": "tracking_url_id, session_id, event_id",
    }
    return {
        table: backend.query(f"SELECT * FROM {table} ORDER BY {order}")
        for table, order in tables.items()
    }


@pytest.fixture
def table_snapshot():
    """Snapshot helper fixture."""
    return snapshot
