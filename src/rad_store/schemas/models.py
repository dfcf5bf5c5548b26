"""
Telemetry entities and the ReportingData aggregate.

Identifiers are assigned by the store; a freshly built entity carries None
until it has been persisted.
"""

import hashlib
import json
from dataclasses import dataclass, field
from typing import Any, Optional


def compute_metadata_hash(fields: dict[str, Any]) -> str:
    """
    Content fingerprint of a metadata snapshot.

    SHA-256 over the canonical JSON form (sorted keys, compact separators),
    so equal field sets hash equally regardless of key order.
    """
    canonical = json.dumps(fields, sort_keys=True, separators=(",", ":"), default=str)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


@dataclass
class Metadata:
    """Descriptive snapshot shared by sessions and events, deduplicated by hash."""

    fields: dict[str, Any] = field(default_factory=dict)
    hash: Optional[str] = None
    metadata_id: Optional[int] = None

    def __post_init__(self) -> None:
        if self.hash is None:
            self.hash = compute_metadata_hash(self.fields)

    def to_dict(self) -> dict:
        return {
            "metadata_id": self.metadata_id,
            "hash": self.hash,
            "fields": self.fields,
        }


@dataclass
class Session:
    """A playback session; references exactly one Metadata row."""

    session_uuid: Optional[str] = None
    metadata_id: Optional[int] = None
    timestamp: Optional[int] = None  # epoch milliseconds
    session_id: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            "session_id": self.session_id,
            "metadata_id": self.metadata_id,
            "session_uuid": self.session_uuid,
            "timestamp": self.timestamp,
        }


@dataclass
class TrackingUrl:
    """A URL events are reported to. Not deduplicated."""

    url: str
    tracking_url_id: Optional[int] = None

    def to_dict(self) -> dict:
        return {"tracking_url_id": self.tracking_url_id, "url": self.url}


@dataclass
class MetadataUrlRef:
    """Join row: this tracking URL was associated with this metadata snapshot."""

    tracking_url_id: int
    metadata_id: int


@dataclass
class Event:
    """
    A single tracking event.

    session_id and tracking_url_id come from the reporting join and are only
    populated on events read back through it.
    """

    fields: dict[str, Any] = field(default_factory=dict)
    event_time: Optional[str] = None
    timestamp: Optional[int] = None  # epoch milliseconds, drives expiry
    metadata_hash: Optional[str] = None
    session_id: Optional[int] = None
    tracking_url_id: Optional[int] = None
    event_id: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            "event_id": self.event_id,
            "metadata_hash": self.metadata_hash,
            "session_id": self.session_id,
            "tracking_url_id": self.tracking_url_id,
            "timestamp": self.timestamp,
            "event_time": self.event_time,
            "fields": self.fields,
        }


@dataclass
class ReportingData:
    """
    Aggregate of one metadata snapshot, one session, its tracking URLs and
    its events.

    The unit of write, read and delete, and the root set a caller pins
    during a collection pass.
    """

    metadata: Optional[Metadata] = None
    session: Optional[Session] = None
    tracking_urls: list[TrackingUrl] = field(default_factory=list)
    events: list[Event] = field(default_factory=list)

    def add_tracking_url(self, tracking_url: TrackingUrl) -> None:
        self.tracking_urls.append(tracking_url)

    def add_event(self, event: Event) -> None:
        self.events.append(event)

    def to_dict(self) -> dict:
        """Convert to dictionary for export/serialization."""
        return {
            "metadata": self.metadata.to_dict() if self.metadata else None,
            "session": self.session.to_dict() if self.session else None,
            "tracking_urls": [url.to_dict() for url in self.tracking_urls],
            "events": [event.to_dict() for event in self.events],
        }
