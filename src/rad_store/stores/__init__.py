"""Record stores: one per table, plus the cross-entity reporting join."""

from .base import EntityStore, RecordStore
from .bundle import RecordStores
from .events import EventStore
from .metadata import MetadataStore
from .metadata_url_refs import MetadataUrlRefStore
from .reporting_links import ReportingLinkStore
from .sessions import SessionStore
from .tracking_urls import TrackingUrlStore

__all__ = [
    "RecordStore",
    "RecordStores",
    "EntityStore",
    "EventStore",
    "MetadataStore",
    "MetadataUrlRefStore",
    "ReportingLinkStore",
    "SessionStore",
    "TrackingUrlStore",
]
