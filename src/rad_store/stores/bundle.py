"""Bundle of every record store bound to one backend."""

from dataclasses import dataclass

from ..storage import StorageBackend
from .events import EventStore
from .metadata import MetadataStore
from .metadata_url_refs import MetadataUrlRefStore
from .reporting_links import ReportingLinkStore
from .sessions import SessionStore
from .tracking_urls import TrackingUrlStore


@dataclass
class RecordStores:
    """The six record stores the reporting components work with."""

    events: EventStore
    tracking_urls: TrackingUrlStore
    sessions: SessionStore
    metadata: MetadataStore
    metadata_url_refs: MetadataUrlRefStore
    reporting: ReportingLinkStore

    @classmethod
    def for_backend(cls, backend: StorageBackend) -> "RecordStores":
        return cls(
            events=EventStore(backend),
            tracking_urls=TrackingUrlStore(backend),
            sessions=SessionStore(backend),
            metadata=MetadataStore(backend),
            metadata_url_refs=MetadataUrlRefStore(backend),
            reporting=ReportingLinkStore(backend),
        )
