"""
Embedded, transactional local store for analytics telemetry.

Persists batches of tracking events with the session and metadata that
produced them, and reclaims storage for data nothing references any more.
"""

from .reporting import CollectionResult, TelemetryStore
from .schemas import Event, Metadata, ReportingData, Session, TrackingUrl
from .storage import (
    StorageError,
    StoreUnavailable,
    WriteFailed,
    get_backend,
)

__version__ = "0.1.0"

__all__ = [
    "TelemetryStore",
    "CollectionResult",
    # Entities
    "Event",
    "Metadata",
    "ReportingData",
    "Session",
    "TrackingUrl",
    # Storage
    "get_backend",
    "StorageError",
    "StoreUnavailable",
    "WriteFailed",
]
