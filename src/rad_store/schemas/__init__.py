"""Entity models and SQLite schema for the telemetry store."""

from .models import (
    Event,
    Metadata,
    MetadataUrlRef,
    ReportingData,
    Session,
    TrackingUrl,
    compute_metadata_hash,
)
from .tables import INDEX_DEFINITIONS, TABLE_DEFINITIONS, VALID_TABLES

__all__ = [
    # Entities
    "Event",
    "Metadata",
    "MetadataUrlRef",
    "ReportingData",
    "Session",
    "TrackingUrl",
    "compute_metadata_hash",
    # SQLite schema
    "TABLE_DEFINITIONS",
    "INDEX_DEFINITIONS",
    "VALID_TABLES",
]
