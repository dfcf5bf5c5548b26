"""Reporting components: aggregate writer, retention collector and reader."""

from .collector import CollectionResult, RetentionCollector
from .reader import AggregateReader
from .telemetry_store import TelemetryStore
from .writer import AggregateWriter

__all__ = [
    "TelemetryStore",
    "AggregateWriter",
    "AggregateReader",
    "RetentionCollector",
    "CollectionResult",
]
