"""Record store for tracking events."""

import logging
from typing import Iterable

from ..config.constants import TABLE_EVENTS, TABLE_REPORTING
from ..schemas import Event
from ..storage.sqlite_backend import (
    from_sqlite_json,
    now_millis,
    to_epoch_millis,
    to_sqlite_json,
)
from .base import EntityStore

logger = logging.getLogger(__name__)


class EventStore(EntityStore[Event]):
    """
    Event rows.

    Stores each event's canonical payload and the hash of the metadata it was
    recorded under. Links to sessions and tracking URLs live in the reporting
    join (see ReportingLinkStore).
    """

    table = TABLE_EVENTS
    id_column = "event_id"
    key_columns = frozenset(["event_id", "metadata_hash"])

    def _from_row(self, row: dict) -> Event:
        return Event(
            event_id=row["event_id"],
            metadata_hash=row["metadata_hash"],
            timestamp=row["timestamp"],
            event_time=row["event_time"],
            fields=from_sqlite_json(row["fields"]),
        )

    def create_many(self, metadata_hash: str, events: Iterable[Event]) -> list[Event]:
        """
        Insert events tagged with `metadata_hash`.

        Returns:
            New Event objects carrying their assigned ids; recording
            timestamps default to now.
        """
        sql = f"""
            INSERT INTO {self.table} (metadata_hash, timestamp, event_time, fields)
            VALUES (:metadata_hash, :timestamp, :event_time, :fields)
        """
        stored = []
        now = now_millis()

        for event in events:
            timestamp = (
                to_epoch_millis(event.timestamp)
                if event.timestamp is not None
                else now
            )
            event_id = self._backend.insert(
                sql,
                {
                    "metadata_hash": metadata_hash,
                    "timestamp": timestamp,
                    "event_time": event.event_time,
                    "fields": to_sqlite_json(event.fields),
                },
            )
            stored.append(
                Event(
                    event_id=event_id,
                    metadata_hash=metadata_hash,
                    timestamp=timestamp,
                    event_time=event.event_time,
                    fields=event.fields,
                    session_id=event.session_id,
                    tracking_url_id=event.tracking_url_id,
                )
            )

        return stored

    def delete_expired(self, cutoff_ms: int) -> int:
        """Delete events recorded before cutoff_ms."""
        deleted = self._backend.execute(
            f"DELETE FROM {self.table} WHERE timestamp < :cutoff",
            {"cutoff": cutoff_ms},
        )
        logger.debug(f"Deleted {deleted} expired events")
        return deleted

    def delete_hashes_not_in(self, hashes: Iterable[str]) -> int:
        """Delete events whose metadata hash is not among `hashes`."""
        return self.delete_not_in(hashes, column="metadata_hash")

    def delete_if_unlinked(self, event_id: int) -> int:
        """Delete the event once no reporting link references it."""
        return self._backend.execute(
            f"""
            DELETE FROM {self.table}
            WHERE event_id = :event_id
              AND NOT EXISTS (
                  SELECT 1 FROM {TABLE_REPORTING} WHERE event_id = :event_id
              )
            """,
            {"event_id": event_id},
        )
