"""
Cross-entity reporting join.

One row per (tracking URL, event) pair, stamped with the session the event
belongs to and the event's recording timestamp. Reads only see links whose
event row still exists.
"""

import logging
from typing import Iterable

from ..config.constants import TABLE_EVENTS, TABLE_REPORTING
from ..schemas import Event, TrackingUrl
from .base import RecordStore

logger = logging.getLogger(__name__)


class ReportingLinkStore(RecordStore[Event]):
    table = TABLE_REPORTING
    key_columns = frozenset(["session_id", "tracking_url_id", "event_id"])
    order_by = "timestamp, event_id, tracking_url_id"

    def _from_row(self, row: dict) -> Event:
        # Partial projection: payload fields come from the event store
        return Event(
            event_id=row["event_id"],
            session_id=row["session_id"],
            tracking_url_id=row["tracking_url_id"],
            timestamp=row["timestamp"],
        )

    def create(
        self,
        session_id: int,
        tracking_urls: Iterable[TrackingUrl],
        events: Iterable[Event],
    ) -> int:
        """
        Link every event to the session and to every tracking URL.

        Tracking URLs and events must already carry store-assigned ids.

        Returns:
            Number of links created
        """
        sql = f"""
            INSERT INTO {self.table} (tracking_url_id, session_id, event_id, timestamp)
            VALUES (:tracking_url_id, :session_id, :event_id, :timestamp)
        """
        events = list(events)
        created = 0

        for tracking_url in tracking_urls:
            if tracking_url.tracking_url_id is None:
                raise ValueError(f"Tracking URL {tracking_url.url!r} has no id")
            for event in events:
                if event.event_id is None:
                    raise ValueError("Cannot link an event that has no id")
                self._backend.insert(
                    sql,
                    {
                        "tracking_url_id": tracking_url.tracking_url_id,
                        "session_id": session_id,
                        "event_id": event.event_id,
                        "timestamp": event.timestamp,
                    },
                )
                created += 1

        return created

    def get_session_ids(self) -> list[int]:
        """Distinct session ids referenced by any remaining event."""
        rows = self._backend.query(
            f"""
            SELECT DISTINCT r.session_id
            FROM {self.table} r
            JOIN {TABLE_EVENTS} e ON e.event_id = r.event_id
            ORDER BY r.session_id
            """
        )
        return [row["session_id"] for row in rows]

    def get_sessions_for_tracking_url(self, tracking_url_id: int) -> list[int]:
        rows = self._backend.query(
            f"""
            SELECT DISTINCT r.session_id
            FROM {self.table} r
            JOIN {TABLE_EVENTS} e ON e.event_id = r.event_id
            WHERE r.tracking_url_id = :tracking_url_id
            ORDER BY r.session_id
            """,
            {"tracking_url_id": tracking_url_id},
        )
        return [row["session_id"] for row in rows]

    def get_events_for(self, tracking_url_id: int, session_id: int) -> list[Event]:
        """Partial events linked to this (tracking URL, session) pair."""
        rows = self._backend.query(
            f"""
            SELECT r.tracking_url_id, r.session_id, r.event_id, r.timestamp
            FROM {self.table} r
            JOIN {TABLE_EVENTS} e ON e.event_id = r.event_id
            WHERE r.tracking_url_id = :tracking_url_id
              AND r.session_id = :session_id
            ORDER BY r.timestamp, r.event_id
            """,
            {"tracking_url_id": tracking_url_id, "session_id": session_id},
        )
        return [self._from_row(row) for row in rows]

    def delete(
        self,
        tracking_url_id: int,
        session_id: int,
        event_id: int,
        timestamp: int,
    ) -> int:
        """Point delete of one link keyed by all four columns."""
        return self._backend.execute(
            f"""
            DELETE FROM {self.table}
            WHERE tracking_url_id = :tracking_url_id
              AND session_id = :session_id
              AND event_id = :event_id
              AND timestamp = :timestamp
            """,
            {
                "tracking_url_id": tracking_url_id,
                "session_id": session_id,
                "event_id": event_id,
                "timestamp": timestamp,
            },
        )

    def delete_expired(self, cutoff_ms: int) -> int:
        """Delete links for events recorded before cutoff_ms."""
        return self._backend.execute(
            f"DELETE FROM {self.table} WHERE timestamp < :cutoff",
            {"cutoff": cutoff_ms},
        )

    def delete_orphans(self) -> int:
        """Delete links whose event row no longer exists."""
        deleted = self._backend.execute(
            f"""
            DELETE FROM {self.table}
            WHERE event_id NOT IN (SELECT event_id FROM {TABLE_EVENTS})
            """
        )
        if deleted:
            logger.debug(f"Deleted {deleted} orphaned reporting links")
        return deleted
