"""Record store for sessions."""

import logging

from ..config.constants import TABLE_SESSIONS
from ..schemas import Session
from ..storage.sqlite_backend import now_millis, to_epoch_millis
from .base import EntityStore

logger = logging.getLogger(__name__)


class SessionStore(EntityStore[Session]):
    table = TABLE_SESSIONS
    id_column = "session_id"
    key_columns = frozenset(["session_id", "metadata_id"])

    def _from_row(self, row: dict) -> Session:
        return Session(
            session_id=row["session_id"],
            metadata_id=row["metadata_id"],
            session_uuid=row["session_uuid"],
            timestamp=row["timestamp"],
        )

    def create(self, session: Session) -> Session:
        """Insert a session; the creation timestamp defaults to now."""
        timestamp = (
            to_epoch_millis(session.timestamp)
            if session.timestamp is not None
            else now_millis()
        )
        session_id = self._backend.insert(
            f"""
            INSERT INTO {self.table} (metadata_id, session_uuid, timestamp)
            VALUES (:metadata_id, :session_uuid, :timestamp)
            """,
            {
                "metadata_id": session.metadata_id,
                "session_uuid": session.session_uuid,
                "timestamp": timestamp,
            },
        )
        return Session(
            session_id=session_id,
            metadata_id=session.metadata_id,
            session_uuid=session.session_uuid,
            timestamp=timestamp,
        )

    def get_metadata_ids(self) -> list[int]:
        """Distinct metadata ids referenced by stored sessions."""
        rows = self._backend.query(
            f"""
            SELECT DISTINCT metadata_id FROM {self.table}
            WHERE metadata_id IS NOT NULL
            ORDER BY metadata_id
            """
        )
        return [row["metadata_id"] for row in rows]

    def delete_expired(self, cutoff_ms: int) -> int:
        """Delete sessions created before cutoff_ms."""
        deleted = self._backend.execute(
            f"DELETE FROM {self.table} WHERE timestamp < :cutoff",
            {"cutoff": cutoff_ms},
        )
        logger.debug(f"Deleted {deleted} expired sessions")
        return deleted
