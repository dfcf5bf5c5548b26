"""
SQLite schema for the telemetry store.

Five entity tables plus the reporting join. References between tables are
conventions honored by the retention collector, not foreign keys.
"""

from ..config.constants import (
    TABLE_EVENTS,
    TABLE_METADATA,
    TABLE_METADATA_URL_REFS,
    TABLE_REPORTING,
    TABLE_SESSIONS,
    TABLE_TRACKING_URLS,
)

# =============================================================================
# Table Definitions
# =============================================================================

TRACKING_URLS_SCHEMA = f"""
CREATE TABLE IF NOT EXISTS {TABLE_TRACKING_URLS} (
    tracking_url_id INTEGER PRIMARY KEY AUTOINCREMENT,
    url TEXT NOT NULL
)
"""

METADATA_SCHEMA = f"""
CREATE TABLE IF NOT EXISTS {TABLE_METADATA} (
    metadata_id INTEGER PRIMARY KEY AUTOINCREMENT,
    hash TEXT NOT NULL,
    fields TEXT NOT NULL  -- JSON object
)
"""

METADATA_URL_REFS_SCHEMA = f"""
CREATE TABLE IF NOT EXISTS {TABLE_METADATA_URL_REFS} (
    tracking_url_id INTEGER NOT NULL,
    metadata_id INTEGER NOT NULL
)
"""

SESSIONS_SCHEMA = f"""
CREATE TABLE IF NOT EXISTS {TABLE_SESSIONS} (
    session_id INTEGER PRIMARY KEY AUTOINCREMENT,
    metadata_id INTEGER,
    session_uuid TEXT,
    timestamp INTEGER NOT NULL  -- epoch milliseconds
)
"""

EVENTS_SCHEMA = f"""
CREATE TABLE IF NOT EXISTS {TABLE_EVENTS} (
    event_id INTEGER PRIMARY KEY AUTOINCREMENT,
    metadata_hash TEXT NOT NULL,
    timestamp INTEGER NOT NULL,  -- epoch milliseconds
    event_time TEXT,
    fields TEXT NOT NULL  -- JSON object
)
"""

REPORTING_SCHEMA = f"""
CREATE TABLE IF NOT EXISTS {TABLE_REPORTING} (
    tracking_url_id INTEGER NOT NULL,
    session_id INTEGER NOT NULL,
    event_id INTEGER NOT NULL,
    timestamp INTEGER NOT NULL
)
"""

TABLE_DEFINITIONS = [
    TRACKING_URLS_SCHEMA,
    METADATA_SCHEMA,
    METADATA_URL_REFS_SCHEMA,
    SESSIONS_SCHEMA,
    EVENTS_SCHEMA,
    REPORTING_SCHEMA,
]

INDEX_DEFINITIONS = [
    # Metadata is deduplicated by content hash
    f"CREATE UNIQUE INDEX IF NOT EXISTS idx_metadata_hash ON {TABLE_METADATA}(hash)",
    f"CREATE INDEX IF NOT EXISTS idx_refs_metadata ON {TABLE_METADATA_URL_REFS}(metadata_id)",
    f"CREATE INDEX IF NOT EXISTS idx_sessions_metadata ON {TABLE_SESSIONS}(metadata_id)",
    f"CREATE INDEX IF NOT EXISTS idx_events_hash ON {TABLE_EVENTS}(metadata_hash)",
    f"CREATE INDEX IF NOT EXISTS idx_events_timestamp ON {TABLE_EVENTS}(timestamp)",
    (
        f"CREATE INDEX IF NOT EXISTS idx_reporting_key ON {TABLE_REPORTING}"
        "(tracking_url_id, session_id, event_id, timestamp)"
    ),
    f"CREATE INDEX IF NOT EXISTS idx_reporting_event ON {TABLE_REPORTING}(event_id)",
]

VALID_TABLES = frozenset(
    [
        TABLE_TRACKING_URLS,
        TABLE_METADATA,
        TABLE_METADATA_URL_REFS,
        TABLE_SESSIONS,
        TABLE_EVENTS,
        TABLE_REPORTING,
    ]
)
