"""
Constants for the telemetry store: table names and retention defaults.
"""

# =============================================================================
# SQLite Table Names
# =============================================================================

TABLE_TRACKING_URLS = "tracking_urls"
TABLE_METADATA = "metadata"
TABLE_METADATA_URL_REFS = "metadata_url_refs"
TABLE_SESSIONS = "sessions"
TABLE_EVENTS = "events"
TABLE_REPORTING = "reporting"

# Order used when reporting row counts
ALL_TABLES = [
    TABLE_TRACKING_URLS,
    TABLE_METADATA,
    TABLE_METADATA_URL_REFS,
    TABLE_SESSIONS,
    TABLE_EVENTS,
    TABLE_REPORTING,
]

# =============================================================================
# Storage Defaults
# =============================================================================

DEFAULT_SQLITE_DB_PATH = "data/rad-telemetry.db"

# =============================================================================
# Retention Defaults
# =============================================================================

# Events older than this are purged at the start of every collection pass
DEFAULT_EVENT_TTL_HOURS = 14 * 24

# Sessions older than this are purged when no event keeps any session alive
DEFAULT_SESSION_TTL_HOURS = 24

MILLIS_PER_HOUR = 60 * 60 * 1000
