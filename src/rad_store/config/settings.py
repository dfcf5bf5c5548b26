"""
Application settings and configuration management.

Supports loading from:
1. YAML config files, plain (config.yaml) or SOPS-encrypted (config.enc.yaml)
2. Environment variables (fallback)
"""

import logging
import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any, Optional

from .constants import (
    DEFAULT_EVENT_TTL_HOURS,
    DEFAULT_SESSION_TTL_HOURS,
    DEFAULT_SQLITE_DB_PATH,
    MILLIS_PER_HOUR,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Retention Settings
# =============================================================================


@dataclass
class RetentionSettings:
    """
    Expiry policy applied by the retention collector.

    Events older than event_ttl_hours are purged unconditionally at the start
    of every pass. Sessions older than session_ttl_hours are purged only when
    no remaining event keeps any session alive.
    """

    event_ttl_hours: float = DEFAULT_EVENT_TTL_HOURS
    session_ttl_hours: float = DEFAULT_SESSION_TTL_HOURS

    def validate(self) -> list[str]:
        """Validate settings values. Returns list of errors."""
        errors = []

        if self.event_ttl_hours <= 0:
            errors.append(f"event_ttl_hours must be > 0, got {self.event_ttl_hours}")
        if self.session_ttl_hours <= 0:
            errors.append(
                f"session_ttl_hours must be > 0, got {self.session_ttl_hours}"
            )

        return errors

    def event_cutoff_ms(self, now_ms: int) -> int:
        """Events recorded before this epoch-ms instant are expired."""
        return now_ms - int(self.event_ttl_hours * MILLIS_PER_HOUR)

    def session_cutoff_ms(self, now_ms: int) -> int:
        """Sessions created before this epoch-ms instant are expired."""
        return now_ms - int(self.session_ttl_hours * MILLIS_PER_HOUR)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "event_ttl_hours": self.event_ttl_hours,
            "session_ttl_hours": self.session_ttl_hours,
        }

    @classmethod
    def from_dict(cls, config: dict[str, Any]) -> "RetentionSettings":
        """Create from configuration dictionary."""
        return cls(
            event_ttl_hours=config.get("event_ttl_hours", DEFAULT_EVENT_TTL_HOURS),
            session_ttl_hours=config.get(
                "session_ttl_hours", DEFAULT_SESSION_TTL_HOURS
            ),
        )

    @classmethod
    def from_env(cls) -> "RetentionSettings":
        """Create from environment variables."""

        def safe_float(key: str, default: float) -> float:
            """Safely parse float from env var, using default on error."""
            try:
                return float(os.environ.get(key, str(default)))
            except ValueError:
                logger.warning(f"Ignoring invalid {key}, using {default}")
                return default

        return cls(
            event_ttl_hours=safe_float("RAD_EVENT_TTL_HOURS", DEFAULT_EVENT_TTL_HOURS),
            session_ttl_hours=safe_float(
                "RAD_SESSION_TTL_HOURS", DEFAULT_SESSION_TTL_HOURS
            ),
        )


# =============================================================================
# Main Settings
# =============================================================================


@dataclass
class Settings:
    """Application settings for the telemetry store."""

    # Storage Backend Settings
    storage_backend: str = "sqlite"
    sqlite_db_path: str = DEFAULT_SQLITE_DB_PATH

    # Retention (collection pass expiry policy)
    retention: RetentionSettings = field(default_factory=RetentionSettings)

    def validate(self) -> list[str]:
        """Validate settings. Returns list of errors."""
        errors = []

        if self.storage_backend != "sqlite":
            errors.append("Only SQLite backend is supported in this version")

        if not self.sqlite_db_path:
            errors.append("storage.sqlite_db_path is required")

        errors.extend(self.retention.validate())

        return errors

    @classmethod
    def from_dict(cls, config: dict[str, Any]) -> "Settings":
        """Create Settings from configuration dictionary (e.g., from YAML)."""
        storage = config.get("storage", {})
        retention = config.get("retention", {})

        return cls(
            storage_backend=storage.get("backend", "sqlite"),
            sqlite_db_path=storage.get("sqlite_db_path", DEFAULT_SQLITE_DB_PATH),
            retention=RetentionSettings.from_dict(retention),
        )

    @classmethod
    def from_env(cls) -> "Settings":
        """Create Settings from environment variables."""
        return cls(
            storage_backend="sqlite",
            sqlite_db_path=os.environ.get("SQLITE_DB_PATH", DEFAULT_SQLITE_DB_PATH),
            retention=RetentionSettings.from_env(),
        )


# Default config file path
DEFAULT_CONFIG_PATH = Path("config.yaml")


@lru_cache
def get_settings(config_path: Optional[str] = None) -> Settings:
    """
    Get cached settings instance.

    Loads from the YAML config file if available (decrypting it with SOPS
    when it is named *.enc.yaml), otherwise from env vars.

    Args:
        config_path: Optional path to a config file

    Returns:
        Settings instance
    """
    path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH

    if path.exists():
        try:
            from .sops_loader import load_config_file

            config = load_config_file(path)
            return Settings.from_dict(config)
        except (OSError, RuntimeError, ValueError) as e:
            logger.warning(f"Failed to load config from {path}: {e}")
            logger.warning("Falling back to environment variables")

    return Settings.from_env()


def clear_settings_cache() -> None:
    """Clear the cached settings (useful for testing)."""
    get_settings.cache_clear()
