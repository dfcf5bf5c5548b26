"""Configuration module."""

from .constants import (
    ALL_TABLES,
    DEFAULT_EVENT_TTL_HOURS,
    DEFAULT_SESSION_TTL_HOURS,
    DEFAULT_SQLITE_DB_PATH,
)
from .settings import RetentionSettings, Settings, clear_settings_cache, get_settings
from .sops_loader import check_sops_installed, decrypt_sops_file, load_config_file

__all__ = [
    # Defaults
    "ALL_TABLES",
    "DEFAULT_EVENT_TTL_HOURS",
    "DEFAULT_SESSION_TTL_HOURS",
    "DEFAULT_SQLITE_DB_PATH",
    # Settings
    "RetentionSettings",
    "Settings",
    "get_settings",
    "clear_settings_cache",
    # Config loading
    "load_config_file",
    "decrypt_sops_file",
    "check_sops_installed",
]
