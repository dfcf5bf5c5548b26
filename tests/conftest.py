"""
Shared fixtures for all test suites.

Provides:
- Temporary SQLite database and initialized backend
- Record stores bound to that backend
- Isolation from any config.yaml / environment settings
"""

from pathlib import Path

import pytest

from rad_store.config import Settings, clear_settings_cache
from rad_store.storage import get_backend
from rad_store.stores import RecordStores


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch):
    """Keep developer config and env vars out of the tests."""
    for key in ("SQLITE_DB_PATH", "RAD_EVENT_TTL_HOURS", "RAD_SESSION_TTL_HOURS"):
        monkeypatch.delenv(key, raising=False)
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def settings() -> Settings:
    """Default settings (14 day event TTL, 24 hour session TTL)."""
    return Settings()


@pytest.fixture
def temp_db_path(tmp_path: Path) -> Path:
    """Create a temporary database path."""
    return tmp_path / "test_rad_store.db"


@pytest.fixture
def sqlite_backend(temp_db_path: Path):
    """
    Create an initialized SQLite backend with temporary database.

    Automatically cleans up after test.
    """
    backend = get_backend("sqlite", db_path=temp_db_path)
    backend.initialize()
    yield backend
    backend.close()


@pytest.fixture
def stores(sqlite_backend) -> RecordStores:
    """Record stores bound to the temporary backend."""
    return RecordStores.for_backend(sqlite_backend)
