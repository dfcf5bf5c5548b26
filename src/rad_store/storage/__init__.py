"""
Storage abstraction layer for the telemetry store.

Usage:
    from rad_store.storage import get_backend

    # Get backend from configuration
    backend = get_backend()

    # Or explicitly specify backend
    backend = get_backend('sqlite', db_path='data/rad.db')

    # Use as context manager (opens on entry, closes on exit)
    with get_backend() as backend:
        with backend.transaction():
            rows = backend.query("SELECT * FROM sessions")
"""

from .base import (
    QueryError,
    SchemaError,
    StorageBackend,
    StorageError,
    StoreUnavailable,
    WriteFailed,
)
from .factory import (
    get_backend,
    is_backend_available,
    list_available_backends,
    register_backend,
)

__all__ = [
    # Base classes and exceptions
    "StorageBackend",
    "StorageError",
    "StoreUnavailable",
    "QueryError",
    "SchemaError",
    "WriteFailed",
    # Factory functions
    "get_backend",
    "register_backend",
    "list_available_backends",
    "is_backend_available",
]
