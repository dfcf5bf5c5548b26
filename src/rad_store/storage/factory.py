"""
Storage backend registry.

Backends register under a short name; `get_backend` resolves the name (or the
configured `storage.backend`) to an unopened backend instance.
"""

import logging
from typing import Optional

from .base import StorageBackend, StorageError

logger = logging.getLogger(__name__)

_BACKEND_REGISTRY: dict[str, type[StorageBackend]] = {}


def register_backend(backend_type: str, backend_class: type[StorageBackend]) -> None:
    """Make `backend_class` available to get_backend() as `backend_type`."""
    _BACKEND_REGISTRY[backend_type.lower()] = backend_class
    logger.debug(f"Registered storage backend: {backend_type}")


def _resolve(backend_type: str) -> Optional[type[StorageBackend]]:
    """Registered class for a backend name; the built-in SQLite one loads lazily."""
    name = backend_type.lower()
    if name == "sqlite" and name not in _BACKEND_REGISTRY:
        from .sqlite_backend import SQLiteBackend

        register_backend(name, SQLiteBackend)
    return _BACKEND_REGISTRY.get(name)


def get_backend(backend_type: Optional[str] = None, **kwargs) -> StorageBackend:
    """
    Create a telemetry storage backend.

    The backend is returned unopened; call initialize() (or use it as a
    context manager) before running operations against it.

    Args:
        backend_type: Registered backend name. Defaults to the configured one.
        **kwargs: Constructor arguments. Without any, the SQLite backend is
            pointed at the configured `sqlite_db_path`.

    Raises:
        StorageError: If the name is unknown or construction fails.
    """
    settings = None
    if backend_type is None or not kwargs:
        from ..config.settings import get_settings

        settings = get_settings()
    if backend_type is None:
        backend_type = settings.storage_backend

    backend_class = _resolve(backend_type)
    if backend_class is None:
        raise StorageError(
            f"Unknown storage backend: '{backend_type}'. "
            f"Available backends: {', '.join(list_available_backends())}"
        )

    if not kwargs and backend_type.lower() == "sqlite":
        kwargs = {"db_path": settings.sqlite_db_path}

    try:
        backend = backend_class(**kwargs)
    except (OSError, TypeError, ValueError) as e:
        raise StorageError(f"Failed to create {backend_type} backend: {e}") from e

    logger.info(f"Created {backend.backend_type} storage backend")
    return backend


def list_available_backends() -> list[str]:
    _resolve("sqlite")
    return sorted(_BACKEND_REGISTRY)


def is_backend_available(backend_type: str) -> bool:
    return _resolve(backend_type) is not None
