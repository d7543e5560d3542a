"""
Backend contract and document store adapters.
"""

from .base import (
    AdapterConfigurationError,
    AdapterConnectionError,
    AdapterError,
    AdapterExecutionError,
    BackendAdapter,
    BulkWriteError,
    ConnectionConfig,
    DocumentWrite,
    NotFoundError,
    StorageConflict,
    StoredDocument,
    WriteResult,
)
from .memory import InMemoryBackend
from .postgres import PostgresBackend
from .sqlite import SQLiteBackend

_SCHEMES = {
    "memory": InMemoryBackend,
    "sqlite": SQLiteBackend,
    "postgres": PostgresBackend,
    "postgresql": PostgresBackend,
}


def create_adapter(url: str) -> BackendAdapter:
    """
    Instantiate the adapter matching the URL scheme (not yet connected).
    """
    scheme = url.split(":", 1)[0].lower()
    try:
        adapter_cls = _SCHEMES[scheme]
    except KeyError as exc:
        raise AdapterConfigurationError(f"Unknown storage scheme: {scheme!r}") from exc
    return adapter_cls()


__all__ = [
    "AdapterConfigurationError",
    "AdapterConnectionError",
    "AdapterError",
    "AdapterExecutionError",
    "BackendAdapter",
    "BulkWriteError",
    "ConnectionConfig",
    "DocumentWrite",
    "NotFoundError",
    "StorageConflict",
    "StoredDocument",
    "WriteResult",
    "InMemoryBackend",
    "PostgresBackend",
    "SQLiteBackend",
    "create_adapter",
]
