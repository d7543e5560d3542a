"""
SQLite document backend.
"""

from __future__ import annotations

import sqlite3

from ..dialects.sqlite import SQLiteDialect
from ..utils import get_logger
from ..utils.performance import resolve_slow_call_ms
from .base import AdapterConnectionError, ConnectionConfig
from .sql import DEFAULT_TABLE, SQLDocumentBackend


class SQLiteBackend(SQLDocumentBackend):
    """
    Document backend wrapping the Python stdlib sqlite3 module.
    """

    driver_errors = (sqlite3.Error,)
    connection_errors = (sqlite3.OperationalError,)

    def __init__(self, *, table: str = DEFAULT_TABLE, slow_call_ms: int | None = None) -> None:
        super().__init__(table=table)
        self.dialect = SQLiteDialect()
        self.logger = get_logger("adapters.sqlite")
        self.slow_call_ms = resolve_slow_call_ms(default=200, override=slow_call_ms)

    def connect(self, config: ConnectionConfig) -> sqlite3.Connection:
        path = self._normalize_path(config.url)
        timeout = config.timeout if config.timeout is not None else 5.0
        try:
            connection = sqlite3.connect(path, timeout=timeout, check_same_thread=False)
        except sqlite3.Error as exc:
            raise AdapterConnectionError(f"Failed to open SQLite database {path!r}.") from exc
        with self._lock:
            self._connection = connection
            self._create_table()
        self.logger.info("Connected to SQLite %s", config.descriptive_label())
        return connection

    @staticmethod
    def _normalize_path(url: str) -> str:
        if url in ("sqlite://", "sqlite:///:memory:"):
            return ":memory:"
        prefix = "sqlite:///"
        if url.startswith(prefix):
            return url[len(prefix) :]
        return url
