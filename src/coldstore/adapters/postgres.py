"""
PostgreSQL document backend.
"""

from __future__ import annotations

from typing import Any

from ..dialects.postgres import PostgresDialect
from ..utils import get_logger
from ..utils.performance import resolve_slow_call_ms
from .base import AdapterConfigurationError, AdapterConnectionError, ConnectionConfig
from .sql import DEFAULT_TABLE, SQLDocumentBackend


def _load_driver():
    try:
        import psycopg

        return psycopg
    except ImportError:
        return None


class PostgresBackend(SQLDocumentBackend):
    """
    Document backend wrapping the psycopg PostgreSQL driver.
    """

    def __init__(self, *, table: str = DEFAULT_TABLE, slow_call_ms: int | None = None) -> None:
        super().__init__(table=table)
        self.dialect = PostgresDialect()
        self.logger = get_logger("adapters.postgres")
        self.slow_call_ms = resolve_slow_call_ms(default=100, override=slow_call_ms)
        self._config: ConnectionConfig | None = None

    def connect(self, config: ConnectionConfig) -> Any:
        driver = _load_driver()
        if driver is None:
            raise AdapterConfigurationError("psycopg is required to use PostgresBackend.")
        self.driver_errors = (driver.Error,)
        self.connection_errors = (driver.OperationalError,)

        options = dict(config.options or {})
        if config.timeout and "connect_timeout" not in options:
            options["connect_timeout"] = int(config.timeout)

        self.logger.info("Connecting to PostgreSQL %s", config.descriptive_label())
        try:
            connection = driver.connect(config.url, **options)
        except Exception as exc:
            raise AdapterConnectionError("Failed to connect to PostgreSQL.") from exc
        connection.autocommit = False

        with self._lock:
            self._config = config
            self._connection = connection
            self._create_table()
        return connection

    def _ensure_connection(self) -> Any:
        connection = super()._ensure_connection()
        if getattr(connection, "closed", False) and self._config is not None:
            self.logger.warning("PostgreSQL connection closed; reconnecting.")
            self.connect(self._config)
            connection = self._connection
        return connection
