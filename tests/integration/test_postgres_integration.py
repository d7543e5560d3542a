import os
import uuid

import pytest

from coldstore.adapters import ConnectionConfig
from coldstore.adapters.postgres import PostgresBackend
from coldstore.persistence import Storage


class Crate:
    def __init__(self, label, parent=None):
        self.label = label
        self.parent = parent


def _require_postgres_backend(table):
    try:
        import psycopg  # noqa: F401
    except ImportError:
        pytest.skip("psycopg driver not installed")
    dsn = os.getenv("COLDSTORE_POSTGRES_DSN")
    if not dsn:
        pytest.skip("COLDSTORE_POSTGRES_DSN not set; skipping Postgres integration test")
    backend = PostgresBackend(table=table)
    config = ConnectionConfig.from_dsn(dsn)
    try:
        backend.connect(config)
    except Exception as exc:  # pragma: no cover - environment dependent
        pytest.skip(f"Cannot connect to Postgres for integration test: {exc}")
    return backend, config


def test_postgres_roundtrip():
    table = f"coldstore_pg_integration_{uuid.uuid4().hex[:8]}"
    backend, config = _require_postgres_backend(table)
    try:
        storage = Storage(backend, connection_config=config)
        child = Crate("child", parent=Crate("root"))
        object_id = storage.store(child)
        storage.clear_cache()

        fetched = storage.fetch(object_id)
        assert fetched.label == "child"
        assert fetched.parent.label == "root"
    finally:
        connection = backend._ensure_connection()
        connection.execute(f'DROP TABLE IF EXISTS "{table}"')
        connection.commit()
        backend.close()
