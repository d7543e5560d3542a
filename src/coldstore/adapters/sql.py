"""
Document table backend shared by the DB-API adapters.
"""

from __future__ import annotations

import json
import logging
from threading import RLock
from typing import Any, List, Optional, Sequence, Tuple

from ..dialects.base import Dialect
from ..security.redaction import redact_state
from ..utils import time_call
from .base import (
    AdapterConnectionError,
    AdapterExecutionError,
    BackendAdapter,
    DocumentWrite,
    NotFoundError,
    StorageConflict,
    StoredDocument,
    WriteResult,
    check_write,
    next_revision,
)

DEFAULT_TABLE = "coldstore_documents"


def _find_non_string_key(value: Any) -> Any:
    """
    Return the first dict key in ``value`` that is not a ``str``, else ``None``.
    """
    if isinstance(value, dict):
        for key, item in value.items():
            if not isinstance(key, str):
                return key
            found = _find_non_string_key(item)
            if found is not None:
                return found
    elif isinstance(value, list):
        for item in value:
            found = _find_non_string_key(item)
            if found is not None:
                return found
    return None


class SQLDocumentBackend(BackendAdapter):
    """
    Stores documents as JSON text in a single table.

    Each write is committed on its own, so one failing document never takes
    its siblings down with it. Updates are conditional on the revision read
    in the same call, which turns a lost race into a conflict.
    """

    dialect: Dialect
    logger: logging.Logger
    slow_call_ms: int
    driver_errors: Tuple[type, ...] = ()
    connection_errors: Tuple[type, ...] = ()

    def __init__(self, *, table: str = DEFAULT_TABLE) -> None:
        self.table = table
        self._connection: Any = None
        self._lock = RLock()

    # ------------------------------------------------------------------ #
    # Connection management
    # ------------------------------------------------------------------ #
    def close(self) -> None:
        with self._lock:
            if self._connection is not None:
                try:
                    self._connection.close()
                finally:
                    self._connection = None

    def _ensure_connection(self) -> Any:
        if self._connection is None:
            raise AdapterConnectionError(f"{type(self).__name__} is not connected.")
        return self._connection

    def _create_table(self) -> None:
        self._execute(self.dialect.create_documents_table(self.table))
        self._ensure_connection().commit()

    # ------------------------------------------------------------------ #
    # Execution helpers
    # ------------------------------------------------------------------ #
    def _execute(self, sql: str, params: Sequence[Any] = ()) -> Any:
        cursor = self._ensure_connection().cursor()
        try:
            with time_call(f"{self.dialect.name}.execute", self.logger, threshold_ms=self.slow_call_ms):
                cursor.execute(sql, tuple(params))
        except self.connection_errors as exc:
            raise AdapterConnectionError(f"Backend unavailable: {exc}") from exc
        except self.driver_errors as exc:
            raise AdapterExecutionError(f"Statement failed: {exc}") from exc
        return cursor

    def _sql(self, template: str) -> str:
        placeholder = self.dialect.parameter_placeholder()
        table = self.dialect.quote_identifier(self.table)
        return template.format(table=table, p=placeholder)

    # ------------------------------------------------------------------ #
    # Backend contract
    # ------------------------------------------------------------------ #
    def bulk_upsert(self, writes: Sequence[DocumentWrite]) -> List[WriteResult]:
        results: List[WriteResult] = []
        with self._lock:
            connection = self._ensure_connection()
            for index, write in enumerate(writes):
                try:
                    result = self._apply(write)
                except AdapterExecutionError as exc:
                    connection.rollback()
                    results.append(WriteResult(id=write.id, error=exc))
                    continue
                except AdapterConnectionError as exc:
                    # Earlier writes are committed; this one and the rest are not.
                    self.logger.warning(
                        "Backend lost after %s of %s write(s): %s", index, len(writes), exc
                    )
                    self._abort(connection)
                    results.extend(WriteResult(id=pending.id, error=exc) for pending in writes[index:])
                    break
                if result.ok:
                    connection.commit()
                else:
                    connection.rollback()
                results.append(result)
        return results

    def _abort(self, connection: Any) -> None:
        try:
            connection.rollback()
        except self.driver_errors as exc:
            self.logger.warning("Rollback after connection failure failed: %s", exc)

    def _apply(self, write: DocumentWrite) -> WriteResult:
        current, tombstone = self._current_revision(write.id)
        error = check_write(write, current, tombstone)
        if error is not None:
            return WriteResult(id=write.id, error=error)

        state = {} if write.deleted else write.state
        bad_key = _find_non_string_key(state)
        if bad_key is not None:
            return WriteResult(
                id=write.id,
                error=AdapterExecutionError(
                    f'State of "{write.id}" has a non-string dict key {bad_key!r}; JSON would turn it into a string.'
                ),
            )
        try:
            payload = json.dumps(state)
        except (TypeError, ValueError) as exc:
            return WriteResult(
                id=write.id,
                error=AdapterExecutionError(f'State of "{write.id}" is not JSON serializable: {exc}'),
            )

        revision = next_revision(current, write)
        self.logger.debug(
            "Writing %s",
            write.id,
            extra={"class_name": write.class_name, "state": redact_state(state)},
        )
        if current is None:
            cursor = self._execute(
                self._sql(
                    "INSERT INTO {table} (id, revision, class_name, state, deleted) "
                    "VALUES ({p}, {p}, {p}, {p}, {p}) ON CONFLICT (id) DO NOTHING"
                ),
                (write.id, revision, write.class_name, payload, int(write.deleted)),
            )
        else:
            cursor = self._execute(
                self._sql(
                    "UPDATE {table} SET revision = {p}, class_name = {p}, state = {p}, deleted = {p} "
                    "WHERE id = {p} AND revision = {p}"
                ),
                (revision, write.class_name, payload, int(write.deleted), write.id, current),
            )
        if cursor.rowcount != 1:
            latest, _ = self._current_revision(write.id)
            return WriteResult(id=write.id, error=StorageConflict(write.id, write.revision, latest))
        return WriteResult(id=write.id, revision=revision)

    def _current_revision(self, object_id: str) -> Tuple[Optional[str], bool]:
        cursor = self._execute(
            self._sql("SELECT revision, deleted FROM {table} WHERE id = {p}"),
            (object_id,),
        )
        row = cursor.fetchone()
        if row is None:
            return None, False
        return row[0], bool(row[1])

    def fetch_one(self, object_id: str) -> StoredDocument:
        with self._lock:
            cursor = self._execute(
                self._sql("SELECT revision, class_name, state, deleted FROM {table} WHERE id = {p}"),
                (object_id,),
            )
            row = cursor.fetchone()
        if row is None or row[3]:
            raise NotFoundError(object_id)
        return StoredDocument(
            id=object_id,
            revision=row[0],
            class_name=row[1],
            state=json.loads(row[2]),
        )
