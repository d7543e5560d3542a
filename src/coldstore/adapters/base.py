"""
Backend contract, document types and error hierarchy for persistence adapters.
"""

from __future__ import annotations

import hashlib
import json
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence

from ..security.dsns import DSNConfig, parse_dsn


class AdapterError(RuntimeError):
    """Base error for adapter-related failures."""


class AdapterConfigurationError(AdapterError):
    """Raised when configuration or required dependencies are invalid."""


class AdapterConnectionError(AdapterError):
    """Raised when the backing store is unavailable."""


class AdapterExecutionError(AdapterError):
    """Raised when a single document cannot be written or read."""


class StorageConflict(AdapterError):
    """
    Raised (or reported per id) when a write carries a stale revision.
    """

    def __init__(self, object_id: str, revision: Optional[str] = None, current: Optional[str] = None) -> None:
        self.object_id = object_id
        self.revision = revision
        self.current = current
        super().__init__(
            f'Revision conflict for "{object_id}": sent {revision!r}, stored {current!r}.'
        )


class NotFoundError(AdapterError, LookupError):
    def __init__(self, object_id: str) -> None:
        self.object_id = object_id
        super().__init__(f'Object with id "{object_id}" could not be fetched.')


class BulkWriteError(AdapterError):
    """
    Aggregated per-id failures of one bulk write.

    ``committed`` maps the ids that were written successfully to their new
    revision; those writes are kept.
    """

    def __init__(self, failures: Mapping[str, AdapterError], committed: Mapping[str, Optional[str]]) -> None:
        self.failures: Dict[str, AdapterError] = dict(failures)
        self.committed: Dict[str, Optional[str]] = dict(committed)
        super().__init__(self._format_message())

    @property
    def conflicts(self) -> List[str]:
        return [object_id for object_id, error in self.failures.items() if isinstance(error, StorageConflict)]

    def _format_message(self) -> str:
        segments = [f"{object_id}: {error}" for object_id, error in self.failures.items()]
        return f"{len(self.failures)} write(s) failed; " + "; ".join(segments)


@dataclass
class DocumentWrite:
    id: str
    class_name: str
    state: Dict[str, Any] = field(default_factory=dict)
    revision: Optional[str] = None
    deleted: bool = False


@dataclass
class WriteResult:
    id: str
    revision: Optional[str] = None
    error: Optional[AdapterError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class StoredDocument:
    id: str
    revision: str
    class_name: str
    state: Dict[str, Any] = field(default_factory=dict)


def next_revision(previous: Optional[str], write: DocumentWrite) -> str:
    """
    Build the ``<generation>-<digest>`` token following ``previous``.
    """
    generation = int(previous.split("-", 1)[0]) + 1 if previous else 1
    payload = json.dumps(
        [write.class_name, write.state, write.deleted],
        sort_keys=True,
        default=repr,
    )
    return f"{generation}-{hashlib.md5(payload.encode('utf-8')).hexdigest()}"


def check_write(write: DocumentWrite, current: Optional[str], tombstone: bool) -> Optional[AdapterError]:
    """
    Apply the optimistic concurrency rules to one write.

    ``current`` is the stored revision (``None`` when the id was never
    written) and ``tombstone`` tells whether that revision marks a delete.
    An id that is absent or deleted may be created without a revision;
    every other write must carry the stored revision.
    """
    if current is None:
        if write.deleted:
            return NotFoundError(write.id)
        if write.revision is not None:
            return StorageConflict(write.id, write.revision, None)
        return None
    if tombstone:
        if write.deleted:
            return NotFoundError(write.id)
        if write.revision is None or write.revision == current:
            return None
        return StorageConflict(write.id, write.revision, current)
    if write.revision != current:
        return StorageConflict(write.id, write.revision, current)
    return None


def _parse_float(value: str, *, key: str) -> float:
    try:
        return float(value)
    except ValueError as exc:
        raise AdapterConfigurationError(f"Invalid float value for '{key}': {value!r}") from exc


@dataclass
class ConnectionConfig:
    """
    Normalized connection configuration for adapters.
    """

    url: str
    timeout: float | None = None
    options: dict[str, Any] | None = None
    dsn: DSNConfig | None = None
    source: str | None = None

    @classmethod
    def from_dsn(cls, dsn: str, **kwargs: Any) -> "ConnectionConfig":
        parsed = parse_dsn(dsn)
        query = dict(parsed.query)
        parsed_timeout = _parse_float(query.pop("timeout"), key="timeout") if "timeout" in query else None

        options: dict[str, Any] = dict(query)
        options.update(kwargs.pop("options", None) or {})
        timeout = kwargs.pop("timeout", parsed_timeout)

        return cls(url=dsn, dsn=parsed, timeout=timeout, options=options or None, **kwargs)

    @classmethod
    def from_env(cls, env_var: str, **kwargs: Any) -> "ConnectionConfig":
        value = os.getenv(env_var)
        if not value:
            raise AdapterConfigurationError(f"Environment variable {env_var} is not set")
        return cls.from_dsn(value, source=env_var, **kwargs)

    @property
    def scheme(self) -> str:
        return (self.dsn or parse_dsn(self.url)).scheme

    def redacted_dsn(self) -> str:
        if self.dsn:
            return self.dsn.redacted()
        return self.url

    def descriptive_label(self) -> str:
        redacted = self.redacted_dsn()
        if self.source:
            return f"{self.source} ({redacted})"
        return redacted


class BackendAdapter(Protocol):
    """
    Persistence operations the storage coordinator depends on.
    """

    def connect(self, config: ConnectionConfig) -> Any:
        """
        Establish a connection using the supplied configuration.
        """

    def close(self) -> None:
        """
        Release underlying resources. Implementations should be idempotent.
        """

    def bulk_upsert(self, writes: Sequence[DocumentWrite]) -> List[WriteResult]:
        """
        Create, update or delete documents; every input id appears exactly once in the result.
        """

    def fetch_one(self, object_id: str) -> StoredDocument:
        """
        Return the live document for ``object_id`` or raise :class:`NotFoundError`.
        """
