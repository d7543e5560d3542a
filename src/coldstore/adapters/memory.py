"""
In-memory document backend.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from threading import RLock
from typing import Any, Dict, List, Optional, Sequence

from ..utils import get_logger
from .base import (
    BackendAdapter,
    ConnectionConfig,
    DocumentWrite,
    NotFoundError,
    StoredDocument,
    WriteResult,
    check_write,
    next_revision,
)


@dataclass
class _Entry:
    revision: str
    class_name: str
    state: Dict[str, Any] = field(default_factory=dict)
    deleted: bool = False


class InMemoryBackend(BackendAdapter):
    """
    Process-local document store honoring the optimistic concurrency rules.

    Documents are deep-copied on the way in and out so callers never share
    state with the store.
    """

    def __init__(self) -> None:
        self._documents: Dict[str, _Entry] = {}
        self._lock = RLock()
        self.logger = get_logger("adapters.memory")

    def connect(self, config: Optional[ConnectionConfig] = None) -> "InMemoryBackend":
        return self

    def close(self) -> None:
        return None

    def bulk_upsert(self, writes: Sequence[DocumentWrite]) -> List[WriteResult]:
        results: List[WriteResult] = []
        with self._lock:
            for write in writes:
                results.append(self._apply(write))
        return results

    def _apply(self, write: DocumentWrite) -> WriteResult:
        entry = self._documents.get(write.id)
        error = check_write(
            write,
            entry.revision if entry else None,
            entry.deleted if entry else False,
        )
        if error is not None:
            self.logger.debug("Rejected write for %s: %s", write.id, error)
            return WriteResult(id=write.id, error=error)

        revision = next_revision(entry.revision if entry else None, write)
        self._documents[write.id] = _Entry(
            revision=revision,
            class_name=write.class_name,
            state={} if write.deleted else copy.deepcopy(write.state),
            deleted=write.deleted,
        )
        return WriteResult(id=write.id, revision=revision)

    def fetch_one(self, object_id: str) -> StoredDocument:
        with self._lock:
            entry = self._documents.get(object_id)
            if entry is None or entry.deleted:
                raise NotFoundError(object_id)
            return StoredDocument(
                id=object_id,
                revision=entry.revision,
                class_name=entry.class_name,
                state=copy.deepcopy(entry.state),
            )

    def __len__(self) -> int:
        with self._lock:
            return sum(1 for entry in self._documents.values() if not entry.deleted)

    def __contains__(self, object_id: str) -> bool:
        with self._lock:
            entry = self._documents.get(object_id)
            return entry is not None and not entry.deleted
