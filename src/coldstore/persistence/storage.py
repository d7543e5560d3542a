"""
Storage coordinator orchestrating freeze → persist and fetch → thaw.
"""

from __future__ import annotations

from threading import RLock
from typing import Any, Dict, List, Optional, Sequence

from ..adapters import create_adapter
from ..adapters.base import (
    AdapterError,
    AdapterExecutionError,
    BackendAdapter,
    BulkWriteError,
    ConnectionConfig,
    DocumentWrite,
    StoredDocument,
    WriteResult,
)
from ..cache import InMemoryObjectCache, ObjectCache
from ..core import (
    DELETE_FLAG,
    HASH_ATTRIBUTE,
    Freezer,
    FrozenGraph,
    FrozenRecord,
    InvalidArgumentError,
    LazyProxy,
    is_lazy,
    lazy_target,
)
from ..core.attributes import is_object
from ..core.frozen import iter_references
from ..hooks import HookDispatcher
from ..utils import CallTracker, get_logger, resolve_slow_call_ms, time_call
from .options import StorageOptions


def _discard_attribute(instance: Any, name: str) -> None:
    if getattr(instance, name, None) is not None:
        object.__delattr__(instance, name)


class Storage:
    """
    Persists object graphs through a backend adapter and materializes them back.

    The storage remembers the last revision it saw for every id (from
    stores and fetches) and sends it along with the next write, so the
    backend can reject stale updates. Fetched objects are kept in an object
    cache until evicted.
    """

    def __init__(
        self,
        adapter: BackendAdapter,
        *,
        options: Optional[StorageOptions] = None,
        freezer: Optional[Freezer] = None,
        dsn: Optional[str] = None,
        connection_config: Optional[ConnectionConfig] = None,
        cache: Optional[ObjectCache] = None,
        hooks: Optional[HookDispatcher] = None,
        slow_call_ms: Optional[int] = None,
    ) -> None:
        self.adapter = adapter
        self.options = options or StorageOptions()
        self.freezer = freezer or self.options.build_freezer()
        if connection_config is None:
            connection_config = (
                ConnectionConfig.from_dsn(dsn) if dsn else ConnectionConfig(url="sqlite:///:memory:")
            )
        self.connection_config = connection_config
        self.cache: ObjectCache = cache if cache is not None else InMemoryObjectCache()
        self.hooks = hooks or HookDispatcher()
        self.logger = get_logger("persistence.storage")
        self.call_tracker = CallTracker(self.logger)
        self.slow_call_ms = resolve_slow_call_ms(default=200, override=slow_call_ms)
        self._revisions: Dict[str, str] = {}
        self._lock = RLock()
        self.adapter.connect(self.connection_config)

    @property
    def lazy_load(self) -> bool:
        return self.options.lazy_load

    # ------------------------------------------------------------------ #
    # Context management
    # ------------------------------------------------------------------ #
    def __enter__(self) -> "Storage":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        self.adapter.close()
        self.cache.clear()
        with self._lock:
            self._revisions.clear()

    # ------------------------------------------------------------------ #
    # Store
    # ------------------------------------------------------------------ #
    def store(self, obj: Any) -> str:
        """
        Freeze ``obj`` and persist every new or changed record reachable from it.

        Returns the root id. Per-id failures raise :class:`BulkWriteError`
        once the successful writes of the same batch have been recorded.
        """
        if is_lazy(obj):
            obj = lazy_target(obj)
        if not is_object(obj):
            raise InvalidArgumentError(1, "object", obj)

        self.hooks.fire("before_store", obj, storage=self)
        instances: Dict[str, Any] = {}
        graph = self.freezer.freeze(obj, instances=instances)
        writes = self._build_writes(graph)
        if not writes:
            self.logger.debug("Nothing to store for %s", graph.root)
            self.hooks.fire("after_store", obj, storage=self, object_id=graph.root, written=[])
            return graph.root

        try:
            results = self._bulk_upsert(writes)
        except AdapterError:
            # Nothing is known to be persisted, so every written record stays dirty.
            for write in writes:
                instance = instances.get(write.id)
                if instance is not None:
                    _discard_attribute(instance, HASH_ATTRIBUTE)
            raise
        failures = self._apply_results(writes, results, instances)
        if failures:
            committed = {result.id: result.revision for result in results if result.ok}
            self.logger.warning(
                "Store of %s failed for %s of %s record(s)",
                graph.root,
                len(failures),
                len(writes),
                extra={"failed_ids": sorted(failures)},
            )
            raise BulkWriteError(failures, committed)

        self.hooks.fire(
            "after_store",
            obj,
            storage=self,
            object_id=graph.root,
            written=[write.id for write in writes],
        )
        return graph.root

    def delete(self, obj: Any) -> str:
        """
        Mark ``obj`` with the delete sentinel and store it.
        """
        if is_lazy(obj):
            obj = lazy_target(obj)
        if not is_object(obj):
            raise InvalidArgumentError(1, "object", obj)
        setattr(obj, DELETE_FLAG, True)
        return self.store(obj)

    def _build_writes(self, graph: FrozenGraph) -> List[DocumentWrite]:
        writes: List[DocumentWrite] = []
        with self._lock:
            revisions = dict(self._revisions)
        for object_id, record in graph.objects.items():
            revision = revisions.get(object_id)
            if not record.is_dirty and revision is not None:
                continue
            state = dict(record.state)
            deleted = bool(state.pop(DELETE_FLAG, False))
            writes.append(
                DocumentWrite(
                    id=object_id,
                    class_name=record.class_name,
                    state=state,
                    revision=revision,
                    deleted=deleted,
                )
            )
        return writes

    def _bulk_upsert(self, writes: Sequence[DocumentWrite]) -> List[WriteResult]:
        ids = [write.id for write in writes]
        failed = True

        def record(elapsed_ms: float) -> None:
            self.call_tracker.record("bulk_upsert", elapsed_ms, documents=len(ids), failed=failed)

        with time_call(
            "storage.bulk_upsert",
            self.logger,
            ids=ids,
            threshold_ms=self.slow_call_ms,
            on_complete=record,
        ):
            results = self.adapter.bulk_upsert(writes)
            failed = any(not result.ok for result in results)
        return results

    def _apply_results(
        self,
        writes: Sequence[DocumentWrite],
        results: Sequence[WriteResult],
        instances: Dict[str, Any],
    ) -> Dict[str, AdapterError]:
        by_id = {result.id: result for result in results}
        failures: Dict[str, AdapterError] = {}
        for write in writes:
            result = by_id.get(write.id)
            if result is None:
                result = WriteResult(
                    id=write.id,
                    error=AdapterExecutionError(f'Backend reported no result for "{write.id}".'),
                )
            instance = instances.get(write.id)
            if not result.ok:
                failures[write.id] = result.error
                if instance is not None:
                    # Forget the fingerprint so the next store retries this record.
                    _discard_attribute(instance, HASH_ATTRIBUTE)
                continue
            if write.deleted:
                with self._lock:
                    self._revisions.pop(write.id, None)
                self.cache.delete(write.id)
                if instance is not None:
                    _discard_attribute(instance, DELETE_FLAG)
                self.hooks.fire("after_delete", instance, storage=self, object_id=write.id)
                continue
            with self._lock:
                self._revisions[write.id] = result.revision
            if instance is not None:
                self.cache.set(write.id, instance)
        return failures

    # ------------------------------------------------------------------ #
    # Fetch
    # ------------------------------------------------------------------ #
    def fetch(self, object_id: str) -> Any:
        """
        Return the object stored under ``object_id``.

        A cached instance is returned without touching the backend. Otherwise
        the root document is loaded together with everything it references
        (eager mode) or alone, with references left as lazy proxies.
        """
        if not isinstance(object_id, str):
            raise InvalidArgumentError(1, "str", object_id)

        cached = self.cache.get(object_id)
        if cached is not None:
            return cached

        documents, known = self._load_documents(object_id)
        graph = FrozenGraph(
            root=object_id,
            objects={
                doc_id: FrozenRecord(class_name=doc.class_name, is_dirty=False, state=doc.state)
                for doc_id, doc in documents.items()
            },
        )
        objects: Dict[str, Any] = dict(known)
        instance = self.freezer.thaw(
            graph,
            objects=objects,
            resolve_reference=self._lazy_reference if self.lazy_load else None,
        )

        # A concurrent fetch may have cached these ids first; its instances win.
        with self._lock:
            existing = self.cache.get(object_id)
            if existing is not None:
                return existing
            for doc_id, doc in documents.items():
                if self.cache.get(doc_id) is not None:
                    continue
                self._revisions[doc_id] = doc.revision
                self.cache.set(doc_id, objects[doc_id])

        self.hooks.fire("after_fetch", instance, storage=self, object_id=object_id)
        return instance

    def _load_documents(self, root_id: str) -> tuple[Dict[str, StoredDocument], Dict[str, Any]]:
        documents: Dict[str, StoredDocument] = {}
        known: Dict[str, Any] = {}
        pending = [root_id]
        while pending:
            object_id = pending.pop()
            if object_id in documents or object_id in known:
                continue
            if object_id != root_id:
                cached = self.cache.get(object_id)
                if cached is not None:
                    known[object_id] = cached
                    continue
            document = self._fetch_document(object_id)
            documents[object_id] = document
            if not self.lazy_load:
                pending.extend(iter_references(document.state))
        return documents, known

    def _fetch_document(self, object_id: str) -> StoredDocument:
        failed = True

        def record(elapsed_ms: float) -> None:
            self.call_tracker.record("fetch_one", elapsed_ms, failed=failed)

        with time_call(
            "storage.fetch_one",
            self.logger,
            ids=[object_id],
            threshold_ms=self.slow_call_ms,
            on_complete=record,
        ):
            document = self.adapter.fetch_one(object_id)
            failed = False
        return document

    def _lazy_reference(self, object_id: str) -> Any:
        cached = self.cache.get(object_id)
        if cached is not None:
            return cached
        return LazyProxy(object_id, self._resolve_lazy)

    def _resolve_lazy(self, object_id: str) -> Any:
        instance = self.fetch(object_id)
        self.call_tracker.record_lazy_fetch(type(instance).__name__)
        return instance

    # ------------------------------------------------------------------ #
    # Bookkeeping
    # ------------------------------------------------------------------ #
    def revision_of(self, object_id: str) -> Optional[str]:
        with self._lock:
            return self._revisions.get(object_id)

    def evict(self, object_id: str) -> None:
        self.cache.delete(object_id)

    def clear_cache(self) -> None:
        self.cache.clear()

    def call_stats(self) -> List[dict[str, object]]:
        return self.call_tracker.summary()


def connect(url: str, **kwargs: Any) -> Storage:
    """
    Build a storage for ``memory://``, ``sqlite:///path`` or ``postgresql://`` URLs.
    """
    return Storage(create_adapter(url), dsn=url, **kwargs)
