"""
Pipelined store and fetch requests with per-request completion callbacks.
"""

from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from threading import RLock
from typing import Any, Callable, Dict, List, Optional

from ..core import InvalidArgumentError, is_lazy, lazy_target
from ..core.attributes import is_object
from ..utils import get_logger
from .storage import Storage

CompletionCallback = Callable[["Completion"], None]


@dataclass
class Completion:
    key: str
    operation: str
    result: Any = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class StoragePipeline:
    """
    Runs storage operations on a worker pool.

    Every submission yields exactly one :class:`Completion`; ``drain`` waits
    for all pending work, invokes callbacks on the calling thread and
    returns the completions in the order they finished.
    """

    def __init__(self, storage: Storage, max_workers: int = 4) -> None:
        if not isinstance(max_workers, int) or max_workers < 1:
            raise InvalidArgumentError(2, "positive int", max_workers)
        self.storage = storage
        self.logger = get_logger("persistence.pipeline")
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="coldstore")
        self._pending: Dict[Future, tuple[str, str, Optional[CompletionCallback]]] = {}
        self._lock = RLock()

    def __enter__(self) -> "StoragePipeline":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ------------------------------------------------------------------ #
    # Submission
    # ------------------------------------------------------------------ #
    def submit_store(self, obj: Any, callback: Optional[CompletionCallback] = None) -> str:
        if is_lazy(obj):
            obj = lazy_target(obj)
        if not is_object(obj):
            raise InvalidArgumentError(1, "object", obj)
        # Same id the store returns.
        key = self.storage.freezer.identify(obj)
        self._submit("store", key, callback, self.storage.store, obj)
        return key

    def submit_fetch(self, object_id: str, callback: Optional[CompletionCallback] = None) -> str:
        if not isinstance(object_id, str):
            raise InvalidArgumentError(1, "str", object_id)
        self._submit("fetch", object_id, callback, self.storage.fetch, object_id)
        return object_id

    def _submit(
        self,
        operation: str,
        key: str,
        callback: Optional[CompletionCallback],
        func: Callable[[Any], Any],
        argument: Any,
    ) -> None:
        future = self._executor.submit(func, argument)
        with self._lock:
            self._pending[future] = (operation, key, callback)
        self.logger.debug("Queued %s of %s", operation, key)

    # ------------------------------------------------------------------ #
    # Completion
    # ------------------------------------------------------------------ #
    def drain(self) -> List[Completion]:
        with self._lock:
            pending = dict(self._pending)
            self._pending.clear()

        completions: List[Completion] = []
        for future in as_completed(pending):
            operation, key, callback = pending[future]
            error = future.exception()
            if error is None:
                completion = Completion(key=key, operation=operation, result=future.result())
            else:
                self.logger.warning("%s of %s failed: %s", operation, key, error)
                completion = Completion(key=key, operation=operation, error=error)
            completions.append(completion)
            if callback is not None:
                callback(completion)
        return completions

    def pending(self) -> int:
        with self._lock:
            return len(self._pending)

    def close(self) -> None:
        self._executor.shutdown(wait=True)
