"""
Backend call statistics and N+1 fetch detection.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from threading import RLock
from typing import Dict, List, Optional

SLOW_CALL_ENV = "COLDSTORE_SLOW_CALL_MS"


def resolve_slow_call_ms(default: int = 100, override: Optional[int] = None) -> int:
    """
    Pick the slow-call threshold: explicit override, then environment, then default.
    """
    if override is not None:
        return int(override)
    raw = os.getenv(SLOW_CALL_ENV)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"Invalid integer value for {SLOW_CALL_ENV}: {raw!r}") from exc


@dataclass
class CallStat:
    operation: str
    count: int = 0
    total_ms: float = 0.0
    documents: int = 0
    failures: int = 0

    def record(self, elapsed_ms: float, *, documents: int, failed: bool) -> None:
        self.count += 1
        self.total_ms += elapsed_ms
        self.documents += documents
        if failed:
            self.failures += 1

    @property
    def average_ms(self) -> float:
        if self.count == 0:
            return 0.0
        return self.total_ms / self.count


class CallTracker:
    """
    Tracks backend calls and warns when single-document fetches pile up.

    Lazy loading resolves one reference per backend round-trip; many such
    fetches of the same class usually mean eager loading would be cheaper.
    """

    def __init__(self, logger: logging.Logger, *, n_plus_one_threshold: int = 5) -> None:
        self.logger = logger
        self.n_plus_one_threshold = n_plus_one_threshold
        self.stats: Dict[str, CallStat] = {}
        self._single_fetches: Dict[str, int] = {}
        self._reported: set[str] = set()
        self._lock = RLock()

    def record(
        self,
        operation: str,
        elapsed_ms: float,
        *,
        documents: int = 1,
        failed: bool = False,
    ) -> None:
        with self._lock:
            stat = self.stats.setdefault(operation, CallStat(operation=operation))
            stat.record(elapsed_ms, documents=documents, failed=failed)

    def record_lazy_fetch(self, class_name: str) -> None:
        with self._lock:
            count = self._single_fetches.get(class_name, 0) + 1
            self._single_fetches[class_name] = count
            if count < self.n_plus_one_threshold or class_name in self._reported:
                return
            self._reported.add(class_name)
        self.logger.warning(
            "Potential N+1 detected: %s lazy fetches of '%s'",
            count,
            class_name,
            extra={"class_name": class_name, "count": count},
        )

    def summary(self) -> List[dict[str, object]]:
        with self._lock:
            return [
                {
                    "operation": stat.operation,
                    "count": stat.count,
                    "total_ms": stat.total_ms,
                    "average_ms": stat.average_ms,
                    "documents": stat.documents,
                    "failures": stat.failures,
                }
                for stat in self.stats.values()
            ]

    def reset(self) -> None:
        with self._lock:
            self.stats.clear()
            self._single_fetches.clear()
            self._reported.clear()
