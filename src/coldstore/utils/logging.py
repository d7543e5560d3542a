"""Structured logging helpers for coldstore."""

from __future__ import annotations

import logging
import time
import uuid
from contextvars import ContextVar
from typing import Any, Iterable, Optional

_correlation_id: ContextVar[str | None] = ContextVar("coldstore_correlation_id", default=None)


class CorrelationIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id()
        return True


def configure_logging(level: int = logging.INFO) -> None:
    logger = logging.getLogger("coldstore")
    if logger.handlers:
        return
    handler = logging.StreamHandler()
    formatter = logging.Formatter(
        "%(asctime)s | %(levelname)s | %(correlation_id)s | %(name)s | %(message)s"
    )
    handler.setFormatter(formatter)
    handler.addFilter(CorrelationIdFilter())
    logger.addHandler(handler)
    logger.setLevel(level)


def get_logger(name: str) -> logging.Logger:
    configure_logging()
    return logging.getLogger(f"coldstore.{name}")


def set_correlation_id(value: Optional[str] = None) -> str:
    token = value or uuid.uuid4().hex
    _correlation_id.set(token)
    return token


def get_correlation_id() -> str:
    cid = _correlation_id.get()
    if cid is None:
        cid = set_correlation_id()
    return cid


def time_call(
    name: str,
    logger: logging.Logger,
    *,
    ids: Iterable[Any] | None = None,
    threshold_ms: float = 100,
    on_complete=None,
):
    """
    Context manager logging how long the wrapped block took.

    Durations at or above ``threshold_ms`` are logged as warnings. When
    ``on_complete`` is given it receives the elapsed milliseconds, even if
    the block raised.
    """
    start = time.monotonic()
    id_list = list(ids) if ids is not None else None

    class Timer:
        elapsed_ms = 0.0

        def __enter__(self):
            return self

        def __exit__(self, exc_type, exc, tb):
            self.elapsed_ms = (time.monotonic() - start) * 1000
            level = logging.WARNING if self.elapsed_ms >= threshold_ms else logging.DEBUG
            extra = {"ids": id_list, "elapsed_ms": self.elapsed_ms}
            logger.log(level, "%s took %.2fms", name, self.elapsed_ms, extra=extra)
            if on_complete is not None:
                on_complete(self.elapsed_ms)

    return Timer()
