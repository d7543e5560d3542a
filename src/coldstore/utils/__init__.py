"""
Utility helpers shared across coldstore packages.
"""

from .logging import configure_logging, get_correlation_id, get_logger, set_correlation_id, time_call
from .performance import CallTracker, resolve_slow_call_ms

__all__ = [
    "CallTracker",
    "configure_logging",
    "get_correlation_id",
    "get_logger",
    "resolve_slow_call_ms",
    "set_correlation_id",
    "time_call",
]
