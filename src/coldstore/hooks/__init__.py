"""
Store/fetch lifecycle hooks for coldstore.
"""

from .dispatcher import HOOK_EVENTS, HookDispatcher

__all__ = ["HOOK_EVENTS", "HookDispatcher"]
