"""
Persistence layer components: storage coordinator, options and pipelining.
"""

from .options import StorageOptions
from .pipeline import Completion, StoragePipeline
from .storage import Storage, connect

__all__ = ["Completion", "Storage", "StorageOptions", "StoragePipeline", "connect"]
