"""
SQL dialects used by the document table backends.
"""

from .base import Dialect
from .postgres import PostgresDialect
from .sqlite import SQLiteDialect

__all__ = ["Dialect", "PostgresDialect", "SQLiteDialect"]
