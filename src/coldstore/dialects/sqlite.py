"""
SQLite dialect implementation.
"""

from __future__ import annotations

from typing import Final

from .base import documents_table_ddl, quote_double


class SQLiteDialect:
    """
    SQLite dialect using qmark parameters.
    """

    name: Final[str] = "sqlite"

    def quote_identifier(self, identifier: str) -> str:
        return quote_double(identifier)

    def parameter_placeholder(self) -> str:
        return "?"

    def create_documents_table(self, table: str) -> str:
        return documents_table_ddl(self, table, text_type="TEXT", flag_type="INTEGER")
