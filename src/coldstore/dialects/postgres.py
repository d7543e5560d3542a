"""
PostgreSQL dialect implementation.
"""

from __future__ import annotations

from typing import Final

from .base import documents_table_ddl, quote_double


class PostgresDialect:
    """
    PostgreSQL dialect using percent positional parameters.
    """

    name: Final[str] = "postgresql"

    def quote_identifier(self, identifier: str) -> str:
        if "." in identifier:
            schema, table = identifier.split(".", 1)
            return f"{quote_double(schema)}.{quote_double(table)}"
        return quote_double(identifier)

    def parameter_placeholder(self) -> str:
        return "%s"

    def create_documents_table(self, table: str) -> str:
        return documents_table_ddl(self, table, text_type="TEXT", flag_type="SMALLINT")
