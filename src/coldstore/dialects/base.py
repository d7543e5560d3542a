"""
Dialect strategy interface describing how a document table is addressed.
"""

from __future__ import annotations

from typing import Protocol


class Dialect(Protocol):
    @property
    def name(self) -> str: ...

    def quote_identifier(self, identifier: str) -> str: ...

    def parameter_placeholder(self) -> str: ...

    def create_documents_table(self, table: str) -> str: ...


def quote_double(identifier: str) -> str:
    escaped = identifier.replace('"', '""')
    return f'"{escaped}"'


def documents_table_ddl(dialect: Dialect, table: str, *, text_type: str, flag_type: str) -> str:
    return (
        f"CREATE TABLE IF NOT EXISTS {dialect.quote_identifier(table)} ("
        f"id {text_type} PRIMARY KEY, "
        f"revision {text_type} NOT NULL, "
        f"class_name {text_type} NOT NULL, "
        f"state {text_type} NOT NULL, "
        f"deleted {flag_type} NOT NULL DEFAULT 0)"
    )
