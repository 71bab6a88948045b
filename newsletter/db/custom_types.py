"""Column types that are native on PostgreSQL and JSON on SQLite.

Production runs on PostgreSQL (JSONB documents, TEXT[] phrase lists);
SQLite stores both as JSON so the SQL store can run in tests.
"""

from typing import Any, Optional

from sqlalchemy import JSON, Text
from sqlalchemy.dialects import postgresql
from sqlalchemy.types import TypeDecorator


class JsonOrJsonb(TypeDecorator):
    """Documents: article lists, input snapshots, writing samples."""

    cache_ok = True
    impl = JSON

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            return dialect.type_descriptor(postgresql.JSONB())
        return dialect.type_descriptor(JSON())


class TextList(TypeDecorator):
    """Ordered list of strings (phrase lists). Never stored as NULL."""

    cache_ok = True
    impl = JSON

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            return dialect.type_descriptor(postgresql.ARRAY(Text))
        return dialect.type_descriptor(JSON())

    def process_bind_param(self, value: Optional[list[Any]], dialect) -> list[str]:
        return [str(item) for item in value or []]

    def process_result_value(self, value: Optional[list[Any]], dialect) -> list[str]:
        return list(value or [])
