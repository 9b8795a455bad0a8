"""
SQLite dialect implementation.
"""

from __future__ import annotations

from typing import Any, Final

from .base import Dialect, require_text


class SQLiteDialect:
    """
    SQLite dialect using qmark placeholders; temporal strings bind unchanged.
    """

    name: Final[str] = "sqlite"
    param_style: Final[str] = "qmark"
    numbered: Final[bool] = False

    def placeholder(self, index: int) -> str:
        return "?"

    def date_convert(self, value: Any, index: int) -> tuple[str, Any]:
        return self.placeholder(index), require_text(self.name, value)

    def renumber(self, sql: str, offset: int) -> str:
        return sql

    def count_placeholders(self, sql: str) -> int:
        return sql.count("?")

    def limit_clause(self, limit: int | None, offset: int | None) -> str:
        parts: list[str] = []
        if limit is not None:
            parts.append(f"LIMIT {limit}")
        if offset is not None:
            if limit is None:
                parts.append("LIMIT -1")
            parts.append(f"OFFSET {offset}")
        return " ".join(parts)


def get_sqlite_dialect() -> Dialect:
    return SQLiteDialect()
