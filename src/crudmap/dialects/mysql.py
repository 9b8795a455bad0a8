"""
MySQL dialect implementation.
"""

from __future__ import annotations

from typing import Any, Final

from .base import Dialect, require_text


def count_format_placeholders(sql: str) -> int:
    """
    Count ``%s`` markers, skipping escaped ``%%`` pairs.
    """
    count = 0
    idx = 0
    while idx < len(sql) - 1:
        if sql[idx] == "%" and sql[idx + 1] == "s":
            count += 1
            idx += 2
            continue
        if sql[idx] == "%" and sql[idx + 1] == "%":
            idx += 2
            continue
        idx += 1
    return count


class MySQLDialect:
    """
    MySQL dialect using format-style placeholders understood by PyMySQL.
    """

    name: Final[str] = "mysql"
    param_style: Final[str] = "format"
    numbered: Final[bool] = False

    def placeholder(self, index: int) -> str:
        return "%s"

    def date_convert(self, value: Any, index: int) -> tuple[str, Any]:
        # MySQL parses 'YYYY-MM-DD hh:mm:ss' strings into DATETIME columns itself.
        return self.placeholder(index), require_text(self.name, value)

    def renumber(self, sql: str, offset: int) -> str:
        return sql

    def count_placeholders(self, sql: str) -> int:
        return count_format_placeholders(sql)

    def limit_clause(self, limit: int | None, offset: int | None) -> str:
        parts: list[str] = []
        if limit is not None:
            parts.append(f"LIMIT {limit}")
        if offset is not None:
            if limit is None:
                parts.append("LIMIT 18446744073709551615")
            parts.append(f"OFFSET {offset}")
        return " ".join(parts)


def get_mysql_dialect() -> Dialect:
    return MySQLDialect()
