"""
PostgreSQL dialect implementation.
"""

from __future__ import annotations

import re
from datetime import date, datetime
from typing import Any, Final

from ..errors import DialectConversionError
from .base import Dialect, require_text

_NUMBERED_RE = re.compile(r"\$(\d+)")


class PostgresDialect:
    """
    PostgreSQL dialect using numbered ``$n`` placeholders.

    Temporal strings are cast server-side so that text values bind into
    ``timestamp`` and ``date`` columns. Strings carrying a UTC offset are
    cast to ``timestamptz`` instead.
    """

    name: Final[str] = "postgresql"
    param_style: Final[str] = "numeric"
    numbered: Final[bool] = True

    def placeholder(self, index: int) -> str:
        return f"${index + 1}"

    def date_convert(self, value: Any, index: int) -> tuple[str, Any]:
        text = require_text(self.name, value)
        try:
            date.fromisoformat(text)
        except ValueError:
            pass
        else:
            return f"{self.placeholder(index)}::date", text
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError as exc:
            raise DialectConversionError(
                f"Value {text!r} is not an ISO date or timestamp"
            ) from exc
        # A plain ::timestamp cast discards the UTC offset.
        if parsed.tzinfo is not None:
            return f"{self.placeholder(index)}::timestamptz", text
        return f"{self.placeholder(index)}::timestamp", text

    def renumber(self, sql: str, offset: int) -> str:
        if offset == 0:
            return sql
        return _NUMBERED_RE.sub(lambda match: f"${int(match.group(1)) + offset}", sql)

    def count_placeholders(self, sql: str) -> int:
        return len(_NUMBERED_RE.findall(sql))

    def limit_clause(self, limit: int | None, offset: int | None) -> str:
        parts: list[str] = []
        if limit is not None:
            parts.append(f"LIMIT {limit}")
        if offset is not None:
            parts.append(f"OFFSET {offset}")
        return " ".join(parts)


def get_postgres_dialect() -> Dialect:
    return PostgresDialect()
