"""
Dialect strategy interface describing placeholder and literal rules.
"""

from __future__ import annotations

from typing import Any, Protocol

from ..errors import DialectConversionError


class Dialect(Protocol):
    """
    Strategy interface consumed by the codec, predicate builder, statement
    builders and adapters.

    Placeholder indexes are zero-based and count bound arguments from the
    start of the statement.
    """

    @property
    def name(self) -> str: ...

    @property
    def param_style(self) -> str: ...

    @property
    def numbered(self) -> bool: ...

    def placeholder(self, index: int) -> str: ...

    def date_convert(self, value: Any, index: int) -> tuple[str, Any]: ...

    def renumber(self, sql: str, offset: int) -> str: ...

    def count_placeholders(self, sql: str) -> int: ...

    def limit_clause(self, limit: int | None, offset: int | None) -> str: ...


def require_text(dialect_name: str, value: Any) -> str:
    if not isinstance(value, str):
        raise DialectConversionError(
            f"{dialect_name} date conversion expects a string, received {type(value).__name__}"
        )
    return value
