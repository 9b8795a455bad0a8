"""
Placeholder bookkeeping shared by every statement builder.
"""

from __future__ import annotations

from typing import Any, List, Sequence

from ..dialects.base import Dialect


class ParameterBuilder:
    """
    Owns the arguments bound to one statement and therefore its running
    placeholder index.

    The index is always ``start + len(args)``, so the placeholder count of the
    produced text cannot drift from the argument count. A single builder is
    shared across every row of a batch insert to keep numbered placeholders
    globally increasing.
    """

    def __init__(self, dialect: Dialect, *, start: int = 0) -> None:
        self.dialect = dialect
        self.args: List[Any] = []
        self._start = start

    @property
    def index(self) -> int:
        return self._start + len(self.args)

    def bind(self, value: Any) -> str:
        placeholder = self.dialect.placeholder(self.index)
        self.args.append(value)
        return placeholder

    def bind_temporal(self, value: Any) -> str:
        fragment, converted = self.dialect.date_convert(value, self.index)
        self.args.append(converted)
        return fragment

    def extend(self, sql: str, args: Sequence[Any]) -> str:
        """
        Append a fragment numbered from zero, shifting it to the current index.
        """
        shifted = self.dialect.renumber(sql, self.index)
        self.args.extend(args)
        return shifted
