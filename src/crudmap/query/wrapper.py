"""
Predicate builder producing WHERE-clause fragments with aligned arguments.
"""

from __future__ import annotations

import re
from typing import Any, Iterable, List, Optional, Sequence

from ..dialects.base import Dialect
from ..errors import PredicateError
from ..mapping.params import ParameterBuilder

AND = "AND"
OR = "OR"

_COLUMN_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?$")


def strip_connective(sql: str) -> str:
    """
    Drop leading ``AND``/``OR`` connectives so a chained fragment can stand
    alone after ``WHERE``.
    """
    text = sql.strip()
    while True:
        upper = text.upper()
        if upper.startswith(f"{AND} "):
            text = text[len(AND) + 1 :].lstrip()
        elif upper.startswith(f"{OR} "):
            text = text[len(OR) + 1 :].lstrip()
        else:
            return text


def _ends_with_connective(sql: str) -> bool:
    upper = sql.upper()
    return upper in (AND, OR) or upper.endswith(f" {AND}") or upper.endswith(f" {OR}")


class Wrapper:
    """
    Immutable, chainable predicate.

    ``sql`` never contains the ``WHERE`` keyword. Placeholders are numbered
    from zero by argument position; consumers splice the fragment in with
    :meth:`ParameterBuilder.extend`. Consecutive conditions are joined with
    ``AND`` unless :meth:`and_` or :meth:`or_` was called in between.
    Construction problems are collected and reported by :meth:`check`.
    """

    def __init__(
        self,
        dialect: Dialect,
        sql: str = "",
        args: Sequence[Any] = (),
        errors: Sequence[str] = (),
    ) -> None:
        self.dialect = dialect
        self.sql = sql
        self.args: List[Any] = list(args)
        self._errors: tuple[str, ...] = tuple(errors)

    def __repr__(self) -> str:
        return f"<Wrapper sql={self.sql!r} args={self.args!r}>"

    def is_empty(self) -> bool:
        return not self.sql.strip()

    # Connectives ---------------------------------------------------------
    def and_(self) -> "Wrapper":
        return self._clone(sql=f"{self.sql} {AND}".lstrip())

    def or_(self) -> "Wrapper":
        return self._clone(sql=f"{self.sql} {OR}".lstrip())

    # Comparisons ---------------------------------------------------------
    def eq(self, column: str, value: Any) -> "Wrapper":
        if value is None:
            return self.is_null(column)
        return self._compare(column, "=", value)

    def ne(self, column: str, value: Any) -> "Wrapper":
        if value is None:
            return self.is_not_null(column)
        return self._compare(column, "<>", value)

    def gt(self, column: str, value: Any) -> "Wrapper":
        return self._compare(column, ">", value)

    def ge(self, column: str, value: Any) -> "Wrapper":
        return self._compare(column, ">=", value)

    def lt(self, column: str, value: Any) -> "Wrapper":
        return self._compare(column, "<", value)

    def le(self, column: str, value: Any) -> "Wrapper":
        return self._compare(column, "<=", value)

    def like(self, column: str, value: Any) -> "Wrapper":
        return self._compare(column, "LIKE", f"%{value}%")

    def like_left(self, column: str, value: Any) -> "Wrapper":
        return self._compare(column, "LIKE", f"%{value}")

    def like_right(self, column: str, value: Any) -> "Wrapper":
        return self._compare(column, "LIKE", f"{value}%")

    def not_like(self, column: str, value: Any) -> "Wrapper":
        return self._compare(column, "NOT LIKE", f"%{value}%")

    def between(self, column: str, low: Any, high: Any) -> "Wrapper":
        params = self._params()
        fragment = f"{column} BETWEEN {params.bind(low)} AND {params.bind(high)}"
        return self._push(column, fragment, params.args)

    def is_null(self, column: str) -> "Wrapper":
        return self._push(column, f"{column} IS NULL", [])

    def is_not_null(self, column: str) -> "Wrapper":
        return self._push(column, f"{column} IS NOT NULL", [])

    def in_array(self, column: str, values: Iterable[Any]) -> "Wrapper":
        return self._membership(column, "IN", values)

    def not_in(self, column: str, values: Iterable[Any]) -> "Wrapper":
        return self._membership(column, "NOT IN", values)

    # Composition ---------------------------------------------------------
    def push_wrapper(self, other: "Wrapper") -> "Wrapper":
        """
        AND another predicate onto this one as a parenthesized group.
        """
        if other.is_empty():
            return self._clone(errors=self._errors + other._errors)
        params = self._params()
        fragment = f"({params.extend(strip_connective(other.sql), other.args)})"
        return self._push(None, fragment, params.args, extra_errors=other._errors)

    def check(self) -> "Wrapper":
        """
        Return ``self`` when the predicate is well formed, else raise
        :class:`PredicateError`.
        """
        if self._errors:
            raise PredicateError("; ".join(self._errors))
        if _ends_with_connective(self.sql.strip()):
            raise PredicateError(f"Predicate ends with a dangling connective: {self.sql!r}")
        placeholder_count = self.dialect.count_placeholders(self.sql)
        if placeholder_count != len(self.args):
            raise PredicateError(
                f"Placeholder count mismatch: {placeholder_count} placeholders, {len(self.args)} args"
            )
        return self

    # Internal helpers ----------------------------------------------------
    def _params(self) -> ParameterBuilder:
        return ParameterBuilder(self.dialect, start=len(self.args))

    def _compare(self, column: str, operator: str, value: Any) -> "Wrapper":
        params = self._params()
        return self._push(column, f"{column} {operator} {params.bind(value)}", params.args)

    def _membership(self, column: str, operator: str, values: Iterable[Any]) -> "Wrapper":
        items = list(values)
        if not items:
            return self._clone(errors=self._errors + (f"{operator} on '{column}' needs at least one value",))
        params = self._params()
        placeholders = ",".join(params.bind(item) for item in items)
        return self._push(column, f"{column} {operator} ({placeholders})", params.args)

    def _push(
        self,
        column: Optional[str],
        fragment: str,
        args: Sequence[Any],
        *,
        extra_errors: Sequence[str] = (),
    ) -> "Wrapper":
        errors = self._errors + tuple(extra_errors)
        if column is not None and not _COLUMN_RE.match(column):
            errors += (f"Invalid column name {column!r}",)
        sql = self.sql.strip()
        if sql and not _ends_with_connective(sql):
            sql = f"{sql} {AND}"
        sql = f"{sql} {fragment}".lstrip()
        return self._clone(sql=sql, args=self.args + list(args), errors=errors)

    def _clone(self, **overrides: Any) -> "Wrapper":
        return Wrapper(
            self.dialect,
            sql=overrides.get("sql", self.sql),
            args=overrides.get("args", self.args),
            errors=overrides.get("errors", self._errors),
        )
