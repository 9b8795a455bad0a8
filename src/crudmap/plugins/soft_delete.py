"""
Logical-delete policy rewriting deletes into flag updates.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Protocol, Sequence

from ..utils import get_logger

logger = get_logger("plugins.soft_delete")

_COLUMN_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class LogicDeletePolicy(Protocol):
    """
    Interception point consulted by the statement builders on every delete and
    every select.
    """

    @property
    def column(self) -> str: ...

    def not_deleted_predicate(self) -> str: ...

    def delete_sql(self, table: str, columns: Sequence[str], where: str) -> str: ...


def _literal(value: Any) -> str:
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, (int, float)):
        return str(value)
    escaped = str(value).replace("'", "''")
    return f"'{escaped}'"


@dataclass(frozen=True)
class SoftDelete:
    """
    Marks rows deleted by setting ``column`` to ``deleted``; live rows carry
    ``not_deleted``.

    The values are rendered as SQL literals so the policy never adds bound
    arguments and cannot shift placeholder numbering.
    """

    column: str = "delete_flag"
    deleted: Any = 1
    not_deleted: Any = 0

    def __post_init__(self) -> None:
        if not _COLUMN_RE.match(self.column):
            raise ValueError(f"Invalid soft-delete column {self.column!r}")

    def not_deleted_predicate(self) -> str:
        return f"{self.column} = {_literal(self.not_deleted)}"

    def delete_sql(self, table: str, columns: Sequence[str], where: str) -> str:
        """
        Build the logical delete for ``table``. Tables whose known columns do
        not include the flag are deleted physically.
        """
        suffix = f" {where}" if where else ""
        if "*" in columns or self.column in columns:
            return f"UPDATE {table} SET {self.column} = {_literal(self.deleted)}{suffix}"
        logger.warning(
            "Table %s has no %s column; deleting physically%s",
            table,
            self.column,
            "" if where else " with no WHERE clause",
        )
        return f"DELETE FROM {table}{suffix}"
