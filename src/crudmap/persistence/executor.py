"""
Async execution layer driving the blocking adapters.
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Dict, List, Protocol, Sequence, Set

from ..adapters.base import ConnectionConfig, DatabaseAdapter
from ..dialects.base import Dialect
from ..errors import ExecutionError
from ..utils import get_logger
from .page import Page, PageRequest

Row = Dict[str, Any]


class Executor(Protocol):
    """
    Collaborator the :class:`~crudmap.persistence.session.Session` forwards
    finished statements to. ``tx_id`` selects the connection; the empty
    token means no explicit transaction.
    """

    def driver_type(self) -> Dialect: ...

    async def exec_prepare(self, tx_id: str, sql: str, args: Sequence[Any]) -> int: ...

    async def fetch_prepare(self, tx_id: str, sql: str, args: Sequence[Any]) -> List[Row]: ...

    async def fetch_page(
        self, tx_id: str, sql: str, args: Sequence[Any], page_request: PageRequest
    ) -> Page[Row]: ...

    async def begin(self, tx_id: str) -> None: ...

    async def commit(self, tx_id: str) -> None: ...

    async def rollback(self, tx_id: str) -> None: ...

    async def close(self) -> None: ...


def _row_to_dict(cursor: Any, row: Any) -> Row:
    if hasattr(row, "keys"):
        return dict(row)
    if getattr(cursor, "description", None):
        columns = [col[0] for col in cursor.description]
        return {col: row[idx] for idx, col in enumerate(columns)}
    raise ExecutionError("Unable to map database row to dictionary.")


class _Connection:
    def __init__(self, adapter: DatabaseAdapter) -> None:
        self.adapter = adapter
        self.lock = asyncio.Lock()


class AdapterExecutor:
    """
    Executor backed by a :class:`DatabaseAdapter` factory.

    Statements under the empty token share one connection and are committed
    individually. Each token passed to :meth:`begin` gets a dedicated
    connection until it is committed or rolled back. Adapter calls block, so
    they run in a worker thread while the connection's lock is held.
    """

    def __init__(
        self,
        adapter_factory: Callable[[], DatabaseAdapter],
        config: ConnectionConfig,
    ) -> None:
        self.adapter_factory = adapter_factory
        self.config = config
        self.logger = get_logger("persistence.executor")
        self._transactions: Dict[str, _Connection] = {}
        self._opening: Set[str] = set()
        self._shared = self._open()

    def driver_type(self) -> Dialect:
        return self._shared.adapter.dialect

    # ------------------------------------------------------------------ #
    # Statements
    # ------------------------------------------------------------------ #
    async def exec_prepare(self, tx_id: str, sql: str, args: Sequence[Any]) -> int:
        connection = self._connection_for(tx_id)
        async with connection.lock:
            return await asyncio.to_thread(
                self._run, connection.adapter, sql, args, self._exec_cursor, not tx_id
            )

    async def fetch_prepare(self, tx_id: str, sql: str, args: Sequence[Any]) -> List[Row]:
        connection = self._connection_for(tx_id)
        async with connection.lock:
            return await asyncio.to_thread(
                self._run, connection.adapter, sql, args, self._fetch_cursor, not tx_id
            )

    async def fetch_page(
        self, tx_id: str, sql: str, args: Sequence[Any], page_request: PageRequest
    ) -> Page[Row]:
        count_rows = await self.fetch_prepare(
            tx_id, f"SELECT COUNT(1) AS total FROM ({sql}) AS page_total", args
        )
        total = int(next(iter(count_rows[0].values()))) if count_rows else 0
        records: List[Row] = []
        if total > page_request.offset:
            limit = self.driver_type().limit_clause(page_request.page_size, page_request.offset)
            records = await self.fetch_prepare(tx_id, f"{sql} {limit}", args)
        return Page(
            records=records,
            total=total,
            page_no=page_request.page_no,
            page_size=page_request.page_size,
        )

    # ------------------------------------------------------------------ #
    # Transactions
    # ------------------------------------------------------------------ #
    async def begin(self, tx_id: str) -> None:
        if not tx_id:
            raise ExecutionError("A transaction needs a non-empty token.")
        if tx_id in self._transactions or tx_id in self._opening:
            raise ExecutionError(f"Transaction {tx_id!r} is already open.")
        # Reserved before the first await so a concurrent begin sees it.
        self._opening.add(tx_id)
        try:
            connection = await asyncio.to_thread(self._open)
            try:
                await asyncio.to_thread(connection.adapter.begin)
            except Exception:
                await asyncio.to_thread(connection.adapter.close)
                raise
            self._transactions[tx_id] = connection
        finally:
            self._opening.discard(tx_id)
        self.logger.debug("Began transaction %s", tx_id)

    async def commit(self, tx_id: str) -> None:
        await self._finish(tx_id, "commit")

    async def rollback(self, tx_id: str) -> None:
        await self._finish(tx_id, "rollback")

    async def close(self) -> None:
        for tx_id in list(self._transactions):
            self.logger.warning("Rolling back transaction %s left open at close", tx_id)
            await self.rollback(tx_id)
        async with self._shared.lock:
            await asyncio.to_thread(self._shared.adapter.close)

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #
    def _open(self) -> _Connection:
        adapter = self.adapter_factory()
        adapter.connect(self.config)
        return _Connection(adapter)

    def _connection_for(self, tx_id: str) -> _Connection:
        if not tx_id:
            return self._shared
        try:
            return self._transactions[tx_id]
        except KeyError:
            raise ExecutionError(f"Unknown transaction token {tx_id!r}") from None

    async def _finish(self, tx_id: str, action: str) -> None:
        connection = self._transactions.pop(tx_id, None)
        if connection is None:
            raise ExecutionError(f"Unknown transaction token {tx_id!r}")
        async with connection.lock:
            try:
                await asyncio.to_thread(getattr(connection.adapter, action))
            finally:
                await asyncio.to_thread(connection.adapter.close)
        self.logger.debug("Finished transaction %s with %s", tx_id, action)

    def _run(
        self,
        adapter: DatabaseAdapter,
        sql: str,
        args: Sequence[Any],
        consume: Callable[[Any], Any],
        standalone: bool,
    ) -> Any:
        try:
            result = consume(adapter.execute(sql, list(args)))
        except Exception:
            if standalone and not self.config.autocommit:
                adapter.rollback()
            raise
        if standalone and not self.config.autocommit:
            adapter.commit()
        return result

    @staticmethod
    def _exec_cursor(cursor: Any) -> int:
        rowcount = getattr(cursor, "rowcount", -1)
        if rowcount is None or rowcount < 0:
            return 0
        return rowcount

    @staticmethod
    def _fetch_cursor(cursor: Any) -> List[Row]:
        return [_row_to_dict(cursor, row) for row in cursor.fetchall()]
