"""
Async session exposing the CRUD operations over one executor.
"""

from __future__ import annotations

import uuid
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Iterable, List, Optional, Sequence, Type, TypeVar

from ..core.entity import id_column
from ..dialects.base import Dialect
from ..errors import MissingIdentifierError, TooManyRowsError
from ..mapping.codec import from_row
from ..plugins.soft_delete import LogicDeletePolicy
from ..query.wrapper import Wrapper
from ..security.redaction import redact_params
from ..utils import get_logger, time_call, transaction_scope
from ..utils.logging import resolve_slow_query_ms
from . import statements
from .executor import Executor
from .page import Page, PageRequest
from .statements import Statement

T = TypeVar("T")


class Session:
    """
    Builds statements for entities and forwards them to an :class:`Executor`.

    Every operation takes the transaction token first and passes it through
    untouched. Builder failures are raised before anything reaches the
    executor.
    """

    def __init__(
        self,
        executor: Executor,
        *,
        soft_delete: Optional[LogicDeletePolicy] = None,
        slow_query_ms: int | None = None,
    ) -> None:
        self.executor = executor
        self._soft_delete = soft_delete
        self.logger = get_logger("persistence.session")
        self.slow_query_ms = resolve_slow_query_ms(default=200, override=slow_query_ms)

    @property
    def soft_delete(self) -> Optional[LogicDeletePolicy]:
        return self._soft_delete

    @property
    def dialect(self) -> Dialect:
        return self.executor.driver_type()

    def wrapper(self) -> Wrapper:
        """
        Empty predicate bound to this session's dialect.
        """
        return Wrapper(self.dialect)

    # ------------------------------------------------------------------ #
    # Context management
    # ------------------------------------------------------------------ #
    async def __aenter__(self) -> "Session":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        await self.executor.close()

    # ------------------------------------------------------------------ #
    # Transactions
    # ------------------------------------------------------------------ #
    async def begin(self, tx_id: str) -> None:
        await self.executor.begin(tx_id)

    async def commit(self, tx_id: str) -> None:
        await self.executor.commit(tx_id)

    async def rollback(self, tx_id: str) -> None:
        await self.executor.rollback(tx_id)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[str]:
        """
        Open a transaction under a fresh token and yield the token.
        """
        tx_id = uuid.uuid4().hex
        await self.begin(tx_id)
        try:
            yield tx_id
        except Exception:
            await self.rollback(tx_id)
            raise
        else:
            await self.commit(tx_id)

    # ------------------------------------------------------------------ #
    # Inserts
    # ------------------------------------------------------------------ #
    async def save(self, tx_id: str, entity: Any) -> int:
        return await self._execute(tx_id, statements.insert(entity, self.dialect))

    async def save_batch(self, tx_id: str, entities: Iterable[Any]) -> int:
        statement = statements.insert_batch(list(entities), self.dialect)
        if statement is None:
            return 0
        return await self._execute(tx_id, statement)

    # ------------------------------------------------------------------ #
    # Deletes
    # ------------------------------------------------------------------ #
    async def remove_by_wrapper(self, tx_id: str, entity_type: type, wrapper: Wrapper) -> int:
        statement = statements.delete(entity_type, wrapper, self._soft_delete)
        return await self._execute(tx_id, statement)

    async def remove_by_id(self, tx_id: str, entity_type: type, id: Any) -> int:
        wrapper = self._id_wrapper(entity_type, id)
        return await self.remove_by_wrapper(tx_id, entity_type, wrapper)

    async def remove_batch_by_id(self, tx_id: str, entity_type: type, ids: Sequence[Any]) -> int:
        ids = list(ids)
        if not ids:
            return 0
        wrapper = self.wrapper().and_().in_array(id_column(entity_type), ids)
        return await self.remove_by_wrapper(tx_id, entity_type, wrapper)

    # ------------------------------------------------------------------ #
    # Updates
    # ------------------------------------------------------------------ #
    async def update_by_wrapper(self, tx_id: str, entity: Any, wrapper: Wrapper) -> int:
        return await self._execute(tx_id, statements.update(entity, wrapper, self.dialect))

    async def update_by_id(self, tx_id: str, entity: Any) -> int:
        return await self._execute(tx_id, statements.update_by_id(entity, self.dialect))

    async def update_batch_by_id(self, tx_id: str, entities: Iterable[Any]) -> int:
        """
        Update each entity by its identifier in order; the first failure
        stops the batch and earlier updates stay applied within ``tx_id``.
        """
        total = 0
        for entity in entities:
            total += await self.update_by_id(tx_id, entity)
        return total

    # ------------------------------------------------------------------ #
    # Selects
    # ------------------------------------------------------------------ #
    async def fetch_by_id(self, tx_id: str, entity_type: Type[T], id: Any) -> Optional[T]:
        wrapper = self._id_wrapper(entity_type, id)
        return await self.fetch_by_wrapper(tx_id, entity_type, wrapper)

    async def fetch_by_wrapper(
        self, tx_id: str, entity_type: Type[T], wrapper: Wrapper
    ) -> Optional[T]:
        records = await self.list_by_wrapper(tx_id, entity_type, wrapper)
        if not records:
            return None
        if len(records) > 1:
            raise TooManyRowsError(
                f"Expected at most one {entity_type.__name__}, found {len(records)}"
            )
        return records[0]

    async def list(self, tx_id: str, entity_type: Type[T]) -> List[T]:
        return await self.list_by_wrapper(tx_id, entity_type, self.wrapper())

    async def list_by_wrapper(
        self, tx_id: str, entity_type: Type[T], wrapper: Wrapper
    ) -> List[T]:
        statement = statements.select(entity_type, wrapper, self._soft_delete)
        rows = await self._fetch(tx_id, statement)
        return [from_row(entity_type, row) for row in rows]

    async def list_by_ids(self, tx_id: str, entity_type: Type[T], ids: Sequence[Any]) -> List[T]:
        ids = list(ids)
        if not ids:
            return []
        wrapper = self.wrapper().in_array(id_column(entity_type), ids)
        return await self.list_by_wrapper(tx_id, entity_type, wrapper)

    async def fetch_page_by_wrapper(
        self,
        tx_id: str,
        entity_type: Type[T],
        wrapper: Wrapper,
        page_request: PageRequest,
    ) -> Page[T]:
        statement = statements.select(entity_type, wrapper, self._soft_delete)
        with transaction_scope(tx_id):
            self.logger.debug(
                "Page ==> %s | Args ==> %s | page=%s size=%s",
                statement.sql,
                redact_params(statement.args),
                page_request.page_no,
                page_request.page_size,
            )
            with self._timed("session.fetch_page", statement):
                page = await self.executor.fetch_page(
                    tx_id, statement.sql, statement.args, page_request
                )
        return page.map(lambda row: from_row(entity_type, row))

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #
    def _id_wrapper(self, entity_type: type, id: Any) -> Wrapper:
        column = id_column(entity_type)
        if id is None:
            # eq() would render IS NULL and match every row without an id.
            raise MissingIdentifierError(
                f"No identifier given for {entity_type.__name__}.{column}"
            )
        return self.wrapper().eq(column, id)

    async def _execute(self, tx_id: str, statement: Statement) -> int:
        with transaction_scope(tx_id):
            self.logger.debug(
                "Exec ==> %s | Args ==> %s", statement.sql, redact_params(statement.args)
            )
            with self._timed("session.exec", statement):
                affected = await self.executor.exec_prepare(tx_id, statement.sql, statement.args)
            self.logger.debug("Exec <== rows_affected=%s", affected)
        return affected

    async def _fetch(self, tx_id: str, statement: Statement) -> List[dict]:
        with transaction_scope(tx_id):
            self.logger.debug(
                "Query ==> %s | Args ==> %s", statement.sql, redact_params(statement.args)
            )
            with self._timed("session.fetch", statement):
                rows = await self.executor.fetch_prepare(tx_id, statement.sql, statement.args)
            self.logger.debug("Query <== rows=%s", len(rows))
        return rows

    def _timed(self, name: str, statement: Statement):
        return time_call(
            name,
            self.logger,
            sql=statement.sql,
            params=redact_params(statement.args),
            threshold_ms=self.slow_query_ms,
        )
