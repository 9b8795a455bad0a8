import pytest

from crudmap.core import Entity, IntegerField, StringField
from crudmap.dialects import PostgresDialect, SQLiteDialect
from crudmap.errors import (
    EmptyFieldSetError,
    ExecutionError,
    MissingIdentifierError,
    TooManyRowsError,
)
from crudmap.persistence import Page, PageRequest, Session
from crudmap.plugins import SoftDelete


class BizActivity(Entity):
    id = StringField()
    name = StringField()
    status = IntegerField()
    delete_flag = IntegerField()


class FakeExecutor:
    def __init__(self, dialect=None, rows=None, affected=1):
        self.dialect = dialect or SQLiteDialect()
        self.rows = list(rows or [])
        self.affected = affected
        self.calls = []
        self.transactions = []
        self.closed = False

    def driver_type(self):
        return self.dialect

    async def exec_prepare(self, tx_id, sql, args):
        self.calls.append(("exec", tx_id, sql, list(args)))
        return self.affected

    async def fetch_prepare(self, tx_id, sql, args):
        self.calls.append(("fetch", tx_id, sql, list(args)))
        return list(self.rows)

    async def fetch_page(self, tx_id, sql, args, page_request):
        self.calls.append(("page", tx_id, sql, list(args)))
        return Page(
            records=list(self.rows),
            total=len(self.rows),
            page_no=page_request.page_no,
            page_size=page_request.page_size,
        )

    async def begin(self, tx_id):
        self.transactions.append(("begin", tx_id))

    async def commit(self, tx_id):
        self.transactions.append(("commit", tx_id))

    async def rollback(self, tx_id):
        self.transactions.append(("rollback", tx_id))

    async def close(self):
        self.closed = True


@pytest.fixture
def executor():
    return FakeExecutor()


@pytest.fixture
def session(executor):
    return Session(executor)


@pytest.mark.asyncio
async def test_save_forwards_token_and_statement(session, executor):
    affected = await session.save("tx-1", BizActivity(id="12312", status=1))
    assert affected == 1
    assert executor.calls == [
        (
            "exec",
            "tx-1",
            "INSERT INTO biz_activity (id,name,status,delete_flag) VALUES (?,?,?,?)",
            ["12312", None, 1, None],
        )
    ]


@pytest.mark.asyncio
async def test_save_batch_issues_single_statement(session, executor):
    await session.save_batch("", [BizActivity(id="a"), BizActivity(id="b")])
    assert len(executor.calls) == 1
    assert executor.calls[0][2].endswith("VALUES (?,?,?,?),(?,?,?,?)")


@pytest.mark.asyncio
async def test_save_batch_empty_issues_nothing(session, executor):
    assert await session.save_batch("", []) == 0
    assert executor.calls == []


@pytest.mark.asyncio
async def test_remove_by_id_binds_identifier(session, executor):
    await session.remove_by_id("", BizActivity, "12312")
    assert executor.calls[0][2:] == ("DELETE FROM biz_activity WHERE id = ?", ["12312"])


@pytest.mark.asyncio
async def test_remove_batch_by_id(session, executor):
    await session.remove_batch_by_id("", BizActivity, ["1", "2"])
    assert executor.calls[0][2:] == ("DELETE FROM biz_activity WHERE id IN (?,?)", ["1", "2"])


@pytest.mark.asyncio
async def test_remove_batch_by_id_empty_issues_nothing(session, executor):
    assert await session.remove_batch_by_id("", BizActivity, []) == 0
    assert executor.calls == []


@pytest.mark.asyncio
async def test_soft_delete_policy_rewrites_removes_and_filters_lists():
    executor = FakeExecutor()
    session = Session(executor, soft_delete=SoftDelete())
    await session.remove_by_id("", BizActivity, "1")
    await session.list("", BizActivity)
    assert executor.calls[0][2] == "UPDATE biz_activity SET delete_flag = 1 WHERE id = ?"
    assert executor.calls[1][2] == (
        "SELECT id,name,status,delete_flag FROM biz_activity WHERE delete_flag = 0"
    )


@pytest.mark.asyncio
async def test_update_by_id_uses_numbered_placeholders():
    executor = FakeExecutor(dialect=PostgresDialect())
    session = Session(executor)
    await session.update_by_id("", BizActivity(id="9", name="renamed"))
    assert executor.calls[0][2:] == (
        "UPDATE biz_activity SET name = $1 WHERE id = $2",
        ["renamed", "9"],
    )


@pytest.mark.asyncio
async def test_update_errors_are_raised_before_execution(session, executor):
    with pytest.raises(MissingIdentifierError):
        await session.update_by_id("", BizActivity(name="x"))
    with pytest.raises(EmptyFieldSetError):
        await session.update_by_wrapper("", BizActivity(id="1"), session.wrapper())
    assert executor.calls == []


@pytest.mark.asyncio
async def test_update_batch_by_id_sums_counts(executor):
    executor.affected = 2
    session = Session(executor)
    total = await session.update_batch_by_id(
        "tx", [BizActivity(id="1", status=1), BizActivity(id="2", status=1)]
    )
    assert total == 4
    assert [call[1] for call in executor.calls] == ["tx", "tx"]


@pytest.mark.asyncio
async def test_fetch_by_id_decodes_single_row():
    executor = FakeExecutor(rows=[{"id": "1", "name": "a", "status": 1, "delete_flag": 0}])
    session = Session(executor)
    activity = await session.fetch_by_id("", BizActivity, "1")
    assert activity == BizActivity(id="1", name="a", status=1, delete_flag=0)
    assert executor.calls[0][2] == (
        "SELECT id,name,status,delete_flag FROM biz_activity WHERE id = ?"
    )


@pytest.mark.asyncio
async def test_fetch_by_wrapper_returns_none_or_raises_for_many(executor):
    session = Session(executor)
    assert await session.fetch_by_wrapper("", BizActivity, session.wrapper().eq("status", 1)) is None
    executor.rows = [{"id": "1"}, {"id": "2"}]
    with pytest.raises(TooManyRowsError):
        await session.fetch_by_wrapper("", BizActivity, session.wrapper().eq("status", 1))


@pytest.mark.asyncio
async def test_list_by_ids_empty_issues_nothing(session, executor):
    assert await session.list_by_ids("", BizActivity, []) == []
    assert executor.calls == []


@pytest.mark.asyncio
async def test_list_by_ids(executor):
    executor.rows = [{"id": "1"}, {"id": "2"}]
    session = Session(executor)
    records = await session.list_by_ids("", BizActivity, ["1", "2"])
    assert [record.id for record in records] == ["1", "2"]
    assert executor.calls[0][2].endswith("WHERE id IN (?,?)")


@pytest.mark.asyncio
async def test_fetch_page_by_wrapper_maps_records(executor):
    executor.rows = [{"id": "1", "status": 1}]
    session = Session(executor)
    page = await session.fetch_page_by_wrapper(
        "", BizActivity, session.wrapper().eq("status", 1), PageRequest(page_no=2, page_size=5)
    )
    assert page.total == 1
    assert page.page_no == 2
    assert isinstance(page.records[0], BizActivity)
    assert executor.calls[0][0] == "page"


@pytest.mark.asyncio
async def test_transaction_commits_on_success(session, executor):
    async with session.transaction() as tx_id:
        await session.save(tx_id, BizActivity(id="1"))
    assert executor.transactions == [("begin", tx_id), ("commit", tx_id)]
    assert executor.calls[0][1] == tx_id


@pytest.mark.asyncio
async def test_transaction_rolls_back_on_error(session, executor):
    with pytest.raises(RuntimeError):
        async with session.transaction() as tx_id:
            raise RuntimeError("boom")
    assert executor.transactions == [("begin", tx_id), ("rollback", tx_id)]


@pytest.mark.asyncio
async def test_executor_errors_propagate():
    class FailingExecutor(FakeExecutor):
        async def exec_prepare(self, tx_id, sql, args):
            raise ExecutionError("driver failure")

    session = Session(FailingExecutor())
    with pytest.raises(ExecutionError):
        await session.save("", BizActivity(id="1"))


@pytest.mark.asyncio
async def test_async_context_manager_closes_executor(executor):
    async with Session(executor) as session:
        assert session.soft_delete is None
    assert executor.closed is True


@pytest.mark.asyncio
async def test_id_operations_reject_missing_identifier(session, executor):
    with pytest.raises(MissingIdentifierError):
        await session.remove_by_id("", BizActivity, None)
    with pytest.raises(MissingIdentifierError):
        await session.fetch_by_id("", BizActivity, BizActivity(name="x").get_id())
    assert executor.calls == []
