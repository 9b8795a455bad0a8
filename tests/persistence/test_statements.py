import logging
from datetime import datetime, timedelta, timezone

import pytest

from crudmap.core import DateTimeField, Entity, IntegerField, StringField
from crudmap.dialects import MySQLDialect, PostgresDialect, SQLiteDialect
from crudmap.errors import (
    DialectConversionError,
    EmptyFieldSetError,
    MissingIdentifierError,
    PredicateError,
    SerializationError,
)
from crudmap.persistence import statements
from crudmap.plugins import SoftDelete
from crudmap.query import Wrapper


class BizActivity(Entity):
    id = StringField()
    status = IntegerField()
    name = StringField()


class Event(Entity):
    id = IntegerField()
    title = StringField()
    create_time = DateTimeField()
    delete_flag = IntegerField()


class AuditLog(Entity):
    id = IntegerField()
    message = StringField()


def test_insert_binds_every_column_including_none():
    statement = statements.insert(BizActivity(id="12312", status=1), SQLiteDialect())
    assert statement.sql == "INSERT INTO biz_activity (id,status,name) VALUES (?,?,?)"
    assert statement.args == ["12312", 1, None]


def test_insert_casts_temporal_values_for_postgres():
    event = Event(id=1, title="launch", create_time="2024-03-01 09:00:00", delete_flag=0)
    statement = statements.insert(event, PostgresDialect())
    assert statement.sql == (
        "INSERT INTO event (id,title,create_time,delete_flag) VALUES ($1,$2,$3::timestamp,$4)"
    )
    assert statement.args == [1, "launch", "2024-03-01 09:00:00", 0]


def test_insert_rejects_non_records():
    with pytest.raises(SerializationError):
        statements.insert(42, SQLiteDialect())


def test_insert_batch_numbers_placeholders_across_rows():
    rows = [BizActivity(id="a", status=1, name="x"), BizActivity(id="b", status=2, name="y")]
    statement = statements.insert_batch(rows, PostgresDialect())
    assert statement.sql == (
        "INSERT INTO biz_activity (id,status,name) VALUES ($1,$2,$3),($4,$5,$6)"
    )
    assert statement.args == ["a", 1, "x", "b", 2, "y"]


def test_insert_batch_for_positional_dialect():
    rows = [BizActivity(id="a"), BizActivity(id="b")]
    statement = statements.insert_batch(rows, MySQLDialect())
    assert statement.sql == "INSERT INTO biz_activity (id,status,name) VALUES (%s,%s,%s),(%s,%s,%s)"
    assert len(statement.args) == 6


def test_insert_batch_empty_returns_none():
    assert statements.insert_batch([], SQLiteDialect()) is None


def test_delete_with_membership_predicate():
    wrapper = Wrapper(SQLiteDialect()).and_().in_array("id", ["1", "2"])
    statement = statements.delete(BizActivity, wrapper)
    assert statement.sql == "DELETE FROM biz_activity WHERE id IN (?,?)"
    assert statement.args == ["1", "2"]


def test_delete_without_predicate_is_unconditional():
    statement = statements.delete(BizActivity, Wrapper(SQLiteDialect()))
    assert statement.sql == "DELETE FROM biz_activity"
    assert statement.args == []


def test_delete_with_soft_delete_policy():
    wrapper = Wrapper(SQLiteDialect()).eq("id", 5)
    statement = statements.delete(Event, wrapper, SoftDelete())
    assert statement.sql == "UPDATE event SET delete_flag = 1 WHERE id = ?"
    assert statement.args == [5]


def test_soft_delete_falls_back_for_tables_without_flag():
    wrapper = Wrapper(SQLiteDialect()).eq("id", 5)
    statement = statements.delete(AuditLog, wrapper, SoftDelete())
    assert statement.sql == "DELETE FROM audit_log WHERE id = ?"


def test_delete_surfaces_predicate_errors():
    with pytest.raises(PredicateError):
        statements.delete(BizActivity, Wrapper(SQLiteDialect()).in_array("id", []))


def test_update_skips_none_and_identifier_and_renumbers_predicate():
    entity = BizActivity(id="12312", status=2, name=None)
    wrapper = Wrapper(PostgresDialect()).eq("status", 1).eq("name", "old")
    statement = statements.update(entity, wrapper, PostgresDialect())
    assert statement.sql == "UPDATE biz_activity SET status = $1 WHERE status = $2 AND name = $3"
    assert statement.args == [2, 1, "old"]


def test_update_with_empty_wrapper_is_unconditional():
    statement = statements.update(BizActivity(status=3), Wrapper(SQLiteDialect()), SQLiteDialect())
    assert statement.sql == "UPDATE biz_activity SET status = ?"
    assert statement.args == [3]


def test_update_applies_date_conversion_in_set_clause():
    event = Event(id=9, create_time="2024-03-01 09:00:00")
    statement = statements.update_by_id(event, PostgresDialect())
    assert statement.sql == "UPDATE event SET create_time = $1::timestamp WHERE id = $2"
    assert statement.args == ["2024-03-01 09:00:00", 9]


def test_update_with_nothing_to_set_raises():
    with pytest.raises(EmptyFieldSetError):
        statements.update(BizActivity(id="1"), Wrapper(SQLiteDialect()), SQLiteDialect())


def test_update_by_id_requires_identifier():
    with pytest.raises(MissingIdentifierError):
        statements.update_by_id(BizActivity(status=1), SQLiteDialect())
    with pytest.raises(MissingIdentifierError):
        statements.update_by_id({"status": 1}, SQLiteDialect())


def test_update_by_id_builds_identifier_predicate():
    statement = statements.update_by_id(BizActivity(id="7", name="new"), SQLiteDialect())
    assert statement.sql == "UPDATE biz_activity SET name = ? WHERE id = ?"
    assert statement.args == ["new", "7"]


def test_update_rejects_unconvertible_dates_on_postgres():
    with pytest.raises(DialectConversionError):
        statements.update_by_id({"id": 1, "start_date": "soon"}, PostgresDialect())


def test_select_shapes():
    dialect = SQLiteDialect()
    assert statements.select(BizActivity, Wrapper(dialect)).sql == (
        "SELECT id,status,name FROM biz_activity"
    )
    statement = statements.select(BizActivity, Wrapper(dialect).eq("status", 1))
    assert statement.sql == "SELECT id,status,name FROM biz_activity WHERE status = ?"
    assert statement.args == [1]


def test_select_with_soft_delete_groups_caller_predicate():
    dialect = SQLiteDialect()
    wrapper = Wrapper(dialect).eq("id", 1).or_().eq("id", 2)
    statement = statements.select(Event, wrapper, SoftDelete())
    assert statement.sql == (
        "SELECT id,title,create_time,delete_flag FROM event "
        "WHERE delete_flag = 0 AND (id = ? OR id = ?)"
    )
    bare = statements.select(Event, Wrapper(dialect), SoftDelete())
    assert bare.sql == "SELECT id,title,create_time,delete_flag FROM event WHERE delete_flag = 0"


class DefaultedActivity(Entity):
    id = StringField()
    name = StringField()
    status = IntegerField(default=1)
    delete_flag = IntegerField(default=0)


def test_update_by_id_leaves_defaulted_fields_out_of_set_clause():
    statement = statements.update_by_id(DefaultedActivity(id="a", name="renamed"), SQLiteDialect())
    assert statement.sql == "UPDATE defaulted_activity SET name = ? WHERE id = ?"
    assert statement.args == ["renamed", "a"]


def test_update_writes_defaulted_fields_once_assigned():
    entity = DefaultedActivity(id="a", status=1)
    entity.delete_flag = 0
    statement = statements.update_by_id(entity, SQLiteDialect())
    assert statement.sql == "UPDATE defaulted_activity SET status = ?, delete_flag = ? WHERE id = ?"
    assert statement.args == [1, 0, "a"]


def test_insert_still_binds_declared_defaults():
    statement = statements.insert(DefaultedActivity(id="a", name="A"), SQLiteDialect())
    assert statement.args == ["a", "A", 1, 0]


def test_insert_casts_offset_aware_timestamps_to_timestamptz():
    plus_five = timezone(timedelta(hours=5))
    event = Event(id=1, title="t", create_time=datetime(2024, 1, 1, 10, 0, tzinfo=plus_five))
    statement = statements.insert(event, PostgresDialect())
    assert statement.sql == (
        "INSERT INTO event (id,title,create_time,delete_flag) VALUES ($1,$2,$3::timestamptz,$4)"
    )
    assert statement.args == [1, "t", "2024-01-01 10:00:00+05:00", None]


def test_delete_without_predicate_logs_a_warning(caplog):
    caplog.set_level(logging.WARNING, logger="crudmap.persistence.statements")
    statement = statements.delete(BizActivity, Wrapper(SQLiteDialect()))
    assert statement.sql == "DELETE FROM biz_activity"
    assert any("affects every row" in record.getMessage() for record in caplog.records)

    caplog.clear()
    statements.delete(BizActivity, Wrapper(SQLiteDialect()).eq("id", "1"))
    assert caplog.records == []
