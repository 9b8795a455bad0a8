"""
SQL statement builders.

Each builder is a pure function of its inputs and returns a
:class:`Statement`; nothing here talks to a database. Every builder-local
failure (serialization, empty column sets, missing identifiers, dialect
conversion, malformed predicates) is raised before a statement exists.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence

from ..core.entity import id_column, table_fields, table_name
from ..dialects.base import Dialect
from ..errors import EmptyFieldSetError, MissingIdentifierError
from ..mapping.codec import columns, is_temporal, placeholders_and_args, to_value_map
from ..mapping.params import ParameterBuilder
from ..plugins.soft_delete import LogicDeletePolicy
from ..query.wrapper import Wrapper, strip_connective
from ..utils import get_logger

logger = get_logger("persistence.statements")


@dataclass(frozen=True)
class Statement:
    sql: str
    args: List[Any] = field(default_factory=list)


def where_clause(predicate_sql: str) -> str:
    predicate = strip_connective(predicate_sql)
    if not predicate:
        return ""
    return f"WHERE {predicate}"


def insert(entity: Any, dialect: Dialect) -> Statement:
    entity_type = type(entity)
    value_map = to_value_map(entity)
    params = ParameterBuilder(dialect)
    values, _ = placeholders_and_args(params, value_map, entity_type)
    sql = f"INSERT INTO {table_name(entity_type)} ({columns(value_map)}) VALUES ({values})"
    return Statement(sql, params.args)


def insert_batch(entities: Sequence[Any], dialect: Dialect) -> Optional[Statement]:
    """
    One multi-row INSERT for ``entities``, or ``None`` when there are none.

    The column list comes from the first entity; the rest are assumed to
    share its shape. Keeping the batch within the backend's statement size
    limit is up to the caller.
    """
    if not entities:
        return None
    entity_type = type(entities[0])
    params = ParameterBuilder(dialect)
    fields = ""
    groups: List[str] = []
    for entity in entities:
        value_map = to_value_map(entity)
        if not fields:
            fields = columns(value_map)
        values, _ = placeholders_and_args(params, value_map, entity_type)
        groups.append(f"({values})")
    sql = f"INSERT INTO {table_name(entity_type)} ({fields}) VALUES {','.join(groups)}"
    return Statement(sql, params.args)


def delete(
    entity_type: type,
    wrapper: Wrapper,
    soft_delete: Optional[LogicDeletePolicy] = None,
) -> Statement:
    wrapper.check()
    table = table_name(entity_type)
    where = where_clause(wrapper.sql)
    if soft_delete is not None:
        known_columns = table_fields(entity_type).split(",")
        sql = soft_delete.delete_sql(table, known_columns, where)
    elif where:
        sql = f"DELETE FROM {table} {where}"
    else:
        sql = f"DELETE FROM {table}"
    if not where:
        logger.warning("Delete on %s has no predicate and affects every row", table)
    return Statement(sql, list(wrapper.args))


def update(entity: Any, wrapper: Wrapper, dialect: Dialect) -> Statement:
    """
    Partial update: ``None`` values, fields left at their declared default and
    the identifier column never reach the SET clause. An empty ``wrapper``
    updates every row.
    """
    wrapper.check()
    entity_type = type(entity)
    identifier = id_column(entity_type)
    value_map = to_value_map(entity, assigned_only=True)
    params = ParameterBuilder(dialect)
    assignments: List[str] = []
    for column, value in value_map.items():
        if value is None or column == identifier:
            continue
        if is_temporal(entity_type, column, value):
            placeholder = params.bind_temporal(value)
        else:
            placeholder = params.bind(value)
        assignments.append(f"{column} = {placeholder}")
    if not assignments:
        raise EmptyFieldSetError(
            f"Nothing to update on {entity_type.__name__}: every non-identifier field is None"
        )
    sql = f"UPDATE {table_name(entity_type)} SET {', '.join(assignments)}"
    predicate = strip_connective(wrapper.sql)
    if predicate:
        sql = f"{sql} WHERE {params.extend(predicate, wrapper.args)}"
    return Statement(sql, params.args)


def update_by_id(entity: Any, dialect: Dialect) -> Statement:
    entity_type = type(entity)
    identifier = id_column(entity_type)
    value = to_value_map(entity).get(identifier)
    if value is None:
        raise MissingIdentifierError(
            f"{entity_type.__name__} has no value for identifier column '{identifier}'"
        )
    return update(entity, Wrapper(dialect).eq(identifier, value), dialect)


def select(
    entity_type: type,
    wrapper: Wrapper,
    soft_delete: Optional[LogicDeletePolicy] = None,
) -> Statement:
    """
    SELECT over ``entity_type``'s columns. With a soft-delete policy the
    not-deleted predicate always comes first and the caller's predicate is
    grouped after it.
    """
    wrapper.check()
    sql = f"SELECT {table_fields(entity_type)} FROM {table_name(entity_type)}"
    predicate = strip_connective(wrapper.sql)
    if soft_delete is not None:
        sql = f"{sql} WHERE {soft_delete.not_deleted_predicate()}"
        if predicate:
            sql = f"{sql} AND ({predicate})"
    elif predicate:
        sql = f"{sql} WHERE {predicate}"
    return Statement(sql, list(wrapper.args))
