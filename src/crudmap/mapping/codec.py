"""
Value-map codec: entities to ordered column maps, column maps to SQL
fragments, and result rows back to entities.
"""

from __future__ import annotations

import dataclasses
import re
from collections.abc import Mapping
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Tuple, Type, TypeVar

from ..core.entity import Entity, is_entity_type
from ..errors import EmptyFieldSetError, SerializationError
from .params import ParameterBuilder

T = TypeVar("T")

ValueMap = Dict[str, Any]

_COLUMN_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_NESTED_TYPES = (Mapping, list, tuple, set, frozenset)
_PRIMITIVE_TYPES = (str, bytes, bytearray, int, float, bool)


def to_value_map(entity: Any, *, assigned_only: bool = False) -> ValueMap:
    """
    Serialize one record into an insertion-ordered ``{column: value}`` map.

    ``assigned_only`` reports ``None`` for entity fields that only carry
    their declared default; partial updates use it.

    ``Entity`` instances, dataclass instances, mappings and plain objects are
    accepted. Primitives, sequences and nested values raise
    :class:`SerializationError`.
    """
    if entity is None:
        raise SerializationError("Cannot build a value map from None")
    if isinstance(entity, Entity):
        raw = entity.to_dict(assigned_only=assigned_only)
    elif dataclasses.is_dataclass(entity) and not isinstance(entity, type):
        raw = {item.name: getattr(entity, item.name) for item in dataclasses.fields(entity)}
    elif isinstance(entity, Mapping):
        raw = dict(entity)
    elif isinstance(entity, _PRIMITIVE_TYPES) or isinstance(entity, _NESTED_TYPES):
        raise SerializationError(
            f"Expected a record, received {type(entity).__name__}; data is not an object"
        )
    elif hasattr(entity, "__dict__"):
        raw = {key: value for key, value in vars(entity).items() if not key.startswith("_")}
    else:
        raise SerializationError(f"Cannot serialize {type(entity).__name__} into a value map")

    value_map: ValueMap = {}
    for column, value in raw.items():
        if not isinstance(column, str) or not _COLUMN_RE.match(column):
            raise SerializationError(f"Invalid column name {column!r}")
        value_map[column] = _flatten(column, value)
    return value_map


def _flatten(column: str, value: Any) -> Any:
    if isinstance(value, _NESTED_TYPES):
        raise SerializationError(
            f"Column '{column}' holds a nested {type(value).__name__}; value maps must be flat"
        )
    if isinstance(value, datetime):
        return value.isoformat(sep=" ")
    if isinstance(value, date):
        return value.isoformat()
    return value


def columns(value_map: ValueMap) -> str:
    if not value_map:
        raise EmptyFieldSetError("Cannot build a column list from an empty value map")
    return ",".join(value_map)


def is_temporal_column(column: str) -> bool:
    return "time" in column or "date" in column


def is_temporal(entity_type: Optional[type], column: str, value: Any) -> bool:
    """
    Decide whether ``value`` goes through the dialect's date conversion.

    A declared field's ``temporal`` flag wins; otherwise the column name
    decides.
    """
    if not isinstance(value, str):
        return False
    if entity_type is not None and is_entity_type(entity_type):
        field_obj = entity_type._meta.field_for_column(column)
        if field_obj is not None and field_obj.temporal is not None:
            return field_obj.temporal
    return is_temporal_column(column)


def placeholders_and_args(
    params: ParameterBuilder,
    value_map: ValueMap,
    entity_type: Optional[type] = None,
) -> Tuple[str, List[Any]]:
    """
    Render one row of placeholders and return it with that row's arguments.
    """
    if not value_map:
        raise EmptyFieldSetError("Cannot bind an empty value map")
    first = len(params.args)
    fragments = []
    for column, value in value_map.items():
        if is_temporal(entity_type, column, value):
            fragments.append(params.bind_temporal(value))
        else:
            fragments.append(params.bind(value))
    return ",".join(fragments), params.args[first:]


def from_row(entity_type: Type[T], row: Mapping[str, Any]) -> T:
    """
    Build an instance of ``entity_type`` from a result row, ignoring columns
    the type does not declare.
    """
    if is_entity_type(entity_type):
        values: Dict[str, Any] = {}
        for column, value in row.items():
            field_obj = entity_type._meta.field_for_column(column)
            if field_obj is not None:
                values[field_obj.require_name()] = value
        return entity_type(**values)
    if dataclasses.is_dataclass(entity_type):
        accepted = {item.name for item in dataclasses.fields(entity_type) if item.init}
        return entity_type(**{key: value for key, value in row.items() if key in accepted})
    return entity_type(**dict(row))
