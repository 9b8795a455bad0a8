"""
Entity base class and the capability functions that make a type persistable.
"""

from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Optional, Set, Type

from ..utils import camel_to_snake, get_logger
from .fields import Field

logger = get_logger("core.entity")

WILDCARD_FIELDS = "*"
DEFAULT_ID_COLUMN = "id"


class EntityConfigurationError(Exception):
    """Raised when an entity class is misconfigured."""


@dataclass
class EntityOptions:
    """
    Container for entity metadata calculated by :class:`EntityMeta`.
    """

    model: Type["Entity"]
    table_name: str = ""
    fields: "OrderedDict[str, Field]" = field(default_factory=OrderedDict)
    primary_key: Optional[Field] = None

    def add_field(self, field_obj: Field) -> None:
        name = field_obj.require_name()
        self.fields[name] = field_obj
        if field_obj.primary_key:
            if self.primary_key and self.primary_key.name != name:
                raise EntityConfigurationError(
                    f"Multiple primary keys defined on entity '{self.model.__name__}'"
                )
            self.primary_key = field_obj

    def get_fields(self) -> Iterable[Field]:
        return self.fields.values()

    def columns(self) -> list[str]:
        return [field_obj.column_name() for field_obj in self.fields.values()]

    def field_for_column(self, column: str) -> Optional[Field]:
        for field_obj in self.fields.values():
            if field_obj.column_name() == column:
                return field_obj
        return None

    @property
    def id_column(self) -> str:
        if self.primary_key is None:
            return DEFAULT_ID_COLUMN
        return self.primary_key.column_name()


class EntityMeta(type):
    """
    Metaclass collecting declared fields in declaration order.

    Fields declared on entity base classes are inherited ahead of the
    subclass's own. A field named ``id`` becomes the primary key when no
    other field claims it.
    """

    def __new__(mcls, name: str, bases: tuple[type, ...], attrs: Dict[str, Any]) -> "EntityMeta":
        entity_bases = [base for base in bases if isinstance(base, EntityMeta)]
        if not entity_bases:
            return super().__new__(mcls, name, bases, attrs)

        declared_fields: Dict[str, Field] = {}
        for attr_name, value in list(attrs.items()):
            if isinstance(value, Field):
                declared_fields[attr_name] = attrs.pop(attr_name)

        cls = super().__new__(mcls, name, bases, attrs)

        table_name = camel_to_snake(name)
        meta = attrs.get("Meta")
        if meta is not None:
            table_name = getattr(meta, "table", table_name)

        cls._meta = EntityOptions(model=cls, table_name=table_name)

        for base in entity_bases:
            base_meta = getattr(base, "_meta", None)
            if base_meta is None:
                continue
            for inherited in base_meta.get_fields():
                cls._meta.add_field(inherited)

        sorted_fields = sorted(declared_fields.items(), key=lambda item: item[1].creation_counter)
        for attr_name, field_obj in sorted_fields:
            field_obj.contribute_to_class(cls, attr_name)
            cls._meta.add_field(field_obj)

        if cls._meta.primary_key is None and DEFAULT_ID_COLUMN in cls._meta.fields:
            cls._meta.primary_key = cls._meta.fields[DEFAULT_ID_COLUMN]

        return cls


class Entity(metaclass=EntityMeta):
    """
    Base class for persistable records.

    Every declared field is ``None`` until assigned, which lets the same class
    describe both full rows and partial updates. Field defaults fill in the
    value map for inserts but do not count as assignments, so a partial
    update only writes what the caller set.
    """

    _meta: EntityOptions

    def __init__(self, **kwargs: Any) -> None:
        self._field_values: Dict[str, Any] = {}
        self._assigned: Set[str] = set()
        unknown = set(kwargs) - set(self._meta.fields)
        if unknown:
            raise TypeError(
                f"{self.__class__.__name__} got unexpected field(s): {', '.join(sorted(unknown))}"
            )
        for field_obj in self._meta.get_fields():
            name = field_obj.require_name()
            if name in kwargs:
                setattr(self, name, kwargs[name])
            elif field_obj.has_default:
                self._field_values[name] = field_obj.to_python(field_obj.get_default())

    def __repr__(self) -> str:
        field_parts = ", ".join(
            f"{name}={value!r}" for name, value in self._field_values.items() if value is not None
        )
        return f"<{self.__class__.__name__} {field_parts}>"

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    __hash__ = None  # type: ignore[assignment]

    def get_id(self) -> Any:
        pk = self._meta.primary_key
        if pk is None:
            return None
        return getattr(self, pk.require_name())

    def assigned_fields(self) -> Set[str]:
        """
        Names of the fields set explicitly, either through the constructor or
        by attribute assignment.
        """
        return set(self._assigned)

    def to_dict(self, *, assigned_only: bool = False) -> Dict[str, Any]:
        """
        Column-keyed values in declaration order, ``None`` for unset fields.

        With ``assigned_only`` the fields that merely carry their default
        report ``None`` as well.
        """
        values: Dict[str, Any] = {}
        for field_obj in self._meta.get_fields():
            name = field_obj.require_name()
            if assigned_only and name not in self._assigned:
                values[field_obj.column_name()] = None
            else:
                values[field_obj.column_name()] = field_obj.to_db(getattr(self, name))
        return values

    @classmethod
    def table_name(cls) -> str:
        return cls._meta.table_name

    @classmethod
    def table_fields(cls) -> str:
        return ",".join(cls._meta.columns()) or WILDCARD_FIELDS

    @classmethod
    def id_column(cls) -> str:
        return cls._meta.id_column


def is_entity_type(entity_type: Any) -> bool:
    return isinstance(entity_type, EntityMeta) and hasattr(entity_type, "_meta")


def table_name(entity_type: type) -> str:
    """
    Table for ``entity_type``: an explicit ``table_name`` attribute or
    classmethod when present, else the snake-cased class name.
    """
    custom = getattr(entity_type, "table_name", None)
    if callable(custom):
        return custom()
    if isinstance(custom, str) and custom:
        return custom
    return camel_to_snake(entity_type.__name__)


def table_fields(entity_type: type) -> str:
    """
    Comma-joined column list for ``entity_type``.

    Types without static metadata are discovered by serializing a
    default-constructed instance; when that is impossible the wildcard is
    used instead.
    """
    if is_entity_type(entity_type):
        return entity_type.table_fields()
    custom = getattr(entity_type, "table_fields", None)
    if callable(custom):
        return custom()
    if isinstance(custom, str) and custom:
        return custom

    from ..errors import SerializationError
    from ..mapping.codec import to_value_map

    try:
        value_map = to_value_map(entity_type())
    except (TypeError, ValueError, SerializationError) as exc:
        logger.debug(
            "Falling back to '%s' for %s: %s", WILDCARD_FIELDS, entity_type.__name__, exc
        )
        return WILDCARD_FIELDS
    return ",".join(value_map) or WILDCARD_FIELDS


def id_column(entity_type: type) -> str:
    custom = getattr(entity_type, "id_column", None)
    if callable(custom):
        return custom()
    if isinstance(custom, str) and custom:
        return custom
    return DEFAULT_ID_COLUMN
