"""
Entity building blocks: fields, metadata and identifier helpers.
"""

from .entity import (
    Entity,
    EntityConfigurationError,
    EntityMeta,
    EntityOptions,
    id_column,
    is_entity_type,
    table_fields,
    table_name,
)
from .fields import (
    AutoField,
    BooleanField,
    DateTimeField,
    Field,
    FloatField,
    IntegerField,
    StringField,
)
from .ids import HasId, to_ids

__all__ = [
    "AutoField",
    "BooleanField",
    "DateTimeField",
    "Entity",
    "EntityConfigurationError",
    "EntityMeta",
    "EntityOptions",
    "Field",
    "FloatField",
    "HasId",
    "IntegerField",
    "StringField",
    "id_column",
    "is_entity_type",
    "table_fields",
    "table_name",
    "to_ids",
]
