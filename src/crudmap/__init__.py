"""
crudmap public package initialization.

Entities, predicates and the async :class:`Session` are exported here; the
adapters and dialects stay importable from their subpackages.
"""

from .connection import connect  # noqa: F401
from .core import (  # noqa: F401
    AutoField,
    BooleanField,
    DateTimeField,
    Entity,
    EntityConfigurationError,
    Field,
    FloatField,
    IntegerField,
    StringField,
    to_ids,
)
from .dialects import Dialect, MySQLDialect, PostgresDialect, SQLiteDialect  # noqa: F401
from .errors import (  # noqa: F401
    CrudError,
    DialectConversionError,
    EmptyFieldSetError,
    ExecutionError,
    MissingIdentifierError,
    PredicateError,
    SerializationError,
    TooManyRowsError,
)
from .persistence import AdapterExecutor, Executor, Page, PageRequest, Session  # noqa: F401
from .plugins import LogicDeletePolicy, SoftDelete  # noqa: F401
from .query import Wrapper  # noqa: F401

__all__ = [
    "AdapterExecutor",
    "AutoField",
    "BooleanField",
    "CrudError",
    "DateTimeField",
    "Dialect",
    "DialectConversionError",
    "EmptyFieldSetError",
    "Entity",
    "EntityConfigurationError",
    "ExecutionError",
    "Executor",
    "Field",
    "FloatField",
    "IntegerField",
    "LogicDeletePolicy",
    "MissingIdentifierError",
    "MySQLDialect",
    "Page",
    "PageRequest",
    "PostgresDialect",
    "PredicateError",
    "SQLiteDialect",
    "SerializationError",
    "Session",
    "SoftDelete",
    "StringField",
    "TooManyRowsError",
    "Wrapper",
    "connect",
    "to_ids",
]
