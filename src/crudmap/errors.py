"""
Error hierarchy for crudmap.

Builder-local errors (everything except :class:`ExecutionError`) are raised
before a statement reaches the executor.
"""

from __future__ import annotations


class CrudError(Exception):
    """Base error for crudmap failures."""


class SerializationError(CrudError):
    """Raised when an entity does not serialize to a flat column mapping."""


class EmptyFieldSetError(CrudError):
    """Raised when a statement would carry no columns."""


class MissingIdentifierError(CrudError):
    """Raised when an identifier-based update has no identifier value."""


class DialectConversionError(CrudError):
    """Raised when a dialect cannot rewrite a temporal value."""


class PredicateError(CrudError):
    """Raised by :meth:`Wrapper.check` for malformed predicates."""


class ExecutionError(CrudError):
    """Raised by the execution layer; never produced by statement builders."""


class TooManyRowsError(ExecutionError):
    """Raised when a single-record fetch matches more than one row."""
