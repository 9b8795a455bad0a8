"""
Predicate construction for crudmap statements.
"""

from .wrapper import AND, OR, Wrapper, strip_connective

__all__ = ["AND", "OR", "Wrapper", "strip_connective"]
