"""
Identifier extraction for collections of entities.
"""

from __future__ import annotations

from typing import Any, Iterable, List, Optional, Protocol, TypeVar

IdT = TypeVar("IdT", covariant=True)


class HasId(Protocol[IdT]):
    def get_id(self) -> Optional[IdT]: ...


def to_ids(entities: Iterable[HasId[Any]]) -> List[Any]:
    """
    Return the present identifiers of ``entities`` in input order.

    Entities without an identifier are skipped; compare lengths when every
    entity must carry one.
    """
    ids: List[Any] = []
    for entity in entities:
        value = entity.get_id()
        if value is not None:
            ids.append(value)
    return ids
