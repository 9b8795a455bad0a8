"""
Pagination request and result types.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Generic, List, TypeVar

T = TypeVar("T")
U = TypeVar("U")


@dataclass(frozen=True)
class PageRequest:
    page_no: int = 1
    page_size: int = 10

    def __post_init__(self) -> None:
        if self.page_no < 1:
            raise ValueError(f"page_no must be >= 1, got {self.page_no}")
        if self.page_size < 1:
            raise ValueError(f"page_size must be >= 1, got {self.page_size}")

    @property
    def offset(self) -> int:
        return (self.page_no - 1) * self.page_size


@dataclass
class Page(Generic[T]):
    records: List[T] = field(default_factory=list)
    total: int = 0
    page_no: int = 1
    page_size: int = 10

    @property
    def pages(self) -> int:
        if self.total == 0:
            return 0
        return -(-self.total // self.page_size)

    def map(self, func: Callable[[T], U]) -> "Page[U]":
        return Page(
            records=[func(record) for record in self.records],
            total=self.total,
            page_no=self.page_no,
            page_size=self.page_size,
        )
