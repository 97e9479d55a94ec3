"""Page arithmetic and the page result envelope."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Callable, Generic, List, Tuple, TypeVar

__all__ = [
    "DEFAULT_PAGE_SIZE",
    "MAX_PAGE_SIZE",
    "MIN_PAGE_SIZE",
    "Page",
    "PageRequest",
    "paginate",
]

MIN_PAGE_SIZE = 1
MAX_PAGE_SIZE = 100
DEFAULT_PAGE_SIZE = 10

T = TypeVar("T")
U = TypeVar("U")


@dataclass(frozen=True)
class PageRequest:
    page_index: int = 0
    page_size: int = DEFAULT_PAGE_SIZE

    def normalized(self) -> "PageRequest":
        """Clamp size to [1, 100] and index to >= 0."""

        return PageRequest(
            page_index=max(0, int(self.page_index)),
            page_size=min(max(MIN_PAGE_SIZE, int(self.page_size)), MAX_PAGE_SIZE),
        )

    @property
    def offset(self) -> int:
        return self.page_index * self.page_size


def paginate(total_elements: int, page_index: int, page_size: int) -> Tuple[int, int]:
    """Return the ``[from_index, to_index)`` window for a normalized request.

    A page past the end yields an empty window at ``total_elements``.
    """

    from_index = page_index * page_size
    if from_index >= total_elements:
        return total_elements, total_elements
    return from_index, min(from_index + page_size, total_elements)


@dataclass(frozen=True)
class Page(Generic[T]):
    """Bounded slice of filtered results plus count metadata."""

    content: List[T] = field(default_factory=list)
    page_index: int = 0
    page_size: int = DEFAULT_PAGE_SIZE
    total_elements: int = 0

    @classmethod
    def empty(cls, request: PageRequest) -> "Page[T]":
        return cls(
            content=[],
            page_index=request.page_index,
            page_size=request.page_size,
            total_elements=0,
        )

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_elements / self.page_size)

    @property
    def has_next(self) -> bool:
        return self.page_index < self.total_pages - 1

    @property
    def has_previous(self) -> bool:
        return self.page_index > 0

    def map(self, transform: Callable[[T], U]) -> "Page[U]":
        return Page(
            content=[transform(item) for item in self.content],
            page_index=self.page_index,
            page_size=self.page_size,
            total_elements=self.total_elements,
        )
