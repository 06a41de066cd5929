"""
Paging Model - Pagination, Sorting and Pages

📄 Bounded Result Sets:
Value objects shared by callers, the retrieval resolver and persistence
adapters. ``Pagination`` and ``Sort`` both have an "absent" sentinel so
adapters never receive ``None``.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Generic, Iterator, List, Optional, Sequence, Tuple, TypeVar, Union

T = TypeVar("T")
R = TypeVar("R")


class SortDirection(Enum):
    """Sort direction for ordering"""
    ASC = "asc"
    DESC = "desc"


@dataclass(frozen=True)
class Pagination:
    """
    Page request: zero-based page ``number`` and page ``size``.

    ``Pagination.unpaginated()`` is the sentinel meaning "every matching item,
    no slicing"; it carries ``number=0`` and ``size=None``.
    """
    number: int = 0
    size: Optional[int] = None

    def __post_init__(self):
        if self.number < 0:
            raise ValueError(f"Page number must be >= 0, got {self.number}")
        if self.size is None:
            if self.number != 0:
                raise ValueError("Unpaginated requests cannot select a page number")
        elif self.size <= 0:
            raise ValueError(f"Page size must be > 0, got {self.size}")

    @classmethod
    def of(cls, number: int, size: int) -> "Pagination":
        return cls(number=number, size=size)

    @classmethod
    def unpaginated(cls) -> "Pagination":
        return UNPAGINATED

    @property
    def is_paginated(self) -> bool:
        return self.size is not None

    @property
    def offset(self) -> int:
        return self.number * self.size if self.size is not None else 0

    @property
    def limit(self) -> Optional[int]:
        return self.size

    def next(self) -> "Pagination":
        if not self.is_paginated:
            return self
        return Pagination(self.number + 1, self.size)


UNPAGINATED = Pagination()


@dataclass(frozen=True)
class Order:
    """Single sort criterion"""
    property: str
    direction: SortDirection = SortDirection.ASC

    @property
    def is_ascending(self) -> bool:
        return self.direction == SortDirection.ASC

    @classmethod
    def asc(cls, property: str) -> "Order":
        return cls(property, SortDirection.ASC)

    @classmethod
    def desc(cls, property: str) -> "Order":
        return cls(property, SortDirection.DESC)

    @classmethod
    def parse(cls, text: str) -> "Order":
        """Parse ``"name"`` / ``"-name"`` / ``"name,desc"`` into an order."""
        text = text.strip()
        if not text:
            raise ValueError("Sort property cannot be empty")
        if "," in text:
            name, _, direction = text.partition(",")
            return cls(name.strip(), SortDirection(direction.strip().lower()))
        if text.startswith("-"):
            return cls(text[1:].strip(), SortDirection.DESC)
        if text.startswith("+"):
            return cls(text[1:].strip(), SortDirection.ASC)
        return cls(text, SortDirection.ASC)


@dataclass(frozen=True)
class Sort:
    """Ordered list of sort criteria; empty means storage-defined order"""
    orders: Tuple[Order, ...] = ()

    def __post_init__(self):
        # lists are accepted for convenience but stored as a tuple
        object.__setattr__(self, "orders", tuple(self.orders))

    @classmethod
    def unsorted(cls) -> "Sort":
        return UNSORTED

    @classmethod
    def by(cls, *orders: Union[str, Order]) -> "Sort":
        return cls(tuple(o if isinstance(o, Order) else Order.parse(o) for o in orders))

    @property
    def is_sorted(self) -> bool:
        return bool(self.orders)

    def __iter__(self) -> Iterator[Order]:
        return iter(self.orders)

    def __len__(self) -> int:
        return len(self.orders)


UNSORTED = Sort()


@dataclass(frozen=True)
class Page(Generic[T]):
    """
    A bounded result set plus the request metadata that produced it.

    Invariants checked on construction:
    - ``len(content) <= pagination.size`` when paginated
    - ``total_elements >= len(content)``
    """
    content: List[T] = field(default_factory=list)
    pagination: Pagination = UNPAGINATED
    sort: Sort = UNSORTED
    total_elements: int = 0

    def __post_init__(self):
        object.__setattr__(self, "content", list(self.content))
        if self.pagination.is_paginated and len(self.content) > self.pagination.size:
            raise ValueError(
                f"Page content has {len(self.content)} items, more than page size {self.pagination.size}"
            )
        if self.total_elements < len(self.content):
            raise ValueError(
                f"total_elements ({self.total_elements}) is smaller than content size ({len(self.content)})"
            )

    @classmethod
    def of(cls, content: Sequence[T], pagination: Optional[Pagination] = None,
           sort: Optional[Sort] = None, total_elements: Optional[int] = None) -> "Page[T]":
        """Build a page; ``total_elements`` defaults to ``len(content)``."""
        content = list(content)
        return cls(
            content=content,
            pagination=pagination or UNPAGINATED,
            sort=sort or UNSORTED,
            total_elements=len(content) if total_elements is None else total_elements,
        )

    @classmethod
    def empty(cls, pagination: Optional[Pagination] = None, sort: Optional[Sort] = None) -> "Page[T]":
        return cls.of([], pagination, sort, 0)

    def with_content(self, content: Sequence[R]) -> "Page[R]":
        """Same metadata, different items (used after mapping)."""
        return Page(list(content), self.pagination, self.sort, self.total_elements)

    def map(self, mapper: Callable[[T], R]) -> "Page[R]":
        return self.with_content([mapper(item) for item in self.content])

    @property
    def number_of_elements(self) -> int:
        return len(self.content)

    @property
    def total_pages(self) -> int:
        if not self.pagination.is_paginated:
            return 1
        return math.ceil(self.total_elements / self.pagination.size)

    @property
    def is_first(self) -> bool:
        return self.pagination.number == 0

    @property
    def has_next(self) -> bool:
        return self.pagination.is_paginated and self.pagination.number + 1 < self.total_pages

    @property
    def is_last(self) -> bool:
        return not self.has_next

    def __len__(self) -> int:
        return len(self.content)

    def __iter__(self) -> Iterator[T]:
        return iter(self.content)

    def __getitem__(self, index):
        return self.content[index]


# Export main components
__all__ = [
    "SortDirection", "Pagination", "UNPAGINATED", "Order", "Sort", "UNSORTED", "Page"
]
