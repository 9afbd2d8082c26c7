import math
from dataclasses import dataclass
from typing import Generic, Sequence, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class PageRequest:
    page: int = 0
    size: int = 20

    @property
    def offset(self) -> int:
        return self.page * self.size

    def clamp(self, max_size: int) -> "PageRequest":
        return PageRequest(page=max(0, self.page), size=max(1, min(self.size, max_size)))


@dataclass(frozen=True)
class Page(Generic[T]):
    content: Sequence[T]
    total_elements: int
    number: int
    size: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_elements / self.size) if self.size else 0

    @property
    def first(self) -> bool:
        return self.number == 0

    @property
    def last(self) -> bool:
        return self.number >= self.total_pages - 1

    @property
    def number_of_elements(self) -> int:
        return len(self.content)
