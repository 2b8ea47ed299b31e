"""Page container shared by repositories and services."""

from dataclasses import dataclass, field
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass
class Page(Generic[T]):
    """One zero-based page of a larger result set."""

    items: list[T] = field(default_factory=list)
    total: int = 0
    page: int = 0
    size: int = 20

    @property
    def total_pages(self) -> int:
        if self.size <= 0:
            return 0
        return (self.total + self.size - 1) // self.size

    @property
    def offset(self) -> int:
        return self.page * self.size


def slice_page(items: list[T], page: int, size: int) -> Page[T]:
    """Cut ``items`` (already fully ordered) down to the requested page."""
    start = page * size
    return Page(items=items[start : start + size], total=len(items), page=page, size=size)
