"""Match cache port."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from uuid import UUID

from app.domain.pagination import Page


@dataclass(frozen=True)
class MatchCacheKey:
    caller_id: UUID
    page: int
    size: int
    sort: str


class MatchCachePort(ABC):
    """
    Storage for ``find_matches`` results, invalidated on state changes.

    A page is computed from reads that may predate a concurrent mutation.
    Callers read ``generation`` before computing and hand it to ``set``; a
    write whose generation has moved on in the meantime is discarded.
    """

    @abstractmethod
    def get(self, key: MatchCacheKey) -> Page | None:
        ...

    @abstractmethod
    def set(self, key: MatchCacheKey, value: Page, generation: int | None = None) -> None:
        ...

    @abstractmethod
    def generation(self, user_id: UUID) -> int:
        """Counter that grows whenever ``user_id``'s pages are invalidated."""
        ...

    @abstractmethod
    def invalidate_user(self, user_id: UUID) -> None:
        """Drop every cached page computed for ``user_id``."""
        ...

    @abstractmethod
    def clear(self) -> None:
        ...
