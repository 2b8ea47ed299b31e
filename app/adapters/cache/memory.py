"""Process-local match cache with TTL expiry and LRU eviction."""

import logging
import threading
import time
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import replace
from uuid import UUID

from app.domain.pagination import Page
from app.ports.cache import MatchCacheKey, MatchCachePort

logger = logging.getLogger(__name__)


class MemoryMatchCache(MatchCachePort):
    """
    Keeps match pages in memory for ``ttl_seconds``.

    Entries are also dropped eagerly through ``invalidate_user`` / ``clear``
    whenever connection, block or profile state changes; the TTL only bounds
    staleness caused by changes this process never hears about.

    Pages are copied in and out, so callers never share a cached item list.
    """

    def __init__(
        self,
        ttl_seconds: float = 300.0,
        max_entries: int = 1024,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl = ttl_seconds
        self._max_entries = max_entries
        self._clock = clock
        self._entries: OrderedDict[MatchCacheKey, tuple[float, Page]] = OrderedDict()
        # Both counters only grow, so their sum changes on every invalidation.
        self._generations: dict[UUID, int] = {}
        self._cleared = 0
        self._lock = threading.Lock()

    def get(self, key: MatchCacheKey) -> Page | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, value = entry
            if expires_at <= self._clock():
                del self._entries[key]
                return None
            self._entries.move_to_end(key)
            return _copy(value)

    def set(self, key: MatchCacheKey, value: Page, generation: int | None = None) -> None:
        with self._lock:
            if generation is not None and generation != self._generation_of(key.caller_id):
                logger.debug("Discarding match page for %s computed before an invalidation", key.caller_id)
                return
            self._entries[key] = (self._clock() + self._ttl, _copy(value))
            self._entries.move_to_end(key)
            while len(self._entries) > self._max_entries:
                self._entries.popitem(last=False)

    def generation(self, user_id: UUID) -> int:
        with self._lock:
            return self._generation_of(user_id)

    def invalidate_user(self, user_id: UUID) -> None:
        with self._lock:
            self._generations[user_id] = self._generations.get(user_id, 0) + 1
            stale = [key for key in self._entries if key.caller_id == user_id]
            for key in stale:
                del self._entries[key]
        if stale:
            logger.debug("Invalidated %d cached match pages for %s", len(stale), user_id)

    def clear(self) -> None:
        with self._lock:
            self._cleared += 1
            self._entries.clear()
        logger.debug("Match cache cleared")

    def _generation_of(self, user_id: UUID) -> int:
        return self._cleared + self._generations.get(user_id, 0)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


def _copy(page: Page) -> Page:
    return replace(page, items=list(page.items))
