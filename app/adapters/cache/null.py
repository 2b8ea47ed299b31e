from uuid import UUID

from app.domain.pagination import Page
from app.ports.cache import MatchCacheKey, MatchCachePort


class NullMatchCache(MatchCachePort):
    """Cache that never stores anything; every lookup recomputes."""

    def get(self, key: MatchCacheKey) -> Page | None:
        return None

    def set(self, key: MatchCacheKey, value: Page, generation: int | None = None) -> None:
        pass

    def generation(self, user_id: UUID) -> int:
        return 0

    def invalidate_user(self, user_id: UUID) -> None:
        pass

    def clear(self) -> None:
        pass
