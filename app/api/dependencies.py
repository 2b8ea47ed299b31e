"""FastAPI dependency providers for services and the match cache."""

from functools import lru_cache

from fastapi import Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.adapters.cache.memory import MemoryMatchCache
from app.adapters.cache.null import NullMatchCache
from app.config import CacheBackend, settings
from app.database import get_session
from app.domain.enums import ProfileKind
from app.ports.cache import MatchCachePort
from app.services.interaction import InteractionService
from app.services.matching import MatchingService
from app.services.profiles import ProfileService
from app.services.users import UserService


@lru_cache
def get_match_cache() -> MatchCachePort:
    """Process-wide match cache selected by ``settings.match_cache_backend``."""
    if settings.match_cache_backend == CacheBackend.NONE:
        return NullMatchCache()
    return MemoryMatchCache(
        ttl_seconds=settings.match_cache_ttl_seconds,
        max_entries=settings.match_cache_max_entries,
    )


class PageParams:
    def __init__(
        self,
        page: int = Query(0, ge=0),
        size: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    ) -> None:
        self.page = page
        self.size = size


def get_interaction_service(
    session: AsyncSession = Depends(get_session),
    cache: MatchCachePort = Depends(get_match_cache),
) -> InteractionService:
    return InteractionService(session, cache=cache)


def get_matching_service(
    session: AsyncSession = Depends(get_session),
    cache: MatchCachePort = Depends(get_match_cache),
) -> MatchingService:
    return MatchingService(session, cache=cache)


def get_user_service(
    session: AsyncSession = Depends(get_session),
    cache: MatchCachePort = Depends(get_match_cache),
) -> UserService:
    return UserService(session, cache=cache)


def get_artist_profile_service(
    session: AsyncSession = Depends(get_session),
    cache: MatchCachePort = Depends(get_match_cache),
) -> ProfileService:
    return ProfileService(session, ProfileKind.ARTIST, cache=cache)


def get_producer_profile_service(
    session: AsyncSession = Depends(get_session),
    cache: MatchCachePort = Depends(get_match_cache),
) -> ProfileService:
    return ProfileService(session, ProfileKind.PRODUCER, cache=cache)
