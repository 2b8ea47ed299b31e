"""Collaborator matching: ranks every eligible user for a caller."""

import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.adapters.cache.null import NullMatchCache
from app.adapters.repositories.sqlalchemy_profiles import SqlAlchemyProfileRepository
from app.adapters.scoring.complementary import ComplementaryProfileScorer
from app.api.schemas import UserSummary
from app.domain.errors import NotFoundError
from app.domain.pagination import Page, slice_page
from app.ports.cache import MatchCacheKey, MatchCachePort
from app.ports.matcher import CallerContext, MatchScorerPort, ScoredCandidate
from app.ports.repositories import ProfileRepositoryPort
from app.services.interaction import InteractionService

logger = logging.getLogger(__name__)

DEFAULT_SORT = "score"


class MatchingService:
    """
    Read-only ranking of candidate collaborators.

    The whole active candidate pool is scored and sorted before the page is
    cut, so pages are exact slices of one deterministic ordering: score
    descending, then username, then user id.
    """

    def __init__(
        self,
        session: AsyncSession,
        interactions: InteractionService | None = None,
        cache: MatchCachePort | None = None,
        scorer: MatchScorerPort | None = None,
        profiles: ProfileRepositoryPort | None = None,
    ) -> None:
        self._profiles = profiles or SqlAlchemyProfileRepository(session)
        self._interactions = interactions or InteractionService(session, cache=cache, profiles=self._profiles)
        self._cache = cache if cache is not None else NullMatchCache()
        self._scorer = scorer or ComplementaryProfileScorer()

    async def find_matches(
        self,
        caller_id: UUID,
        page: int = 0,
        size: int = 20,
        sort: str = DEFAULT_SORT,
    ) -> Page[UserSummary]:
        key = MatchCacheKey(caller_id=caller_id, page=page, size=size, sort=sort)
        cached = self._cache.get(key)
        if cached is not None:
            logger.debug("Match cache hit for %s", key)
            return cached

        logger.info("Computing matches for user %s (page=%d, size=%d)", caller_id, page, size)
        # Read before ranking; a mutation committed meanwhile makes the write a no-op.
        generation = self._cache.generation(caller_id)
        ranked = [UserSummary.model_validate(m.user) for m in await self.rank(caller_id)]
        result = slice_page(ranked, page, size)
        self._cache.set(key, result, generation)
        return result

    async def rank(self, caller_id: UUID) -> list[ScoredCandidate]:
        """Score and order every eligible candidate for ``caller_id``; never cached."""
        caller = await self._profiles.get_user_by_id(caller_id)
        if caller is None or not caller.active:
            logger.warning("Match request for missing or inactive user %s", caller_id)
            raise NotFoundError(f"Active user not found for ID: {caller_id}")

        context = CallerContext.for_user(caller)

        excluded = await self._profiles.get_blocker_ids_of(caller_id)
        excluded |= await self._profiles.get_blocked_ids_by(caller_id)
        excluded.add(caller_id)

        candidates = await self._profiles.find_active_users_excluding(excluded)
        logger.info("Found %d potential candidates for user %s", len(candidates), caller_id)

        scored: list[ScoredCandidate] = []
        for candidate in candidates:
            connected = await self._interactions.has_accepted_connection(caller_id, candidate.id)
            scored.append(ScoredCandidate(candidate, self._scorer.score(context, candidate, connected)))

        scored.sort(key=lambda m: (-m.score, m.user.username, str(m.user.id)))
        return scored
