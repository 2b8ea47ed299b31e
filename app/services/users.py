"""User lifecycle: identity sync, lookup, activation and search."""

import logging
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.adapters.cache.null import NullMatchCache
from app.adapters.repositories.errors import translate_storage_errors
from app.adapters.repositories.sqlalchemy_profiles import SqlAlchemyProfileRepository
from app.api.schemas import UserSummary
from app.domain.errors import AlreadyExistsError, NotFoundError
from app.domain.models import User
from app.domain.pagination import Page
from app.ports.cache import MatchCachePort
from app.ports.repositories import ProfileRepositoryPort, UserSearchCriteria

logger = logging.getLogger(__name__)


class UserService:
    """Keeps the local user table in step with the identity provider."""

    def __init__(
        self,
        session: AsyncSession,
        cache: MatchCachePort | None = None,
        profiles: ProfileRepositoryPort | None = None,
    ) -> None:
        self._session = session
        self._cache = cache if cache is not None else NullMatchCache()
        self._profiles = profiles or SqlAlchemyProfileRepository(session)

    async def sync_user(
        self,
        user_id: UUID,
        username: str,
        email: str,
        first_name: str | None = None,
        last_name: str | None = None,
    ) -> User:
        """Create or update a user from identity claims; syncing re-activates."""
        user = await self._profiles.get_user_by_id(user_id)
        if user is None:
            logger.info("Creating new user from identity provider: %s", user_id)
            user = User(id=user_id, location=None, artist_profile=None, producer_profile=None)
            self._session.add(user)
        else:
            logger.info("Updating existing user from identity provider: %s", user_id)

        user.username = username
        user.email = email
        user.first_name = first_name
        user.last_name = last_name
        user.active = True

        try:
            await self._session.commit()
        except IntegrityError as exc:
            await self._session.rollback()
            logger.warning("Sync for %s conflicts with an existing username or email", user_id)
            raise AlreadyExistsError("Username or email already registered to another user") from exc
        self._cache.clear()
        return user

    async def get_user(self, user_id: UUID) -> User:
        user = await self._profiles.get_user_by_id(user_id)
        if user is None:
            raise NotFoundError(f"User not found with ID: {user_id}")
        return user

    async def get_user_by_username(self, username: str) -> User:
        user = await self._profiles.get_user_by_username(username)
        if user is None:
            raise NotFoundError(f"User not found with username: {username}")
        return user

    async def update_location(self, user_id: UUID, location: str | None) -> User:
        user = await self.get_user(user_id)
        user.location = location
        with translate_storage_errors("update_location"):
            await self._session.commit()
        return user

    async def deactivate_user(self, user_id: UUID) -> None:
        await self._set_active(user_id, False)
        logger.info("Deactivated user with ID: %s", user_id)

    async def reactivate_user(self, user_id: UUID) -> None:
        await self._set_active(user_id, True)
        logger.info("Reactivated user with ID: %s", user_id)

    async def _set_active(self, user_id: UUID, active: bool) -> None:
        user = await self.get_user(user_id)
        user.active = active
        with translate_storage_errors("set_active"):
            await self._session.commit()
        # Candidate pools of every caller change with this user's status.
        self._cache.clear()

    async def search_users(
        self,
        caller_id: UUID,
        criteria: UserSearchCriteria,
        page: int,
        size: int,
    ) -> Page[UserSummary]:
        logger.debug("Searching users for %s with %s", caller_id, criteria)
        users = await self._profiles.search_users(caller_id, criteria, page, size)
        return Page(
            items=[UserSummary.model_validate(u) for u in users.items],
            total=users.total,
            page=users.page,
            size=users.size,
        )
