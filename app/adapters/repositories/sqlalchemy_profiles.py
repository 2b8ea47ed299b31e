"""SQLAlchemy implementation of the profile repository."""

import logging
from uuid import UUID

from sqlalchemy import Select, and_, delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.adapters.repositories.errors import translate_storage_errors
from app.domain.models import (
    ArtistProfile,
    ProducerProfile,
    User,
    UserBlock,
    artist_genres,
    artist_skills,
    producer_genres,
)
from app.domain.pagination import Page
from app.ports.repositories import ProfileRepositoryPort, UserSearchCriteria

logger = logging.getLogger(__name__)


class SqlAlchemyProfileRepository(ProfileRepositoryPort):
    """Users, profiles and blocks stored in the relational database."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_user_by_id(self, user_id: UUID) -> User | None:
        with translate_storage_errors("get_user_by_id"):
            return await self._session.get(User, user_id)

    async def get_user_by_username(self, username: str) -> User | None:
        with translate_storage_errors("get_user_by_username"):
            result = await self._session.execute(select(User).where(User.username == username))
            return result.scalar_one_or_none()

    async def lock_users(self, *user_ids: UUID) -> None:
        with translate_storage_errors("lock_users"):
            await self._session.execute(lock_users_statement(user_ids))

    async def find_active_users_excluding(self, excluded_ids: set[UUID]) -> list[User]:
        stmt = select(User).where(User.active.is_(True))
        if excluded_ids:
            stmt = stmt.where(User.id.not_in(excluded_ids))
        with translate_storage_errors("find_active_users_excluding"):
            result = await self._session.execute(stmt)
            users = list(result.scalars().all())
        logger.debug("Loaded %d active candidates (%d excluded)", len(users), len(excluded_ids))
        return users

    async def get_blocker_ids_of(self, user_id: UUID) -> set[UUID]:
        with translate_storage_errors("get_blocker_ids_of"):
            result = await self._session.execute(
                select(UserBlock.blocker_id).where(UserBlock.blocked_id == user_id)
            )
            return set(result.scalars().all())

    async def get_blocked_ids_by(self, user_id: UUID) -> set[UUID]:
        with translate_storage_errors("get_blocked_ids_by"):
            result = await self._session.execute(
                select(UserBlock.blocked_id).where(UserBlock.blocker_id == user_id)
            )
            return set(result.scalars().all())

    async def has_block(self, blocker_id: UUID, blocked_id: UUID) -> bool:
        stmt = select(UserBlock.blocker_id).where(
            UserBlock.blocker_id == blocker_id,
            UserBlock.blocked_id == blocked_id,
        )
        with translate_storage_errors("has_block"):
            return await self._session.scalar(stmt) is not None

    async def add_block(self, blocker_id: UUID, blocked_id: UUID) -> None:
        with translate_storage_errors("add_block"):
            self._session.add(UserBlock(blocker_id=blocker_id, blocked_id=blocked_id))
            await self._session.flush()

    async def remove_block(self, blocker_id: UUID, blocked_id: UUID) -> bool:
        with translate_storage_errors("remove_block"):
            result = await self._session.execute(
                delete(UserBlock).where(
                    UserBlock.blocker_id == blocker_id,
                    UserBlock.blocked_id == blocked_id,
                )
            )
        return result.rowcount > 0

    async def list_blocked(self, blocker_id: UUID, page: int, size: int) -> Page[User]:
        base = (
            select(User)
            .join(UserBlock, UserBlock.blocked_id == User.id)
            .where(UserBlock.blocker_id == blocker_id)
        )
        return await self._paginate(base, page, size, "list_blocked")

    async def search_users(
        self,
        caller_id: UUID,
        criteria: UserSearchCriteria,
        page: int,
        size: int,
    ) -> Page[User]:
        conditions = [User.active.is_(True), User.id != caller_id]

        if criteria.search_term and criteria.search_term.strip():
            pattern = f"%{criteria.search_term.strip().lower()}%"
            conditions.append(
                or_(
                    func.lower(User.username).like(pattern),
                    func.lower(User.first_name).like(pattern),
                    func.lower(User.last_name).like(pattern),
                )
            )

        has_artist = select(ArtistProfile.user_id).where(ArtistProfile.user_id == User.id).exists()
        has_producer = select(ProducerProfile.user_id).where(ProducerProfile.user_id == User.id).exists()
        if criteria.has_artist_profile is not None:
            conditions.append(has_artist if criteria.has_artist_profile else ~has_artist)
        if criteria.has_producer_profile is not None:
            conditions.append(has_producer if criteria.has_producer_profile else ~has_producer)

        artist_filters = []
        if criteria.artist_experience_level is not None:
            artist_filters.append(ArtistProfile.experience_level == criteria.artist_experience_level)
        if criteria.artist_availability is not None:
            artist_filters.append(ArtistProfile.availability.is_(criteria.artist_availability))
        if artist_filters:
            conditions.append(
                select(ArtistProfile.user_id)
                .where(ArtistProfile.user_id == User.id, *artist_filters)
                .exists()
            )

        producer_filters = []
        if criteria.producer_experience_level is not None:
            producer_filters.append(ProducerProfile.experience_level == criteria.producer_experience_level)
        if criteria.producer_availability is not None:
            producer_filters.append(ProducerProfile.availability.is_(criteria.producer_availability))
        if producer_filters:
            conditions.append(
                select(ProducerProfile.user_id)
                .where(ProducerProfile.user_id == User.id, *producer_filters)
                .exists()
            )

        if criteria.genre_ids:
            artist_genre = (
                select(artist_genres.c.artist_profile_id)
                .where(
                    artist_genres.c.artist_profile_id == User.id,
                    artist_genres.c.genre_id.in_(criteria.genre_ids),
                )
                .exists()
            )
            producer_genre = (
                select(producer_genres.c.producer_profile_id)
                .where(
                    producer_genres.c.producer_profile_id == User.id,
                    producer_genres.c.genre_id.in_(criteria.genre_ids),
                )
                .exists()
            )
            conditions.append(or_(artist_genre, producer_genre))

        if criteria.skill_ids:
            conditions.append(
                select(artist_skills.c.artist_profile_id)
                .where(
                    artist_skills.c.artist_profile_id == User.id,
                    artist_skills.c.skill_id.in_(criteria.skill_ids),
                )
                .exists()
            )

        return await self._paginate(select(User).where(and_(*conditions)), page, size, "search_users")

    async def _paginate(self, stmt, page: int, size: int, operation: str) -> Page[User]:
        with translate_storage_errors(operation):
            total = await self._session.scalar(select(func.count()).select_from(stmt.subquery()))
            result = await self._session.execute(
                stmt.order_by(User.username, User.id).offset(page * size).limit(size)
            )
            items = list(result.scalars().all())
        return Page(items=items, total=total or 0, page=page, size=size)


def lock_users_statement(user_ids) -> Select:
    """Row locks over ``user_ids``, taken in id order."""
    return select(User.id).where(User.id.in_(set(user_ids))).order_by(User.id).with_for_update()
