"""Artist and producer profile editing."""

import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.adapters.cache.null import NullMatchCache
from app.adapters.repositories.errors import translate_storage_errors
from app.api.schemas import ProfileUpdateRequest
from app.domain.enums import ProfileKind
from app.domain.errors import (
    InvalidRequestError,
    LimitExceededError,
    NotFoundError,
)
from app.domain.models import ArtistProfile, Genre, ProducerProfile, Skill, User
from app.ports.cache import MatchCachePort

logger = logging.getLogger(__name__)

MAX_GENRES = 10
MAX_SKILLS = 5


class ProfileService:
    """
    Edits one kind of profile (artist or producer) for a user.

    Any change can move the user up or down in other users' match lists, so
    every successful edit clears the match cache.
    """

    def __init__(
        self,
        session: AsyncSession,
        kind: ProfileKind,
        cache: MatchCachePort | None = None,
    ) -> None:
        self._session = session
        self._kind = kind
        self._cache = cache if cache is not None else NullMatchCache()

    @property
    def _attr(self) -> str:
        return f"{self._kind.value}_profile"

    async def _get_user(self, user_id: UUID) -> User:
        with translate_storage_errors("get_user"):
            user = await self._session.get(User, user_id)
        if user is None:
            raise NotFoundError(f"User not found with ID: {user_id}")
        return user

    async def get_profile(self, user_id: UUID) -> ArtistProfile | ProducerProfile:
        user = await self._get_user(user_id)
        profile = getattr(user, self._attr)
        if profile is None:
            logger.warning("%s profile not found for user ID: %s", self._kind.value, user_id)
            raise NotFoundError(f"{self._kind.value.capitalize()} profile not found for user ID: {user_id}")
        return profile

    async def create_or_update(
        self, user_id: UUID, data: ProfileUpdateRequest
    ) -> ArtistProfile | ProducerProfile:
        logger.info("Creating or updating %s profile for user ID: %s", self._kind.value, user_id)
        user = await self._get_user(user_id)
        profile = getattr(user, self._attr)

        if profile is None:
            if data.experience_level is None:
                raise InvalidRequestError("Experience level is required for new profile creation.")
            if self._kind is ProfileKind.ARTIST:
                profile = ArtistProfile(availability=False, bio=None, genres=[], skills=[])
            else:
                profile = ProducerProfile(availability=False, bio=None, genres=[])
            setattr(user, self._attr, profile)

        self._apply(profile, data)
        await self._commit()
        return profile

    async def patch(self, user_id: UUID, data: ProfileUpdateRequest) -> ArtistProfile | ProducerProfile:
        logger.info("Patching %s profile for user ID: %s", self._kind.value, user_id)
        profile = await self.get_profile(user_id)
        self._apply(profile, data)
        await self._commit()
        return profile

    @staticmethod
    def _apply(profile: ArtistProfile | ProducerProfile, data: ProfileUpdateRequest) -> None:
        if data.availability is not None:
            profile.availability = data.availability
        if data.bio is not None:
            profile.bio = data.bio
        if data.experience_level is not None:
            profile.experience_level = data.experience_level

    # ── Genres ─────────────────────────────────────

    async def add_genre(self, user_id: UUID, genre_id: UUID) -> ArtistProfile | ProducerProfile:
        logger.info("Adding genre %s to %s profile of %s", genre_id, self._kind.value, user_id)
        profile = await self.get_profile(user_id)
        genre = await self._get_reference(Genre, genre_id)
        if genre in profile.genres:
            return profile
        if len(profile.genres) >= MAX_GENRES:
            raise LimitExceededError(
                f"Cannot add more than {MAX_GENRES} genres to a {self._kind.value} profile."
            )
        profile.genres.append(genre)
        await self._commit()
        return profile

    async def remove_genre(self, user_id: UUID, genre_id: UUID) -> ArtistProfile | ProducerProfile:
        logger.info("Removing genre %s from %s profile of %s", genre_id, self._kind.value, user_id)
        profile = await self.get_profile(user_id)
        genre = await self._get_reference(Genre, genre_id)
        if genre in profile.genres:
            profile.genres.remove(genre)
            await self._commit()
        return profile

    async def list_genres(self, user_id: UUID) -> list[Genre]:
        profile = await self.get_profile(user_id)
        return sorted(profile.genres, key=lambda g: g.name.lower())

    # ── Skills (artist only) ───────────────────────

    async def add_skill(self, user_id: UUID, skill_id: UUID) -> ArtistProfile:
        self._require_artist()
        logger.info("Adding skill %s to artist profile of %s", skill_id, user_id)
        profile = await self.get_profile(user_id)
        skill = await self._get_reference(Skill, skill_id)
        if skill in profile.skills:
            return profile
        if len(profile.skills) >= MAX_SKILLS:
            raise LimitExceededError(f"Cannot add more than {MAX_SKILLS} skills to an artist profile.")
        profile.skills.append(skill)
        await self._commit()
        return profile

    async def remove_skill(self, user_id: UUID, skill_id: UUID) -> ArtistProfile:
        self._require_artist()
        logger.info("Removing skill %s from artist profile of %s", skill_id, user_id)
        profile = await self.get_profile(user_id)
        skill = await self._get_reference(Skill, skill_id)
        if skill in profile.skills:
            profile.skills.remove(skill)
            await self._commit()
        return profile

    async def list_skills(self, user_id: UUID) -> list[Skill]:
        self._require_artist()
        profile = await self.get_profile(user_id)
        return sorted(profile.skills, key=lambda s: s.name.lower())

    def _require_artist(self) -> None:
        if self._kind is not ProfileKind.ARTIST:
            raise InvalidRequestError("Skills are only available on artist profiles.")

    async def _get_reference(self, model: type[Genre] | type[Skill], ref_id: UUID) -> Genre | Skill:
        with translate_storage_errors(f"get_{model.__tablename__}"):
            ref = await self._session.get(model, ref_id)
        if ref is None:
            raise NotFoundError(f"{model.__name__} not found with ID: {ref_id}")
        return ref

    async def _commit(self) -> None:
        with translate_storage_errors("commit"):
            await self._session.commit()
        self._cache.clear()
