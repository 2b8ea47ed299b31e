from collections.abc import AsyncGenerator
from uuid import uuid4

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.adapters.cache.memory import MemoryMatchCache
from app.domain.models import ArtistProfile, Base, Genre, ProducerProfile, Skill, User

# In-memory database shared by every session of a test through one connection.
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
async def engine():
    """Fresh schema per test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest.fixture
async def session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as s:
        yield s


@pytest.fixture
def cache() -> MemoryMatchCache:
    return MemoryMatchCache(ttl_seconds=60)


@pytest.fixture
def make_user(session: AsyncSession):
    async def _make(
        username: str,
        *,
        active: bool = True,
        artist_profile: ArtistProfile | None = None,
        producer_profile: ProducerProfile | None = None,
    ) -> User:
        user = User(
            id=uuid4(),
            username=username,
            email=f"{username}@example.com",
            first_name=None,
            last_name=None,
            location=None,
            active=active,
            artist_profile=artist_profile,
            producer_profile=producer_profile,
        )
        session.add(user)
        await session.commit()
        return user

    return _make


@pytest.fixture
def make_genre(session: AsyncSession):
    async def _make(name: str) -> Genre:
        genre = Genre(id=uuid4(), name=name)
        session.add(genre)
        await session.commit()
        return genre

    return _make


@pytest.fixture
def make_skill(session: AsyncSession):
    async def _make(name: str) -> Skill:
        skill = Skill(id=uuid4(), name=name)
        session.add(skill)
        await session.commit()
        return skill

    return _make
