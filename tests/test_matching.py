"""Collaborator ranking and its cache contract."""

from uuid import uuid4

import pytest

from app.adapters.repositories.sqlalchemy_profiles import SqlAlchemyProfileRepository
from app.domain.enums import ExperienceLevel
from app.domain.errors import NotFoundError
from app.services.interaction import InteractionService
from app.services.matching import MatchingService
from app.services.users import UserService
from tests.factories import artist, producer


@pytest.fixture
async def rock_scene(make_user, make_genre):
    """A producer and two artists: one close fit, one distant."""
    rock = await make_genre("Rock")
    jazz = await make_genre("Jazz")
    producer_user = await make_user("paula", producer_profile=producer(ExperienceLevel.EXPERT, [rock]))
    close = await make_user(
        "brian", artist_profile=artist(ExperienceLevel.EXPERT, [rock], available=True)
    )
    distant = await make_user("carla", artist_profile=artist(ExperienceLevel.BEGINNER, [jazz]))
    return producer_user, close, distant


@pytest.mark.asyncio
async def test_complementary_scores(session, rock_scene):
    paula, brian, carla = rock_scene

    ranked = await MatchingService(session).rank(paula.id)

    assert [(m.user.username, m.score) for m in ranked] == [("brian", 38.0), ("carla", 10.0)]


@pytest.mark.asyncio
async def test_find_matches_page(session, rock_scene):
    paula, _, _ = rock_scene

    page = await MatchingService(session).find_matches(paula.id, 0, 20)

    assert [u.username for u in page.items] == ["brian", "carla"]
    assert page.total == 2
    assert page.page == 0


@pytest.mark.asyncio
async def test_blocked_users_excluded_both_ways(session, rock_scene, make_user):
    paula, brian, carla = rock_scene
    dan = await make_user("dan")
    interactions = InteractionService(session)
    await interactions.block_user(paula.id, brian.id)
    await interactions.block_user(carla.id, paula.id)

    page = await MatchingService(session).find_matches(paula.id)

    assert [u.username for u in page.items] == ["dan"]


@pytest.mark.asyncio
async def test_inactive_candidates_excluded(session, rock_scene, make_user):
    paula, _, _ = rock_scene
    await make_user("zed", active=False)

    page = await MatchingService(session).find_matches(paula.id)

    assert "zed" not in [u.username for u in page.items]


@pytest.mark.asyncio
async def test_connected_candidate_penalised(session, rock_scene):
    paula, brian, carla = rock_scene
    interactions = InteractionService(session)
    await interactions.send_connection_request(paula.id, brian.id)
    await interactions.accept_connection_request(brian.id, paula.id)

    ranked = await MatchingService(session).rank(paula.id)

    assert [(m.user.username, m.score) for m in ranked] == [("brian", 28.0), ("carla", 10.0)]


@pytest.mark.asyncio
async def test_pending_request_not_penalised(session, rock_scene):
    paula, brian, _ = rock_scene
    await InteractionService(session).send_connection_request(paula.id, brian.id)

    ranked = await MatchingService(session).rank(paula.id)

    assert ranked[0].score == 38.0


@pytest.mark.asyncio
async def test_ties_break_on_username(session, make_user):
    caller = await make_user("caller")
    for name in ("mia", "ada", "zoe", "kim"):
        await make_user(name)

    page = await MatchingService(session).find_matches(caller.id)

    assert [u.username for u in page.items] == ["ada", "kim", "mia", "zoe"]


@pytest.mark.asyncio
async def test_caller_without_profile_still_gets_results(session, make_user):
    caller = await make_user("caller")
    await make_user("other", artist_profile=artist(available=True))

    ranked = await MatchingService(session).rank(caller.id)

    assert [(m.user.username, m.score) for m in ranked] == [("other", 0.0)]


@pytest.mark.asyncio
async def test_pages_are_exact_slices(session, make_user, make_genre):
    pop = await make_genre("Pop")
    caller = await make_user("caller", producer_profile=producer(ExperienceLevel.ADVANCED, [pop]))
    levels = list(ExperienceLevel)
    for i in range(7):
        await make_user(
            f"artist{i}",
            artist_profile=artist(levels[i % len(levels)], [pop] if i % 2 else [], available=i % 3 == 0),
        )
    service = MatchingService(session)

    everything = await service.find_matches(caller.id, 0, 100)
    pages = [await service.find_matches(caller.id, p, 3) for p in range(3)]

    stitched = [u.id for page in pages for u in page.items]
    assert stitched == [u.id for u in everything.items]
    assert [len(p.items) for p in pages] == [3, 3, 1]
    assert all(p.total == 7 for p in pages)
    assert (await service.find_matches(caller.id, 5, 3)).items == []


@pytest.mark.asyncio
async def test_ranking_is_deterministic(session, rock_scene, make_user):
    paula, _, _ = rock_scene
    await make_user("ann")
    await make_user("bea")
    service = MatchingService(session)

    first = [u.id for u in (await service.find_matches(paula.id)).items]
    second = [u.id for u in (await service.find_matches(paula.id)).items]

    assert first == second


@pytest.mark.asyncio
async def test_unknown_caller(session):
    with pytest.raises(NotFoundError):
        await MatchingService(session).find_matches(uuid4())


@pytest.mark.asyncio
async def test_inactive_caller(session, make_user):
    ghost = await make_user("ghost", active=False)
    await make_user("other")
    with pytest.raises(NotFoundError):
        await MatchingService(session).find_matches(ghost.id)


# ── Cache ──────────────────────────────────────────


@pytest.mark.asyncio
async def test_results_are_cached(session, rock_scene, make_user, cache):
    paula, _, _ = rock_scene
    service = MatchingService(session, cache=cache)
    first = await service.find_matches(paula.id)

    # Not an interaction, so nothing invalidates the cached page.
    await make_user("newcomer")

    second = await service.find_matches(paula.id)
    assert [u.username for u in second.items] == [u.username for u in first.items] == ["brian", "carla"]


@pytest.mark.asyncio
async def test_cached_page_is_not_shared_between_callers(session, rock_scene, cache):
    paula, _, _ = rock_scene
    service = MatchingService(session, cache=cache)
    first = await service.find_matches(paula.id)

    first.items.clear()

    second = await service.find_matches(paula.id)
    assert [u.username for u in second.items] == ["brian", "carla"]


class BlockDuringRanking(SqlAlchemyProfileRepository):
    """Lets a competing mutation commit while the candidate pool is being read."""

    def __init__(self, session, competing):
        super().__init__(session)
        self._competing = competing

    async def find_active_users_excluding(self, excluded_ids):
        if self._competing is not None:
            competing, self._competing = self._competing, None
            await competing()
        return await super().find_active_users_excluding(excluded_ids)


@pytest.mark.asyncio
async def test_block_committed_during_ranking_is_not_cached(session, session_factory, make_user, cache):
    alice = await make_user("alice")
    bob = await make_user("bob")
    alice_id, bob_id = alice.id, bob.id

    async def block_from_another_tab():
        async with session_factory() as other:
            await InteractionService(other, cache=cache).block_user(alice_id, bob_id)

    racing = MatchingService(session, cache=cache, profiles=BlockDuringRanking(session, block_from_another_tab))
    in_flight = await racing.find_matches(alice_id)
    assert [u.username for u in in_flight.items] == ["bob"]

    page = await MatchingService(session, cache=cache).find_matches(alice_id)
    assert page.items == []


@pytest.mark.asyncio
async def test_block_invalidates_callers_cache(session, rock_scene, cache):
    paula, brian, _ = rock_scene
    interactions = InteractionService(session, cache=cache)
    service = MatchingService(session, interactions=interactions, cache=cache)
    before = await service.find_matches(paula.id)
    assert "brian" in [u.username for u in before.items]

    await interactions.block_user(paula.id, brian.id)

    after = await service.find_matches(paula.id)
    assert [u.username for u in after.items] == ["carla"]


@pytest.mark.asyncio
async def test_block_invalidates_blocked_users_cache(session, rock_scene, cache):
    paula, brian, _ = rock_scene
    interactions = InteractionService(session, cache=cache)
    service = MatchingService(session, interactions=interactions, cache=cache)
    await service.find_matches(brian.id)

    await interactions.block_user(paula.id, brian.id)

    after = await service.find_matches(brian.id)
    assert "paula" not in [u.username for u in after.items]


@pytest.mark.asyncio
async def test_accept_invalidates_cache(session, rock_scene, cache):
    paula, brian, _ = rock_scene
    interactions = InteractionService(session, cache=cache)
    service = MatchingService(session, interactions=interactions, cache=cache)
    await interactions.send_connection_request(paula.id, brian.id)
    await service.find_matches(paula.id)
    assert len(cache) == 1

    await interactions.accept_connection_request(brian.id, paula.id)
    assert len(cache) == 0

    ranked = await service.rank(paula.id)
    assert [(m.user.username, m.score) for m in ranked] == [("brian", 28.0), ("carla", 10.0)]


@pytest.mark.asyncio
async def test_deactivation_clears_cache(session, rock_scene, cache):
    paula, brian, _ = rock_scene
    service = MatchingService(session, cache=cache)
    await service.find_matches(paula.id)

    await UserService(session, cache=cache).deactivate_user(brian.id)

    after = await service.find_matches(paula.id)
    assert [u.username for u in after.items] == ["carla"]
