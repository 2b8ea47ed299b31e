"""Connection and block state machine."""

from unittest.mock import AsyncMock
from uuid import uuid4

import pytest
from sqlalchemy import func, select
from sqlalchemy.dialects import postgresql

from app.adapters.repositories.sqlalchemy_connections import SqlAlchemyConnectionRepository
from app.adapters.repositories.sqlalchemy_profiles import SqlAlchemyProfileRepository, lock_users_statement
from app.domain.enums import ConnectionStatus, InteractionStatus
from app.domain.errors import (
    AlreadyExistsError,
    BlockedError,
    NotActiveError,
    NotFoundError,
    SelfReferenceError,
)
from app.domain.models import UserBlock, UserConnection
from app.services.interaction import InteractionService


async def _connection_count(session) -> int:
    return await session.scalar(select(func.count()).select_from(UserConnection))


# ── Requests ───────────────────────────────────────


@pytest.mark.asyncio
async def test_send_request_creates_pending(session, make_user):
    alice = await make_user("alice")
    bob = await make_user("bob")
    service = InteractionService(session)

    connection = await service.send_connection_request(alice.id, bob.id)

    assert connection.status == ConnectionStatus.PENDING
    assert connection.requester_id == alice.id
    assert connection.addressee_id == bob.id
    assert connection.request_timestamp is not None
    assert connection.accept_timestamp is None
    assert await service.check_interaction_status(alice.id, bob.id) == InteractionStatus.PENDING_OUTGOING
    assert await service.check_interaction_status(bob.id, alice.id) == InteractionStatus.PENDING_INCOMING


@pytest.mark.asyncio
async def test_send_request_to_self(session, make_user):
    alice = await make_user("alice")
    with pytest.raises(SelfReferenceError):
        await InteractionService(session).send_connection_request(alice.id, alice.id)


@pytest.mark.asyncio
async def test_send_request_unknown_user(session, make_user):
    alice = await make_user("alice")
    with pytest.raises(NotFoundError):
        await InteractionService(session).send_connection_request(alice.id, uuid4())


@pytest.mark.asyncio
async def test_send_request_to_inactive_user(session, make_user):
    alice = await make_user("alice")
    ghost = await make_user("ghost", active=False)
    with pytest.raises(NotActiveError):
        await InteractionService(session).send_connection_request(alice.id, ghost.id)
    assert await _connection_count(session) == 0


@pytest.mark.asyncio
async def test_send_request_blocked_either_way(session, make_user):
    alice = await make_user("alice")
    bob = await make_user("bob")
    service = InteractionService(session)
    await service.block_user(bob.id, alice.id)

    with pytest.raises(BlockedError):
        await service.send_connection_request(alice.id, bob.id)
    with pytest.raises(BlockedError):
        await service.send_connection_request(bob.id, alice.id)


@pytest.mark.asyncio
async def test_duplicate_request_in_either_direction(session, make_user):
    alice = await make_user("alice")
    bob = await make_user("bob")
    service = InteractionService(session)
    await service.send_connection_request(alice.id, bob.id)

    with pytest.raises(AlreadyExistsError):
        await service.send_connection_request(alice.id, bob.id)
    with pytest.raises(AlreadyExistsError):
        await service.send_connection_request(bob.id, alice.id)
    assert await _connection_count(session) == 1


@pytest.mark.asyncio
async def test_concurrent_reverse_request_loses_on_unique_pair(session, make_user):
    alice = await make_user("alice")
    bob = await make_user("bob")
    alice_id, bob_id = alice.id, bob.id
    await InteractionService(session).send_connection_request(alice_id, bob_id)

    # Simulate a request that passed the existence check before the first one committed.
    connections = SqlAlchemyConnectionRepository(session)
    connections.find_by_either_direction = AsyncMock(return_value=None)
    racer = InteractionService(session, connections=connections)

    with pytest.raises(AlreadyExistsError):
        await racer.send_connection_request(bob_id, alice_id)
    assert await _connection_count(session) == 1


# ── Accept / reject / remove ───────────────────────


@pytest.mark.asyncio
async def test_accept_is_directional(session, make_user):
    alice = await make_user("alice")
    bob = await make_user("bob")
    service = InteractionService(session)
    await service.send_connection_request(alice.id, bob.id)

    # Only the addressee can accept.
    with pytest.raises(NotFoundError):
        await service.accept_connection_request(alice.id, bob.id)

    connection = await service.accept_connection_request(bob.id, alice.id)
    assert connection.status == ConnectionStatus.ACCEPTED
    assert connection.accept_timestamp is not None
    assert connection.accept_timestamp >= connection.request_timestamp
    assert await service.check_interaction_status(alice.id, bob.id) == InteractionStatus.CONNECTION_ACCEPTED
    assert await service.check_interaction_status(bob.id, alice.id) == InteractionStatus.CONNECTION_ACCEPTED


@pytest.mark.asyncio
async def test_accept_when_requester_deactivated(session, make_user):
    alice = await make_user("alice")
    bob = await make_user("bob")
    service = InteractionService(session)
    await service.send_connection_request(alice.id, bob.id)
    alice.active = False
    await session.commit()

    with pytest.raises(NotActiveError):
        await service.accept_connection_request(bob.id, alice.id)


@pytest.mark.asyncio
async def test_accept_without_request(session, make_user):
    alice = await make_user("alice")
    bob = await make_user("bob")
    with pytest.raises(NotFoundError):
        await InteractionService(session).accept_connection_request(bob.id, alice.id)


@pytest.mark.asyncio
async def test_reject_deletes_record(session, make_user):
    alice = await make_user("alice")
    bob = await make_user("bob")
    service = InteractionService(session)
    await service.send_connection_request(alice.id, bob.id)

    await service.reject_connection_request(bob.id, alice.id)

    assert await _connection_count(session) == 0
    assert await service.check_interaction_status(alice.id, bob.id) == InteractionStatus.NONE
    # The pair may start over.
    await service.send_connection_request(bob.id, alice.id)


@pytest.mark.asyncio
async def test_reject_accepted_connection_is_not_found(session, make_user):
    alice = await make_user("alice")
    bob = await make_user("bob")
    service = InteractionService(session)
    await service.send_connection_request(alice.id, bob.id)
    await service.accept_connection_request(bob.id, alice.id)

    with pytest.raises(NotFoundError):
        await service.reject_connection_request(bob.id, alice.id)


@pytest.mark.asyncio
async def test_remove_connection_from_either_side(session, make_user):
    alice = await make_user("alice")
    bob = await make_user("bob")
    service = InteractionService(session)
    await service.send_connection_request(alice.id, bob.id)
    await service.accept_connection_request(bob.id, alice.id)

    await service.remove_connection(bob.id, alice.id)

    assert await _connection_count(session) == 0
    with pytest.raises(NotFoundError):
        await service.remove_connection(alice.id, bob.id)


@pytest.mark.asyncio
async def test_remove_pending_request_is_not_found(session, make_user):
    alice = await make_user("alice")
    bob = await make_user("bob")
    service = InteractionService(session)
    await service.send_connection_request(alice.id, bob.id)

    with pytest.raises(NotFoundError):
        await service.remove_connection(alice.id, bob.id)
    assert await _connection_count(session) == 1


# ── Blocking ───────────────────────────────────────


@pytest.mark.asyncio
@pytest.mark.parametrize("accepted", [False, True])
async def test_block_severs_connection(session, make_user, accepted):
    alice = await make_user("alice")
    bob = await make_user("bob")
    service = InteractionService(session)
    await service.send_connection_request(alice.id, bob.id)
    if accepted:
        await service.accept_connection_request(bob.id, alice.id)

    await service.block_user(bob.id, alice.id)

    assert await _connection_count(session) == 0
    assert await service.is_blocked(alice.id, bob.id)
    assert await service.is_blocked(bob.id, alice.id)
    assert await service.check_interaction_status(bob.id, alice.id) == InteractionStatus.BLOCKED_BY_YOU
    assert await service.check_interaction_status(alice.id, bob.id) == InteractionStatus.BLOCKED_BY_OTHER


@pytest.mark.asyncio
async def test_block_is_idempotent(session, make_user):
    alice = await make_user("alice")
    bob = await make_user("bob")
    service = InteractionService(session)

    await service.block_user(alice.id, bob.id)
    await service.block_user(alice.id, bob.id)

    assert await session.scalar(select(func.count()).select_from(UserBlock)) == 1


@pytest.mark.asyncio
async def test_block_self(session, make_user):
    alice = await make_user("alice")
    with pytest.raises(SelfReferenceError):
        await InteractionService(session).block_user(alice.id, alice.id)


@pytest.mark.asyncio
async def test_inactive_user_cannot_block(session, make_user):
    ghost = await make_user("ghost", active=False)
    bob = await make_user("bob")
    with pytest.raises(NotActiveError):
        await InteractionService(session).block_user(ghost.id, bob.id)


@pytest.mark.asyncio
async def test_inactive_user_can_be_blocked(session, make_user):
    alice = await make_user("alice")
    ghost = await make_user("ghost", active=False)
    service = InteractionService(session)
    await service.block_user(alice.id, ghost.id)
    assert await service.is_blocked(alice.id, ghost.id)


@pytest.mark.asyncio
async def test_mutual_block_and_partial_unblock(session, make_user):
    alice = await make_user("alice")
    bob = await make_user("bob")
    service = InteractionService(session)
    await service.block_user(alice.id, bob.id)
    await service.block_user(bob.id, alice.id)

    assert await service.check_interaction_status(alice.id, bob.id) == InteractionStatus.BLOCKED_MUTUAL

    await service.unblock_user(alice.id, bob.id)

    assert await service.check_interaction_status(alice.id, bob.id) == InteractionStatus.BLOCKED_BY_OTHER
    assert await service.is_blocked(alice.id, bob.id)


@pytest.mark.asyncio
async def test_unblock_does_not_restore_connection(session, make_user):
    alice = await make_user("alice")
    bob = await make_user("bob")
    service = InteractionService(session)
    await service.send_connection_request(alice.id, bob.id)
    await service.accept_connection_request(bob.id, alice.id)
    await service.block_user(alice.id, bob.id)

    await service.unblock_user(alice.id, bob.id)

    assert await service.check_interaction_status(alice.id, bob.id) == InteractionStatus.NONE
    assert not await service.is_blocked(alice.id, bob.id)


@pytest.mark.asyncio
async def test_unblock_without_block_is_noop(session, make_user):
    alice = await make_user("alice")
    bob = await make_user("bob")
    await InteractionService(session).unblock_user(alice.id, bob.id)


@pytest.mark.asyncio
async def test_unblock_unknown_user(session, make_user):
    alice = await make_user("alice")
    with pytest.raises(NotFoundError):
        await InteractionService(session).unblock_user(alice.id, uuid4())


# ── Status / listings ──────────────────────────────


@pytest.mark.asyncio
async def test_status_with_self_is_none(session, make_user):
    alice = await make_user("alice")
    assert await InteractionService(session).check_interaction_status(alice.id, alice.id) == InteractionStatus.NONE


@pytest.mark.asyncio
async def test_is_blocked_unknown_user(session, make_user):
    alice = await make_user("alice")
    with pytest.raises(NotFoundError):
        await InteractionService(session).is_blocked(alice.id, uuid4())


@pytest.mark.asyncio
async def test_listings(session, session_factory, make_user):
    alice = await make_user("alice")
    bob = await make_user("bob")
    carol = await make_user("carol")
    dave = await make_user("dave")
    service = InteractionService(session)
    await service.send_connection_request(alice.id, bob.id)
    await service.accept_connection_request(bob.id, alice.id)
    await service.send_connection_request(carol.id, alice.id)
    await service.send_connection_request(alice.id, dave.id)
    await service.block_user(alice.id, carol.id)

    async with session_factory() as fresh:
        reader = InteractionService(fresh)
        connections = await reader.get_connections(alice.id, 0, 20)
        incoming = await reader.get_pending_incoming(alice.id, 0, 20)
        outgoing = await reader.get_pending_outgoing(alice.id, 0, 20)
        blocked = await reader.get_blocked_users(alice.id, 0, 20)

    assert [u.username for u in connections.items] == ["bob"]
    assert connections.total == 1
    # Carol's request was removed by the block.
    assert incoming.items == []
    assert incoming.total == 0
    assert [u.username for u in outgoing.items] == ["dave"]
    assert [u.username for u in blocked.items] == ["carol"]


@pytest.mark.asyncio
async def test_listing_pagination(session, session_factory, make_user):
    alice = await make_user("alice")
    service = InteractionService(session)
    for name in ("bob", "carol", "dave"):
        other = await make_user(name)
        await service.send_connection_request(other.id, alice.id)

    async with session_factory() as fresh:
        page = await InteractionService(fresh).get_pending_incoming(alice.id, 1, 2)

    assert page.total == 3
    assert page.total_pages == 2
    assert len(page.items) == 1


@pytest.mark.asyncio
async def test_blocked_listing_unknown_user(session):
    with pytest.raises(NotFoundError):
        await InteractionService(session).get_blocked_users(uuid4(), 0, 20)


# ── Pair serialization ─────────────────────────────


class RecordingProfiles(SqlAlchemyProfileRepository):
    def __init__(self, session, log):
        super().__init__(session)
        self._log = log

    async def lock_users(self, *user_ids):
        self._log.append(("lock", frozenset(user_ids)))
        await super().lock_users(*user_ids)

    async def get_user_by_id(self, user_id):
        self._log.append(("read", "get_user_by_id"))
        return await super().get_user_by_id(user_id)

    async def has_block(self, blocker_id, blocked_id):
        self._log.append(("read", "has_block"))
        return await super().has_block(blocker_id, blocked_id)


class RecordingConnections(SqlAlchemyConnectionRepository):
    def __init__(self, session, log):
        super().__init__(session)
        self._log = log

    async def find_by_directed_pair(self, requester_id, addressee_id, status=None):
        self._log.append(("read", "find_by_directed_pair"))
        return await super().find_by_directed_pair(requester_id, addressee_id, status)

    async def find_by_either_direction(self, user_a, user_b):
        self._log.append(("read", "find_by_either_direction"))
        return await super().find_by_either_direction(user_a, user_b)


@pytest.mark.asyncio
async def test_pair_mutations_lock_both_users_before_reading(session, make_user):
    alice = await make_user("alice")
    bob = await make_user("bob")
    log = []
    service = InteractionService(
        session,
        profiles=RecordingProfiles(session, log),
        connections=RecordingConnections(session, log),
    )
    steps = [
        lambda: service.send_connection_request(alice.id, bob.id),
        lambda: service.accept_connection_request(bob.id, alice.id),
        lambda: service.remove_connection(alice.id, bob.id),
        lambda: service.send_connection_request(bob.id, alice.id),
        lambda: service.reject_connection_request(alice.id, bob.id),
        lambda: service.block_user(alice.id, bob.id),
        lambda: service.block_user(alice.id, bob.id),
        lambda: service.unblock_user(alice.id, bob.id),
    ]

    for step in steps:
        log.clear()
        await step()
        assert log[0] == ("lock", frozenset({alice.id, bob.id}))
        assert [entry for entry in log if entry[0] == "lock"] == [log[0]]
        assert len(log) > 1


class CompetitorFirst(SqlAlchemyProfileRepository):
    """Runs a competing mutation to completion just before the pair lock is granted."""

    def __init__(self, session, competitor):
        super().__init__(session)
        self._competitor = competitor
        self.competed = False

    async def lock_users(self, *user_ids):
        if not self.competed:
            self.competed = True
            await self._competitor()
        await super().lock_users(*user_ids)


@pytest.mark.asyncio
async def test_request_sees_block_committed_while_waiting_for_pair(session, session_factory, make_user):
    alice = await make_user("alice")
    bob = await make_user("bob")
    alice_id, bob_id = alice.id, bob.id

    async def bob_blocks_alice():
        async with session_factory() as other:
            await InteractionService(other).block_user(bob_id, alice_id)

    profiles = CompetitorFirst(session, bob_blocks_alice)
    service = InteractionService(session, profiles=profiles)

    with pytest.raises(BlockedError):
        await service.send_connection_request(alice_id, bob_id)
    assert profiles.competed
    assert await _connection_count(session) == 0


@pytest.mark.asyncio
async def test_block_clears_request_committed_while_waiting_for_pair(session, session_factory, make_user):
    alice = await make_user("alice")
    bob = await make_user("bob")
    alice_id, bob_id = alice.id, bob.id

    async def alice_requests_bob():
        async with session_factory() as other:
            await InteractionService(other).send_connection_request(alice_id, bob_id)

    profiles = CompetitorFirst(session, alice_requests_bob)
    service = InteractionService(session, profiles=profiles)

    await service.block_user(bob_id, alice_id)

    assert profiles.competed
    assert await _connection_count(session) == 0
    assert await service.is_blocked(alice_id, bob_id)


@pytest.mark.asyncio
async def test_accept_after_block_committed_while_waiting_for_pair(session, session_factory, make_user):
    alice = await make_user("alice")
    bob = await make_user("bob")
    alice_id, bob_id = alice.id, bob.id
    await InteractionService(session).send_connection_request(alice_id, bob_id)

    async def alice_blocks_bob():
        async with session_factory() as other:
            await InteractionService(other).block_user(alice_id, bob_id)

    service = InteractionService(session, profiles=CompetitorFirst(session, alice_blocks_bob))

    with pytest.raises(NotFoundError):
        await service.accept_connection_request(bob_id, alice_id)
    assert await _connection_count(session) == 0


@pytest.mark.asyncio
async def test_concurrent_reblock_is_idempotent(session, session_factory, make_user):
    alice = await make_user("alice")
    bob = await make_user("bob")
    alice_id, bob_id = alice.id, bob.id

    async def same_block_from_another_tab():
        async with session_factory() as other:
            await InteractionService(other).block_user(alice_id, bob_id)

    service = InteractionService(session, profiles=CompetitorFirst(session, same_block_from_another_tab))

    await service.block_user(alice_id, bob_id)

    assert await session.scalar(select(func.count()).select_from(UserBlock)) == 1


def test_pair_lock_is_select_for_update_in_id_order():
    sql = str(lock_users_statement([uuid4(), uuid4()]).compile(dialect=postgresql.dialect()))
    assert "FOR UPDATE" in sql
    assert "ORDER BY users.id" in sql
