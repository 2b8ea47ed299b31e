"""Connection and block state machine between pairs of users."""

import logging
from datetime import datetime
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.adapters.cache.null import NullMatchCache
from app.adapters.repositories.errors import translate_storage_errors
from app.adapters.repositories.sqlalchemy_connections import SqlAlchemyConnectionRepository
from app.adapters.repositories.sqlalchemy_profiles import SqlAlchemyProfileRepository
from app.api.schemas import UserSummary
from app.domain.enums import ConnectionStatus, InteractionStatus
from app.domain.errors import (
    AlreadyExistsError,
    BlockedError,
    NotActiveError,
    NotFoundError,
    SelfReferenceError,
)
from app.domain.models import User, UserConnection
from app.domain.pagination import Page
from app.ports.cache import MatchCachePort
from app.ports.repositories import (
    ConnectionRepositoryPort,
    ConnectionRole,
    ProfileRepositoryPort,
)

logger = logging.getLogger(__name__)


class InteractionService:
    """
    Sole writer of connection and block state.

    At most one connection record exists per unordered pair of users:

        NONE --send--> PENDING --accept--> ACCEPTED
        PENDING --reject--> NONE
        ACCEPTED --remove--> NONE
        any --block--> NONE (record deleted, block recorded)

    Every mutation first row-locks both users of the pair, so mutations of
    one pair run one after another and their checks see committed state. It
    then commits its own transaction and drops cached match pages for both
    users.
    """

    def __init__(
        self,
        session: AsyncSession,
        cache: MatchCachePort | None = None,
        profiles: ProfileRepositoryPort | None = None,
        connections: ConnectionRepositoryPort | None = None,
    ) -> None:
        self._session = session
        self._cache = cache if cache is not None else NullMatchCache()
        self._profiles = profiles or SqlAlchemyProfileRepository(session)
        self._connections = connections or SqlAlchemyConnectionRepository(session)

    # ── Helpers ────────────────────────────────────

    async def _find_user_or_raise(self, user_id: UUID) -> User:
        user = await self._profiles.get_user_by_id(user_id)
        if user is None:
            logger.warning("User not found with ID: %s", user_id)
            raise NotFoundError(f"User not found with ID: {user_id}")
        return user

    @staticmethod
    def _ensure_active(user: User) -> None:
        if not user.active:
            logger.warning("User %s (ID: %s) is deactivated", user.username, user.id)
            raise NotActiveError(f"User {user.username} is deactivated.")

    async def _lock_pair(self, user_a: UUID, user_b: UUID) -> None:
        # Held until the transaction commits or rolls back.
        logger.debug("Locking pair %s / %s", user_a, user_b)
        await self._profiles.lock_users(user_a, user_b)

    async def _commit(self, *user_ids: UUID) -> None:
        with translate_storage_errors("commit"):
            await self._session.commit()
        for user_id in user_ids:
            self._cache.invalidate_user(user_id)

    # ── Connections ────────────────────────────────

    async def send_connection_request(self, requester_id: UUID, addressee_id: UUID) -> UserConnection:
        logger.info("Sending connection request from %s to %s", requester_id, addressee_id)
        if requester_id == addressee_id:
            logger.warning("Connection request rejected: %s tried to connect with itself", requester_id)
            raise SelfReferenceError("Cannot connect with oneself.")

        await self._lock_pair(requester_id, addressee_id)
        requester = await self._find_user_or_raise(requester_id)
        addressee = await self._find_user_or_raise(addressee_id)
        self._ensure_active(requester)
        self._ensure_active(addressee)

        if await self._block_exists(requester_id, addressee_id):
            logger.warning("Connection request rejected: block between %s and %s", requester_id, addressee_id)
            raise BlockedError("Cannot send connection request; a block exists between users.")

        existing = await self._connections.find_by_either_direction(requester_id, addressee_id)
        if existing is not None:
            logger.warning(
                "Connection request rejected: %s connection already exists between %s and %s",
                existing.status.value,
                requester_id,
                addressee_id,
            )
            raise AlreadyExistsError("Connection already exists or is pending between users.")

        connection = await self._connections.insert(
            UserConnection(
                requester_id=requester_id,
                addressee_id=addressee_id,
                status=ConnectionStatus.PENDING,
                request_timestamp=datetime.utcnow(),
                accept_timestamp=None,
            )
        )
        await self._commit(requester_id, addressee_id)
        logger.info("Connection request %s created: %s -> %s", connection.id, requester_id, addressee_id)
        return connection

    async def accept_connection_request(self, acceptor_id: UUID, requester_id: UUID) -> UserConnection:
        logger.info("User %s accepting connection request from %s", acceptor_id, requester_id)
        await self._lock_pair(acceptor_id, requester_id)
        connection = await self._pending_request_or_raise(requester_id, acceptor_id)

        self._ensure_active(await self._find_user_or_raise(acceptor_id))
        self._ensure_active(await self._find_user_or_raise(requester_id))

        connection.status = ConnectionStatus.ACCEPTED
        connection.accept_timestamp = datetime.utcnow()
        await self._connections.update(connection)
        await self._commit(acceptor_id, requester_id)
        logger.info("Connection %s accepted by %s", connection.id, acceptor_id)
        return connection

    async def reject_connection_request(self, rejector_id: UUID, requester_id: UUID) -> None:
        logger.info("User %s rejecting connection request from %s", rejector_id, requester_id)
        await self._lock_pair(rejector_id, requester_id)
        connection = await self._pending_request_or_raise(requester_id, rejector_id)
        await self._connections.delete(connection)
        await self._commit(rejector_id, requester_id)
        logger.info("Connection request %s rejected and deleted", connection.id)

    async def remove_connection(self, user_a: UUID, user_b: UUID) -> None:
        logger.info("Removing connection between %s and %s", user_a, user_b)
        await self._lock_pair(user_a, user_b)
        connection = await self._connections.find_by_either_direction(user_a, user_b)
        if connection is None or connection.status != ConnectionStatus.ACCEPTED:
            logger.warning("Remove failed: no accepted connection between %s and %s", user_a, user_b)
            raise NotFoundError(f"Accepted connection not found between users {user_a} and {user_b}")
        await self._connections.delete(connection)
        await self._commit(user_a, user_b)
        logger.info("Connection %s removed", connection.id)

    async def _pending_request_or_raise(self, requester_id: UUID, addressee_id: UUID) -> UserConnection:
        connection = await self._connections.find_by_directed_pair(
            requester_id, addressee_id, ConnectionStatus.PENDING
        )
        if connection is None:
            logger.warning("Pending connection request not found from %s to %s", requester_id, addressee_id)
            raise NotFoundError(f"Pending connection request not found from user {requester_id}")
        return connection

    # ── Blocking ───────────────────────────────────

    async def block_user(self, blocker_id: UUID, blocked_id: UUID) -> None:
        logger.info("User %s blocking %s", blocker_id, blocked_id)
        if blocker_id == blocked_id:
            logger.warning("Block rejected: %s tried to block itself", blocker_id)
            raise SelfReferenceError("Cannot block oneself.")

        await self._lock_pair(blocker_id, blocked_id)
        blocker = await self._find_user_or_raise(blocker_id)
        await self._find_user_or_raise(blocked_id)
        self._ensure_active(blocker)

        connection = await self._connections.find_by_either_direction(blocker_id, blocked_id)
        if connection is not None:
            logger.info(
                "Removing %s connection %s before blocking",
                connection.status.value,
                connection.id,
            )
            await self._connections.delete(connection)

        if await self._profiles.has_block(blocker_id, blocked_id):
            logger.info("User %s was already blocked by %s", blocked_id, blocker_id)
        else:
            await self._profiles.add_block(blocker_id, blocked_id)

        # Connection removal and the block land in one commit.
        await self._commit(blocker_id, blocked_id)
        logger.info("User %s blocked by %s", blocked_id, blocker_id)

    async def unblock_user(self, blocker_id: UUID, blocked_id: UUID) -> None:
        logger.info("User %s unblocking %s", blocker_id, blocked_id)
        await self._lock_pair(blocker_id, blocked_id)
        await self._find_user_or_raise(blocker_id)
        await self._find_user_or_raise(blocked_id)

        if await self._profiles.remove_block(blocker_id, blocked_id):
            await self._commit(blocker_id, blocked_id)
            logger.info("User %s unblocked by %s", blocked_id, blocker_id)
        else:
            logger.info("User %s was not blocked by %s; nothing to do", blocked_id, blocker_id)

    # ── Status checks ──────────────────────────────

    async def check_interaction_status(self, viewer_id: UUID, target_id: UUID) -> InteractionStatus:
        if viewer_id == target_id:
            return InteractionStatus.NONE

        await self._find_user_or_raise(viewer_id)
        await self._find_user_or_raise(target_id)

        blocked_by_viewer = await self._profiles.has_block(viewer_id, target_id)
        blocked_by_target = await self._profiles.has_block(target_id, viewer_id)

        if blocked_by_viewer and blocked_by_target:
            status = InteractionStatus.BLOCKED_MUTUAL
        elif blocked_by_viewer:
            status = InteractionStatus.BLOCKED_BY_YOU
        elif blocked_by_target:
            status = InteractionStatus.BLOCKED_BY_OTHER
        else:
            status = InteractionStatus.NONE
            connection = await self._connections.find_by_either_direction(viewer_id, target_id)
            if connection is not None:
                if connection.status == ConnectionStatus.ACCEPTED:
                    status = InteractionStatus.CONNECTION_ACCEPTED
                elif connection.requester_id == viewer_id:
                    status = InteractionStatus.PENDING_OUTGOING
                else:
                    status = InteractionStatus.PENDING_INCOMING

        logger.debug("Interaction status %s -> %s: %s", viewer_id, target_id, status.value)
        return status

    async def is_blocked(self, user_a: UUID, user_b: UUID) -> bool:
        await self._find_user_or_raise(user_a)
        await self._find_user_or_raise(user_b)
        return await self._block_exists(user_a, user_b)

    async def has_accepted_connection(self, user_a: UUID, user_b: UUID) -> bool:
        connection = await self._connections.find_by_either_direction(user_a, user_b)
        return connection is not None and connection.status == ConnectionStatus.ACCEPTED

    async def _block_exists(self, user_a: UUID, user_b: UUID) -> bool:
        return await self._profiles.has_block(user_a, user_b) or await self._profiles.has_block(user_b, user_a)

    # ── Listings ───────────────────────────────────

    async def get_connections(self, user_id: UUID, page: int, size: int) -> Page[UserSummary]:
        records = await self._connections.find_accepted_for_user(user_id, page, size)
        return _counterparts(records, user_id)

    async def get_pending_incoming(self, user_id: UUID, page: int, size: int) -> Page[UserSummary]:
        records = await self._connections.find_by_status(
            user_id, ConnectionRole.ADDRESSEE, ConnectionStatus.PENDING, page, size
        )
        return _counterparts(records, user_id)

    async def get_pending_outgoing(self, user_id: UUID, page: int, size: int) -> Page[UserSummary]:
        records = await self._connections.find_by_status(
            user_id, ConnectionRole.REQUESTER, ConnectionStatus.PENDING, page, size
        )
        return _counterparts(records, user_id)

    async def get_blocked_users(self, user_id: UUID, page: int, size: int) -> Page[UserSummary]:
        await self._find_user_or_raise(user_id)
        users = await self._profiles.list_blocked(user_id, page, size)
        return Page(
            items=[UserSummary.model_validate(u) for u in users.items],
            total=users.total,
            page=page,
            size=size,
        )


def _counterparts(records: Page[UserConnection], user_id: UUID) -> Page[UserSummary]:
    return Page(
        items=[UserSummary.model_validate(c.counterpart_of(user_id)) for c in records.items],
        total=records.total,
        page=records.page,
        size=records.size,
    )
