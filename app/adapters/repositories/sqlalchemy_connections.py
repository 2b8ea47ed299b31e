"""SQLAlchemy implementation of the connection repository."""

import logging
from uuid import UUID

from sqlalchemy import and_, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.adapters.repositories.errors import translate_storage_errors
from app.domain.enums import ConnectionStatus
from app.domain.errors import AlreadyExistsError
from app.domain.models import UserConnection, canonical_pair
from app.domain.pagination import Page
from app.ports.repositories import ConnectionRepositoryPort, ConnectionRole

logger = logging.getLogger(__name__)


class SqlAlchemyConnectionRepository(ConnectionRepositoryPort):
    """Connection records stored in ``user_connections``."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def find_by_directed_pair(
        self,
        requester_id: UUID,
        addressee_id: UUID,
        status: ConnectionStatus | None = None,
    ) -> UserConnection | None:
        stmt = select(UserConnection).execution_options(populate_existing=True).where(
            UserConnection.requester_id == requester_id,
            UserConnection.addressee_id == addressee_id,
        )
        if status is not None:
            stmt = stmt.where(UserConnection.status == status)
        with translate_storage_errors("find_by_directed_pair"):
            result = await self._session.execute(stmt)
            return result.scalar_one_or_none()

    async def find_by_either_direction(self, user_a: UUID, user_b: UUID) -> UserConnection | None:
        stmt = select(UserConnection).execution_options(populate_existing=True).where(
            or_(
                and_(UserConnection.requester_id == user_a, UserConnection.addressee_id == user_b),
                and_(UserConnection.requester_id == user_b, UserConnection.addressee_id == user_a),
            )
        )
        with translate_storage_errors("find_by_either_direction"):
            result = await self._session.execute(stmt)
            return result.scalar_one_or_none()

    async def find_by_status(
        self,
        user_id: UUID,
        role: ConnectionRole,
        status: ConnectionStatus,
        page: int,
        size: int,
    ) -> Page[UserConnection]:
        column = UserConnection.requester_id if role is ConnectionRole.REQUESTER else UserConnection.addressee_id
        stmt = select(UserConnection).where(column == user_id, UserConnection.status == status)
        return await self._paginate(stmt, page, size, "find_by_status")

    async def find_accepted_for_user(self, user_id: UUID, page: int, size: int) -> Page[UserConnection]:
        stmt = select(UserConnection).execution_options(populate_existing=True).where(
            or_(UserConnection.requester_id == user_id, UserConnection.addressee_id == user_id),
            UserConnection.status == ConnectionStatus.ACCEPTED,
        )
        return await self._paginate(stmt, page, size, "find_accepted_for_user")

    async def insert(self, connection: UserConnection) -> UserConnection:
        connection.pair_low_id, connection.pair_high_id = canonical_pair(
            connection.requester_id, connection.addressee_id
        )
        self._session.add(connection)
        try:
            await self._session.flush()
        except IntegrityError as exc:
            logger.warning(
                "Insert lost to an existing connection between %s and %s",
                connection.requester_id,
                connection.addressee_id,
            )
            await self._session.rollback()
            raise AlreadyExistsError("Connection already exists or is pending between users.") from exc
        return connection

    async def update(self, connection: UserConnection) -> UserConnection:
        with translate_storage_errors("update"):
            await self._session.flush()
        return connection

    async def delete(self, connection: UserConnection) -> None:
        with translate_storage_errors("delete"):
            await self._session.delete(connection)
            await self._session.flush()

    async def _paginate(self, stmt, page: int, size: int, operation: str) -> Page[UserConnection]:
        with translate_storage_errors(operation):
            total = await self._session.scalar(select(func.count()).select_from(stmt.subquery()))
            result = await self._session.execute(
                stmt.order_by(UserConnection.request_timestamp.desc(), UserConnection.id)
                .offset(page * size)
                .limit(size)
            )
            items = list(result.scalars().all())
        return Page(items=items, total=total or 0, page=page, size=size)
