"""Repository ports for the profile and connection stores."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from uuid import UUID

from app.domain.enums import ConnectionStatus, ExperienceLevel
from app.domain.models import User, UserConnection
from app.domain.pagination import Page


class ConnectionRole(str, Enum):
    """Which side of a connection a user is matched on."""

    REQUESTER = "requester"
    ADDRESSEE = "addressee"


@dataclass
class UserSearchCriteria:
    """Optional filters for user search; ``None`` means "don't filter"."""

    search_term: str | None = None
    has_artist_profile: bool | None = None
    has_producer_profile: bool | None = None
    artist_experience_level: ExperienceLevel | None = None
    artist_availability: bool | None = None
    producer_experience_level: ExperienceLevel | None = None
    producer_availability: bool | None = None
    genre_ids: list[UUID] = field(default_factory=list)
    skill_ids: list[UUID] = field(default_factory=list)


class ProfileRepositoryPort(ABC):
    """Read access to users and profiles, plus the block relation."""

    @abstractmethod
    async def get_user_by_id(self, user_id: UUID) -> User | None:
        ...

    @abstractmethod
    async def get_user_by_username(self, username: str) -> User | None:
        ...

    @abstractmethod
    async def lock_users(self, *user_ids: UUID) -> None:
        """Row-lock the given users in id order until the transaction ends."""
        ...

    @abstractmethod
    async def find_active_users_excluding(self, excluded_ids: set[UUID]) -> list[User]:
        """All active users not in ``excluded_ids``, profiles loaded."""
        ...

    @abstractmethod
    async def get_blocker_ids_of(self, user_id: UUID) -> set[UUID]:
        """Ids of users who have blocked ``user_id``."""
        ...

    @abstractmethod
    async def get_blocked_ids_by(self, user_id: UUID) -> set[UUID]:
        """Ids of users ``user_id`` has blocked."""
        ...

    @abstractmethod
    async def has_block(self, blocker_id: UUID, blocked_id: UUID) -> bool:
        ...

    @abstractmethod
    async def add_block(self, blocker_id: UUID, blocked_id: UUID) -> None:
        ...

    @abstractmethod
    async def remove_block(self, blocker_id: UUID, blocked_id: UUID) -> bool:
        """Remove the edge; return whether one existed."""
        ...

    @abstractmethod
    async def list_blocked(self, blocker_id: UUID, page: int, size: int) -> Page[User]:
        ...

    @abstractmethod
    async def search_users(
        self,
        caller_id: UUID,
        criteria: UserSearchCriteria,
        page: int,
        size: int,
    ) -> Page[User]:
        ...


class ConnectionRepositoryPort(ABC):
    """Storage of directed connection records."""

    @abstractmethod
    async def find_by_directed_pair(
        self,
        requester_id: UUID,
        addressee_id: UUID,
        status: ConnectionStatus | None = None,
    ) -> UserConnection | None:
        ...

    @abstractmethod
    async def find_by_either_direction(self, user_a: UUID, user_b: UUID) -> UserConnection | None:
        ...

    @abstractmethod
    async def find_by_status(
        self,
        user_id: UUID,
        role: ConnectionRole,
        status: ConnectionStatus,
        page: int,
        size: int,
    ) -> Page[UserConnection]:
        ...

    @abstractmethod
    async def find_accepted_for_user(self, user_id: UUID, page: int, size: int) -> Page[UserConnection]:
        ...

    @abstractmethod
    async def insert(self, connection: UserConnection) -> UserConnection:
        """Persist a new record; raise ``AlreadyExistsError`` if the pair is taken."""
        ...

    @abstractmethod
    async def update(self, connection: UserConnection) -> UserConnection:
        ...

    @abstractmethod
    async def delete(self, connection: UserConnection) -> None:
        ...
