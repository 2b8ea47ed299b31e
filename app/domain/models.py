"""SQLAlchemy ORM models."""

import uuid
from datetime import datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    String,
    Table,
    Text,
    UniqueConstraint,
    Uuid,
    func,
)
from sqlalchemy.orm import DeclarativeBase, relationship

from app.domain.enums import ConnectionStatus, ExperienceLevel


class Base(DeclarativeBase):
    pass


artist_genres = Table(
    "artist_genres",
    Base.metadata,
    Column("artist_profile_id", Uuid, ForeignKey("artist_profiles.user_id", ondelete="CASCADE"), primary_key=True),
    Column("genre_id", Uuid, ForeignKey("genres.id", ondelete="CASCADE"), primary_key=True),
)

artist_skills = Table(
    "artist_skills",
    Base.metadata,
    Column("artist_profile_id", Uuid, ForeignKey("artist_profiles.user_id", ondelete="CASCADE"), primary_key=True),
    Column("skill_id", Uuid, ForeignKey("skills.id", ondelete="CASCADE"), primary_key=True),
)

producer_genres = Table(
    "producer_genres",
    Base.metadata,
    Column("producer_profile_id", Uuid, ForeignKey("producer_profiles.user_id", ondelete="CASCADE"), primary_key=True),
    Column("genre_id", Uuid, ForeignKey("genres.id", ondelete="CASCADE"), primary_key=True),
)


class User(Base):
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    username = Column(String(100), unique=True, nullable=False, index=True)
    email = Column(String(255), unique=True, nullable=False)
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    location = Column(String(255), nullable=True)
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    artist_profile = relationship(
        "ArtistProfile",
        back_populates="user",
        uselist=False,
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    producer_profile = relationship(
        "ProducerProfile",
        back_populates="user",
        uselist=False,
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<User {self.username} ({self.id})>"


class ArtistProfile(Base):
    __tablename__ = "artist_profiles"

    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    availability = Column(Boolean, nullable=False, default=False)
    bio = Column(Text, nullable=True)
    experience_level = Column(Enum(ExperienceLevel, name="experience_level_enum"), nullable=False)

    user = relationship("User", back_populates="artist_profile")
    genres = relationship("Genre", secondary=artist_genres, lazy="selectin")
    skills = relationship("Skill", secondary=artist_skills, lazy="selectin")


class ProducerProfile(Base):
    __tablename__ = "producer_profiles"

    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    availability = Column(Boolean, nullable=False, default=False)
    bio = Column(Text, nullable=True)
    experience_level = Column(Enum(ExperienceLevel, name="experience_level_enum"), nullable=False)

    user = relationship("User", back_populates="producer_profile")
    genres = relationship("Genre", secondary=producer_genres, lazy="selectin")


class Genre(Base):
    __tablename__ = "genres"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(100), nullable=False, unique=True)

    __table_args__ = (Index("uq_genres_name_lower", func.lower(name), unique=True),)


class Skill(Base):
    __tablename__ = "skills"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(100), nullable=False, unique=True)

    __table_args__ = (Index("uq_skills_name_lower", func.lower(name), unique=True),)


class UserBlock(Base):
    """Directed block edge owned by the blocker."""

    __tablename__ = "user_blocks"

    blocker_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    blocked_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class UserConnection(Base):
    """
    A connection request between two users.

    ``pair_low_id`` / ``pair_high_id`` store the two endpoints in canonical
    order so that the unique constraint covers both directions.
    """

    __tablename__ = "user_connections"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    requester_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    addressee_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    pair_low_id = Column(Uuid, nullable=False)
    pair_high_id = Column(Uuid, nullable=False)
    status = Column(
        Enum(ConnectionStatus, name="connection_status_enum"),
        nullable=False,
        default=ConnectionStatus.PENDING,
    )
    request_timestamp = Column(DateTime, nullable=False, default=datetime.utcnow)
    accept_timestamp = Column(DateTime, nullable=True)

    requester = relationship("User", foreign_keys=[requester_id], lazy="selectin")
    addressee = relationship("User", foreign_keys=[addressee_id], lazy="selectin")

    __table_args__ = (
        UniqueConstraint("pair_low_id", "pair_high_id", name="uq_user_connections_pair"),
        CheckConstraint("requester_id != addressee_id", name="ck_user_connections_not_self"),
        Index("ix_user_connections_requester_status", "requester_id", "status"),
        Index("ix_user_connections_addressee_status", "addressee_id", "status"),
    )

    def counterpart_of(self, user_id: uuid.UUID) -> "User":
        """Return the other side of the connection as seen by ``user_id``."""
        return self.addressee if self.requester_id == user_id else self.requester


def canonical_pair(user_a: uuid.UUID, user_b: uuid.UUID) -> tuple[uuid.UUID, uuid.UUID]:
    """Order two user ids the same way regardless of argument order."""
    low, high = sorted((user_a, user_b), key=str)
    return low, high
