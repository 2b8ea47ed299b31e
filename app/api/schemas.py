"""Pydantic request / response schemas."""

from datetime import datetime
from typing import Generic, TypeVar
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.domain.enums import ConnectionStatus, ExperienceLevel, InteractionStatus
from app.domain.pagination import Page

T = TypeVar("T")


# ── Reference data ─────────────────────────────────


class GenreSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str


class SkillSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str


# ── Users ──────────────────────────────────────────


class ProfileSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    availability: bool
    experience_level: ExperienceLevel


class UserSummary(BaseModel):
    """Compact view of another user, used in listings and matches."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    username: str
    first_name: str | None = None
    last_name: str | None = None
    location: str | None = None
    artist_profile: ProfileSummary | None = None
    producer_profile: ProfileSummary | None = None


class ArtistProfileDetail(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: UUID
    availability: bool
    bio: str | None = None
    experience_level: ExperienceLevel
    genres: list[GenreSummary] = []
    skills: list[SkillSummary] = []


class ProducerProfileDetail(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: UUID
    availability: bool
    bio: str | None = None
    experience_level: ExperienceLevel
    genres: list[GenreSummary] = []


class UserDetail(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    username: str
    email: str
    first_name: str | None = None
    last_name: str | None = None
    location: str | None = None
    active: bool
    artist_profile: ArtistProfileDetail | None = None
    producer_profile: ProducerProfileDetail | None = None


class UserSearchRequest(BaseModel):
    search_term: str | None = None
    has_artist_profile: bool | None = None
    has_producer_profile: bool | None = None
    artist_experience_level: ExperienceLevel | None = None
    artist_availability: bool | None = None
    producer_experience_level: ExperienceLevel | None = None
    producer_availability: bool | None = None
    genre_ids: list[UUID] = []
    skill_ids: list[UUID] = []


# ── Profiles ───────────────────────────────────────


class ProfileUpdateRequest(BaseModel):
    availability: bool | None = None
    bio: str | None = Field(default=None, max_length=5000)
    experience_level: ExperienceLevel | None = None


# ── Connections ────────────────────────────────────


class ConnectionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    requester_id: UUID
    addressee_id: UUID
    status: ConnectionStatus
    request_timestamp: datetime
    accept_timestamp: datetime | None = None


class InteractionStatusResponse(BaseModel):
    user_id: UUID
    status: InteractionStatus


# ── Pagination ─────────────────────────────────────


class PageResponse(BaseModel, Generic[T]):
    items: list[T]
    total: int
    page: int
    size: int
    total_pages: int

    @classmethod
    def from_page(cls, page: Page) -> "PageResponse":
        return cls(
            items=page.items,
            total=page.total,
            page=page.page,
            size=page.size,
            total_pages=page.total_pages,
        )


class ErrorResponse(BaseModel):
    detail: str
    code: str


class LocationUpdateRequest(BaseModel):
    location: str | None = Field(default=None, max_length=255)
