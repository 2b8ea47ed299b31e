"""Match scorer port — abstract interface for candidate scoring."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from uuid import UUID

from app.domain.models import ArtistProfile, ProducerProfile, User


@dataclass
class CallerContext:
    """Everything about the caller the scorer needs, computed once per request."""

    user: User
    artist_profile: ArtistProfile | None
    producer_profile: ProducerProfile | None
    genre_ids: set[UUID] = field(default_factory=set)
    skill_ids: set[UUID] = field(default_factory=set)

    @classmethod
    def for_user(cls, user: User) -> "CallerContext":
        artist = user.artist_profile
        producer = user.producer_profile
        genre_ids: set[UUID] = set()
        skill_ids: set[UUID] = set()
        if artist is not None:
            genre_ids.update(g.id for g in artist.genres)
            skill_ids.update(s.id for s in artist.skills)
        if producer is not None:
            genre_ids.update(g.id for g in producer.genres)
        return cls(
            user=user,
            artist_profile=artist,
            producer_profile=producer,
            genre_ids=genre_ids,
            skill_ids=skill_ids,
        )


@dataclass
class ScoredCandidate:
    """A candidate user with its match score."""

    user: User
    score: float


class MatchScorerPort(ABC):
    """Abstraction for the collaborator scoring rules."""

    @abstractmethod
    def score(self, caller: CallerContext, candidate: User, already_connected: bool) -> float:
        """Return the score of ``candidate`` from the caller's point of view."""
        ...
