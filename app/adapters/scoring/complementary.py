"""Rule-based scorer pairing producers with artists."""

import logging
from collections.abc import Iterable

from app.domain.enums import ExperienceLevel
from app.domain.models import ArtistProfile, Genre, ProducerProfile, User
from app.ports.matcher import CallerContext, MatchScorerPort

logger = logging.getLogger(__name__)

CONNECTED_PENALTY = -10.0
COMPLEMENTARY_BASE = 2.0
AVAILABILITY_BONUS = 10.0
SPECIFIC_GENRE_POINTS = 5.0
GENERAL_GENRE_POINTS = 1.0
GENERAL_SKILL_POINTS = 1.0

# Experience-level distance -> points. Distances not listed score 0.
EXPERIENCE_PROXIMITY = {0: 20.0, 1: 16.0, 2: 12.0, 3: 8.0}


def experience_score(level_a: ExperienceLevel | None, level_b: ExperienceLevel | None) -> float:
    """Tiered bonus for profiles with similar experience levels."""
    if level_a is None or level_b is None:
        return 0.0
    distance = abs(ExperienceLevel(level_a).ordinal - ExperienceLevel(level_b).ordinal)
    return EXPERIENCE_PROXIMITY.get(distance, 0.0)


def specific_genre_score(caller_genres: Iterable[Genre], candidate_genres: Iterable[Genre]) -> float:
    """Five points per genre shared by the two complementary profiles."""
    caller_ids = {g.id for g in caller_genres}
    if not caller_ids:
        return 0.0
    shared = caller_ids & {g.id for g in candidate_genres}
    return len(shared) * SPECIFIC_GENRE_POINTS


def complementary_score(
    caller_profile: ArtistProfile | ProducerProfile,
    candidate_profile: ArtistProfile | ProducerProfile,
) -> float:
    score = COMPLEMENTARY_BASE
    score += experience_score(caller_profile.experience_level, candidate_profile.experience_level)
    score += specific_genre_score(caller_profile.genres, candidate_profile.genres)
    if candidate_profile.availability:
        score += AVAILABILITY_BONUS
    return score


class ComplementaryProfileScorer(MatchScorerPort):
    """
    Scores a candidate against the caller.

    All rules are additive:

    - already connected: -10
    - caller producer / candidate artist: base + experience + specific genres + availability
    - caller artist / candidate producer: same, roles swapped
    - +1 per genre shared across both users' profiles
    - +1 per shared skill when both users have artist profiles
    """

    def score(self, caller: CallerContext, candidate: User, already_connected: bool) -> float:
        score = 0.0
        candidate_artist = candidate.artist_profile
        candidate_producer = candidate.producer_profile

        if already_connected:
            score += CONNECTED_PENALTY

        if caller.producer_profile is not None and candidate_artist is not None:
            score += complementary_score(caller.producer_profile, candidate_artist)

        if caller.artist_profile is not None and candidate_producer is not None:
            score += complementary_score(caller.artist_profile, candidate_producer)

        candidate_genre_ids = set()
        if candidate_artist is not None:
            candidate_genre_ids.update(g.id for g in candidate_artist.genres)
        if candidate_producer is not None:
            candidate_genre_ids.update(g.id for g in candidate_producer.genres)
        score += len(caller.genre_ids & candidate_genre_ids) * GENERAL_GENRE_POINTS

        if caller.artist_profile is not None and candidate_artist is not None:
            candidate_skill_ids = {s.id for s in candidate_artist.skills}
            score += len(caller.skill_ids & candidate_skill_ids) * GENERAL_SKILL_POINTS

        logger.debug("Score for candidate %s: %.1f", candidate.username, score)
        return score
