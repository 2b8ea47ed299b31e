"""Artist and producer profile routes for the current user."""

from uuid import UUID

from fastapi import APIRouter, Depends

from app.api.dependencies import get_artist_profile_service, get_producer_profile_service
from app.api.middleware.auth import IdentityClaims, get_current_identity
from app.api.schemas import (
    ArtistProfileDetail,
    GenreSummary,
    ProducerProfileDetail,
    ProfileUpdateRequest,
    SkillSummary,
)
from app.services.profiles import ProfileService

router = APIRouter(prefix="/profiles", tags=["Profiles"])


# ── Artist ─────────────────────────────────────────


@router.get("/artist/me", response_model=ArtistProfileDetail)
async def get_my_artist_profile(
    identity: IdentityClaims = Depends(get_current_identity),
    service: ProfileService = Depends(get_artist_profile_service),
) -> ArtistProfileDetail:
    return ArtistProfileDetail.model_validate(await service.get_profile(identity.user_id))


@router.put("/artist/me", response_model=ArtistProfileDetail)
async def put_my_artist_profile(
    data: ProfileUpdateRequest,
    identity: IdentityClaims = Depends(get_current_identity),
    service: ProfileService = Depends(get_artist_profile_service),
) -> ArtistProfileDetail:
    return ArtistProfileDetail.model_validate(await service.create_or_update(identity.user_id, data))


@router.patch("/artist/me", response_model=ArtistProfileDetail)
async def patch_my_artist_profile(
    data: ProfileUpdateRequest,
    identity: IdentityClaims = Depends(get_current_identity),
    service: ProfileService = Depends(get_artist_profile_service),
) -> ArtistProfileDetail:
    return ArtistProfileDetail.model_validate(await service.patch(identity.user_id, data))


@router.get("/artist/me/genres", response_model=list[GenreSummary])
async def list_my_artist_genres(
    identity: IdentityClaims = Depends(get_current_identity),
    service: ProfileService = Depends(get_artist_profile_service),
) -> list[GenreSummary]:
    return [GenreSummary.model_validate(g) for g in await service.list_genres(identity.user_id)]


@router.post("/artist/me/genres/{genre_id}", response_model=ArtistProfileDetail)
async def add_my_artist_genre(
    genre_id: UUID,
    identity: IdentityClaims = Depends(get_current_identity),
    service: ProfileService = Depends(get_artist_profile_service),
) -> ArtistProfileDetail:
    return ArtistProfileDetail.model_validate(await service.add_genre(identity.user_id, genre_id))


@router.delete("/artist/me/genres/{genre_id}", response_model=ArtistProfileDetail)
async def remove_my_artist_genre(
    genre_id: UUID,
    identity: IdentityClaims = Depends(get_current_identity),
    service: ProfileService = Depends(get_artist_profile_service),
) -> ArtistProfileDetail:
    return ArtistProfileDetail.model_validate(await service.remove_genre(identity.user_id, genre_id))


@router.get("/artist/me/skills", response_model=list[SkillSummary])
async def list_my_artist_skills(
    identity: IdentityClaims = Depends(get_current_identity),
    service: ProfileService = Depends(get_artist_profile_service),
) -> list[SkillSummary]:
    return [SkillSummary.model_validate(s) for s in await service.list_skills(identity.user_id)]


@router.post("/artist/me/skills/{skill_id}", response_model=ArtistProfileDetail)
async def add_my_artist_skill(
    skill_id: UUID,
    identity: IdentityClaims = Depends(get_current_identity),
    service: ProfileService = Depends(get_artist_profile_service),
) -> ArtistProfileDetail:
    return ArtistProfileDetail.model_validate(await service.add_skill(identity.user_id, skill_id))


@router.delete("/artist/me/skills/{skill_id}", response_model=ArtistProfileDetail)
async def remove_my_artist_skill(
    skill_id: UUID,
    identity: IdentityClaims = Depends(get_current_identity),
    service: ProfileService = Depends(get_artist_profile_service),
) -> ArtistProfileDetail:
    return ArtistProfileDetail.model_validate(await service.remove_skill(identity.user_id, skill_id))


# ── Producer ───────────────────────────────────────


@router.get("/producer/me", response_model=ProducerProfileDetail)
async def get_my_producer_profile(
    identity: IdentityClaims = Depends(get_current_identity),
    service: ProfileService = Depends(get_producer_profile_service),
) -> ProducerProfileDetail:
    return ProducerProfileDetail.model_validate(await service.get_profile(identity.user_id))


@router.put("/producer/me", response_model=ProducerProfileDetail)
async def put_my_producer_profile(
    data: ProfileUpdateRequest,
    identity: IdentityClaims = Depends(get_current_identity),
    service: ProfileService = Depends(get_producer_profile_service),
) -> ProducerProfileDetail:
    return ProducerProfileDetail.model_validate(await service.create_or_update(identity.user_id, data))


@router.patch("/producer/me", response_model=ProducerProfileDetail)
async def patch_my_producer_profile(
    data: ProfileUpdateRequest,
    identity: IdentityClaims = Depends(get_current_identity),
    service: ProfileService = Depends(get_producer_profile_service),
) -> ProducerProfileDetail:
    return ProducerProfileDetail.model_validate(await service.patch(identity.user_id, data))


@router.get("/producer/me/genres", response_model=list[GenreSummary])
async def list_my_producer_genres(
    identity: IdentityClaims = Depends(get_current_identity),
    service: ProfileService = Depends(get_producer_profile_service),
) -> list[GenreSummary]:
    return [GenreSummary.model_validate(g) for g in await service.list_genres(identity.user_id)]


@router.post("/producer/me/genres/{genre_id}", response_model=ProducerProfileDetail)
async def add_my_producer_genre(
    genre_id: UUID,
    identity: IdentityClaims = Depends(get_current_identity),
    service: ProfileService = Depends(get_producer_profile_service),
) -> ProducerProfileDetail:
    return ProducerProfileDetail.model_validate(await service.add_genre(identity.user_id, genre_id))


@router.delete("/producer/me/genres/{genre_id}", response_model=ProducerProfileDetail)
async def remove_my_producer_genre(
    genre_id: UUID,
    identity: IdentityClaims = Depends(get_current_identity),
    service: ProfileService = Depends(get_producer_profile_service),
) -> ProducerProfileDetail:
    return ProducerProfileDetail.model_validate(await service.remove_genre(identity.user_id, genre_id))
