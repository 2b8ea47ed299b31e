"""Collaborator match routes."""

from fastapi import APIRouter, Depends, Query

from app.api.dependencies import PageParams, get_matching_service
from app.api.middleware.auth import IdentityClaims, get_current_identity
from app.api.schemas import PageResponse, UserSummary
from app.services.matching import DEFAULT_SORT, MatchingService

router = APIRouter(tags=["Matches"])


@router.get("/users/me/matches", response_model=PageResponse[UserSummary])
async def get_matches(
    paging: PageParams = Depends(),
    sort: str = Query(DEFAULT_SORT, max_length=64),
    identity: IdentityClaims = Depends(get_current_identity),
    service: MatchingService = Depends(get_matching_service),
) -> PageResponse[UserSummary]:
    """Ranked collaborators for the current user, best match first."""
    page = await service.find_matches(identity.user_id, paging.page, paging.size, sort)
    return PageResponse[UserSummary].from_page(page)
