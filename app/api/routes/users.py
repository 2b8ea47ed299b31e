"""User sync, lookup, search and activation routes."""

from uuid import UUID

from fastapi import APIRouter, Depends, status

from app.api.dependencies import PageParams, get_user_service
from app.api.middleware.auth import IdentityClaims, get_current_identity, require_admin
from app.api.schemas import (
    LocationUpdateRequest,
    PageResponse,
    UserDetail,
    UserSearchRequest,
    UserSummary,
)
from app.domain.errors import InvalidRequestError
from app.ports.repositories import UserSearchCriteria
from app.services.users import UserService

router = APIRouter(prefix="/users", tags=["Users"])


@router.put("/me/sync", response_model=UserDetail)
async def sync_me(
    identity: IdentityClaims = Depends(get_current_identity),
    service: UserService = Depends(get_user_service),
) -> UserDetail:
    """Create or refresh the caller's local record from their token claims."""
    if not identity.username or not identity.email:
        raise InvalidRequestError("Token must carry preferred_username and email claims")
    user = await service.sync_user(
        identity.user_id,
        username=identity.username,
        email=identity.email,
        first_name=identity.first_name,
        last_name=identity.last_name,
    )
    return UserDetail.model_validate(user)


@router.get("/me", response_model=UserDetail)
async def get_me(
    identity: IdentityClaims = Depends(get_current_identity),
    service: UserService = Depends(get_user_service),
) -> UserDetail:
    return UserDetail.model_validate(await service.get_user(identity.user_id))


@router.put("/me/location", response_model=UserDetail)
async def update_my_location(
    data: LocationUpdateRequest,
    identity: IdentityClaims = Depends(get_current_identity),
    service: UserService = Depends(get_user_service),
) -> UserDetail:
    return UserDetail.model_validate(await service.update_location(identity.user_id, data.location))


@router.get("/by-username/{username}", response_model=UserDetail)
async def get_user_by_username(
    username: str,
    _identity: IdentityClaims = Depends(get_current_identity),
    service: UserService = Depends(get_user_service),
) -> UserDetail:
    return UserDetail.model_validate(await service.get_user_by_username(username))


@router.post("/search", response_model=PageResponse[UserSummary])
async def search_users(
    data: UserSearchRequest,
    paging: PageParams = Depends(),
    identity: IdentityClaims = Depends(get_current_identity),
    service: UserService = Depends(get_user_service),
) -> PageResponse[UserSummary]:
    criteria = UserSearchCriteria(**data.model_dump())
    page = await service.search_users(identity.user_id, criteria, paging.page, paging.size)
    return PageResponse[UserSummary].from_page(page)


@router.get("/{user_id}", response_model=UserDetail)
async def get_user(
    user_id: UUID,
    _identity: IdentityClaims = Depends(get_current_identity),
    service: UserService = Depends(get_user_service),
) -> UserDetail:
    return UserDetail.model_validate(await service.get_user(user_id))


@router.post("/{user_id}/deactivate", status_code=status.HTTP_204_NO_CONTENT)
async def deactivate_user(
    user_id: UUID,
    _admin: IdentityClaims = Depends(require_admin),
    service: UserService = Depends(get_user_service),
) -> None:
    await service.deactivate_user(user_id)


@router.post("/{user_id}/reactivate", status_code=status.HTTP_204_NO_CONTENT)
async def reactivate_user(
    user_id: UUID,
    _admin: IdentityClaims = Depends(require_admin),
    service: UserService = Depends(get_user_service),
) -> None:
    await service.reactivate_user(user_id)
