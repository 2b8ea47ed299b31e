"""Block / unblock routes."""

from uuid import UUID

from fastapi import APIRouter, Depends, status

from app.api.dependencies import PageParams, get_interaction_service
from app.api.middleware.auth import IdentityClaims, get_current_identity
from app.api.schemas import PageResponse, UserSummary
from app.services.interaction import InteractionService

router = APIRouter(prefix="/blocks", tags=["Blocks"])


@router.get("", response_model=PageResponse[UserSummary])
async def list_blocked_users(
    paging: PageParams = Depends(),
    identity: IdentityClaims = Depends(get_current_identity),
    service: InteractionService = Depends(get_interaction_service),
) -> PageResponse[UserSummary]:
    page = await service.get_blocked_users(identity.user_id, paging.page, paging.size)
    return PageResponse[UserSummary].from_page(page)


@router.post("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def block_user(
    user_id: UUID,
    identity: IdentityClaims = Depends(get_current_identity),
    service: InteractionService = Depends(get_interaction_service),
) -> None:
    await service.block_user(identity.user_id, user_id)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def unblock_user(
    user_id: UUID,
    identity: IdentityClaims = Depends(get_current_identity),
    service: InteractionService = Depends(get_interaction_service),
) -> None:
    await service.unblock_user(identity.user_id, user_id)
