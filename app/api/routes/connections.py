"""Connection request routes."""

from uuid import UUID

from fastapi import APIRouter, Depends, status

from app.api.dependencies import PageParams, get_interaction_service
from app.api.middleware.auth import IdentityClaims, get_current_identity
from app.api.schemas import (
    ConnectionResponse,
    InteractionStatusResponse,
    PageResponse,
    UserSummary,
)
from app.services.interaction import InteractionService

router = APIRouter(prefix="/connections", tags=["Connections"])


@router.get("", response_model=PageResponse[UserSummary])
async def list_connections(
    paging: PageParams = Depends(),
    identity: IdentityClaims = Depends(get_current_identity),
    service: InteractionService = Depends(get_interaction_service),
) -> PageResponse[UserSummary]:
    page = await service.get_connections(identity.user_id, paging.page, paging.size)
    return PageResponse[UserSummary].from_page(page)


@router.get("/pending/incoming", response_model=PageResponse[UserSummary])
async def list_incoming_requests(
    paging: PageParams = Depends(),
    identity: IdentityClaims = Depends(get_current_identity),
    service: InteractionService = Depends(get_interaction_service),
) -> PageResponse[UserSummary]:
    page = await service.get_pending_incoming(identity.user_id, paging.page, paging.size)
    return PageResponse[UserSummary].from_page(page)


@router.get("/pending/outgoing", response_model=PageResponse[UserSummary])
async def list_outgoing_requests(
    paging: PageParams = Depends(),
    identity: IdentityClaims = Depends(get_current_identity),
    service: InteractionService = Depends(get_interaction_service),
) -> PageResponse[UserSummary]:
    page = await service.get_pending_outgoing(identity.user_id, paging.page, paging.size)
    return PageResponse[UserSummary].from_page(page)


@router.get("/status/{user_id}", response_model=InteractionStatusResponse)
async def get_interaction_status(
    user_id: UUID,
    identity: IdentityClaims = Depends(get_current_identity),
    service: InteractionService = Depends(get_interaction_service),
) -> InteractionStatusResponse:
    result = await service.check_interaction_status(identity.user_id, user_id)
    return InteractionStatusResponse(user_id=user_id, status=result)


@router.post("/{user_id}/request", response_model=ConnectionResponse, status_code=status.HTTP_201_CREATED)
async def send_request(
    user_id: UUID,
    identity: IdentityClaims = Depends(get_current_identity),
    service: InteractionService = Depends(get_interaction_service),
) -> ConnectionResponse:
    connection = await service.send_connection_request(identity.user_id, user_id)
    return ConnectionResponse.model_validate(connection)


@router.post("/{user_id}/accept", response_model=ConnectionResponse)
async def accept_request(
    user_id: UUID,
    identity: IdentityClaims = Depends(get_current_identity),
    service: InteractionService = Depends(get_interaction_service),
) -> ConnectionResponse:
    connection = await service.accept_connection_request(identity.user_id, user_id)
    return ConnectionResponse.model_validate(connection)


@router.post("/{user_id}/reject", status_code=status.HTTP_204_NO_CONTENT)
async def reject_request(
    user_id: UUID,
    identity: IdentityClaims = Depends(get_current_identity),
    service: InteractionService = Depends(get_interaction_service),
) -> None:
    await service.reject_connection_request(identity.user_id, user_id)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_connection(
    user_id: UUID,
    identity: IdentityClaims = Depends(get_current_identity),
    service: InteractionService = Depends(get_interaction_service),
) -> None:
    await service.remove_connection(identity.user_id, user_id)
