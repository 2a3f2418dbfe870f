"""
Member self-service: the caller's ticket requests and assigned tickets.

Every query and update here is scoped to the authenticated user; a request id
belonging to someone else behaves exactly like one that does not exist.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from ticket_manager.api.deps import get_current_user
from ticket_manager.core.exceptions import NotFoundError
from ticket_manager.db.session import get_db
from ticket_manager.models.user import User
from ticket_manager.schemas.allocation import ReleaseResponse, StatusResponse
from ticket_manager.schemas.request import (
    TicketRequestBatchCreate,
    TicketRequestResponse,
    TicketRequestUpdate,
)
from ticket_manager.schemas.ticket import GameTicketDetail
from ticket_manager.services import allocation_service, inventory_service, request_service

router = APIRouter(prefix="/my", tags=["Member"])


@router.get("/requests", response_model=list[TicketRequestResponse])
async def list_my_requests(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await request_service.list_requests_for_user(db, user.id)


@router.post(
    "/requests",
    response_model=list[TicketRequestResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_my_requests(
    batch: TicketRequestBatchCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Request seats for one or more games. Requesting a game again updates the
    existing request; a withdrawn request becomes pending again.
    """
    return await request_service.create_requests(db, user.id, batch.requests)


@router.patch("/requests/{request_id}", response_model=StatusResponse)
async def update_my_request(
    request_id: int,
    update_data: TicketRequestUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    updated = await request_service.update_request(
        db, request_id, user.id, update_data.seats_requested
    )
    if not updated:
        raise NotFoundError("Request not found or not pending")
    return StatusResponse()


@router.delete("/requests/{request_id}", response_model=StatusResponse)
async def withdraw_my_request(
    request_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    if not await request_service.withdraw_request(db, request_id, user.id):
        raise NotFoundError("Request not found or not pending")
    return StatusResponse()


@router.get("/games", response_model=list[GameTicketDetail])
async def list_my_games(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Tickets currently assigned to the caller, by game date."""
    return await inventory_service.list_tickets_for_user(db, user.id)


@router.post("/games/{game_pk}/release", response_model=ReleaseResponse)
async def release_my_game(
    game_pk: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Give back every ticket the caller holds for this game."""
    released = await allocation_service.release_for_user(db, game_pk, user.id)
    return ReleaseResponse(released=released)
